"""sloreport: Dynatrace SLO status reports with trend analysis and breach tickets."""

__version__ = "0.1.0"
