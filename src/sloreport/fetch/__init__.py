"""
Fetch stage.

Collects SLO status and related metrics from Dynatrace.
"""

from sloreport.fetch.collector import SloCollector, TIME_PERIODS
from sloreport.fetch.models import (
    ReportData,
    SyntheticMetrics,
    UserActionEntity,
    UserActionMetrics,
)
from sloreport.fetch.snapshot import read_snapshot, write_snapshot

__all__ = [
    "ReportData",
    "SloCollector",
    "SyntheticMetrics",
    "TIME_PERIODS",
    "UserActionEntity",
    "UserActionMetrics",
    "read_snapshot",
    "write_snapshot",
]
