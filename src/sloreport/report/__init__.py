"""
SLO report rendering.

Markdown report, breach ticket content and the pipeline tying them to the
evaluator.
"""

from sloreport.report.markdown import MarkdownReportBuilder
from sloreport.report.pipeline import ReportResult, build_report
from sloreport.report.ticket import BreachTicket, build_breach_ticket

__all__ = [
    "BreachTicket",
    "MarkdownReportBuilder",
    "ReportResult",
    "build_breach_ticket",
    "build_report",
]
