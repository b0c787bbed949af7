"""
Report pipeline.

Evaluates fetched data and renders everything a workflow consumes: the
Markdown report, the breach flag and the optional breach ticket.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from sloreport.config.report import ReportConfig
from sloreport.evaluator.engine import evaluate
from sloreport.evaluator.models import Evaluation
from sloreport.fetch.models import ReportData
from sloreport.report.markdown import MarkdownReportBuilder
from sloreport.report.ticket import BreachTicket, build_breach_ticket

logger = structlog.get_logger()


@dataclass
class ReportResult:
    report_date: str
    markdown: str
    evaluation: Evaluation
    ticket: BreachTicket | None = None

    @property
    def has_breach(self) -> bool:
        return self.evaluation.has_breach

    def to_dict(self) -> dict[str, Any]:
        return {
            "report_date": self.report_date,
            "has_breach": self.has_breach,
            "evaluation": self.evaluation.to_dict(),
            "ticket": self.ticket.to_dict() if self.ticket else None,
        }


def build_report(
    data: ReportData,
    config: ReportConfig,
    *,
    ui_url: str | None = None,
) -> ReportResult:
    """
    Evaluate and render one report run.

    Args:
        data: Output of the fetch stage
        config: Report configuration (evaluator options, thresholds, ticket fields)
        ui_url: Dynatrace UI base URL for deep links; links are omitted without it
    """
    evaluation = evaluate(data.slos, config.evaluator)
    markdown = MarkdownReportBuilder(config, ui_url=ui_url).build(data, evaluation)
    ticket = build_breach_ticket(evaluation, data, config)

    logger.info(
        "report_built",
        report_date=data.report_date,
        slos=evaluation.total,
        has_breach=evaluation.has_breach,
        markdown_chars=len(markdown),
    )
    return ReportResult(
        report_date=data.report_date,
        markdown=markdown,
        evaluation=evaluation,
        ticket=ticket,
    )
