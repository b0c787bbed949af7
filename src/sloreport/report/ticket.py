"""
Breach ticket content.

Builds the work item a workflow files when at least one SLO is below its
target. Filing it is left to the workflow; this module only decides
whether a ticket is due and what it says.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import Any

from sloreport.config.report import ReportConfig
from sloreport.evaluator.models import CURRENT_INDEX, DAY7_INDEX, Evaluation
from sloreport.fetch.models import ReportData
from sloreport.report.formatting import format_percent, format_target


@dataclass
class BreachTicket:
    """Work item describing the SLOs currently below target."""

    title: str
    description: str
    work_item_type: str
    failing_slo_ids: list[str] = field(default_factory=list)
    area_path: str | None = None
    tags: list[str] = field(default_factory=list)
    priority: int = 2

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON export."""
        return {
            "title": self.title,
            "description": self.description,
            "work_item_type": self.work_item_type,
            "area_path": self.area_path,
            "tags": list(self.tags),
            "priority": self.priority,
            "failing_slo_ids": list(self.failing_slo_ids),
        }


def build_breach_ticket(
    evaluation: Evaluation,
    data: ReportData,
    config: ReportConfig,
) -> BreachTicket | None:
    """
    Prepare a breach ticket.

    Returns:
        None when nothing is failing, otherwise the ticket content
    """
    if not evaluation.has_breach:
        return None

    failing = evaluation.failing
    count = len(failing)
    title = f"SLO Breach Alert - {count} SLO(s) Below Target - {data.report_date}"

    parts = [
        f"<h2>SLO Breach Report - {html.escape(data.report_date)}</h2>",
        f"<p><strong>{count} SLO(s)</strong> are currently below their target.</p>",
        "<table border='1' cellpadding='5' cellspacing='0'>",
        "<tr><th>SLO Name</th><th>Target</th><th>7-Day Status</th><th>Current Status</th></tr>",
    ]
    for record in failing:
        parts.append(
            "<tr>"
            f"<td>{html.escape(record.name)}</td>"
            f"<td>{format_target(record.target)}</td>"
            f"<td>{format_percent(record.windows[DAY7_INDEX].value)}</td>"
            f"<td>{format_percent(record.windows[CURRENT_INDEX].value)}</td>"
            "</tr>"
        )
    parts.append("</table>")
    if data.dashboard_url:
        parts.append(
            f"<br><p><a href='{html.escape(data.dashboard_url, quote=True)}'>"
            "View Dashboard in Dynatrace</a></p>"
        )
    parts.append(
        "<p><em>This work item was created automatically by the SLO monitoring workflow.</em></p>"
    )

    return BreachTicket(
        title=title,
        description="".join(parts),
        work_item_type=config.ticket.work_item_type,
        failing_slo_ids=[record.id for record in failing],
        area_path=config.ticket.area_path,
        tags=list(config.ticket.tags),
        priority=config.ticket.priority,
    )
