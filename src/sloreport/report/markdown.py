"""
Markdown SLO report.

Renders evaluated SLOs plus user action and synthetic monitor details into
a Markdown document suitable for an email body or a chat post.
"""

from __future__ import annotations

from sloreport.config.report import ReportConfig
from sloreport.evaluator.engine import severity
from sloreport.evaluator.models import WINDOW_LABELS, Evaluation, SloRecord, Trend
from sloreport.fetch.models import ReportData, UserActionMetrics
from sloreport.report.formatting import (
    FAIL,
    NONE,
    OK,
    WARN,
    TREND_GLYPHS,
    attention_score,
    format_duration,
    format_error_count,
    format_percent,
    format_synthetic_availability,
    format_target,
    link,
    needs_attention,
    severity_glyph,
    shorten_user_action,
    synthetic_url,
    table_cell,
    trend_glyph,
    user_action_url,
)

RULE = "---"


class MarkdownReportBuilder:
    """Builds the Markdown report for one run."""

    def __init__(self, config: ReportConfig, *, ui_url: str | None = None) -> None:
        self.config = config
        self.thresholds = config.thresholds
        self.ui_url = ui_url

    def build(self, data: ReportData, evaluation: Evaluation) -> str:
        lines: list[str] = []
        lines += self._header(data)
        lines += self._summary(evaluation)
        lines += self._slo_table(
            evaluation.failing, f"{FAIL} SLOs Below Target (Action Required)", evaluation
        )
        lines += self._slo_table(evaluation.passing, f"{OK} SLOs Meeting Target", evaluation)
        lines += self._slo_table(evaluation.no_data, f"{NONE} SLOs With No Data", evaluation)
        lines += self._user_actions(data)
        lines += self._synthetics(data)
        lines += self._legend()
        lines += [RULE, "", link("View Dashboard in Dynatrace", data.dashboard_url), ""]
        return "\n".join(lines)

    def _header(self, data: ReportData) -> list[str]:
        lines = [f"# {self.config.title}", ""]
        if self.config.subtitle:
            lines += [f"## {self.config.subtitle}", ""]
        lines += [f"**Report Date:** {data.report_date}", ""]
        if data.dashboard_url:
            lines += [
                f"View SLO details and contributing factors on [dashboard]({data.dashboard_url})",
                "",
            ]
        if self.config.explained_link:
            lines += [f"[SLOs explained]({self.config.explained_link})", ""]
        return lines

    def _summary(self, evaluation: Evaluation) -> list[str]:
        status = f"{FAIL} BREACH" if evaluation.has_breach else f"{OK} OK"
        failing = len(evaluation.failing)
        no_data = len(evaluation.no_data)
        return [
            RULE,
            "",
            "## Executive Summary",
            "",
            "| Metric | Value |",
            "|--------|-------|",
            f"| **Overall Status** | {status} |",
            f"| Total SLOs Monitored | {evaluation.total} |",
            f"| Passing | {len(evaluation.passing)} {OK} |",
            f"| Failing | {failing}{' ' + FAIL if failing else ''} |",
            f"| No Data | {no_data}{' ' + NONE if no_data else ''} |",
            "",
        ]

    def _slo_table(self, records: list[SloRecord], title: str, evaluation: Evaluation) -> list[str]:
        if not records:
            return []

        window_index = self.config.evaluator.evaluation_window_index
        lines = [
            RULE,
            "",
            f"## {title}",
            "",
            "| SLO Name | Target | " + " | ".join(WINDOW_LABELS) + " | Trend |",
            "|----------|--------|--------|--------|-------|---------|-------|",
        ]
        for record in records:
            glyph = severity_glyph(severity(record.windows[window_index].value, record.target))
            cells = [f"{glyph} {table_cell(record.name)}", format_target(record.target)]
            cells += [format_percent(value) for value in record.values()]
            cells.append(trend_glyph(evaluation.trend_for(record)))
            lines.append("| " + " | ".join(cells) + " |")
        lines.append("")
        return lines

    def _actions_needing_attention(
        self, record: SloRecord, metrics: dict[str, UserActionMetrics]
    ) -> list[tuple[str, UserActionMetrics]]:
        flagged = [
            (action, metrics[action])
            for action in record.user_actions
            if needs_attention(metrics.get(action), self.thresholds)
        ]
        flagged.sort(key=lambda item: attention_score(item[1]), reverse=True)
        return flagged[: self.thresholds.max_user_actions_per_slo]

    def _user_actions(self, data: ReportData) -> list[str]:
        sections: list[list[str]] = []
        for record in data.slos:
            if record.is_synthetic:
                continue
            flagged = self._actions_needing_attention(record, data.user_action_metrics)
            if not flagged:
                continue

            section = [
                f"### {record.name}",
                "",
                "| User Action | Avg Duration | Custom Errors | JS Errors | Request Errors |",
                "|-------------|--------------|---------------|-----------|----------------|",
            ]
            for action, metrics in flagged:
                url = user_action_url(self.ui_url, action, data.user_action_entities.get(action))
                section.append(
                    "| "
                    + " | ".join(
                        [
                            link(table_cell(shorten_user_action(action)), url),
                            format_duration(metrics.avg_duration, self.thresholds),
                            format_error_count(metrics.custom_errors, self.thresholds),
                            format_error_count(metrics.js_errors, self.thresholds),
                            format_error_count(metrics.request_errors, self.thresholds),
                        ]
                    )
                    + " |"
                )
            section.append("")
            sections.append(section)

        if not sections:
            return []

        seconds = self.thresholds.duration_ms / 1000
        lines = [
            RULE,
            "",
            "## \U0001f4ca User Action Metrics (7-Day Totals)",
            "",
            f"The following user actions need attention "
            f"(≥{self.thresholds.error_count} total errors OR ≥{seconds:g}s avg duration).",
            "",
            "**Note:** Click on the user action names to view them in Dynatrace. Metrics are "
            "based on completed user sessions and combine all action types (XHR, Load or "
            "Route Change) with the same name, so averages can differ from the Dynatrace UI.",
            "",
        ]
        for section in sections:
            lines += section
        return lines

    def _synthetics(self, data: ReportData) -> list[str]:
        synthetic_slos = [r for r in data.slos if r.synthetic is not None]
        if not synthetic_slos:
            return []

        target = self.thresholds.synthetic_availability
        lines = [
            RULE,
            "",
            "## \U0001f916 Synthetic Availability Metrics (7-Day Totals)",
            "",
            "The following SLOs use Synthetic Monitoring instead of user actions.",
            "",
            f"**Note:** Synthetic Monitor data will only display if availability falls "
            f"beneath the SLO target of {target:g}%.",
            "",
        ]

        below = []
        for record in synthetic_slos:
            metrics = data.synthetic_metrics.get(record.synthetic.synthetic_id)
            if metrics and metrics.avg_availability is not None and metrics.avg_availability < target:
                below.append((record, metrics))

        if not below:
            lines += [f"{OK} All Synthetic Monitors are meeting the availability target.", ""]
            return lines

        for record, metrics in below:
            monitor = record.synthetic
            url = synthetic_url(self.ui_url, monitor.synthetic_id, monitor.type)
            lines += [
                f"### {record.name}",
                "",
                f"**Synthetic Monitor:** {link(monitor.name, url)}",
                "",
                "| Metric | Value |",
                "|--------|-------|",
                f"| **7-Day Avg Availability** | "
                f"{format_synthetic_availability(metrics.avg_availability, target)} |",
                f"| **SLO Target** | {target:g}% |",
                f"| **Locations Monitored** | {metrics.location_count} |",
                "",
            ]
        return lines

    def _legend(self) -> list[str]:
        t = self.thresholds
        return [
            RULE,
            "",
            "## Legend",
            "",
            "| Symbol | Meaning |",
            "|--------|---------|",
            f"| {OK} | Meeting target / No errors |",
            f"| {WARN} | Within 5% of target / Low errors (1-{t.error_warning}) "
            f"/ Slow (>{t.duration_warning_ms / 1000:g}s) |",
            f"| {FAIL} | Below target / High errors (>{t.error_warning}) "
            f"/ Very slow (>{t.duration_critical_ms / 1000:g}s) |",
            f"| {NONE} | No data available |",
            f"| {TREND_GLYPHS[Trend.IMPROVING]} | Improving across windows, never dipping |",
            f"| {TREND_GLYPHS[Trend.DEGRADING]} | Degrading across windows, never recovering |",
            f"| {TREND_GLYPHS[Trend.STABLE]} | Stable |",
            f"| {TREND_GLYPHS[Trend.FLUCTUATING]} | Fluctuating (both dips and recoveries) |",
            "",
        ]
