"""
CLI commands for rendering the SLO report.

Usage:
    sloreport render --snapshot snapshot.json --output report.md
    sloreport run --output report.md --ticket-output ticket.json
    sloreport run --fail-on-breach     # exit 1 when any SLO is below target

Exit codes:
    0 = report written
    1 = report written, breach found (only with --fail-on-breach)
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

from sloreport.cli.fetch import collect_report_data
from sloreport.cli.ux import success, warning
from sloreport.config import ReportConfig, get_settings, load_config
from sloreport.core.errors import ExitCode, main_with_error_handling
from sloreport.fetch import ReportData, read_snapshot, write_snapshot
from sloreport.report import ReportResult, build_report


def _emit(
    result: ReportResult,
    output: str | None,
    ticket_output: str | None,
    fail_on_breach: bool,
) -> int:
    if output:
        Path(output).write_text(result.markdown)
        success(f"Report for {result.report_date} written to {output}")
    else:
        print(result.markdown)

    if result.ticket is not None and ticket_output:
        Path(ticket_output).write_text(json.dumps(result.ticket.to_dict(), indent=2))
        success(f"Breach ticket written to {ticket_output}")

    if result.has_breach:
        warning(f"{len(result.evaluation.failing)} SLO(s) below target")
        if fail_on_breach:
            return ExitCode.WARNING
    return ExitCode.SUCCESS


def _render(data: ReportData, config: ReportConfig) -> ReportResult:
    return build_report(data, config, ui_url=get_settings().dynatrace_ui_url)


@main_with_error_handling()
def render_command(
    config_path: str | None,
    snapshot: str,
    output: str | None = None,
    ticket_output: str | None = None,
    fail_on_breach: bool = False,
) -> int:
    """Render a report from a snapshot written by ``sloreport fetch``."""
    config = load_config(config_path)
    data = read_snapshot(snapshot)
    return _emit(_render(data, config), output, ticket_output, fail_on_breach)


@main_with_error_handling()
def run_command(
    config_path: str | None,
    output: str | None = None,
    ticket_output: str | None = None,
    snapshot: str | None = None,
    fail_on_breach: bool = False,
) -> int:
    """Fetch and render in one step, optionally keeping the snapshot."""
    config = load_config(config_path)
    data = asyncio.run(collect_report_data(config, get_settings()))
    if snapshot:
        write_snapshot(data, snapshot)
    return _emit(_render(data, config), output, ticket_output, fail_on_breach)
