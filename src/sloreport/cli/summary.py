"""
CLI command for a terminal SLO summary.

Usage:
    sloreport summary --snapshot snapshot.json              # Rich table
    sloreport summary --snapshot snapshot.json --format json
"""

from __future__ import annotations

import json

from rich.markup import escape
from rich.table import Table

from sloreport.cli.ux import console, header
from sloreport.config import load_config
from sloreport.core.errors import ExitCode, main_with_error_handling
from sloreport.evaluator import Category, Evaluation, evaluate
from sloreport.evaluator.models import WINDOW_LABELS
from sloreport.fetch import read_snapshot
from sloreport.report.formatting import format_percent, format_target

CATEGORY_STYLES: dict[Category, tuple[str, str]] = {
    Category.FAILING: ("red bold", "Failing"),
    Category.PASSING: ("green", "Passing"),
    Category.NO_DATA: ("dim", "No Data"),
}


@main_with_error_handling()
def summary_command(config_path: str | None, snapshot: str, format: str = "table") -> int:
    """
    Display evaluated SLOs from a snapshot.

    Returns:
        Exit code (0 for success)
    """
    config = load_config(config_path)
    data = read_snapshot(snapshot)
    evaluation = evaluate(data.slos, config.evaluator)

    if format == "json":
        print(json.dumps({"report_date": data.report_date, **evaluation.to_dict()}, indent=2))
    else:
        _print_table(evaluation, data.report_date, config.evaluator.evaluation_window_index)

    return ExitCode.SUCCESS


def _print_table(evaluation: Evaluation, report_date: str, window_index: int) -> None:
    header(f"SLO Summary - {report_date}")

    if evaluation.has_breach:
        console.print(f"Overall: [red bold]BREACH[/red bold] ({len(evaluation.failing)} below target)")
    else:
        console.print("Overall: [green bold]OK[/green bold]")
    console.print()

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Status", style="bold")
    table.add_column("SLO")
    table.add_column("Target", justify="right")
    table.add_column(WINDOW_LABELS[window_index], justify="right")
    table.add_column("Trend")

    for category, records in evaluation.by_category().items():
        style, label = CATEGORY_STYLES[category]
        for record in records:
            table.add_row(
                f"[{style}]{label}[/{style}]",
                escape(record.name),
                format_target(record.target),
                format_percent(record.windows[window_index].value),
                evaluation.trend_for(record).value,
            )

    console.print(table)
    console.rule(style="dim")
    console.print(
        f"[bold]Total:[/bold] {evaluation.total} SLOs, "
        f"{len(evaluation.passing)} passing, {len(evaluation.failing)} failing, "
        f"{len(evaluation.no_data)} no data"
    )
