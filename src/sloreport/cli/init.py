"""
CLI command for writing a starter report config.

Usage:
    sloreport init                       # .sloreport/config.yaml
    sloreport init --output my.yaml --force
"""

from __future__ import annotations

from pathlib import Path

from sloreport.cli.ux import success
from sloreport.config import ReportConfig, save_config
from sloreport.core.errors import ConfigurationError, ExitCode, main_with_error_handling

DEFAULT_CONFIG_PATH = Path(".sloreport") / "config.yaml"


def starter_config() -> ReportConfig:
    return ReportConfig(
        slo_ids=["your-slo-id-1", "your-slo-id-2"],
        title="Your Organization - SLO Report",
        subtitle="Your Domain Name",
        dashboard_url=(
            "https://YOUR-TENANT.apps.dynatrace.com/ui/apps/dynatrace.classic.dashboards/"
            "#dashboard;gtf=-1w;gf=all;id=YOUR-DASHBOARD-ID"
        ),
    )


@main_with_error_handling()
def init_command(output: str | None = None, force: bool = False) -> int:
    """Write a starter config with placeholder SLO ids."""
    path = Path(output) if output else DEFAULT_CONFIG_PATH
    if path.exists() and not force:
        raise ConfigurationError("config already exists (use --force)", {"path": str(path)})

    save_config(starter_config(), path)
    success(f"Wrote starter config to {path}")
    return ExitCode.SUCCESS
