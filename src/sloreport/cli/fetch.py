"""
CLI command for fetching SLO data.

Usage:
    sloreport fetch --config .sloreport/config.yaml --output snapshot.json
"""

from __future__ import annotations

import asyncio

from sloreport.cli.ux import success
from sloreport.clients.dynatrace import DynatraceClient
from sloreport.config import ReportConfig, Settings, get_settings, load_config
from sloreport.core.errors import ConfigurationError, ExitCode, main_with_error_handling
from sloreport.fetch import ReportData, SloCollector, write_snapshot


def build_client(settings: Settings) -> DynatraceClient:
    if not settings.dynatrace_api_url:
        raise ConfigurationError("SLOREPORT_DYNATRACE_API_URL is not set")
    if not settings.dynatrace_token:
        raise ConfigurationError("SLOREPORT_DYNATRACE_TOKEN is not set")
    return DynatraceClient(
        settings.dynatrace_api_url,
        settings.dynatrace_token,
        timeout=settings.http_timeout,
    )


async def collect_report_data(config: ReportConfig, settings: Settings) -> ReportData:
    async with build_client(settings) as client:
        return await SloCollector(client, config).collect()


@main_with_error_handling()
def fetch_command(config_path: str | None, output: str) -> int:
    """
    Fetch SLO data and write it to a JSON snapshot.

    Returns:
        Exit code (0 for success)
    """
    config = load_config(config_path)
    data = asyncio.run(collect_report_data(config, get_settings()))
    path = write_snapshot(data, output)
    success(f"Fetched {len(data.slos)} SLOs into {path}")
    return ExitCode.SUCCESS
