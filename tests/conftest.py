"""Root test configuration."""

import logging

import pytest
import structlog

from sloreport.config.report import ReportConfig
from sloreport.config.settings import get_settings
from sloreport.evaluator.models import SloRecord, WindowValue


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def make_record(slo_id="slo-1", name="Checkout", target=99.0, values=(None, None, None, None), **kwargs):
    """Build an SloRecord from four plain window values."""
    return SloRecord(
        id=slo_id,
        name=name,
        target=target,
        windows=tuple(WindowValue(value=v) for v in values),
        **kwargs,
    )


@pytest.fixture
def report_config():
    return ReportConfig(
        slo_ids=["slo-a", "slo-b", "slo-c"],
        title="Payments - SLO Report",
        dashboard_url="https://tenant.example.com/dashboard",
    )


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate tests from SLOREPORT_* variables in the calling shell."""
    for name in (
        "SLOREPORT_DYNATRACE_API_URL",
        "SLOREPORT_DYNATRACE_TOKEN",
        "SLOREPORT_DYNATRACE_UI_URL",
        "SLOREPORT_LOG_LEVEL",
        "SLOREPORT_LOG_FORMAT",
        "SLOREPORT_HTTP_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
