"""
sloreport configuration.

- Pydantic-based settings (environment variables, .env files) for tenant
  URLs and credentials
- YAML report config for SLO ids, thresholds and evaluator options
"""

from sloreport.config.loader import get_config_path, load_config, save_config
from sloreport.config.report import ReportConfig, TicketConfig, Thresholds
from sloreport.config.settings import Settings, get_settings

__all__ = [
    "ReportConfig",
    "Settings",
    "Thresholds",
    "TicketConfig",
    "get_config_path",
    "get_settings",
    "load_config",
    "save_config",
]
