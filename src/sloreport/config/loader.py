"""
Report configuration file loading.

Search order:
1. Explicit path (--config flag)
2. .sloreport/config.yaml (project root)
3. ~/.sloreport/config.yaml (user home)
"""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml

from sloreport.config.report import ReportConfig
from sloreport.core.errors import ConfigurationError

logger = structlog.get_logger()


def get_config_path(explicit_path: str | Path | None = None) -> Path | None:
    """
    Find the configuration file to use.

    Returns:
        Path to config file or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        return None

    cwd_config = Path.cwd() / ".sloreport" / "config.yaml"
    if cwd_config.exists():
        return cwd_config

    home_config = Path.home() / ".sloreport" / "config.yaml"
    if home_config.exists():
        return home_config

    return None


def load_config(path: str | Path | None = None) -> ReportConfig:
    """
    Load the report configuration.

    Args:
        path: Optional explicit config file path

    Raises:
        ConfigurationError: If no file is found or the file is invalid
    """
    config_path = get_config_path(path)
    if config_path is None:
        raise ConfigurationError(
            "report config not found",
            {"path": str(path) if path else ".sloreport/config.yaml"},
        )

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"failed to read report config: {exc}", {"path": str(config_path)}) from exc

    if not isinstance(data, dict):
        raise ConfigurationError("report config must be a mapping", {"path": str(config_path)})

    config = ReportConfig.from_dict(data)
    if not config.slo_ids:
        raise ConfigurationError("report config lists no slo_ids", {"path": str(config_path)})

    logger.debug("loaded_config", path=str(config_path), slos=len(config.slo_ids))
    return config


def save_config(config: ReportConfig, path: str | Path) -> None:
    """Write a report configuration to disk."""
    target_path = Path(path)
    target_path.parent.mkdir(parents=True, exist_ok=True)

    with open(target_path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

    logger.info("saved_config", path=str(target_path))
