"""
Application settings using Pydantic.

Provides environment-based configuration loading with SLOREPORT_ prefix.
Tenant URLs and the API token live here rather than in the report config so
the YAML file can be committed without credentials.
"""

from functools import lru_cache
from typing import Literal

from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from sloreport.core.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SLOREPORT_",
        extra="ignore",
    )

    # Dynatrace classic environment API (e.g. https://abc123.live.dynatrace.com)
    dynatrace_api_url: str | None = None
    dynatrace_token: str | None = None

    # Dynatrace platform UI, used for deep links in the report
    dynatrace_ui_url: str | None = None

    # HTTP client settings
    http_timeout: float = 30.0

    # Logging: "json" for workflow runs, "console" for local use
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance; invalid SLOREPORT_* values raise ConfigurationError."""
    try:
        return Settings()
    except PydanticValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise ConfigurationError(
            f"invalid settings: {exc.error_count()} bad value(s)", {"fields": ",".join(fields)}
        ) from exc
