"""Core modules for sloreport - centralized error definitions."""

from sloreport.core.errors import (
    ConfigurationError,
    ExitCode,
    ProviderError,
    SloReportError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "SloReportError",
    "ConfigurationError",
    "ProviderError",
    "ValidationError",
    "main_with_error_handling",
    "format_error_message",
]
