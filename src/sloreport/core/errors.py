"""
Error types and exit codes for sloreport commands.

Every failure a command can report maps onto one exit code so workflow
steps can branch on it:

- 0: report produced, nothing below target
- 1: report produced, at least one SLO below target (``--fail-on-breach``)
- 10: configuration problem (missing file, bad value, missing credentials)
- 11: Dynatrace could not be reached or returned nothing usable
- 12: rejected input (snapshot or SLO record)
- 127: anything else
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()

INTERRUPTED = 130


class ExitCode(IntEnum):
    SUCCESS = 0
    WARNING = 1
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127


class SloReportError(Exception):
    """Base class; ``details`` are logged as structured fields."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SloReportError):
    exit_code = ExitCode.CONFIG_ERROR


class ProviderError(SloReportError):
    """Dynatrace failed or returned no SLO data at all."""

    exit_code = ExitCode.PROVIDER_ERROR


class ValidationError(SloReportError):
    """Input rejected, e.g. an SLO record without an id or a corrupt snapshot."""

    exit_code = ExitCode.VALIDATION_ERROR


def format_error_message(error: SloReportError) -> str:
    """One-line message with details appended as ``key=value`` pairs."""
    if not error.details:
        return error.message
    detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
    return f"{error.message} ({detail_str})"


def _is_transport_error(exc: BaseException) -> bool:
    # Imported here so core stays free of the HTTP stack at import time.
    from circuitbreaker import CircuitBreakerError

    from sloreport.clients.base import PermanentHTTPError, RetryableHTTPError

    return isinstance(exc, (PermanentHTTPError, RetryableHTTPError, CircuitBreakerError))


def resolve_exit_code(exc: BaseException) -> int:
    """Exit code a command returns when ``exc`` escapes it."""
    if isinstance(exc, SloReportError):
        return exc.exit_code
    if isinstance(exc, KeyboardInterrupt):
        return INTERRUPTED
    if _is_transport_error(exc):
        return ExitCode.PROVIDER_ERROR
    return ExitCode.UNKNOWN_ERROR


def _print_error(message: str) -> None:
    from rich.markup import escape

    from sloreport.cli.ux import error as print_error

    print_error(escape(message))


F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Turn exceptions escaping a command into exit codes.

    The error is logged as ``command_error`` (known errors) or
    ``unexpected_error`` and echoed to stderr; the command's own return
    value passes through untouched.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted", command=func.__name__)
                return INTERRUPTED
            except Exception as exc:
                code = resolve_exit_code(exc)
                if isinstance(exc, SloReportError):
                    if log_errors:
                        logger.error(
                            "command_error",
                            command=func.__name__,
                            error_type=type(exc).__name__,
                            message=exc.message,
                            exit_code=code,
                            **exc.details,
                        )
                    _print_error(format_error_message(exc))
                else:
                    if log_errors:
                        logger.error(
                            "unexpected_error" if code == ExitCode.UNKNOWN_ERROR else "command_error",
                            command=func.__name__,
                            error_type=type(exc).__name__,
                            message=str(exc),
                            exit_code=code,
                        )
                    _print_error(f"{type(exc).__name__}: {exc}")
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return code

        return wrapper  # type: ignore[return-value]

    return decorator
