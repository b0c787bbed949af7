"""Tests for core/errors.py."""

import pytest

from sloreport.clients.base import PermanentHTTPError, RetryableHTTPError
from sloreport.core.errors import (
    ConfigurationError,
    ExitCode,
    ProviderError,
    SloReportError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
    resolve_exit_code,
)


class TestExceptions:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize(
        "error_class,code",
        [
            (ConfigurationError, ExitCode.CONFIG_ERROR),
            (ProviderError, ExitCode.PROVIDER_ERROR),
            (ValidationError, ExitCode.VALIDATION_ERROR),
            (SloReportError, ExitCode.UNKNOWN_ERROR),
        ],
    )
    def test_exit_codes(self, error_class, code):
        assert error_class("boom").exit_code == code

    def test_details_default_empty(self):
        error = ProviderError("boom")
        assert error.details == {}
        assert str(error) == "boom"

    def test_format_error_message(self):
        error = ValidationError("record rejected", {"slo_id": "a", "windows": 3})
        assert format_error_message(error) == "record rejected (slo_id=a, windows=3)"
        assert format_error_message(ValidationError("plain")) == "plain"


class TestMainWithErrorHandling:
    """Tests for the CLI error handling decorator."""

    def test_passes_through_return_value(self):
        @main_with_error_handling()
        def command():
            return ExitCode.WARNING

        assert command() == ExitCode.WARNING

    def test_sloreport_error_mapped_to_exit_code(self):
        @main_with_error_handling()
        def command():
            raise ProviderError("Dynatrace unavailable", {"status": 503})

        assert command() == ExitCode.PROVIDER_ERROR

    def test_unexpected_error(self):
        @main_with_error_handling()
        def command():
            raise RuntimeError("bug")

        assert command() == ExitCode.UNKNOWN_ERROR

    def test_keyboard_interrupt(self):
        @main_with_error_handling(log_errors=False)
        def command():
            raise KeyboardInterrupt

        assert command() == 130

    def test_preserves_function_name(self):
        @main_with_error_handling()
        def my_command():
            return 0

        assert my_command.__name__ == "my_command"

    def test_transport_error_is_provider_error(self):
        @main_with_error_handling()
        def command():
            raise PermanentHTTPError("HTTP 401: Token is missing required scope", 401)

        assert command() == ExitCode.PROVIDER_ERROR

    def test_error_echoed_to_stderr(self, capsys):
        @main_with_error_handling(log_errors=False)
        def command():
            raise ConfigurationError("report config not found", {"path": "x.yaml"})

        command()
        assert "report config not found (path=x.yaml)" in capsys.readouterr().err


class TestResolveExitCode:
    """Tests for resolve_exit_code()."""

    def test_mapping(self):
        assert resolve_exit_code(ValidationError("bad")) == ExitCode.VALIDATION_ERROR
        assert resolve_exit_code(KeyboardInterrupt()) == 130
        assert resolve_exit_code(RetryableHTTPError("HTTP 503")) == ExitCode.PROVIDER_ERROR
        assert resolve_exit_code(ValueError("bug")) == ExitCode.UNKNOWN_ERROR
