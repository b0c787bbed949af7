from __future__ import annotations

from typing import Any, Self

import httpx
import structlog
from circuitbreaker import circuit
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger()

RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})


class RetryableHTTPError(Exception):
    """Transient failure (throttling, gateway errors, network); retried."""


class PermanentHTTPError(Exception):
    """Rejected request (bad selector, missing token scope); never retried."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUSES


def error_message(response: httpx.Response) -> str:
    """
    Best-effort message from an error response.

    Dynatrace wraps errors as ``{"error": {"code": 400, "message": "..."}}``;
    anything else falls back to the raw body.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return str(body["error"].get("message") or body["error"])
    return response.text[:200]


class BaseHTTPClient:
    """
    Read-only JSON API client with retry logic and circuit breaker.

    One pooled ``httpx.AsyncClient`` is opened lazily and shared by every
    request until ``aclose()``; use the client as an async context manager
    to scope it.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self) -> dict[str, str]:
        """Override to provide auth headers."""
        return {"Accept": "application/json"}

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers(),
                timeout=self._timeout,
            )
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @circuit(
        failure_threshold=5,
        recovery_timeout=60,
        expected_exception=RetryableHTTPError,
    )
    @retry(
        retry=retry_if_exception_type(RetryableHTTPError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=2, min=1, max=30),
        reraise=True,
    )
    async def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        GET ``path`` and decode the JSON body.

        Raises:
            RetryableHTTPError: After the final attempt of a transient failure
            PermanentHTTPError: For any other non-2xx status, or a body that is not JSON
        """
        try:
            response = await self._client().get(path, params=params)
        except httpx.TransportError as exc:
            logger.warning("http_network_error", path=path, error=str(exc))
            raise RetryableHTTPError(str(exc)) from exc

        if is_retryable_status(response.status_code):
            logger.warning("http_retryable_error", status=response.status_code, path=path)
            raise RetryableHTTPError(f"HTTP {response.status_code}: {error_message(response)}")

        if response.is_error:
            message = error_message(response)
            logger.error(
                "http_permanent_error",
                status=response.status_code,
                path=path,
                error=message,
            )
            raise PermanentHTTPError(f"HTTP {response.status_code}: {message}", response.status_code)

        logger.debug("http_ok", path=path, status=response.status_code, bytes=len(response.content))
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            # e.g. an SSO login page served with 200
            logger.error("http_invalid_body", status=response.status_code, path=path)
            raise PermanentHTTPError(
                f"invalid JSON body: {response.text[:100]!r}", response.status_code
            ) from exc
