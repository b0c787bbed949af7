"""
Dynatrace environment API client.

Covers the four endpoints an SLO report needs: SLO evaluation, USQL user
action queries, monitored entity lookup and metric queries.
"""

from __future__ import annotations

from typing import Any, Sequence

from sloreport.clients.base import BaseHTTPClient


def id_selector(slo_ids: Sequence[str]) -> str:
    """Build an SLO selector matching the given ids, e.g. ``id("a","b")``."""
    return 'id("' + '","'.join(slo_ids) + '")'


class DynatraceClient(BaseHTTPClient):
    """Dynatrace API client with retry logic and circuit breaker."""

    def __init__(
        self,
        base_url: str,
        token: str | None,
        *,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(base_url, timeout=timeout)
        self._token = token

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json; charset=utf-8"}
        if self._token:
            headers["Authorization"] = f"Api-Token {self._token}"
        return headers

    async def get_slos(
        self,
        slo_ids: Sequence[str],
        *,
        from_: str,
        to: str = "now",
        page_size: int = 25,
    ) -> list[dict[str, Any]]:
        """Evaluate the given SLOs over ``from_``..``to`` (one page)."""
        data = await self.get(
            "/api/v2/slo",
            params={
                "sloSelector": id_selector(slo_ids),
                "timeFrame": "GTF",
                "from": from_,
                "to": to,
                "pageSize": page_size,
                "evaluate": "true",
            },
        )
        return list(data.get("slo") or [])

    async def query_usql(
        self,
        query: str,
        *,
        start_timestamp: int,
        end_timestamp: int,
    ) -> dict[str, Any]:
        """Run a USQL query and return the table result (columnNames/values)."""
        return await self.get(
            "/api/v1/userSessionQueryLanguage/table",
            params={
                "query": query,
                "startTimestamp": start_timestamp,
                "endTimestamp": end_timestamp,
            },
        )

    async def get_entities(
        self,
        entity_selector: str,
        *,
        from_: str = "now-7d",
        to: str = "now",
        fields: str | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"entitySelector": entity_selector, "from": from_, "to": to}
        if fields:
            params["fields"] = fields
        data = await self.get("/api/v2/entities", params=params)
        return list(data.get("entities") or [])

    async def query_metrics(
        self,
        metric_selector: str,
        *,
        from_: str = "now-7d",
        to: str = "now",
        resolution: str = "Inf",
    ) -> list[dict[str, Any]]:
        data = await self.get(
            "/api/v2/metrics/query",
            params={
                "metricSelector": metric_selector,
                "from": from_,
                "to": to,
                "resolution": resolution,
            },
        )
        return list(data.get("result") or [])
