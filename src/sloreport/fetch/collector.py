"""
SLO data collector.

Fetches SLO status for four lookback windows plus user action and synthetic
monitor metrics, and assembles them into ``ReportData``. A failing batch is
logged and skipped so one bad request only blanks the affected values.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, Sequence, TypeVar

import structlog
from circuitbreaker import CircuitBreakerError

from sloreport.clients.base import PermanentHTTPError, RetryableHTTPError
from sloreport.clients.dynatrace import DynatraceClient
from sloreport.config.report import ReportConfig
from sloreport.core.errors import ProviderError
from sloreport.evaluator.models import WINDOW_NAMES, SloRecord, WindowValue
from sloreport.fetch.models import (
    LocationAvailability,
    ReportData,
    SyntheticMetrics,
    UserActionEntity,
    UserActionMetrics,
)
from sloreport.filters.parser import FilterParseError, user_actions_from_filter
from sloreport.logging import bind_context

logger = structlog.get_logger()

T = TypeVar("T")

FETCH_ERRORS = (PermanentHTTPError, RetryableHTTPError, CircuitBreakerError)

SYNTHETIC_AVAILABILITY_METRIC = "builtin:synthetic.browser.availability.location.total"


@dataclass(frozen=True)
class TimePeriod:
    name: str
    from_: str
    to: str = "now"


# Same order as the record windows: 90-day, 30-day, 7-day, current.
TIME_PERIODS: tuple[TimePeriod, ...] = (
    TimePeriod("day90", "now-90d"),
    TimePeriod("day30", "now-30d"),
    TimePeriod("day7", "now-7d"),
    TimePeriod("current", "now-1d"),
)

# Base metadata (name, target, filter) prefers the most recent window.
BASE_PRECEDENCE = ("current", "day7", "day30", "day90")


def batched(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Split a sequence into lists of at most ``size`` items."""
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def build_usql_query(user_actions: Sequence[str]) -> str:
    """USQL query returning 7-day duration and error totals per action name."""
    names = ",".join("'" + name.replace("'", "\\'") + "'" for name in user_actions)
    return (
        "SELECT name, "
        "AVG(duration) AS avg_duration, "
        "SUM(customErrorCount) AS total_customErrors, "
        "SUM(javascriptErrorCount) AS total_jsErrors, "
        "SUM(requestErrorCount) AS total_requestErrors, "
        "COUNT(*) AS action_count "
        "FROM useraction "
        f"WHERE name IN ({names}) "
        "GROUP BY name"
    )


def user_action_entity_selector(user_action: str) -> str:
    escaped = user_action.replace('"', '\\"')
    return f'type("APPLICATION_METHOD"),entityName.equals("{escaped}")'


def synthetic_metric_selector(synthetic_id: str) -> str:
    return (
        f'{SYNTHETIC_AVAILABILITY_METRIC}:filter(eq("dt.entity.synthetic_test","{synthetic_id}")):avg'
    )


def parse_usql_table(table: dict[str, Any]) -> dict[str, UserActionMetrics]:
    """Map USQL table rows to metrics keyed by user action name."""
    columns: list[str] = list(table.get("columnNames") or [])
    rows = table.get("values") or []
    if not columns or not rows:
        return {}

    index = {name: i for i, name in enumerate(columns)}

    def cell(row: list[Any], column: str) -> Any:
        i = index.get(column)
        return row[i] if i is not None and i < len(row) else None

    metrics: dict[str, UserActionMetrics] = {}
    for row in rows:
        name = cell(row, "name")
        if not name:
            continue
        metrics[name] = UserActionMetrics(
            avg_duration=cell(row, "avg_duration"),
            custom_errors=int(cell(row, "total_customErrors") or 0),
            js_errors=int(cell(row, "total_jsErrors") or 0),
            request_errors=int(cell(row, "total_requestErrors") or 0),
            action_count=int(cell(row, "action_count") or 0),
        )
    return metrics


class SloCollector:
    """Collects everything a report needs from one Dynatrace environment."""

    def __init__(
        self,
        client: DynatraceClient,
        config: ReportConfig,
        *,
        now: datetime | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or datetime.now(timezone.utc)

    async def collect(self) -> ReportData:
        """
        Run every fetch step and assemble the report data.

        Returns:
            ReportData with one record per configured SLO id

        Raises:
            ProviderError: If no window returned any SLO at all
        """
        now = self.now
        log = bind_context(report_date=now.date().isoformat())

        by_period = await self.fetch_windows()
        if not any(by_period.values()):
            raise ProviderError(
                "Dynatrace returned no SLOs for any window",
                {"slos": len(self.config.slo_ids)},
            )
        records = self.build_records(by_period)
        log.info("slos_processed", total=len(records))

        user_actions = unique_user_actions(records)
        log.info("user_actions_found", total=len(user_actions))

        metrics = await self.fetch_user_action_metrics(user_actions, now)
        entities = await self.fetch_user_action_entities(user_actions)
        synthetic = await self.fetch_synthetic_metrics(records)

        log.info(
            "collection_complete",
            slos=len(records),
            user_action_metrics=len(metrics),
            user_action_entities=len(entities),
            synthetic_metrics=len(synthetic),
        )

        return ReportData(
            report_date=now.date().isoformat(),
            slos=records,
            user_action_metrics=metrics,
            user_action_entities=entities,
            synthetic_metrics=synthetic,
            dashboard_url=self.config.dashboard_url,
        )

    async def fetch_windows(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Fetch every configured SLO for every time period, keyed period -> id."""
        batches = list(batched(self.config.slo_ids, self.config.slo_batch_size))
        logger.info("slo_batches_planned", slos=len(self.config.slo_ids), batches=len(batches))

        results = await asyncio.gather(
            *(self._fetch_period(period, batches) for period in TIME_PERIODS)
        )
        return {period.name: found for period, found in zip(TIME_PERIODS, results)}

    async def _fetch_period(
        self, period: TimePeriod, batches: list[list[str]]
    ) -> dict[str, dict[str, Any]]:
        found: dict[str, dict[str, Any]] = {}
        for number, batch in enumerate(batches, start=1):
            try:
                slos = await self.client.get_slos(
                    batch,
                    from_=period.from_,
                    to=period.to,
                    page_size=self.config.slo_batch_size,
                )
            except FETCH_ERRORS as exc:
                logger.warning(
                    "slo_batch_failed",
                    period=period.name,
                    batch=number,
                    batches=len(batches),
                    error=str(exc),
                )
                continue

            for slo in slos:
                if slo.get("id"):
                    found[slo["id"]] = slo
            logger.debug("slo_batch_fetched", period=period.name, batch=number, slos=len(slos))

        logger.info("slo_period_fetched", period=period.name, slos=len(found))
        return found

    def build_records(self, by_period: dict[str, dict[str, dict[str, Any]]]) -> list[SloRecord]:
        """Combine the per-period results into one record per configured id."""
        records = []
        for slo_id in self.config.slo_ids:
            raw = {name: by_period.get(name, {}).get(slo_id) for name in WINDOW_NAMES}
            base = next((raw[name] for name in BASE_PRECEDENCE if raw[name]), None) or {}

            synthetic = self.config.synthetic_monitors.get(slo_id)
            user_actions: list[str] = []
            if synthetic is None:
                try:
                    user_actions = user_actions_from_filter(base.get("filter"))
                except FilterParseError as exc:
                    logger.warning("slo_filter_unparsed", slo_id=slo_id, error=exc.message)

            records.append(
                SloRecord(
                    id=slo_id,
                    name=base.get("name") or "Unknown SLO",
                    target=base.get("target"),
                    windows=tuple(
                        WindowValue(
                            value=(raw[name] or {}).get("evaluatedPercentage"),
                            error_budget=(raw[name] or {}).get("errorBudget"),
                        )
                        for name in WINDOW_NAMES
                    ),
                    filter=base.get("filter"),
                    user_actions=tuple(user_actions),
                    synthetic=synthetic,
                )
            )
        return records

    async def fetch_user_action_metrics(
        self, user_actions: Sequence[str], now: datetime
    ) -> dict[str, UserActionMetrics]:
        """Query 7-day USQL metrics in small batches to keep URLs short."""
        metrics: dict[str, UserActionMetrics] = {}
        if not user_actions:
            return metrics

        end = int(now.timestamp() * 1000)
        start = int((now - timedelta(days=7)).timestamp() * 1000)
        batches = list(batched(user_actions, self.config.usql_batch_size))

        for number, batch in enumerate(batches, start=1):
            try:
                table = await self.client.query_usql(
                    build_usql_query(batch), start_timestamp=start, end_timestamp=end
                )
            except FETCH_ERRORS as exc:
                logger.warning("usql_batch_failed", batch=number, batches=len(batches), error=str(exc))
                continue

            found = parse_usql_table(table)
            if not found:
                logger.info("usql_batch_empty", batch=number)
            metrics.update(found)

        logger.info("user_action_metrics_fetched", total=len(metrics))
        return metrics

    async def fetch_user_action_entities(
        self, user_actions: Sequence[str]
    ) -> dict[str, UserActionEntity]:
        """
        Look up APPLICATION_METHOD entities for deep links.

        Only key user actions have entities; others are silently absent.
        """
        entities: dict[str, UserActionEntity] = {}
        for user_action in user_actions:
            try:
                found = await self.client.get_entities(
                    user_action_entity_selector(user_action),
                    fields="+fromRelationships",
                )
            except FETCH_ERRORS as exc:
                logger.warning("entity_lookup_failed", user_action=user_action[:50], error=str(exc))
                continue

            for entity in found:
                parents = (entity.get("fromRelationships") or {}).get("isApplicationMethodOf") or []
                application_id = parents[0].get("id") if parents else None
                if application_id and entity.get("entityId"):
                    entities[user_action] = UserActionEntity(
                        entity_id=entity["entityId"], application_id=application_id
                    )
                    break

        logger.info("user_action_entities_fetched", total=len(entities))
        return entities

    async def fetch_synthetic_metrics(
        self, records: Sequence[SloRecord]
    ) -> dict[str, SyntheticMetrics]:
        """Average 7-day availability across locations for synthetic SLOs."""
        metrics: dict[str, SyntheticMetrics] = {}
        for record in records:
            monitor = record.synthetic
            if monitor is None:
                continue

            try:
                result = await self.client.query_metrics(
                    synthetic_metric_selector(monitor.synthetic_id)
                )
            except FETCH_ERRORS as exc:
                logger.warning("synthetic_query_failed", monitor=monitor.name, error=str(exc))
                continue

            series = result[0].get("data") if result else None
            if not series:
                logger.info("synthetic_no_data", monitor=monitor.name)
                continue

            locations = []
            for point in series:
                values = point.get("values") or []
                if values and values[0] is not None:
                    locations.append(
                        LocationAvailability(
                            location_id=(point.get("dimensionMap") or {}).get(
                                "dt.entity.geolocation", "Unknown"
                            ),
                            availability=float(values[0]),
                        )
                    )

            average = (
                sum(loc.availability for loc in locations) / len(locations) if locations else None
            )
            metrics[monitor.synthetic_id] = SyntheticMetrics(
                synthetic_id=monitor.synthetic_id,
                name=monitor.name,
                type=monitor.type,
                avg_availability=average,
                location_count=len(locations),
                locations=locations,
            )

        logger.info("synthetic_metrics_fetched", total=len(metrics))
        return metrics


def unique_user_actions(records: Sequence[SloRecord]) -> list[str]:
    """Distinct user action names of non-synthetic SLOs, first-seen order."""
    seen: dict[str, None] = {}
    for record in records:
        if record.is_synthetic:
            continue
        for action in record.user_actions:
            if action:
                seen.setdefault(action, None)
    return list(seen)
