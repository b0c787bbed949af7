"""
SLO evaluation engine.

Categorizes records by a single evaluation window, classifies the trend
across all four windows and produces a stable, priority-aware ordering
within each category. Every function here is pure; the only configuration
is the explicit ``EvaluatorConfig`` passed in by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Sequence

import structlog

from sloreport.core.errors import ConfigurationError, ValidationError
from sloreport.evaluator.models import (
    DAY7_INDEX,
    WINDOW_COUNT,
    Category,
    Evaluation,
    Severity,
    SloRecord,
    Trend,
    is_valid_value,
)

logger = structlog.get_logger()

STABLE_EPSILON = 0.005
NEAR_MISS_RATIO = 0.95

MISSING_TARGET_NO_DATA = "no_data"
MISSING_TARGET_ZERO = "zero"
MISSING_TARGET_POLICIES = (MISSING_TARGET_NO_DATA, MISSING_TARGET_ZERO)


@dataclass(frozen=True)
class EvaluatorConfig:
    """Evaluator knobs, loaded from the report config at startup."""

    evaluation_window_index: int = DAY7_INDEX
    stable_epsilon: float = STABLE_EPSILON
    priority_ids: tuple[str, ...] = ()
    target_overrides: dict[str, float] = field(default_factory=dict)
    missing_target_policy: str = MISSING_TARGET_NO_DATA

    def __post_init__(self) -> None:
        if not 0 <= self.evaluation_window_index < WINDOW_COUNT:
            raise ConfigurationError(
                "evaluation_window_index out of range",
                {"value": self.evaluation_window_index},
            )
        if self.stable_epsilon < 0:
            raise ConfigurationError(
                "stable_epsilon must not be negative", {"value": self.stable_epsilon}
            )
        if self.missing_target_policy not in MISSING_TARGET_POLICIES:
            raise ConfigurationError(
                "unknown missing_target_policy",
                {"value": self.missing_target_policy, "allowed": ",".join(MISSING_TARGET_POLICIES)},
            )
        object.__setattr__(self, "priority_ids", tuple(self.priority_ids))


def categorize(record: SloRecord, evaluation_window_index: int = DAY7_INDEX) -> Category:
    """
    Decide pass/fail from one window.

    A missing or negative value, or a missing target, yields NO_DATA. The
    boundary ``value == target`` is passing.
    """
    value = record.windows[evaluation_window_index].value
    if not is_valid_value(value) or record.target is None:
        return Category.NO_DATA
    if value < record.target:
        return Category.FAILING
    return Category.PASSING


def classify_trend(record: SloRecord, stable_epsilon: float = STABLE_EPSILON) -> Trend:
    """
    Classify the direction of a record across its four windows.

    Each consecutive pair of valid values is a transition: flat when the
    difference is within ``stable_epsilon``, otherwise up or down. A dip
    followed by a recovery is FLUCTUATING even when the net change is zero.
    """
    points = [v for v in record.values() if is_valid_value(v)]
    if len(points) < 2:
        return Trend.INSUFFICIENT

    ups = downs = flats = 0
    for previous, current in zip(points, points[1:]):
        diff = current - previous
        if abs(diff) <= stable_epsilon:
            flats += 1
        elif diff > 0:
            ups += 1
        else:
            downs += 1

    transitions = len(points) - 1
    if flats == transitions:
        return Trend.STABLE
    if downs == 0 and ups > 0:
        return Trend.IMPROVING
    if ups == 0 and downs > 0:
        return Trend.DEGRADING
    return Trend.FLUCTUATING


def order(records: Iterable[SloRecord], priority_ids: Sequence[str] = ()) -> list[SloRecord]:
    """
    Sort records with pinned ids first, in ``priority_ids`` order, then by name.

    ``sorted`` is stable, so records sharing a key keep their input order.
    """
    rank: dict[str, int] = {}
    for index, slo_id in enumerate(priority_ids):
        rank.setdefault(slo_id, index)

    def sort_key(record: SloRecord) -> tuple[int, int, str]:
        if record.id in rank:
            return (0, rank[record.id], record.name)
        return (1, 0, record.name)

    return sorted(records, key=sort_key)


def severity(value: float | None, target: float | None) -> Severity:
    """Presentation tier; categorization uses the strict target boundary instead."""
    if not is_valid_value(value) or target is None:
        return Severity.UNKNOWN
    if value >= target:
        return Severity.MET
    if value >= target * NEAR_MISS_RATIO:
        return Severity.NEAR_MISS
    return Severity.MISSED


def apply_target_policy(record: SloRecord, config: EvaluatorConfig) -> SloRecord:
    """Resolve a record's effective target from overrides and the missing-target policy."""
    if record.id in config.target_overrides:
        return replace(record, target=float(config.target_overrides[record.id]))
    if record.target is None and config.missing_target_policy == MISSING_TARGET_ZERO:
        return replace(record, target=0.0)
    return record


def evaluate(records: Iterable[SloRecord], config: EvaluatorConfig | None = None) -> Evaluation:
    """
    Evaluate a report's records.

    Returns the three ordered categories, a trend per record id and the
    breach flag. Duplicate ids within one report are rejected.
    """
    config = config or EvaluatorConfig()
    result = Evaluation()
    buckets: dict[Category, list[SloRecord]] = {category: [] for category in Category}
    seen: set[str] = set()

    for raw in records:
        if raw.id in seen:
            raise ValidationError("duplicate SLO id in report", {"slo_id": raw.id})
        seen.add(raw.id)

        record = apply_target_policy(raw, config)
        buckets[categorize(record, config.evaluation_window_index)].append(record)
        result.trends[record.id] = classify_trend(record, config.stable_epsilon)

    result.failing = order(buckets[Category.FAILING], config.priority_ids)
    result.passing = order(buckets[Category.PASSING], config.priority_ids)
    result.no_data = order(buckets[Category.NO_DATA], config.priority_ids)

    logger.info(
        "slos_evaluated",
        failing=len(result.failing),
        passing=len(result.passing),
        no_data=len(result.no_data),
        has_breach=result.has_breach,
    )
    return result
