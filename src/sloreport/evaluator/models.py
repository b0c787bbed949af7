"""
SLO evaluator data models.

Records are built fresh for every report run and never mutated afterwards;
categories, trends and severities are derived from them on demand.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sloreport.core.errors import ValidationError

# Fixed chronological window order, longest lookback first.
WINDOW_NAMES: tuple[str, ...] = ("day90", "day30", "day7", "current")
WINDOW_LABELS: tuple[str, ...] = ("90 Day", "30 Day", "7 Day", "Current")
WINDOW_COUNT = len(WINDOW_NAMES)

DAY7_INDEX = 2
CURRENT_INDEX = 3


class Category(str, Enum):
    """Pass/fail bucket for an SLO, decided by a single evaluation window."""

    FAILING = "failing"
    PASSING = "passing"
    NO_DATA = "no_data"


class Trend(str, Enum):
    """Direction of an SLO across the four windows."""

    IMPROVING = "improving"
    DEGRADING = "degrading"
    STABLE = "stable"
    FLUCTUATING = "fluctuating"
    INSUFFICIENT = "insufficient"


class Severity(str, Enum):
    """Presentation tier of a single value against its target."""

    MET = "met"
    NEAR_MISS = "near_miss"
    MISSED = "missed"
    UNKNOWN = "unknown"


def is_valid_value(value: float | None) -> bool:
    """A window value counts as data when present and non-negative."""
    return value is not None and value >= 0


@dataclass(frozen=True)
class WindowValue:
    """Achieved percentage for one lookback window."""

    value: float | None = None
    error_budget: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "error_budget": self.error_budget}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> WindowValue:
        if not data:
            return cls()
        return cls(value=data.get("value"), error_budget=data.get("error_budget"))


@dataclass(frozen=True)
class SyntheticMonitor:
    """Synthetic monitor backing an SLO instead of real user actions."""

    synthetic_id: str
    name: str
    type: str = "BROWSER"  # BROWSER or HTTP

    def to_dict(self) -> dict[str, Any]:
        return {"synthetic_id": self.synthetic_id, "name": self.name, "type": self.type}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyntheticMonitor:
        return cls(
            synthetic_id=data["synthetic_id"],
            name=data.get("name") or data["synthetic_id"],
            type=str(data.get("type", "BROWSER")).upper(),
        )


@dataclass(frozen=True)
class SloRecord:
    """One monitored objective with its four window values."""

    id: str
    name: str
    target: float | None
    windows: tuple[WindowValue, ...]
    filter: str | None = None
    user_actions: tuple[str, ...] = ()
    synthetic: SyntheticMonitor | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("SLO record rejected: missing id", {"name": self.name})
        windows = tuple(self.windows)
        if len(windows) != WINDOW_COUNT:
            raise ValidationError(
                "SLO record rejected: expected four windows",
                {"slo_id": self.id, "windows": len(windows)},
            )
        object.__setattr__(self, "windows", windows)
        object.__setattr__(self, "user_actions", tuple(self.user_actions))

    @property
    def is_synthetic(self) -> bool:
        return self.synthetic is not None

    def values(self) -> list[float | None]:
        """Window values in chronological order."""
        return [w.value for w in self.windows]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "target": self.target,
            "filter": self.filter,
            "user_actions": list(self.user_actions),
            "synthetic": self.synthetic.to_dict() if self.synthetic else None,
            "windows": {
                name: window.to_dict() for name, window in zip(WINDOW_NAMES, self.windows)
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SloRecord:
        windows = data.get("windows") or {}
        if isinstance(windows, list):
            slots = [WindowValue.from_dict(w) for w in windows]
        else:
            slots = [WindowValue.from_dict(windows.get(name)) for name in WINDOW_NAMES]
        synthetic = data.get("synthetic")
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "Unknown SLO",
            target=data.get("target"),
            windows=tuple(slots),
            filter=data.get("filter"),
            user_actions=tuple(data.get("user_actions") or ()),
            synthetic=SyntheticMonitor.from_dict(synthetic) if synthetic else None,
        )


@dataclass
class Evaluation:
    """Evaluator output handed to the report renderer."""

    failing: list[SloRecord] = field(default_factory=list)
    passing: list[SloRecord] = field(default_factory=list)
    no_data: list[SloRecord] = field(default_factory=list)
    trends: dict[str, Trend] = field(default_factory=dict)

    @property
    def has_breach(self) -> bool:
        return len(self.failing) > 0

    @property
    def total(self) -> int:
        return len(self.failing) + len(self.passing) + len(self.no_data)

    def by_category(self) -> dict[Category, list[SloRecord]]:
        return {
            Category.FAILING: self.failing,
            Category.PASSING: self.passing,
            Category.NO_DATA: self.no_data,
        }

    def trend_for(self, record: SloRecord) -> Trend:
        return self.trends.get(record.id, Trend.INSUFFICIENT)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON export."""
        return {
            "summary": {
                "total": self.total,
                "failing": len(self.failing),
                "passing": len(self.passing),
                "no_data": len(self.no_data),
                "has_breach": self.has_breach,
            },
            "categories": {
                category.value: [
                    {"id": r.id, "name": r.name, "trend": self.trend_for(r).value}
                    for r in records
                ]
                for category, records in self.by_category().items()
            },
        }
