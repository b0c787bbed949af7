"""
Fetched report data.

Everything collected from Dynatrace for one report run. The whole bundle
round-trips through JSON so fetching and rendering can run as separate
workflow steps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sloreport.evaluator.models import SloRecord


@dataclass
class UserActionMetrics:
    """Seven-day totals for one user action name."""

    avg_duration: float | None = None
    custom_errors: int = 0
    js_errors: int = 0
    request_errors: int = 0
    action_count: int = 0

    @property
    def total_errors(self) -> int:
        return self.custom_errors + self.js_errors + self.request_errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "avg_duration": self.avg_duration,
            "custom_errors": self.custom_errors,
            "js_errors": self.js_errors,
            "request_errors": self.request_errors,
            "action_count": self.action_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserActionMetrics:
        return cls(
            avg_duration=data.get("avg_duration"),
            custom_errors=int(data.get("custom_errors") or 0),
            js_errors=int(data.get("js_errors") or 0),
            request_errors=int(data.get("request_errors") or 0),
            action_count=int(data.get("action_count") or 0),
        )


@dataclass
class UserActionEntity:
    """Entity ids needed to deep-link a key user action."""

    entity_id: str
    application_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"entity_id": self.entity_id, "application_id": self.application_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserActionEntity:
        return cls(entity_id=data["entity_id"], application_id=data["application_id"])


@dataclass
class LocationAvailability:
    location_id: str
    availability: float

    def to_dict(self) -> dict[str, Any]:
        return {"location_id": self.location_id, "availability": self.availability}


@dataclass
class SyntheticMetrics:
    """Seven-day availability of a synthetic monitor, averaged over locations."""

    synthetic_id: str
    name: str
    type: str
    avg_availability: float | None
    location_count: int = 0
    locations: list[LocationAvailability] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "synthetic_id": self.synthetic_id,
            "name": self.name,
            "type": self.type,
            "avg_availability": self.avg_availability,
            "location_count": self.location_count,
            "locations": [loc.to_dict() for loc in self.locations],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyntheticMetrics:
        return cls(
            synthetic_id=data["synthetic_id"],
            name=data.get("name") or data["synthetic_id"],
            type=data.get("type", "BROWSER"),
            avg_availability=data.get("avg_availability"),
            location_count=int(data.get("location_count") or 0),
            locations=[
                LocationAvailability(loc["location_id"], float(loc["availability"]))
                for loc in data.get("locations") or []
            ],
        )


@dataclass
class ReportData:
    """Output of the fetch stage."""

    report_date: str
    slos: list[SloRecord] = field(default_factory=list)
    user_action_metrics: dict[str, UserActionMetrics] = field(default_factory=dict)
    user_action_entities: dict[str, UserActionEntity] = field(default_factory=dict)
    synthetic_metrics: dict[str, SyntheticMetrics] = field(default_factory=dict)
    dashboard_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON export."""
        return {
            "report_date": self.report_date,
            "dashboard_url": self.dashboard_url,
            "slos": [slo.to_dict() for slo in self.slos],
            "user_action_metrics": {
                name: m.to_dict() for name, m in self.user_action_metrics.items()
            },
            "user_action_entities": {
                name: e.to_dict() for name, e in self.user_action_entities.items()
            },
            "synthetic_metrics": {
                sid: m.to_dict() for sid, m in self.synthetic_metrics.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReportData:
        return cls(
            report_date=data["report_date"],
            dashboard_url=data.get("dashboard_url"),
            slos=[SloRecord.from_dict(s) for s in data.get("slos") or []],
            user_action_metrics={
                name: UserActionMetrics.from_dict(m)
                for name, m in (data.get("user_action_metrics") or {}).items()
            },
            user_action_entities={
                name: UserActionEntity.from_dict(e)
                for name, e in (data.get("user_action_entities") or {}).items()
            },
            synthetic_metrics={
                sid: SyntheticMetrics.from_dict(m)
                for sid, m in (data.get("synthetic_metrics") or {}).items()
            },
        )
