"""
Report configuration.

Everything a report run needs to know besides credentials: which SLOs to
fetch, how to evaluate them, the thresholds that decide what shows up in the
report, and the fields of the breach ticket.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sloreport.core.errors import ConfigurationError
from sloreport.evaluator.engine import EvaluatorConfig
from sloreport.evaluator.models import SyntheticMonitor

PLACEHOLDER_MARKER = "YOUR-TENANT"


@dataclass
class Thresholds:
    """Cut-offs for what the report calls out."""

    synthetic_availability: float = 99.98
    error_count: int = 10
    duration_ms: float = 3000
    duration_warning_ms: float = 3000
    duration_critical_ms: float = 12000
    error_warning: int = 10
    max_user_actions_per_slo: int = 3

    def to_dict(self) -> dict[str, Any]:
        return {
            "synthetic_availability": self.synthetic_availability,
            "error_count": self.error_count,
            "duration_ms": self.duration_ms,
            "duration_warning_ms": self.duration_warning_ms,
            "duration_critical_ms": self.duration_critical_ms,
            "error_warning": self.error_warning,
            "max_user_actions_per_slo": self.max_user_actions_per_slo,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Thresholds:
        defaults = cls()
        return cls(
            synthetic_availability=float(
                data.get("synthetic_availability", defaults.synthetic_availability)
            ),
            error_count=int(data.get("error_count", defaults.error_count)),
            duration_ms=float(data.get("duration_ms", defaults.duration_ms)),
            duration_warning_ms=float(data.get("duration_warning_ms", defaults.duration_warning_ms)),
            duration_critical_ms=float(
                data.get("duration_critical_ms", defaults.duration_critical_ms)
            ),
            error_warning=int(data.get("error_warning", defaults.error_warning)),
            max_user_actions_per_slo=int(
                data.get("max_user_actions_per_slo", defaults.max_user_actions_per_slo)
            ),
        )


@dataclass
class TicketConfig:
    """Fields of the work item prepared when an SLO breaches."""

    work_item_type: str = "Bug"
    area_path: str | None = None
    tags: list[str] = field(default_factory=lambda: ["SLO-Breach", "Automated"])
    priority: int = 2

    def to_dict(self) -> dict[str, Any]:
        return {
            "work_item_type": self.work_item_type,
            "area_path": self.area_path,
            "tags": list(self.tags),
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TicketConfig:
        tags = data.get("tags", ["SLO-Breach", "Automated"])
        if isinstance(tags, str):
            tags = [t.strip() for t in tags.split(";") if t.strip()]
        return cls(
            work_item_type=data.get("work_item_type", "Bug"),
            area_path=data.get("area_path"),
            tags=list(tags),
            priority=int(data.get("priority", 2)),
        )


def _evaluator_from_dict(data: dict[str, Any]) -> EvaluatorConfig:
    priority_ids = data.get("priority_ids") or []
    if not isinstance(priority_ids, list) or not all(isinstance(s, str) and s for s in priority_ids):
        raise ConfigurationError("evaluator.priority_ids must be a list of non-empty strings")
    overrides = data.get("target_overrides") or {}
    if not isinstance(overrides, dict):
        raise ConfigurationError("evaluator.target_overrides must be a mapping")
    return EvaluatorConfig(
        evaluation_window_index=int(data.get("evaluation_window_index", 2)),
        stable_epsilon=float(data.get("stable_epsilon", 0.005)),
        priority_ids=tuple(priority_ids),
        target_overrides={str(k): float(v) for k, v in overrides.items()},
        missing_target_policy=data.get("missing_target_policy", "no_data"),
    )


def _evaluator_to_dict(config: EvaluatorConfig) -> dict[str, Any]:
    return {
        "evaluation_window_index": config.evaluation_window_index,
        "stable_epsilon": config.stable_epsilon,
        "priority_ids": list(config.priority_ids),
        "target_overrides": dict(config.target_overrides),
        "missing_target_policy": config.missing_target_policy,
    }


@dataclass
class ReportConfig:
    """Top-level report configuration."""

    slo_ids: list[str] = field(default_factory=list)
    synthetic_monitors: dict[str, SyntheticMonitor] = field(default_factory=dict)
    title: str = "SLO Report"
    subtitle: str | None = None
    dashboard_url: str | None = None
    slo_explained_url: str | None = None
    slo_batch_size: int = 25
    usql_batch_size: int = 10
    thresholds: Thresholds = field(default_factory=Thresholds)
    ticket: TicketConfig = field(default_factory=TicketConfig)
    evaluator: EvaluatorConfig = field(default_factory=EvaluatorConfig)

    @property
    def explained_link(self) -> str | None:
        """The "SLOs explained" link, unless it still holds the template placeholder."""
        if self.slo_explained_url and PLACEHOLDER_MARKER not in self.slo_explained_url:
            return self.slo_explained_url
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "slo_ids": list(self.slo_ids),
            "synthetic_monitors": {
                slo_id: monitor.to_dict() for slo_id, monitor in self.synthetic_monitors.items()
            },
            "title": self.title,
            "subtitle": self.subtitle,
            "dashboard_url": self.dashboard_url,
            "slo_explained_url": self.slo_explained_url,
            "slo_batch_size": self.slo_batch_size,
            "usql_batch_size": self.usql_batch_size,
            "thresholds": self.thresholds.to_dict(),
            "ticket": self.ticket.to_dict(),
            "evaluator": _evaluator_to_dict(self.evaluator),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReportConfig:
        slo_ids = data.get("slo_ids") or []
        if not isinstance(slo_ids, list) or not all(isinstance(s, str) and s for s in slo_ids):
            raise ConfigurationError("slo_ids must be a list of non-empty strings")
        duplicates = sorted({s for s in slo_ids if slo_ids.count(s) > 1})
        if duplicates:
            raise ConfigurationError("slo_ids must be unique", {"duplicates": ",".join(duplicates)})

        monitors: dict[str, SyntheticMonitor] = {}
        for slo_id, monitor in (data.get("synthetic_monitors") or {}).items():
            try:
                monitors[slo_id] = SyntheticMonitor.from_dict(monitor)
            except (KeyError, TypeError) as exc:
                raise ConfigurationError(
                    "synthetic monitor needs a synthetic_id", {"slo_id": slo_id}
                ) from exc

        try:
            slo_batch_size = int(data.get("slo_batch_size", 25))
            usql_batch_size = int(data.get("usql_batch_size", 10))
            thresholds = Thresholds.from_dict(data.get("thresholds") or {})
            ticket = TicketConfig.from_dict(data.get("ticket") or {})
            evaluator = _evaluator_from_dict(data.get("evaluator") or {})
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"invalid report config value: {exc}") from exc

        if slo_batch_size < 1 or usql_batch_size < 1:
            raise ConfigurationError("batch sizes must be positive")

        return cls(
            slo_ids=list(slo_ids),
            synthetic_monitors=monitors,
            title=data.get("title", "SLO Report"),
            subtitle=data.get("subtitle"),
            dashboard_url=data.get("dashboard_url"),
            slo_explained_url=data.get("slo_explained_url"),
            slo_batch_size=slo_batch_size,
            usql_batch_size=usql_batch_size,
            thresholds=thresholds,
            ticket=ticket,
            evaluator=evaluator,
        )
