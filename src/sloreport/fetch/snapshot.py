"""JSON snapshots of fetched report data."""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from sloreport.core.errors import ValidationError
from sloreport.fetch.models import ReportData

logger = structlog.get_logger()


def write_snapshot(data: ReportData, path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(data.to_dict(), indent=2))
    logger.info("snapshot_written", path=str(target), slos=len(data.slos))
    return target


def read_snapshot(path: str | Path) -> ReportData:
    """
    Load report data written by ``write_snapshot``.

    Raises:
        ValidationError: If the file is missing, not JSON, or not a snapshot
    """
    source = Path(path)
    try:
        raw = json.loads(source.read_text())
    except FileNotFoundError as exc:
        raise ValidationError("snapshot not found", {"path": str(source)}) from exc
    except json.JSONDecodeError as exc:
        raise ValidationError(f"snapshot is not valid JSON: {exc}", {"path": str(source)}) from exc

    if not isinstance(raw, dict) or "report_date" not in raw:
        raise ValidationError("snapshot has no report_date", {"path": str(source)})

    try:
        data = ReportData.from_dict(raw)
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"malformed snapshot: {exc}", {"path": str(source)}) from exc

    logger.debug("snapshot_loaded", path=str(source), slos=len(data.slos))
    return data
