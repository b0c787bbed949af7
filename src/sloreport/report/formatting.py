"""
Formatting helpers for the SLO report.

Glyphs, number formatting, user action name shortening and Dynatrace deep
links. All functions are pure.
"""

from __future__ import annotations

import re

from sloreport.config.report import Thresholds
from sloreport.evaluator.models import Severity, Trend, is_valid_value
from sloreport.fetch.models import UserActionEntity, UserActionMetrics

OK = "\u2705"  # ✅
WARN = "\u26a0\ufe0f"  # ⚠️
FAIL = "\u274c"  # ❌
NONE = "\u2796"  # ➖

SEVERITY_GLYPHS: dict[Severity, str] = {
    Severity.MET: OK,
    Severity.NEAR_MISS: WARN,
    Severity.MISSED: FAIL,
    Severity.UNKNOWN: NONE,
}

TREND_GLYPHS: dict[Trend, str] = {
    Trend.IMPROVING: "\U0001f4c8",  # 📈
    Trend.DEGRADING: "\U0001f4c9",  # 📉
    Trend.STABLE: "\u27a1\ufe0f",  # ➡️
    Trend.FLUCTUATING: "\U0001f500",  # 🔀
    Trend.INSUFFICIENT: "",
}

SYNTHETIC_NEAR_MISS_RATIO = 0.99
MAX_ACTION_NAME = 50


def severity_glyph(value: Severity) -> str:
    return SEVERITY_GLYPHS[value]


def trend_glyph(value: Trend) -> str:
    return TREND_GLYPHS[value]


def format_percent(value: float | None) -> str:
    """Two-decimal percentage, or N/A when there is no data."""
    if not is_valid_value(value):
        return "N/A"
    return f"{value:.2f}%"


def format_target(target: float | None) -> str:
    if target is None:
        return "N/A"
    return f"{target:g}%"


def format_duration(ms: float | None, thresholds: Thresholds) -> str:
    """Milliseconds below one second, otherwise seconds, with a slowness glyph."""
    if ms is None:
        return "N/A"

    formatted = f"{round(ms)} ms" if ms < 1000 else f"{ms / 1000:.2f} s"
    if ms > thresholds.duration_critical_ms:
        return f"{formatted} {FAIL}"
    if ms > thresholds.duration_warning_ms:
        return f"{formatted} {WARN}"
    return formatted


def format_error_count(count: int | None, thresholds: Thresholds) -> str:
    count = count or 0
    if count == 0:
        return "0"
    if count <= thresholds.error_warning:
        return f"{count} {WARN}"
    return f"{count} {FAIL}"


def format_synthetic_availability(availability: float | None, target: float) -> str:
    if availability is None:
        return "N/A"
    formatted = f"{availability:.2f}%"
    if availability >= target:
        return f"{OK} {formatted}"
    if availability >= target * SYNTHETIC_NEAR_MISS_RATIO:
        return f"{WARN} {formatted}"
    return f"{FAIL} {formatted}"


def shorten_user_action(user_action: str | None) -> str:
    """
    Shorten a user action name for display.

    "click on Save landing on https://host/a/b/c/d" becomes
    "click on Save → .../c/d". Names without a page part are truncated.
    """
    if not user_action:
        return "N/A"

    for separator in (" landing on ", " of page "):
        if separator in user_action:
            action_type, _, endpoint = user_action.partition(separator)
            break
    else:
        if len(user_action) > MAX_ACTION_NAME:
            return user_action[: MAX_ACTION_NAME - 3] + "..."
        return user_action

    path = re.sub(r"https?://[^/]+", "", endpoint, count=1)
    segments = [s for s in path.split("/") if s]
    if len(segments) > 2:
        endpoint = ".../" + "/".join(segments[-2:])
    elif segments:
        endpoint = ".../" + "/".join(segments)
    else:
        endpoint = path

    return f"{action_type} → {endpoint}"


def needs_attention(metrics: UserActionMetrics | None, thresholds: Thresholds) -> bool:
    """A user action is reported when it is error-prone or slow."""
    if metrics is None:
        return False
    return (
        metrics.total_errors >= thresholds.error_count
        or (metrics.avg_duration or 0) >= thresholds.duration_ms
    )


def attention_score(metrics: UserActionMetrics | None) -> float:
    """Ranking score: errors weigh ten times a second of average duration."""
    if metrics is None:
        return 0.0
    return metrics.total_errors * 10 + (metrics.avg_duration or 0) / 1000


def _encode_action_name(user_action: str) -> str:
    return user_action.replace(" ", "%20").replace("//", "%5C0%5C0").replace("/", "%5C0")


def user_action_url(
    ui_url: str | None, user_action: str, entity: UserActionEntity | None
) -> str | None:
    """Deep link to a key user action; None without a UI URL or entity ids."""
    if not ui_url or entity is None or not entity.entity_id or not entity.application_id:
        return None
    return (
        f"{ui_url.rstrip('/')}/ui/apps/dynatrace.classic.frontend/"
        "#uemapplications/uemuseractionmetrics"
        f";uemuserActionId={entity.entity_id}"
        f";uaname={_encode_action_name(user_action)}"
        f";uemapplicationId={entity.application_id}"
        ";gtf=-7d;gf=all"
    )


def synthetic_url(ui_url: str | None, synthetic_id: str | None, monitor_type: str) -> str | None:
    if not ui_url or not synthetic_id:
        return None
    monitor_path = "http-monitor" if monitor_type.upper() == "HTTP" else "browser-monitor"
    return (
        f"{ui_url.rstrip('/')}/ui/apps/dynatrace.classic.synthetic/ui/"
        f"{monitor_path}/{synthetic_id}?gtf=-7d&gf=all"
    )


def link(text: str, url: str | None) -> str:
    return f"[{text}]({url})" if url else text


def table_cell(text: str) -> str:
    """Escape pipes so ``text`` stays inside one Markdown table cell."""
    return text.replace("|", "\\|")
