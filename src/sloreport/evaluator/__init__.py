"""
SLO evaluator.

Categorization, trend classification and ordering of SLO records.
"""

from sloreport.evaluator.engine import (
    STABLE_EPSILON,
    EvaluatorConfig,
    categorize,
    classify_trend,
    evaluate,
    order,
    severity,
)
from sloreport.evaluator.models import (
    Category,
    Evaluation,
    Severity,
    SloRecord,
    SyntheticMonitor,
    Trend,
    WindowValue,
)

__all__ = [
    "Category",
    "Evaluation",
    "EvaluatorConfig",
    "Severity",
    "SloRecord",
    "STABLE_EPSILON",
    "SyntheticMonitor",
    "Trend",
    "WindowValue",
    "categorize",
    "classify_trend",
    "evaluate",
    "order",
    "severity",
]
