"""
SLO filter expression parser.

Recovers user-action names from the ``filter`` field of a Dynatrace SLO.
Recognized clauses (keyword is case-insensitive, whitespace is free)::

    entityname.in("action one", "action two")
    entityname.equals("action")
    entityname.contains("partial name")

Anything outside these clauses is ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from sloreport.core.errors import ValidationError


class FilterParseError(ValidationError):
    """Raised when an entityname clause is present but malformed."""


class FilterOperator(str, Enum):
    IN = "in"
    EQUALS = "equals"
    CONTAINS = "contains"


@dataclass(frozen=True)
class FilterClause:
    """One ``entityname.<op>(...)`` clause."""

    operator: FilterOperator
    values: tuple[str, ...]


_CLAUSE_START = re.compile(r"entityname\.(in|equals|contains)\s*\(", re.IGNORECASE)
_QUOTED_ARG = re.compile(r'\s*"([^"]*)"\s*([,)])')

# Output order of user actions, independent of clause position in the text.
_OPERATOR_ORDER = (FilterOperator.IN, FilterOperator.EQUALS, FilterOperator.CONTAINS)


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text.replace("\n", ""))


def _parse_args(text: str, start: int, operator: FilterOperator) -> tuple[tuple[str, ...], int]:
    values: list[str] = []
    pos = start
    while True:
        match = _QUOTED_ARG.match(text, pos)
        if match is None:
            raise FilterParseError(
                f"malformed entityname.{operator.value} clause",
                {"position": start, "filter": text},
            )
        value = match.group(1).strip()
        if value:
            values.append(value)
        pos = match.end()
        if match.group(2) == ")":
            break

    if operator is not FilterOperator.IN and len(values) > 1:
        raise FilterParseError(
            f"entityname.{operator.value} takes a single argument",
            {"filter": text},
        )
    return tuple(values), pos


def parse_filter(text: str | None) -> list[FilterClause]:
    """
    Parse every entityname clause in a filter expression.

    Args:
        text: Raw SLO filter string (may be None or empty)

    Returns:
        Clauses in the order they appear

    Raises:
        FilterParseError: If a clause has no closing paren or an unquoted argument
    """
    if not text:
        return []

    normalized = _normalize(text)
    clauses: list[FilterClause] = []
    pos = 0
    while True:
        match = _CLAUSE_START.search(normalized, pos)
        if match is None:
            break
        operator = FilterOperator(match.group(1).lower())
        values, pos = _parse_args(normalized, match.end(), operator)
        clauses.append(FilterClause(operator=operator, values=values))
    return clauses


def user_actions_from_filter(text: str | None) -> list[str]:
    """
    Extract user-action names from a filter expression.

    Names from ``in`` clauses come first, then ``equals``, then ``contains``.
    """
    clauses = parse_filter(text)
    actions: list[str] = []
    for operator in _OPERATOR_ORDER:
        for clause in clauses:
            if clause.operator is operator:
                actions.extend(clause.values)
    return actions
