from sloreport.filters.parser import (
    FilterClause,
    FilterOperator,
    FilterParseError,
    parse_filter,
    user_actions_from_filter,
)

__all__ = [
    "FilterClause",
    "FilterOperator",
    "FilterParseError",
    "parse_filter",
    "user_actions_from_filter",
]
