"""Evaluation of condition steps against a run context.

Comparisons are deliberately loose because context values arrive from JSON
columns and form inputs: ``"5"`` equals ``5``, ``"true"`` equals ``True``,
string comparisons ignore case.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Literal

from .steps import ConditionConfig
from .templating import get_nested_value

logger = logging.getLogger(__name__)

OPERATOR_LABELS: dict[str, str] = {
    "equals": "equals",
    "not_equals": "does not equal",
    "contains": "contains",
    "not_contains": "does not contain",
    "starts_with": "starts with",
    "ends_with": "ends with",
    "gt": "is greater than",
    "gte": "is greater than or equal to",
    "lt": "is less than",
    "lte": "is less than or equal to",
    "is_empty": "is empty",
    "is_not_empty": "is not empty",
    "in": "is one of",
    "not_in": "is not one of",
}

_UNARY_OPERATORS = frozenset({"is_empty", "is_not_empty"})


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_number(value: Any) -> float | None:
    if _is_number(value):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str) and value.strip():
        try:
            number = float(value)
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def _to_datetime(value: Any) -> datetime | None:
    """Parse an ISO timestamp; naive values are taken to be UTC."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def _is_equal(actual: Any, expected: Any) -> bool:
    if actual is None:
        return expected is None
    if isinstance(actual, bool):
        if expected is True or expected == "true":
            return actual is True
        if expected is False or expected == "false":
            return actual is False
        return False
    if type(actual) is type(expected) and actual == expected:
        return True
    if _is_number(actual) and isinstance(expected, str):
        return actual == _to_number(expected)
    if isinstance(actual, str) and _is_number(expected):
        return _to_number(actual) == expected
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    if isinstance(actual, str) and isinstance(expected, str):
        return actual.lower() == expected.lower()
    return False


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, str) and isinstance(expected, str):
        return expected.lower() in actual.lower()
    if isinstance(actual, list):
        return any(_is_equal(item, expected) for item in actual)
    return False


def _starts_with(actual: Any, expected: Any) -> bool:
    if isinstance(actual, str) and isinstance(expected, str):
        return actual.lower().startswith(expected.lower())
    return False


def _ends_with(actual: Any, expected: Any) -> bool:
    if isinstance(actual, str) and isinstance(expected, str):
        return actual.lower().endswith(expected.lower())
    return False


def _compare(actual: Any, expected: Any) -> int | None:
    """Order two values: numbers first, then ISO dates, then plain strings."""

    left_num, right_num = _to_number(actual), _to_number(expected)
    if left_num is not None and right_num is not None:
        return (left_num > right_num) - (left_num < right_num)

    left_dt, right_dt = _to_datetime(actual), _to_datetime(expected)
    if left_dt is not None and right_dt is not None:
        return (left_dt > right_dt) - (left_dt < right_dt)

    if isinstance(actual, str) and isinstance(expected, str):
        return (actual > expected) - (actual < expected)
    return None


def _greater_than(actual: Any, expected: Any) -> bool:
    return _compare(actual, expected) == 1


def _less_than(actual: Any, expected: Any) -> bool:
    return _compare(actual, expected) == -1


def _is_empty(actual: Any, _expected: Any = None) -> bool:
    if actual is None:
        return True
    if isinstance(actual, str):
        return actual.strip() == ""
    if isinstance(actual, (list, tuple, Mapping)):
        return len(actual) == 0
    return False


def _is_in(actual: Any, expected: Any) -> bool:
    if not isinstance(expected, list):
        return False
    return any(_is_equal(actual, item) for item in expected)


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "equals": _is_equal,
    "not_equals": lambda a, e: not _is_equal(a, e),
    "contains": _contains,
    "not_contains": lambda a, e: not _contains(a, e),
    "starts_with": _starts_with,
    "ends_with": _ends_with,
    "gt": _greater_than,
    "gte": lambda a, e: _compare(a, e) in (0, 1),
    "lt": _less_than,
    "lte": lambda a, e: _compare(a, e) in (0, -1),
    "is_empty": _is_empty,
    "is_not_empty": lambda a, e: not _is_empty(a),
    "in": _is_in,
    "not_in": lambda a, e: not _is_in(a, e),
}


def evaluate_condition(config: ConditionConfig, context: Mapping[str, Any]) -> bool:
    """Return whether ``config`` holds for ``context``.

    An operator that fails at evaluation time is logged and treated as not met.
    """

    actual = get_nested_value(context, config.field)
    logger.debug(
        "Evaluating condition",
        extra={"field": config.field, "operator": config.operator},
    )

    func = _OPERATORS.get(config.operator)
    if func is None:
        logger.warning("Unknown condition operator", extra={"operator": config.operator})
        return False
    try:
        return func(actual, config.value)
    except (TypeError, ValueError, OverflowError):
        logger.exception(
            "Condition evaluation failed",
            extra={"field": config.field, "operator": config.operator},
        )
        return False


def evaluate_conditions(
    conditions: Sequence[ConditionConfig],
    context: Mapping[str, Any],
    logic: Literal["and", "or"] = "and",
) -> bool:
    """Combine several conditions; an empty list always holds."""

    if not conditions:
        return True
    if logic == "and":
        return all(evaluate_condition(c, context) for c in conditions)
    return any(evaluate_condition(c, context) for c in conditions)


def describe_condition(config: ConditionConfig) -> str:
    label = OPERATOR_LABELS.get(config.operator, config.operator)
    if config.operator in _UNARY_OPERATORS:
        return f"{config.field} {label}"
    if isinstance(config.value, list):
        rendered = "[" + ", ".join(str(v) for v in config.value) + "]"
    else:
        rendered = json.dumps(config.value, default=str)
    return f"{config.field} {label} {rendered}"
