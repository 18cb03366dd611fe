"""Unit tests for condition evaluation."""

from __future__ import annotations

from typing import Any

import pytest

from workflow_automation.automation.workflow.conditions import (
    describe_condition,
    evaluate_condition,
    evaluate_conditions,
)
from workflow_automation.automation.workflow.steps import ConditionConfig

CONTEXT: dict[str, Any] = {
    "contact": {
        "first_name": "Ada",
        "email": "",
        "lead_status": "Hot",
        "score": 42,
        "subscribed": True,
        "tags": ["vip", "beta"],
        "last_seen": "2024-05-01T10:00:00Z",
    },
    "steps": {0: {"output": "sent"}},
}


def _cond(field: str, operator: str, value: Any = None) -> ConditionConfig:
    return ConditionConfig(field=field, operator=operator, value=value)


@pytest.mark.parametrize(
    ("field", "operator", "value", "expected"),
    [
        ("contact.lead_status", "equals", "hot", True),
        ("contact.lead_status", "not_equals", "cold", True),
        ("contact.score", "equals", "42", True),
        ("contact.subscribed", "equals", "true", True),
        ("contact.subscribed", "equals", 1, False),
        ("contact.missing", "equals", None, True),
        ("contact.first_name", "contains", "ad", True),
        ("contact.tags", "contains", "VIP", True),
        ("contact.tags", "not_contains", "alpha", True),
        ("contact.first_name", "starts_with", "A", True),
        ("contact.first_name", "ends_with", "DA", True),
        ("contact.score", "gt", 40, True),
        ("contact.score", "gte", 42, True),
        ("contact.score", "lt", "100", True),
        ("contact.score", "lte", 41, False),
        ("contact.last_seen", "gt", "2024-01-01T00:00:00Z", True),
        ("contact.first_name", "gt", 5, False),
        ("contact.email", "is_empty", None, True),
        ("contact.missing", "is_empty", None, True),
        ("contact.tags", "is_not_empty", None, True),
        ("contact.lead_status", "in", ["warm", "hot"], True),
        ("contact.lead_status", "not_in", ["warm", "cold"], True),
        ("contact.lead_status", "in", "hot", False),
        ("steps.0.output", "equals", "sent", True),
    ],
)
def test_operators(field: str, operator: str, value: Any, expected: bool) -> None:
    assert evaluate_condition(_cond(field, operator, value), CONTEXT) is expected


def test_naive_dates_are_taken_as_utc() -> None:
    later = _cond("contact.last_seen", "gt", "2024-01-01T00:00:00")
    same = _cond("contact.last_seen", "gte", "2024-05-01T10:00:00")
    assert evaluate_condition(later, CONTEXT) is True
    assert evaluate_condition(same, CONTEXT) is True
    assert evaluate_condition(_cond("contact.last_seen", "lte", "2024-05-01T10:00:00"), CONTEXT)


@pytest.mark.parametrize("value", ["hot", "HOT", "Hot", "warm"])
def test_ordering_operators_agree(value: str) -> None:
    # "Hot" equals "hot" but still orders before it.
    results = {
        op: evaluate_condition(_cond("contact.lead_status", op, value), CONTEXT)
        for op in ("gt", "gte", "lt", "lte")
    }
    assert results["gte"] is not results["lt"]
    assert results["lte"] is not results["gt"]


def test_evaluate_conditions_logic() -> None:
    hot = _cond("contact.lead_status", "equals", "hot")
    cold = _cond("contact.lead_status", "equals", "cold")

    assert evaluate_conditions([], CONTEXT) is True
    assert evaluate_conditions([hot, cold], CONTEXT) is False
    assert evaluate_conditions([hot, cold], CONTEXT, logic="or") is True


def test_describe_condition() -> None:
    assert (
        describe_condition(_cond("contact.lead_status", "in", ["new", "open"]))
        == "contact.lead_status is one of [new, open]"
    )
    assert describe_condition(_cond("contact.email", "is_empty")) == "contact.email is empty"
    assert describe_condition(_cond("contact.score", "gte", 10)) == (
        "contact.score is greater than or equal to 10"
    )
    assert describe_condition(_cond("contact.name", "equals", "Ada")) == 'contact.name equals "Ada"'
