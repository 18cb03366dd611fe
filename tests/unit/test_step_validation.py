"""Unit tests for per-step validation."""

from __future__ import annotations

from datetime import timedelta

import pytest

from workflow_automation.automation.workflow.steps import (
    DEFAULT_MAX_ITERATIONS,
    DelayConfig,
    LoopConfig,
    delay_duration,
    loop_iterations,
    validate_step_config,
)


def test_action_step_requires_action_type() -> None:
    result = validate_step_config("action", None, {})
    assert result.errors == ["action_type: Action type is required for action steps"]


def test_action_step_errors_are_under_config() -> None:
    result = validate_step_config("action", "webhook_call", {"url": "nope", "method": "GET"})
    assert result.errors == ["config.url: Invalid URL format"]


def test_action_step_refinement_is_reported_on_config() -> None:
    result = validate_step_config(
        "action", "send_notification", {"title": "Hi", "message": "There"}
    )
    assert result.errors == ["config: Either user_id or user_field must be provided"]


def test_delay_step() -> None:
    assert validate_step_config("delay", None, {"delay_type": "hours", "delay_value": 2}).valid

    result = validate_step_config("delay", None, {"delay_type": "hours", "delay_value": 0})
    assert result.errors == ["config.delay_value: Delay value must be at least 1"]

    result = validate_step_config("delay", None, {"delay_type": "weeks", "delay_value": 1})
    assert result.errors[0].startswith("config.delay_type: Invalid enum value")

    result = validate_step_config("delay", None, {"delay_type": "days", "delay_value": "3"})
    assert result.errors == ["config.delay_value: Expected integer, received string"]


def test_loop_step() -> None:
    config = {"collection_field": "trigger.data.items", "item_variable": "item"}
    assert validate_step_config("loop", None, config).valid

    result = validate_step_config("loop", None, {**config, "max_iterations": 1001})
    assert result.errors == ["config.max_iterations: Number must be less than or equal to 1000"]

    result = validate_step_config("loop", None, {"collection_field": "", "item_variable": ""})
    assert result.errors == [
        "config.collection_field: Collection field is required",
        "config.item_variable: Item variable name is required",
    ]


def test_condition_step() -> None:
    config = {"field": "contact.lead_status", "operator": "in", "value": ["hot", "warm"]}
    assert validate_step_config("condition", None, config).valid
    assert validate_step_config(
        "condition", None, {"field": "contact.email", "operator": "is_empty"}
    ).valid

    result = validate_step_config("condition", None, {"field": "x", "operator": "matches"})
    assert result.errors[0].startswith("config.operator: Invalid enum value")


def test_unknown_step_type() -> None:
    result = validate_step_config("parallel", None, {})
    assert result.errors == ["step_type: Unknown step type: parallel"]


def test_whole_number_floats_are_accepted() -> None:
    assert validate_step_config("delay", None, {"delay_type": "days", "delay_value": 5.0}).valid

    result = validate_step_config("delay", None, {"delay_type": "days", "delay_value": 5.5})
    assert result.errors == ["config.delay_value: Expected integer, received float"]

    config = {"collection_field": "items", "item_variable": "item", "max_iterations": 10.0}
    assert validate_step_config("loop", None, config).valid


@pytest.mark.parametrize(
    ("delay_type", "delay_value", "expected"),
    [
        ("minutes", 30, timedelta(minutes=30)),
        ("hours", 2, timedelta(hours=2)),
        ("days", 3, timedelta(days=3)),
    ],
)
def test_delay_duration(delay_type: str, delay_value: int, expected: timedelta) -> None:
    config = DelayConfig(delay_type=delay_type, delay_value=delay_value)  # type: ignore[arg-type]
    assert delay_duration(config) == expected


def test_loop_iterations() -> None:
    config = LoopConfig(collection_field="items", item_variable="item")
    assert loop_iterations(config, 3) == 3
    assert loop_iterations(config, 250) == DEFAULT_MAX_ITERATIONS == 100
    assert loop_iterations(config, 0) == 0

    capped = LoopConfig(collection_field="items", item_variable="item", max_iterations=1000)
    assert loop_iterations(capped, 5000) == 1000
    assert loop_iterations(capped.model_copy(update={"max_iterations": 2}), 5) == 2
