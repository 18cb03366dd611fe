"""Unit tests for template interpolation."""

from __future__ import annotations

from typing import Any

from workflow_automation.automation.workflow.templating import (
    MAX_TEMPLATE_DEPTH,
    build_context_fields_list,
    extract_template_variables,
    get_nested_value,
    has_template_variables,
    interpolate_object,
    interpolate_template,
    set_nested_value,
    validate_template_variables,
)

CONTEXT: dict[str, Any] = {
    "contact": {"first_name": "Ada", "email": "ada@example.com", "vip": False},
    "trigger": {"data": {"items": [{"name": "first"}, {"name": "second"}]}},
    "steps": {1: {"output": {"category": "hot"}}},
}


def test_get_nested_value() -> None:
    assert get_nested_value(CONTEXT, "contact.first_name") == "Ada"
    assert get_nested_value(CONTEXT, "trigger.data.items[1].name") == "second"
    assert get_nested_value(CONTEXT, "trigger.data.items.0.name") == "first"
    assert get_nested_value(CONTEXT, "steps.1.output.category") == "hot"
    assert get_nested_value(CONTEXT, "contact.missing.deeper") is None
    assert get_nested_value(CONTEXT, "trigger.data.items[5]") is None
    assert get_nested_value("not a mapping", "a") is None


def test_set_nested_value_creates_parents() -> None:
    target: dict[str, Any] = {"contact": "replaced"}
    set_nested_value(target, "contact.address.city", "Paris")
    set_nested_value(target, "score", 3)
    assert target == {"contact": {"address": {"city": "Paris"}}, "score": 3}


def test_interpolate_template() -> None:
    assert interpolate_template("Hi {{ contact.first_name }}!", CONTEXT) == "Hi Ada!"
    assert interpolate_template("{{contact.unknown}}", CONTEXT) == ""
    assert interpolate_template("vip={{contact.vip}}", CONTEXT) == "vip=false"
    assert (
        interpolate_template("{{steps.1.output}}", CONTEXT) == '{"category":"hot"}'
    )
    assert interpolate_template("", CONTEXT) == ""


def test_nested_templates_are_resolved() -> None:
    context = {"greeting": "Hello {{name}}", "name": "Ada"}
    assert interpolate_template("{{greeting}}", context) == "Hello Ada"


def test_self_referencing_template_stops() -> None:
    context = {"loop": "{{loop}}!"}
    result = interpolate_template("{{loop}}", context)
    assert result.startswith("{{loop}}")
    assert result.count("!") == MAX_TEMPLATE_DEPTH + 1


def test_interpolate_object() -> None:
    config = {
        "to": "{{contact.email}}",
        "subject": "Welcome {{contact.first_name}}",
        "retries": 3,
        "tags": ["{{contact.first_name}}", "new"],
    }
    assert interpolate_object(config, CONTEXT) == {
        "to": "ada@example.com",
        "subject": "Welcome Ada",
        "retries": 3,
        "tags": ["Ada", "new"],
    }


def test_template_variable_helpers() -> None:
    text = "{{contact.email}} {{ contact.first_name }} {{contact.email}}"
    assert has_template_variables(text)
    assert not has_template_variables("plain")
    assert not has_template_variables(42)
    assert extract_template_variables(text) == ["contact.email", "contact.first_name"]


def test_validate_template_variables() -> None:
    config = {"to": "{{contact.email}}", "body": ["{{deal.value}}", "{{loop.item}}"]}
    valid, missing = validate_template_variables(config, build_context_fields_list())
    assert not valid
    assert missing == ["deal.value"]


def test_build_context_fields_list() -> None:
    fields = build_context_fields_list("task")
    assert "trigger.entity_id" in fields
    assert "task.assignee_id" in fields
    assert "contact.email" not in build_context_fields_list("unknown")
