"""``{{ path }}`` interpolation over a run context.

Paths use dot notation with optional list indices: ``contact.email``,
``steps.0.output``, ``items[0].name``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

logger = logging.getLogger(__name__)

TEMPLATE_RE = re.compile(r"\{\{([^{}]+)\}\}")
_INDEX_RE = re.compile(r"\[(\d+)\]")

MAX_TEMPLATE_DEPTH = 10

STANDARD_CONTEXT_FIELDS: tuple[str, ...] = (
    "trigger",
    "trigger.type",
    "trigger.event_type",
    "trigger.entity_type",
    "trigger.entity_id",
    "trigger.data",
    "contact",
    "opportunity",
    "task",
    "project",
    "company",
    "steps",
    "organization_id",
    "triggered_by_user_id",
    "triggered_at",
    "loop",
    "loop.index",
    "loop.item",
    "loop.collection_length",
)

_ENTITY_FIELDS: dict[str, tuple[str, ...]] = {
    "contact": (
        "id",
        "first_name",
        "last_name",
        "email",
        "phone",
        "company_id",
        "lead_status",
        "pipeline_stage",
    ),
    "task": (
        "id",
        "title",
        "description",
        "status",
        "priority",
        "assignee_id",
        "project_id",
        "due_date",
    ),
    "opportunity": ("id", "name", "value", "status", "company_id"),
    "project": ("id", "name", "description", "status", "owner_id", "company_id"),
}


def _split_path(path: str) -> list[str]:
    return _INDEX_RE.sub(r".\1", path.strip()).split(".")


def _child(current: Any, key: str) -> Any:
    if isinstance(current, Mapping):
        if key in current:
            return current[key]
        # Step outputs are keyed by integer step order.
        if key.isdigit():
            return current.get(int(key))
        return None
    if isinstance(current, (list, tuple)) and key.isdigit():
        idx = int(key)
        return current[idx] if idx < len(current) else None
    return None


def get_nested_value(obj: Any, path: str) -> Any:
    """Return the value at ``path`` in ``obj``, or None when any segment is missing."""

    if not isinstance(obj, (Mapping, list, tuple)):
        return None

    current: Any = obj
    for key in _split_path(path):
        if current is None:
            return None
        current = _child(current, key)
    return current


def set_nested_value(obj: dict[str, Any], path: str, value: Any) -> None:
    """Set ``value`` at a dot ``path``, creating intermediate dicts as needed."""

    keys = path.split(".")
    current = obj
    for key in keys[:-1]:
        child = current.get(key)
        if not isinstance(child, dict):
            child = {}
            current[key] = child
        current = child
    current[keys[-1]] = value


def _render(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str, separators=(",", ":"))
    return str(value)


def interpolate_template(template: str, context: Mapping[str, Any], depth: int = 0) -> str:
    """Replace each ``{{ path }}`` in ``template`` with its value from ``context``.

    Unresolved paths render as an empty string; maps and lists render as JSON.
    When a substituted value itself contains templates they are resolved too,
    up to ``MAX_TEMPLATE_DEPTH`` levels.
    """

    if not isinstance(template, str) or not template:
        return template

    if depth > MAX_TEMPLATE_DEPTH:
        logger.warning("Max template depth exceeded; returning template as-is")
        return template

    result = TEMPLATE_RE.sub(
        lambda m: _render(get_nested_value(context, m.group(1).strip())), template
    )

    if result != template and TEMPLATE_RE.search(result):
        return interpolate_template(result, context, depth + 1)
    return result


def interpolate_object(obj: Any, context: Mapping[str, Any]) -> Any:
    if isinstance(obj, str):
        return interpolate_template(obj, context)
    if isinstance(obj, list):
        return [interpolate_object(item, context) for item in obj]
    if isinstance(obj, Mapping):
        return {key: interpolate_object(value, context) for key, value in obj.items()}
    return obj


def has_template_variables(value: object) -> bool:
    return isinstance(value, str) and TEMPLATE_RE.search(value) is not None


def extract_template_variables(value: object) -> list[str]:
    """Return the distinct variable paths in ``value``, in order of appearance."""

    if not isinstance(value, str):
        return []
    variables: list[str] = []
    for match in TEMPLATE_RE.finditer(value):
        path = match.group(1).strip()
        if path not in variables:
            variables.append(path)
    return variables


def _walk_strings(value: Any) -> Iterable[str]:
    if isinstance(value, str):
        yield value
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _walk_strings(item)
    elif isinstance(value, Mapping):
        for item in value.values():
            yield from _walk_strings(item)


def validate_template_variables(
    config: Any, available_fields: Iterable[str]
) -> tuple[bool, list[str]]:
    """Check that every template variable in ``config`` can be resolved.

    A variable resolves when it equals an available field or lives below one
    (``contact.email`` resolves against ``contact``).

    Returns:
        ``(valid, missing_fields)``.
    """

    fields = tuple(available_fields)
    missing: list[str] = []
    for text in _walk_strings(config):
        for variable in extract_template_variables(text):
            available = any(variable == f or variable.startswith(f"{f}.") for f in fields)
            if not available and variable not in missing:
                missing.append(variable)
    return not missing, missing


def build_context_fields_list(entity_type: str | None = None) -> list[str]:
    fields = list(STANDARD_CONTEXT_FIELDS)
    if entity_type in _ENTITY_FIELDS:
        fields.extend(f"{entity_type}.{name}" for name in _ENTITY_FIELDS[entity_type])
    return fields
