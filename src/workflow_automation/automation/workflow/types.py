"""Workflow vocabulary and persisted data model.

The closed vocabularies are ``Literal`` aliases so the pydantic schemas that
use them report unknown values as ordinary validation errors.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Any, Literal, get_args

from pydantic import BaseModel, BeforeValidator, Field, StrictInt

TriggerType = Literal["event", "schedule", "manual", "webhook"]

StepType = Literal["action", "condition", "delay", "loop"]

ActionType = Literal[
    # Communication
    "send_email",
    "send_notification",
    "send_push",
    # Tasks
    "create_task",
    "update_task",
    "bulk_update_tasks",
    # Contacts
    "create_contact",
    "update_contact",
    "add_tag",
    "remove_tag",
    # Opportunities
    "update_opportunity",
    "create_project_from_opportunity",
    # Projects
    "create_project",
    "create_project_from_template",
    # AI
    "ai_generate",
    "ai_categorize",
    "ai_summarize",
    # Integrations
    "webhook_call",
    "create_activity",
]

ConditionOperator = Literal[
    "equals",
    "not_equals",
    "contains",
    "not_contains",
    "starts_with",
    "ends_with",
    "gt",
    "gte",
    "lt",
    "lte",
    "is_empty",
    "is_not_empty",
    "in",
    "not_in",
]

TaskStatus = Literal["todo", "in_progress", "done"]
TaskPriority = Literal["low", "medium", "high", "critical"]

TRIGGER_TYPES: tuple[str, ...] = get_args(TriggerType)
STEP_TYPES: tuple[str, ...] = get_args(StepType)
ACTION_TYPES: tuple[str, ...] = get_args(ActionType)
CONDITION_OPERATORS: tuple[str, ...] = get_args(ConditionOperator)


def non_empty(message: str) -> Callable[[Any], Any]:
    """Build an after-validator rejecting empty strings/lists with ``message``."""

    def _check(value: Any) -> Any:
        if len(value) == 0:
            raise ValueError(message)
        return value

    return _check


def _whole_number(value: Any) -> Any:
    # JSON clients may send 5.0 for 5.
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


WholeNumber = Annotated[StrictInt, BeforeValidator(_whole_number)]


def min_items(count: int, message: str) -> Callable[[list[Any]], list[Any]]:
    def _check(value: list[Any]) -> list[Any]:
        if len(value) < count:
            raise ValueError(message)
        return value

    return _check


def max_chars(limit: int, message: str) -> Callable[[str], str]:
    def _check(value: str) -> str:
        if len(value) > limit:
            raise ValueError(message)
        return value

    return _check


class WorkflowStep(BaseModel):
    """A persisted step, addressed by its zero-based ``step_order``."""

    step_order: int
    step_type: StepType
    action_type: ActionType | None = None
    config: dict[str, Any] = Field(default_factory=dict)
    else_goto_step: int | None = None

    def to_document(self) -> dict[str, Any]:
        out: dict[str, Any] = {"step_type": self.step_type, "config": dict(self.config)}
        if self.action_type is not None:
            out["action_type"] = self.action_type
        if self.else_goto_step is not None:
            out["else_goto_step"] = self.else_goto_step
        return out


class Workflow(BaseModel):
    """A persisted workflow definition owned by one organization."""

    id: str
    organization_id: str
    name: str
    description: str | None = None
    trigger_type: TriggerType
    trigger_config: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = False
    steps: list[WorkflowStep] = Field(default_factory=list)
    created_at: str
    updated_at: str

    def to_document(self) -> dict[str, Any]:
        """Return the authoring document shape accepted by ``validate_workflow``."""

        document: dict[str, Any] = {
            "name": self.name,
            "trigger_type": self.trigger_type,
            "trigger_config": self.trigger_config,
            "steps": [step.to_document() for step in self.steps],
        }
        if self.description is not None:
            document["description"] = self.description
        return document
