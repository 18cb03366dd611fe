"""Action step configuration schemas.

Every action type with structural requirements has its own record type, and
``ACTION_CONFIG_SCHEMAS`` is the dispatch table keyed by action type. Action
types missing from the table are accepted without structural checks: new
action kinds can ship before a schema exists for them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    Field,
    StrictBool,
    StrictStr,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from .errors import ValidationResult, guarded
from .types import TaskPriority, TaskStatus, WholeNumber, min_items, non_empty

logger = logging.getLogger(__name__)

_URL_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)


def _absolute_url(value: str) -> str:
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError as e:
        raise ValueError("Invalid URL format") from e
    return value


def _one_of(config: BaseModel, first: str, second: str) -> None:
    if not (getattr(config, first) or getattr(config, second)):
        raise ValueError(f"Either {first} or {second} must be provided")


class SendEmailConfig(BaseModel):
    # Recipient address or a template such as {{contact.email}}.
    to: Annotated[StrictStr, AfterValidator(non_empty("Recipient is required"))]
    subject: Annotated[StrictStr, AfterValidator(non_empty("Subject is required"))]
    body_html: Annotated[StrictStr, AfterValidator(non_empty("Body is required"))]
    body_text: StrictStr | None = None
    from_name: StrictStr | None = None


class SendNotificationConfig(BaseModel):
    """Used for both ``send_notification`` and ``send_push``."""

    user_id: StrictStr | None = None
    user_field: StrictStr | None = None
    title: Annotated[StrictStr, AfterValidator(non_empty("Title is required"))]
    message: Annotated[StrictStr, AfterValidator(non_empty("Message is required"))]
    type: StrictStr | None = None
    metadata: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _require_recipient(self) -> SendNotificationConfig:
        _one_of(self, "user_id", "user_field")
        return self


class CreateTaskConfig(BaseModel):
    project_id: StrictStr | None = None
    project_field: StrictStr | None = None
    title: Annotated[StrictStr, AfterValidator(non_empty("Task title is required"))]
    description: StrictStr | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_field: StrictStr | None = None
    due_date_offset_days: Annotated[WholeNumber, Field(ge=0)] | None = None
    tags: list[StrictStr] | None = None

    @model_validator(mode="after")
    def _require_project(self) -> CreateTaskConfig:
        _one_of(self, "project_id", "project_field")
        return self


class TaskChanges(BaseModel):
    status: Literal["todo", "in_progress", "done", "archived"] | None = None
    priority: TaskPriority | None = None
    # None clears the assignee.
    assignee_id: StrictStr | None = None
    assignee_field: StrictStr | None = None
    due_date: StrictStr | None = None
    due_date_offset_days: WholeNumber | None = None


class UpdateTaskConfig(BaseModel):
    task_id: StrictStr | None = None
    task_field: StrictStr | None = None
    updates: TaskChanges

    @model_validator(mode="after")
    def _require_task(self) -> UpdateTaskConfig:
        _one_of(self, "task_id", "task_field")
        return self


class UpdateContactConfig(BaseModel):
    contact_id: StrictStr | None = None
    contact_field: StrictStr | None = None
    updates: dict[str, Any]

    @model_validator(mode="after")
    def _require_contact(self) -> UpdateContactConfig:
        _one_of(self, "contact_id", "contact_field")
        return self


class TagConfig(BaseModel):
    """Used for both ``add_tag`` and ``remove_tag``."""

    entity_type: Literal["contact", "company"]
    entity_field: Annotated[StrictStr, AfterValidator(non_empty("Entity field is required"))]
    tag_name: Annotated[StrictStr, AfterValidator(non_empty("Tag name is required"))]


class AIGenerateConfig(BaseModel):
    prompt_template: Annotated[
        StrictStr, AfterValidator(non_empty("Prompt template is required"))
    ]
    output_field: Annotated[StrictStr, AfterValidator(non_empty("Output field is required"))]
    structured: StrictBool | None = None


class AICategorizeConfig(BaseModel):
    field_to_analyze: Annotated[
        StrictStr, AfterValidator(non_empty("Field to analyze is required"))
    ]
    categories: Annotated[
        list[StrictStr], AfterValidator(min_items(2, "At least 2 categories are required"))
    ]
    output_field: Annotated[StrictStr, AfterValidator(non_empty("Output field is required"))]


class WebhookCallConfig(BaseModel):
    url: Annotated[StrictStr, AfterValidator(_absolute_url)]
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE"]
    headers: dict[str, StrictStr] | None = None
    body_template: StrictStr | None = None
    output_field: StrictStr | None = None
    timeout_ms: Annotated[WholeNumber, Field(ge=1000, le=30000)] | None = None


class CreateActivityConfig(BaseModel):
    company_id: StrictStr | None = None
    company_field: StrictStr | None = None
    message: Annotated[StrictStr, AfterValidator(non_empty("Message is required"))]
    entity_type: StrictStr
    entity_field: StrictStr | None = None
    event_type: StrictStr

    @model_validator(mode="after")
    def _require_company(self) -> CreateActivityConfig:
        _one_of(self, "company_id", "company_field")
        return self


ACTION_CONFIG_SCHEMAS: dict[str, type[BaseModel]] = {
    "send_email": SendEmailConfig,
    "send_notification": SendNotificationConfig,
    "send_push": SendNotificationConfig,
    "create_task": CreateTaskConfig,
    "update_task": UpdateTaskConfig,
    "update_contact": UpdateContactConfig,
    "add_tag": TagConfig,
    "remove_tag": TagConfig,
    "ai_generate": AIGenerateConfig,
    "ai_categorize": AICategorizeConfig,
    "webhook_call": WebhookCallConfig,
    "create_activity": CreateActivityConfig,
}


@dataclass(frozen=True, slots=True)
class OpaqueActionConfig:
    """Config of an action type that has no schema; carried through untouched."""

    action_type: str
    payload: dict[str, Any] = field(default_factory=dict)


def parse_action_config(action_type: str, config: object) -> BaseModel | OpaqueActionConfig:
    """Return the typed config for ``action_type``.

    Raises:
        pydantic.ValidationError: when a schema exists and ``config`` violates it.
    """

    schema = ACTION_CONFIG_SCHEMAS.get(action_type)
    if schema is None:
        payload = dict(config) if isinstance(config, dict) else {}
        return OpaqueActionConfig(action_type=action_type, payload=payload)
    return schema.model_validate(config)


@guarded
def validate_action_config(action_type: str, config: object) -> ValidationResult:
    """Check ``config`` against the schema registered for ``action_type``.

    Action types without a registered schema pass. Error paths are relative to
    the config map; "at least one of" refinements are reported without a path.
    """

    if not isinstance(action_type, str):
        return ValidationResult.failure(f"Unknown action type: {action_type}")
    if action_type not in ACTION_CONFIG_SCHEMAS:
        logger.debug(
            "No schema for action type; accepting config as-is",
            extra={"action_type": action_type},
        )
        return ValidationResult.ok()
    try:
        parse_action_config(action_type, config)
    except ValidationError as e:
        return ValidationResult.from_pydantic(e)
    return ValidationResult.ok()
