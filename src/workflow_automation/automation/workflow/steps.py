"""Control-flow step schemas and the per-step validator."""

from __future__ import annotations

from datetime import timedelta
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, Field, StrictStr, ValidationError

from .actions import validate_action_config
from .errors import ValidationResult, guarded
from .types import ConditionOperator, WholeNumber, non_empty


def _at_least_one(value: int) -> int:
    if value < 1:
        raise ValueError("Delay value must be at least 1")
    return value


class ConditionConfig(BaseModel):
    # Dot path into the run context, e.g. "contact.lead_status".
    field: Annotated[StrictStr, AfterValidator(non_empty("Field is required"))]
    operator: ConditionOperator
    # Unused by is_empty / is_not_empty.
    value: Any = None


class DelayConfig(BaseModel):
    delay_type: Literal["minutes", "hours", "days"]
    delay_value: Annotated[WholeNumber, AfterValidator(_at_least_one)]


class LoopConfig(BaseModel):
    collection_field: Annotated[
        StrictStr, AfterValidator(non_empty("Collection field is required"))
    ]
    item_variable: Annotated[
        StrictStr, AfterValidator(non_empty("Item variable name is required"))
    ]
    max_iterations: Annotated[WholeNumber, Field(ge=1, le=1000)] | None = None


CONTROL_FLOW_SCHEMAS: dict[str, type[BaseModel]] = {
    "condition": ConditionConfig,
    "delay": DelayConfig,
    "loop": LoopConfig,
}

ACTION_TYPE_REQUIRED = "Action type is required for action steps"

# Loops without max_iterations stop after this many items.
DEFAULT_MAX_ITERATIONS = 100

_DELAY_UNITS: dict[str, timedelta] = {
    "minutes": timedelta(minutes=1),
    "hours": timedelta(hours=1),
    "days": timedelta(days=1),
}


def delay_duration(config: DelayConfig) -> timedelta:
    """How long a delay step pauses the run."""

    return _DELAY_UNITS[config.delay_type] * config.delay_value


def loop_iterations(config: LoopConfig, collection_length: int) -> int:
    """Number of items a loop step processes from a collection of the given size."""

    limit = config.max_iterations or DEFAULT_MAX_ITERATIONS
    return max(0, min(collection_length, limit))


@guarded
def validate_step_config(
    step_type: str, action_type: str | None, config: object
) -> ValidationResult:
    """Validate one step.

    Config problems are reported under ``config.`` (``config.delay_value: ...``);
    a missing action type is reported under ``action_type``.
    """

    if step_type == "action":
        if not action_type:
            return ValidationResult.failure(ACTION_TYPE_REQUIRED, "action_type")
        return validate_action_config(action_type, config).prefixed("config")

    schema = CONTROL_FLOW_SCHEMAS.get(step_type) if isinstance(step_type, str) else None
    if schema is None:
        return ValidationResult.failure(f"Unknown step type: {step_type}", "step_type")
    try:
        schema.model_validate(config)
    except ValidationError as e:
        return ValidationResult.from_pydantic(e).prefixed("config")
    return ValidationResult.ok()
