"""Whole-workflow validation.

Validation runs in two phases:

1. The envelope (name, description, trigger type, step shapes). Any failure
   here is returned immediately; checking trigger or step semantics against a
   malformed envelope would only produce noise.
2. The body (trigger config, every step config, branch targets). Steps are
   independent of each other, so every problem is collected and reported in
   one pass.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    Field,
    StrictBool,
    StrictStr,
    ValidationError,
)

from .errors import ValidationResult, guarded
from .graph import branch_target_issues
from .steps import validate_step_config
from .triggers import validate_trigger_config
from .types import (
    ActionType,
    StepType,
    TriggerType,
    WholeNumber,
    Workflow,
    max_chars,
    non_empty,
)

logger = logging.getLogger(__name__)

WorkflowName = Annotated[
    StrictStr,
    AfterValidator(non_empty("Name is required")),
    AfterValidator(max_chars(200, "Name too long")),
]
WorkflowDescription = Annotated[StrictStr, AfterValidator(max_chars(2000, "Description too long"))]


class WorkflowStepInput(BaseModel):
    step_type: StepType
    action_type: ActionType | None = None
    config: dict[str, Any]
    else_goto_step: Annotated[WholeNumber, Field(ge=0)] | None = None


class CreateWorkflowInput(BaseModel):
    name: WorkflowName
    description: WorkflowDescription | None = None
    trigger_type: TriggerType
    trigger_config: dict[str, Any]
    steps: list[WorkflowStepInput] | None = None


class UpdateWorkflowInput(BaseModel):
    """Partial update; only the fields present in the request are applied."""

    name: WorkflowName | None = None
    description: WorkflowDescription | None = None
    trigger_type: TriggerType | None = None
    trigger_config: dict[str, Any] | None = None
    is_active: StrictBool | None = None
    steps: list[WorkflowStepInput] | None = None


def _validate_body(data: CreateWorkflowInput, *, check_branch_targets: bool) -> ValidationResult:
    trigger = validate_trigger_config(data.trigger_type, data.trigger_config)
    results = [trigger.prefixed("trigger_config")]

    steps = data.steps or []
    for index, step in enumerate(steps):
        results.append(
            validate_step_config(step.step_type, step.action_type, step.config).prefixed(
                "steps", index
            )
        )

    if check_branch_targets:
        results.append(ValidationResult(issues=tuple(branch_target_issues(steps))))

    return ValidationResult.merge(results)


@guarded
def validate_workflow(document: object, *, check_branch_targets: bool = True) -> ValidationResult:
    """Validate an authoring document end to end.

    Args:
        document: The workflow as submitted (``name``, ``trigger_type``,
            ``trigger_config``, optional ``description`` and ``steps``).
        check_branch_targets: Reject condition steps whose ``else_goto_step``
            falls outside the step list. Disable only to reproduce legacy
            behavior, which accepted any non-negative index.

    Returns:
        A result whose errors are prefixed with their location, e.g.
        ``trigger_config.schedule_type: ...`` or ``steps[1].config.to: ...``.
    """

    try:
        data = CreateWorkflowInput.model_validate(document)
    except ValidationError as e:
        return ValidationResult.from_pydantic(e)

    result = _validate_body(data, check_branch_targets=check_branch_targets)
    if not result.valid:
        logger.debug(
            "Workflow failed validation",
            extra={"workflow_name": data.name, "error_count": len(result.issues)},
        )
    return result


def apply_update(existing: Workflow, changes: UpdateWorkflowInput) -> dict[str, Any]:
    """Merge a partial update over a stored workflow, returning a document."""

    document = existing.to_document()
    for key, value in changes.model_dump(exclude_unset=True).items():
        if key == "is_active":
            continue
        if value is None:
            # Only description is nullable; null elsewhere means "unchanged".
            if key == "description":
                document.pop("description", None)
            continue
        document[key] = value
    return document


@guarded
def validate_workflow_update(
    existing: Workflow, changes: object, *, check_branch_targets: bool = True
) -> ValidationResult:
    """Validate a partial update as it would be persisted.

    The update itself is shape-checked first; then the merged document is run
    through :func:`validate_workflow`, so an update can never store a
    trigger config that no longer matches a changed trigger type.
    """

    try:
        parsed = UpdateWorkflowInput.model_validate(changes)
    except ValidationError as e:
        return ValidationResult.from_pydantic(e)
    return validate_workflow(
        apply_update(existing, parsed), check_branch_targets=check_branch_targets
    )
