"""Workflow definition and execution model.

This package provides first-class types for:
- Trigger, control-flow and action configuration schemas
- Whole-workflow validation with path-qualified errors
- The step graph (index-based branch targets)
- Event filter matching and schedule polling
- The workflow run state machine

Validation is pure and synchronous: it touches no external state, so it can
be called from request handlers, editors and workers alike.
"""

from workflow_automation.automation.workflow.actions import validate_action_config
from workflow_automation.automation.workflow.errors import ValidationIssue, ValidationResult
from workflow_automation.automation.workflow.steps import validate_step_config
from workflow_automation.automation.workflow.trigger_matching import (
    matches_event,
    matches_filters,
    should_run_now,
)
from workflow_automation.automation.workflow.triggers import validate_trigger_config
from workflow_automation.automation.workflow.validation import (
    validate_workflow,
    validate_workflow_update,
)

__all__ = [
    "ValidationIssue",
    "ValidationResult",
    "matches_event",
    "matches_filters",
    "should_run_now",
    "validate_action_config",
    "validate_step_config",
    "validate_trigger_config",
    "validate_workflow",
    "validate_workflow_update",
]
