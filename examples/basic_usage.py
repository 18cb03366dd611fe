#!/usr/bin/env python3
"""Programmatic workflow example.

This demonstrates using the automation components directly:

* validate a workflow document
* start a run and walk its steps, evaluating conditions and following branches
* persist the run to `automation_state/runs.json`

Actions are not executed; the example only prints the interpolated config each
action step would receive.
"""

from __future__ import annotations

import argparse
import json
from typing import Any, Sequence

from workflow_automation.automation.config import AutomationSettings
from workflow_automation.automation.logging import configure_logging
from workflow_automation.automation.workflow.conditions import evaluate_condition
from workflow_automation.automation.workflow.graph import resolve_next_step
from workflow_automation.automation.workflow.state_machine import (
    RunStatus,
    WorkflowRunStore,
    advance,
    jump,
    start_run,
    transition,
)
from workflow_automation.automation.workflow.steps import ConditionConfig
from workflow_automation.automation.workflow.templating import interpolate_object
from workflow_automation.automation.workflow.validation import (
    CreateWorkflowInput,
    validate_workflow,
)

WORKFLOW: dict[str, Any] = {
    "name": "Route new leads",
    "trigger_type": "manual",
    "trigger_config": {},
    "steps": [
        {
            "step_type": "condition",
            "config": {"field": "contact.lead_status", "operator": "equals", "value": "hot"},
            "else_goto_step": 2,
        },
        {
            "step_type": "action",
            "action_type": "send_notification",
            "config": {
                "user_field": "contact.owner_id",
                "title": "Hot lead",
                "message": "Call {{contact.first_name}} today",
            },
        },
        {
            "step_type": "action",
            "action_type": "send_email",
            "config": {
                "to": "{{contact.email}}",
                "subject": "Thanks, {{contact.first_name}}",
                "body_html": "<p>We'll be in touch.</p>",
            },
        },
    ],
}


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Walk a sample workflow for one contact.")
    parser.add_argument("--first-name", default="Ada", help="Contact first name")
    parser.add_argument("--email", default="ada@example.com", help="Contact email")
    parser.add_argument("--lead-status", default="hot", help='e.g. "hot" or "cold"')
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = AutomationSettings()
    configure_logging(settings.log_level)

    result = validate_workflow(WORKFLOW)
    if not result.valid:
        print("\n".join(result.errors))
        return 1
    workflow = CreateWorkflowInput.model_validate(WORKFLOW)
    steps = workflow.steps or []

    context = {
        "contact": {
            "first_name": args.first_name,
            "email": args.email,
            "lead_status": args.lead_status,
            "owner_id": "user-1",
        }
    }
    run = start_run(
        workflow_id="example",
        organization_id="default",
        workflow_name=workflow.name,
        trigger_type=workflow.trigger_type,
        is_active=True,
        trigger_data=context["contact"],
    )

    index: int | None = 0
    while index is not None:
        step = steps[index]
        condition_met = None
        if step.step_type == "condition":
            condition_met = evaluate_condition(ConditionConfig.model_validate(step.config), context)
            print(f"step {index}: condition met = {condition_met}")
        elif step.step_type == "action":
            config = interpolate_object(step.config, context)
            print(f"step {index}: {step.action_type} {json.dumps(config)}")

        index = resolve_next_step(steps, index, condition_met=condition_met)
        if index is not None:
            run = jump(current=run, target=index, step_count=len(steps))
        else:
            run = advance(current=run)

    run = transition(current=run, to=RunStatus.COMPLETED)
    WorkflowRunStore(settings.runs_state_file).save(run)
    print(f"Run {run.id} {run.status.value}")
    print(f"Persisted to: {settings.runs_state_file}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
