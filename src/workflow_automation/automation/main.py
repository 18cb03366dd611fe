"""CLI entrypoint for workflow automation.

Validates and describes workflow documents stored as JSON files, and serves
the REST API.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from workflow_automation import __version__
from workflow_automation.automation.config import AutomationSettings
from workflow_automation.automation.logging import configure_logging
from workflow_automation.automation.workflow.conditions import describe_condition
from workflow_automation.automation.workflow.errors import ValidationResult
from workflow_automation.automation.workflow.steps import (
    ConditionConfig,
    DelayConfig,
    LoopConfig,
    validate_step_config,
)
from workflow_automation.automation.workflow.validation import (
    CreateWorkflowInput,
    WorkflowStepInput,
    validate_workflow,
)

logger = logging.getLogger(__name__)

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_USAGE = 2


class InputError(Exception):
    pass


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise InputError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise InputError(f"{path} is not valid JSON: {e}") from e


def _print_result(result: ValidationResult) -> int:
    print(json.dumps(result.to_json(), indent=2, ensure_ascii=False))
    return EXIT_VALID if result.valid else EXIT_INVALID


def describe_step(index: int, step: WorkflowStepInput) -> str:
    """One human-readable line for a step of an already-validated workflow."""

    prefix = f"{index}. {step.step_type}"
    if step.step_type == "action":
        return f"{prefix}: {step.action_type}"
    if step.step_type == "condition":
        condition = ConditionConfig.model_validate(step.config)
        line = f"{prefix}: if {describe_condition(condition)}"
        if step.else_goto_step is not None:
            line += f" (else -> step {step.else_goto_step})"
        return line
    if step.step_type == "delay":
        delay = DelayConfig.model_validate(step.config)
        return f"{prefix}: {delay.delay_value} {delay.delay_type}"
    loop = LoopConfig.model_validate(step.config)
    line = f"{prefix}: each {loop.item_variable} in {loop.collection_field}"
    if loop.max_iterations is not None:
        line += f" (max {loop.max_iterations})"
    return line


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-automation",
        description="Validate and inspect workflow automation definitions",
    )
    parser.add_argument(
        "--version", action="version", version=f"workflow-automation {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Validate a workflow JSON document")
    validate.add_argument("path", type=Path, help="Path to the workflow JSON file")
    validate.add_argument(
        "--no-branch-check",
        action="store_true",
        help="Do not reject out-of-range else_goto_step targets",
    )

    validate_step = subparsers.add_parser(
        "validate-step", help="Validate a single step JSON document"
    )
    validate_step.add_argument(
        "path",
        type=Path,
        help="Path to a JSON object with step_type, action_type and config",
    )

    describe = subparsers.add_parser("describe", help="Print a workflow's steps in words")
    describe.add_argument("path", type=Path, help="Path to the workflow JSON file")

    serve = subparsers.add_parser("serve", help="Run the REST API")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve.add_argument("--port", type=int, default=8000, help="Bind port")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = AutomationSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_USAGE

    configure_logging(settings.log_level, stream=sys.stderr)

    try:
        if args.command == "validate":
            document = _load_json(args.path)
            check = settings.check_branch_targets and not args.no_branch_check
            result = validate_workflow(document, check_branch_targets=check)
            logger.info(
                "Workflow validated",
                extra={"path": str(args.path), "valid": result.valid},
            )
            return _print_result(result)

        if args.command == "validate-step":
            step = _load_json(args.path)
            if not isinstance(step, dict):
                raise InputError(f"{args.path} must contain a JSON object")
            result = validate_step_config(
                step.get("step_type"), step.get("action_type"), step.get("config")
            )
            return _print_result(result)

        if args.command == "describe":
            document = _load_json(args.path)
            result = validate_workflow(
                document, check_branch_targets=settings.check_branch_targets
            )
            if not result.valid:
                return _print_result(result)
            workflow = CreateWorkflowInput.model_validate(document)
            print(f"{workflow.name} (trigger: {workflow.trigger_type})")
            for index, step in enumerate(workflow.steps or []):
                print(describe_step(index, step))
            return EXIT_VALID

        if args.command == "serve":
            import uvicorn

            uvicorn.run(
                "workflow_automation.server.app:create_app",
                factory=True,
                host=args.host,
                port=args.port,
                reload=False,
            )
            return EXIT_VALID

    except InputError as e:
        print(str(e), file=sys.stderr)
        return EXIT_USAGE

    parser.error(f"Unknown command: {args.command}")
    return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
