"""File-backed workflow definitions.

Workflows are persisted to a single JSON file under the state directory.
Every read and write is scoped to an organization id; a workflow owned by
another organization behaves exactly like a missing one.

Creates are validated by the caller; updates are validated under the store
lock through the ``validate`` callback so concurrent writers cannot combine
into an invalid record.
"""

from __future__ import annotations

import threading
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from workflow_automation.automation.state_file import load_records, save_records
from workflow_automation.automation.workflow.errors import ValidationResult
from workflow_automation.automation.workflow.types import Workflow, WorkflowStep
from workflow_automation.automation.workflow.validation import (
    CreateWorkflowInput,
    UpdateWorkflowInput,
    WorkflowStepInput,
)


def _utc_iso_now() -> str:
    return datetime.now(tz=UTC).isoformat()


class WorkflowRejectedError(ValueError):
    """An update would store a workflow that fails validation."""

    def __init__(self, result: ValidationResult) -> None:
        super().__init__("; ".join(result.errors))
        self.result = result


def _to_steps(steps: Sequence[WorkflowStepInput] | None) -> list[WorkflowStep]:
    return [
        WorkflowStep(
            step_order=index,
            step_type=step.step_type,
            action_type=step.action_type,
            config=step.config,
            else_goto_step=step.else_goto_step,
        )
        for index, step in enumerate(steps or [])
    ]


@dataclass
class WorkflowStore:
    path: Path

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def _load_unlocked(self, *, for_write: bool = False) -> list[Workflow]:
        return [
            Workflow.model_validate(item)
            for item in load_records(self.path, for_write=for_write)
        ]

    def _save_unlocked(self, workflows: list[Workflow]) -> None:
        save_records(self.path, [w.model_dump(mode="json") for w in workflows])

    def list(
        self,
        organization_id: str,
        *,
        is_active: bool | None = None,
        trigger_type: str | None = None,
    ) -> list[Workflow]:
        """Newest first."""

        with self._lock:
            workflows = [
                w
                for w in self._load_unlocked()
                if w.organization_id == organization_id
                and (is_active is None or w.is_active == is_active)
                and (trigger_type is None or w.trigger_type == trigger_type)
            ]
        return sorted(workflows, key=lambda w: w.created_at, reverse=True)

    def get(self, workflow_id: str, organization_id: str) -> Workflow | None:
        with self._lock:
            for workflow in self._load_unlocked():
                if workflow.id == workflow_id and workflow.organization_id == organization_id:
                    return workflow
            return None

    def create(self, organization_id: str, data: CreateWorkflowInput) -> Workflow:
        """Store a new workflow. New workflows start inactive."""

        with self._lock:
            workflows = self._load_unlocked(for_write=True)
            now = _utc_iso_now()
            record = Workflow(
                id=str(uuid.uuid4()),
                organization_id=organization_id,
                name=data.name,
                description=data.description,
                trigger_type=data.trigger_type,
                trigger_config=data.trigger_config,
                is_active=False,
                steps=_to_steps(data.steps),
                created_at=now,
                updated_at=now,
            )
            workflows.append(record)
            self._save_unlocked(workflows)
            return record

    def update(
        self,
        workflow_id: str,
        organization_id: str,
        changes: UpdateWorkflowInput,
        *,
        validate: Callable[[Workflow], ValidationResult] | None = None,
    ) -> Workflow:
        """Apply the fields set on ``changes``; ``steps`` replaces the whole list.

        ``validate`` is called under the store lock with the record about to be
        replaced, so the check and the write see the same stored workflow.

        Raises:
            KeyError: if the workflow does not exist for this organization.
            WorkflowRejectedError: if ``validate`` fails.
        """

        with self._lock:
            workflows = self._load_unlocked(for_write=True)
            for idx, workflow in enumerate(workflows):
                if workflow.id != workflow_id or workflow.organization_id != organization_id:
                    continue
                if validate is not None:
                    result = validate(workflow)
                    if not result.valid:
                        raise WorkflowRejectedError(result)
                updates: dict[str, object] = {"updated_at": _utc_iso_now()}
                for key in changes.model_fields_set:
                    value = getattr(changes, key)
                    # Only description is nullable; null elsewhere means "unchanged".
                    if value is None and key != "description":
                        continue
                    updates[key] = _to_steps(changes.steps) if key == "steps" else value
                merged = workflow.model_copy(update=updates)
                workflows[idx] = merged
                self._save_unlocked(workflows)
                return merged
            raise KeyError(workflow_id)

    def delete(self, workflow_id: str, organization_id: str) -> bool:
        with self._lock:
            workflows = self._load_unlocked(for_write=True)
            remaining = [
                w
                for w in workflows
                if not (w.id == workflow_id and w.organization_id == organization_id)
            ]
            if len(remaining) == len(workflows):
                return False
            self._save_unlocked(remaining)
            return True
