from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from workflow_automation.automation.state_file import load_records, save_records

from .graph import check_branch_target


class RunStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    PAUSED = "paused"


TERMINAL_STATUSES: frozenset[RunStatus] = frozenset(
    {RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED}
)

ALLOWED_TRANSITIONS: dict[RunStatus, set[RunStatus]] = {
    RunStatus.RUNNING: {
        RunStatus.COMPLETED,
        RunStatus.FAILED,
        RunStatus.CANCELLED,
        RunStatus.PAUSED,
    },
    # A paused run resumes when its delay elapses, or is cancelled while waiting.
    RunStatus.PAUSED: {RunStatus.RUNNING, RunStatus.CANCELLED},
    RunStatus.COMPLETED: set(),
    RunStatus.FAILED: set(),
    RunStatus.CANCELLED: set(),
}


class IllegalTransitionError(ValueError):
    pass


class WorkflowInactiveError(ValueError):
    pass


def _utc_iso_now() -> str:
    return datetime.now(tz=UTC).isoformat()


@dataclass(frozen=True, slots=True)
class WorkflowRun:
    """One execution of a workflow.

    ``workflow_id`` is a weak reference: run history outlives the workflow.
    """

    id: str
    workflow_id: str | None
    organization_id: str
    workflow_name: str
    trigger_type: str
    status: RunStatus
    started_at: str
    trigger_data: dict[str, Any] = field(default_factory=dict)
    current_step: int = 0
    completed_at: str | None = None
    error_message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_json(self) -> dict[str, object]:
        return {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "organization_id": self.organization_id,
            "workflow_name": self.workflow_name,
            "trigger_type": self.trigger_type,
            "trigger_data": self.trigger_data,
            "status": self.status.value,
            "current_step": self.current_step,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "error_message": self.error_message,
        }

    @staticmethod
    def from_json(obj: dict[str, Any]) -> WorkflowRun:
        trigger_data = obj.get("trigger_data")
        current_step = obj.get("current_step")
        return WorkflowRun(
            id=str(obj["id"]),
            workflow_id=obj.get("workflow_id"),
            organization_id=str(obj.get("organization_id", "")),
            workflow_name=str(obj.get("workflow_name", "")),
            trigger_type=str(obj.get("trigger_type", "")),
            status=RunStatus(obj.get("status", RunStatus.RUNNING.value)),
            started_at=str(obj.get("started_at", "")),
            trigger_data=trigger_data if isinstance(trigger_data, dict) else {},
            current_step=current_step if isinstance(current_step, int) else 0,
            completed_at=obj.get("completed_at"),
            error_message=obj.get("error_message"),
        )


def start_run(
    *,
    workflow_id: str,
    organization_id: str,
    workflow_name: str,
    trigger_type: str,
    is_active: bool,
    trigger_data: dict[str, Any] | None = None,
) -> WorkflowRun:
    """Create a run for a fired trigger; inactive workflows never run."""

    if not is_active:
        raise WorkflowInactiveError(f"Workflow {workflow_id} is not active")
    return WorkflowRun(
        id=str(uuid.uuid4()),
        workflow_id=workflow_id,
        organization_id=organization_id,
        workflow_name=workflow_name,
        trigger_type=trigger_type,
        status=RunStatus.RUNNING,
        started_at=_utc_iso_now(),
        trigger_data=dict(trigger_data or {}),
    )


def transition(
    *, current: WorkflowRun, to: RunStatus, error_message: str | None = None
) -> WorkflowRun:
    allowed = ALLOWED_TRANSITIONS.get(current.status, set())
    if to not in allowed:
        raise IllegalTransitionError(
            f"Illegal transition: {current.status.value} -> {to.value}"
        )
    return replace(
        current,
        status=to,
        completed_at=_utc_iso_now() if to in TERMINAL_STATUSES else None,
        error_message=error_message if to is RunStatus.FAILED else None,
    )


def _require_running(run: WorkflowRun) -> None:
    if run.status is not RunStatus.RUNNING:
        raise IllegalTransitionError(f"Cannot move the cursor of a {run.status.value} run")


def advance(*, current: WorkflowRun) -> WorkflowRun:
    """Move the cursor to the next step.

    The cursor may land one past the last step; the run is then complete.
    """

    _require_running(current)
    return replace(current, current_step=current.current_step + 1)


def jump(*, current: WorkflowRun, target: int, step_count: int) -> WorkflowRun:
    """Move the cursor to a branch target.

    Raises:
        BranchTargetError: if ``target`` is not a valid step index.
    """

    _require_running(current)
    return replace(current, current_step=check_branch_target(target, step_count))


@dataclass
class WorkflowRunStore:
    """Persist runs to a JSON file.

    All mutations go through the store lock, so a run's cursor and status have
    at most one writer at a time within a process.
    """

    path: Path

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def _load_unlocked(self, *, for_write: bool = False) -> list[WorkflowRun]:
        return [
            WorkflowRun.from_json(item) for item in load_records(self.path, for_write=for_write)
        ]

    def _save_unlocked(self, runs: list[WorkflowRun]) -> None:
        save_records(self.path, [r.to_json() for r in runs])

    def get(self, run_id: str) -> WorkflowRun | None:
        with self._lock:
            for run in self._load_unlocked():
                if run.id == run_id:
                    return run
            return None

    def list_for_workflow(self, workflow_id: str) -> list[WorkflowRun]:
        with self._lock:
            runs = [r for r in self._load_unlocked() if r.workflow_id == workflow_id]
        return sorted(runs, key=lambda r: r.started_at, reverse=True)

    def save(self, run: WorkflowRun) -> WorkflowRun:
        with self._lock:
            runs = [r for r in self._load_unlocked(for_write=True) if r.id != run.id]
            runs.append(run)
            self._save_unlocked(runs)
            return run

    def transition(
        self, run_id: str, *, to: RunStatus, error_message: str | None = None
    ) -> WorkflowRun:
        """Load, transition and persist a run atomically.

        Raises:
            KeyError: if the run does not exist.
            IllegalTransitionError: if the run cannot move to ``to``.
        """

        with self._lock:
            runs = self._load_unlocked(for_write=True)
            for idx, run in enumerate(runs):
                if run.id != run_id:
                    continue
                updated = transition(current=run, to=to, error_message=error_message)
                runs[idx] = updated
                self._save_unlocked(runs)
                return updated
            raise KeyError(run_id)
