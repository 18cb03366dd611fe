"""Pydantic models for the REST server."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from workflow_automation.automation.workflow.state_machine import WorkflowRun
from workflow_automation.automation.workflow.types import Workflow


class WorkflowList(BaseModel):
    data: list[Workflow]
    total: int
    limit: int
    offset: int


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[str] | None = None


class StartRunRequest(BaseModel):
    trigger_data: dict[str, Any] = Field(default_factory=dict)


class ApiRun(BaseModel):
    id: str
    workflow_id: str | None
    organization_id: str
    workflow_name: str
    trigger_type: str
    trigger_data: dict[str, Any] = Field(default_factory=dict)
    status: str
    current_step: int
    started_at: str
    completed_at: str | None = None
    error_message: str | None = None

    @classmethod
    def from_run(cls, run: WorkflowRun) -> ApiRun:
        return cls.model_validate(run.to_json())


class EntityEvent(BaseModel):
    event_type: str
    entity_type: str
    entity_id: str
    entity_data: dict[str, Any] = Field(default_factory=dict)
    user_id: str | None = None
