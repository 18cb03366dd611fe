"""FastAPI app factory.

Endpoints are thin wrappers over the validators and the run state machine.
Request bodies for workflow writes are taken as raw JSON so validation
failures come back as path-qualified messages rather than FastAPI's 422.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Body, FastAPI, Header, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from workflow_automation import __version__
from workflow_automation.automation.workflow.errors import ValidationResult
from workflow_automation.automation.workflow.state_machine import (
    IllegalTransitionError,
    RunStatus,
    WorkflowInactiveError,
    WorkflowRunStore,
    start_run,
)
from workflow_automation.automation.workflow.trigger_matching import matches_event
from workflow_automation.automation.workflow.triggers import EventTriggerConfig
from workflow_automation.automation.workflow.types import Workflow
from workflow_automation.automation.workflow.validation import (
    CreateWorkflowInput,
    UpdateWorkflowInput,
    validate_workflow,
    validate_workflow_update,
)
from workflow_automation.server.config import ServerSettings
from workflow_automation.server.models import (
    ApiRun,
    EntityEvent,
    StartRunRequest,
    ValidationResponse,
    WorkflowList,
)
from workflow_automation.server.workflow_store import WorkflowRejectedError, WorkflowStore

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def _invalid(result: ValidationResult) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"error": "Invalid workflow configuration", "errors": result.errors},
    )


def create_app() -> FastAPI:
    settings = ServerSettings()

    app = FastAPI(
        title="Workflow Automation",
        version=__version__,
        description="REST API for defining, validating and running automation workflows.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Expose settings for request handlers that want to read it.
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    workflow_store = WorkflowStore(settings.workflows_state_file)
    run_store = WorkflowRunStore(settings.runs_state_file)

    def organization(header: str | None) -> str:
        value = (header or "").strip()
        return value or settings.default_organization_id

    def get_workflow_or_404(workflow_id: str, organization_id: str) -> Workflow:
        workflow = workflow_store.get(workflow_id, organization_id)
        if workflow is None:
            raise HTTPException(status_code=404, detail="Workflow not found")
        return workflow

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/v1/workflows/validate", response_model=ValidationResponse)
    def validate(document: Any = Body(...)) -> ValidationResponse:
        result = validate_workflow(
            document, check_branch_targets=settings.check_branch_targets
        )
        return ValidationResponse.model_validate(result.to_json())

    @app.get("/api/v1/workflows", response_model=WorkflowList)
    def list_workflows(
        is_active: bool | None = None,
        trigger_type: str | None = None,
        limit: int = Query(default=50, ge=1),
        offset: int = Query(default=0, ge=0),
        x_organization_id: str | None = Header(default=None),
    ) -> WorkflowList:
        limit = min(limit, MAX_PAGE_SIZE)
        workflows = workflow_store.list(
            organization(x_organization_id),
            is_active=is_active,
            trigger_type=trigger_type,
        )
        return WorkflowList(
            data=workflows[offset : offset + limit],
            total=len(workflows),
            limit=limit,
            offset=offset,
        )

    @app.post("/api/v1/workflows", response_model=Workflow, status_code=201)
    def create_workflow(
        document: Any = Body(...),
        x_organization_id: str | None = Header(default=None),
    ) -> Workflow:
        result = validate_workflow(
            document, check_branch_targets=settings.check_branch_targets
        )
        if not result.valid:
            raise _invalid(result)

        organization_id = organization(x_organization_id)
        workflow = workflow_store.create(
            organization_id, CreateWorkflowInput.model_validate(document)
        )
        logger.info(
            "Workflow created",
            extra={"workflow_id": workflow.id, "organization_id": organization_id},
        )
        return workflow

    @app.get("/api/v1/workflows/{workflow_id}", response_model=Workflow)
    def get_workflow(
        workflow_id: str, x_organization_id: str | None = Header(default=None)
    ) -> Workflow:
        return get_workflow_or_404(workflow_id, organization(x_organization_id))

    @app.put("/api/v1/workflows/{workflow_id}", response_model=Workflow)
    def update_workflow(
        workflow_id: str,
        changes: Any = Body(...),
        x_organization_id: str | None = Header(default=None),
    ) -> Workflow:
        organization_id = organization(x_organization_id)
        try:
            parsed = UpdateWorkflowInput.model_validate(changes)
        except ValidationError as e:
            raise _invalid(ValidationResult.from_pydantic(e)) from None

        def check(current: Workflow) -> ValidationResult:
            return validate_workflow_update(
                current, changes, check_branch_targets=settings.check_branch_targets
            )

        try:
            workflow = workflow_store.update(
                workflow_id, organization_id, parsed, validate=check
            )
        except KeyError:
            raise HTTPException(status_code=404, detail="Workflow not found") from None
        except WorkflowRejectedError as e:
            raise _invalid(e.result) from None
        logger.info(
            "Workflow updated",
            extra={"workflow_id": workflow_id, "organization_id": organization_id},
        )
        return workflow

    @app.delete("/api/v1/workflows/{workflow_id}", status_code=204)
    def delete_workflow(
        workflow_id: str, x_organization_id: str | None = Header(default=None)
    ) -> Response:
        organization_id = organization(x_organization_id)
        if not workflow_store.delete(workflow_id, organization_id):
            raise HTTPException(status_code=404, detail="Workflow not found")
        logger.info(
            "Workflow deleted",
            extra={"workflow_id": workflow_id, "organization_id": organization_id},
        )
        return Response(status_code=204)

    @app.post("/api/v1/workflows/{workflow_id}/runs", response_model=ApiRun, status_code=201)
    def start_workflow_run(
        workflow_id: str,
        req: StartRunRequest | None = None,
        x_organization_id: str | None = Header(default=None),
    ) -> ApiRun:
        organization_id = organization(x_organization_id)
        workflow = get_workflow_or_404(workflow_id, organization_id)
        try:
            run = start_run(
                workflow_id=workflow.id,
                organization_id=organization_id,
                workflow_name=workflow.name,
                trigger_type="manual",
                is_active=workflow.is_active,
                trigger_data=req.trigger_data if req is not None else None,
            )
        except WorkflowInactiveError as e:
            raise HTTPException(status_code=409, detail=str(e)) from None
        run_store.save(run)
        logger.info(
            "Workflow run started",
            extra={"workflow_id": workflow.id, "run_id": run.id},
        )
        return ApiRun.from_run(run)

    @app.get("/api/v1/workflows/{workflow_id}/runs", response_model=list[ApiRun])
    def list_workflow_runs(
        workflow_id: str, x_organization_id: str | None = Header(default=None)
    ) -> list[ApiRun]:
        organization_id = organization(x_organization_id)
        get_workflow_or_404(workflow_id, organization_id)
        return [
            ApiRun.from_run(run)
            for run in run_store.list_for_workflow(workflow_id)
            if run.organization_id == organization_id
        ]

    @app.post("/api/v1/events", response_model=list[ApiRun])
    def emit_event(
        event: EntityEvent, x_organization_id: str | None = Header(default=None)
    ) -> list[ApiRun]:
        """Start a run for every active event workflow the event matches."""

        organization_id = organization(x_organization_id)
        started: list[ApiRun] = []
        for workflow in workflow_store.list(
            organization_id, is_active=True, trigger_type="event"
        ):
            config = EventTriggerConfig.model_validate(workflow.trigger_config)
            if not matches_event(
                config,
                event_type=event.event_type,
                entity_type=event.entity_type,
                entity_data=event.entity_data,
            ):
                continue
            trigger_data: dict[str, Any] = {
                "event_type": event.event_type,
                "entity_type": event.entity_type,
                "entity_id": event.entity_id,
                event.entity_type: event.entity_data,
            }
            if event.user_id is not None:
                trigger_data["user_id"] = event.user_id
            run = run_store.save(
                start_run(
                    workflow_id=workflow.id,
                    organization_id=organization_id,
                    workflow_name=workflow.name,
                    trigger_type="event",
                    is_active=workflow.is_active,
                    trigger_data=trigger_data,
                )
            )
            logger.info(
                "Workflow triggered by event",
                extra={
                    "workflow_id": workflow.id,
                    "run_id": run.id,
                    "event_type": event.event_type,
                },
            )
            started.append(ApiRun.from_run(run))
        return started

    def get_run_or_404(run_id: str, organization_id: str) -> ApiRun:
        run = run_store.get(run_id)
        if run is None or run.organization_id != organization_id:
            raise HTTPException(status_code=404, detail="Run not found")
        return ApiRun.from_run(run)

    @app.get("/api/v1/runs/{run_id}", response_model=ApiRun)
    def get_run(run_id: str, x_organization_id: str | None = Header(default=None)) -> ApiRun:
        return get_run_or_404(run_id, organization(x_organization_id))

    @app.post("/api/v1/runs/{run_id}/cancel", response_model=ApiRun)
    def cancel_run(
        run_id: str, x_organization_id: str | None = Header(default=None)
    ) -> ApiRun:
        get_run_or_404(run_id, organization(x_organization_id))
        try:
            run = run_store.transition(run_id, to=RunStatus.CANCELLED)
        except KeyError:
            raise HTTPException(status_code=404, detail="Run not found") from None
        except IllegalTransitionError as e:
            raise HTTPException(status_code=409, detail=str(e)) from None
        logger.info("Workflow run cancelled", extra={"run_id": run_id})
        return ApiRun.from_run(run)

    return app
