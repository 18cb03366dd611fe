"""FastAPI server adapter for workflow-automation.

This module exposes a REST API over the workflow definition and run model.

Design intent:
- Keep validation and run-state logic in `workflow_automation.automation.*`
- Keep server-specific concerns (routing, CORS, tenant scoping, persistence) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from workflow_automation.server.app import create_app
