"""Test configuration and fixtures."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

_WELCOME_WORKFLOW: dict[str, Any] = {
    "name": "Welcome new contacts",
    "description": "Email new leads and follow up with the sales team",
    "trigger_type": "event",
    "trigger_config": {"event_types": ["contact.created"], "entity_type": "contact"},
    "steps": [
        {
            "step_type": "action",
            "action_type": "send_email",
            "config": {
                "to": "{{contact.email}}",
                "subject": "Welcome, {{contact.first_name}}",
                "body_html": "<p>Thanks for reaching out.</p>",
            },
        },
        {
            "step_type": "condition",
            "config": {"field": "contact.lead_status", "operator": "equals", "value": "hot"},
            "else_goto_step": 3,
        },
        {
            "step_type": "action",
            "action_type": "send_notification",
            "config": {
                "user_field": "contact.owner_id",
                "title": "Hot lead",
                "message": "{{contact.first_name}} is ready to talk",
            },
        },
        {"step_type": "delay", "config": {"delay_type": "days", "delay_value": 3}},
    ],
}


@pytest.fixture
def welcome_workflow() -> dict[str, Any]:
    """Provide a valid workflow document (a fresh copy per test)."""
    return copy.deepcopy(_WELCOME_WORKFLOW)


@pytest.fixture
def state_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the stores at a temporary state directory."""
    path = tmp_path / "automation_state"
    monkeypatch.setenv("AUTOMATION_STATE_PATH", str(path))
    monkeypatch.delenv("AUTOMATION_CHECK_BRANCH_TARGETS", raising=False)
    monkeypatch.delenv("AUTOMATION_DEFAULT_ORGANIZATION_ID", raising=False)
    monkeypatch.chdir(tmp_path)
    return path


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    """The CLI reconfigures the root logger; put it back after each test."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
