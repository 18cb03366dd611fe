"""Unit tests for the command-line entry point."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from workflow_automation.automation.main import EXIT_INVALID, EXIT_USAGE, EXIT_VALID, main


def _write_json(path: Path, payload: Any) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_validate_valid_workflow(
    state_dir: Path,
    tmp_path: Path,
    welcome_workflow: dict[str, Any],
    capsys: pytest.CaptureFixture[str],
) -> None:
    path = _write_json(tmp_path / "workflow.json", welcome_workflow)

    assert main(["validate", str(path)]) == EXIT_VALID
    assert json.loads(capsys.readouterr().out) == {"valid": True}


def test_validate_invalid_workflow(
    state_dir: Path,
    tmp_path: Path,
    welcome_workflow: dict[str, Any],
    capsys: pytest.CaptureFixture[str],
) -> None:
    welcome_workflow["steps"][1]["else_goto_step"] = 10
    path = _write_json(tmp_path / "workflow.json", welcome_workflow)

    assert main(["validate", str(path)]) == EXIT_INVALID
    out = json.loads(capsys.readouterr().out)
    assert out["valid"] is False
    assert out["errors"] == [
        "steps[1].else_goto_step: Branch target 10 is out of range (workflow has 4 steps)"
    ]

    assert main(["validate", "--no-branch-check", str(path)]) == EXIT_VALID


def test_validate_unreadable_input(
    state_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["validate", str(tmp_path / "missing.json")]) == EXIT_USAGE

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    assert main(["validate", str(broken)]) == EXIT_USAGE
    assert "not valid JSON" in capsys.readouterr().err


def test_validate_step(
    state_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = _write_json(
        tmp_path / "step.json",
        {"step_type": "delay", "config": {"delay_type": "minutes", "delay_value": 0}},
    )

    assert main(["validate-step", str(path)]) == EXIT_INVALID
    assert json.loads(capsys.readouterr().out)["errors"] == [
        "config.delay_value: Delay value must be at least 1"
    ]

    not_an_object = _write_json(tmp_path / "list.json", [])
    assert main(["validate-step", str(not_an_object)]) == EXIT_USAGE


def test_describe(
    state_dir: Path,
    tmp_path: Path,
    welcome_workflow: dict[str, Any],
    capsys: pytest.CaptureFixture[str],
) -> None:
    welcome_workflow["steps"].append(
        {
            "step_type": "loop",
            "config": {
                "collection_field": "trigger.data.items",
                "item_variable": "item",
                "max_iterations": 5,
            },
        }
    )
    path = _write_json(tmp_path / "workflow.json", welcome_workflow)

    assert main(["describe", str(path)]) == EXIT_VALID
    assert capsys.readouterr().out.splitlines() == [
        "Welcome new contacts (trigger: event)",
        "0. action: send_email",
        '1. condition: if contact.lead_status equals "hot" (else -> step 3)',
        "2. action: send_notification",
        "3. delay: 3 days",
        "4. loop: each item in trigger.data.items (max 5)",
    ]


def test_bad_settings_exit_with_usage_error(
    state_dir: Path,
    tmp_path: Path,
    welcome_workflow: dict[str, Any],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("AUTOMATION_CHECK_BRANCH_TARGETS", "maybe")
    path = _write_json(tmp_path / "workflow.json", welcome_workflow)

    assert main(["validate", str(path)]) == EXIT_USAGE
