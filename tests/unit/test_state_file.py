from __future__ import annotations

from pathlib import Path

import pytest

from workflow_automation.automation.state_file import load_records, save_records


def test_missing_file_is_empty(tmp_path: Path) -> None:
    assert load_records(tmp_path / "nope.json", for_write=True) == []
    assert list(tmp_path.iterdir()) == []


def test_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "records.json"
    save_records(path, [{"id": "a"}])
    assert load_records(path) == [{"id": "a"}]


@pytest.mark.parametrize("content", ["{not json", '{"id": "a"}', ""])
def test_unreadable_file_is_kept_on_read(tmp_path: Path, content: str) -> None:
    path = tmp_path / "records.json"
    path.write_text(content, encoding="utf-8")

    assert load_records(path) == []
    assert path.read_text(encoding="utf-8") == content


def test_unreadable_file_is_moved_aside_on_write(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "records.json"
    path.write_text('{"id": "a"}', encoding="utf-8")

    assert load_records(path, for_write=True) == []

    assert not path.exists()
    (moved,) = tmp_path.glob("records.json.corrupt-*")
    assert moved.read_text(encoding="utf-8") == '{"id": "a"}'
    assert "State file is unreadable; moved aside" in caplog.text
