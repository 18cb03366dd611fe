"""JSON list files backing the local stores.

Reads are lenient: an unreadable file is treated as empty so listing never
fails. Writers load with ``for_write=True``; an unreadable file is then moved
aside to ``<name>.corrupt-<timestamp>`` before the new content replaces it,
so existing records are never silently overwritten.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _quarantine(path: Path) -> Path:
    stamp = datetime.now(tz=UTC).strftime("%Y%m%dT%H%M%S%f")
    target = path.with_name(f"{path.name}.corrupt-{stamp}")
    path.replace(target)
    return target


def load_records(path: Path, *, for_write: bool = False) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        raw = None
    if isinstance(raw, list):
        return [item for item in raw if isinstance(item, dict)]

    if for_write:
        moved = _quarantine(path)
        logger.error(
            "State file is unreadable; moved aside",
            extra={"path": str(path), "moved_to": str(moved)},
        )
    else:
        logger.warning("State file is unreadable; treating as empty", extra={"path": str(path)})
    return []


def save_records(path: Path, records: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(records, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
