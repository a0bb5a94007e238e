"""Load task snapshots exported from the dashboard API.

A snapshot file is JSON or YAML holding either the list payload itself
(``{tasks, epics, epicCounts}``) or the API envelope around it
(``{success, data: {...}}``). A bare top-level ``tasks`` list inside
``data`` is accepted as well.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError

from .aggregation.board import TaskBoard
from .aggregation.model import Epic, Task
from .aggregation.payloads import TaskListPayload
from .io_utils import _load_data_with_error


class SnapshotError(ValueError):
    """Raised when a snapshot file is missing, unreadable, or malformed."""


@dataclass
class Snapshot:
    tasks: list[Task] = field(default_factory=list)
    epics: list[Epic] = field(default_factory=list)
    epic_counts: Optional[dict[str, int]] = None

    def board(self, use_server_counts: bool = False) -> TaskBoard:
        """Build a board; by default the ledger is seeded from the tasks."""
        counts = self.epic_counts if use_server_counts else None
        return TaskBoard(self.tasks, self.epics, epic_counts=counts)


def _unwrap(data: dict[str, Any]) -> Any:
    if "data" in data and ("success" in data or "tasks" not in data):
        inner = data["data"]
        if isinstance(inner, list):
            return {"tasks": inner}
        return inner
    return data


def parse_snapshot(data: dict[str, Any]) -> Snapshot:
    body = _unwrap(data)
    if not isinstance(body, dict):
        raise SnapshotError(f"expected an object with 'tasks', got {type(body).__name__}")
    try:
        payload = TaskListPayload.model_validate(body)
    except ValidationError as exc:
        raise SnapshotError(f"invalid snapshot: {exc}") from exc
    return Snapshot(
        tasks=[p.to_task() for p in payload.tasks],
        epics=[p.to_epic() for p in payload.epics],
        epic_counts=payload.epic_counts,
    )


def load_snapshot(path: Path) -> Snapshot:
    """Read and validate a snapshot file.

    Raises:
        SnapshotError: The file is missing or cannot be parsed/validated.
    """
    if not path.exists():
        raise SnapshotError(f"snapshot not found: {path}")
    data, err = _load_data_with_error(path, {})
    if err:
        raise SnapshotError(err)
    snapshot = parse_snapshot(data)
    logger.debug("Loaded {} task(s) and {} epic(s) from {}", len(snapshot.tasks), len(snapshot.epics), path)
    return snapshot
