"""Task and epic model for the aggregation engine.

This module defines the in-memory shapes the engine works on: tasks as the
REST collaborator hands them over, first-class epics, and the status enums.
Tasks carry both an ``epic_id`` and a free-text ``epic`` label; which of the
two decides membership is the job of :mod:`.epics`, not of this module.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Iterable, Optional

from ..utils import _now_iso, _parse_date


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaskStatus(str, Enum):
    """Closed set of task states; there are no custom states."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class EpicStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


def _coerce_enum(enum_cls: type[Enum], raw: Any, default: Enum) -> Any:
    if raw is None:
        return default
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(str(raw))
    except (ValueError, KeyError):
        return default


def _str_or_none(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


# ---------------------------------------------------------------------------
# Task dataclass
# ---------------------------------------------------------------------------

@dataclass
class Task:
    """A unit of work as held in the dashboard's in-memory snapshot.

    ``display_id`` is assigned by :func:`.ordering.assign_display_ids` on
    every read and is never serialized. A missing ``created_at`` stays
    ``None`` so ordering can place it after every dated task.
    """

    # Identity
    id: str
    title: str = ""
    description: str = ""

    # Grouping
    epic_id: Optional[str] = None
    epic: Optional[str] = None
    sprint: Optional[str] = None

    # State
    status: TaskStatus = TaskStatus.PENDING
    assigned_to: list[str] = field(default_factory=list)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_overdue: bool = False

    # Provenance
    created_at: Optional[str] = None
    updated_at: str = field(default_factory=_now_iso)

    display_id: Optional[int] = field(default=None, compare=False)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @classmethod
    def validate_dict(cls, data: dict[str, Any]) -> list[str]:
        """Lightweight validation of a task dict.

        Returns a list of error strings (empty = valid).
        """
        errors: list[str] = []
        if not isinstance(data, dict):
            return ["Expected a dict"]
        if not data.get("id"):
            errors.append("'id' is required and must be non-empty")
        if not str(data.get("title") or "").strip():
            errors.append("'title' is required and must be non-empty")
        status = data.get("status")
        if status is not None:
            valid_statuses = {e.value for e in TaskStatus}
            if status not in valid_statuses:
                errors.append(f"'status' must be one of {sorted(valid_statuses)}, got '{status}'")
        assigned = data.get("assigned_to")
        if assigned is not None and not isinstance(assigned, list):
            errors.append("'assigned_to' must be an array")
        return errors

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict; the transient ``display_id`` is dropped."""
        data: dict[str, Any] = {}
        for k, v in asdict(self).items():
            if k == "display_id":
                continue
            data[k] = v.value if isinstance(v, Enum) else v
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Deserialize from a plain dict, coercing enums gracefully."""
        d = dict(data)
        return cls(
            id=str(d.pop("id")),
            title=str(d.pop("title", "") or ""),
            description=str(d.pop("description", "") or ""),
            epic_id=_str_or_none(d.pop("epic_id", None)),
            epic=_str_or_none(d.pop("epic", None)),
            sprint=_str_or_none(d.pop("sprint", None)),
            status=_coerce_enum(TaskStatus, d.pop("status", None), TaskStatus.PENDING),
            assigned_to=[str(m) for m in (d.pop("assigned_to", []) or [])],
            start_date=_str_or_none(d.pop("start_date", None)),
            end_date=_str_or_none(d.pop("end_date", None)),
            is_overdue=bool(d.pop("is_overdue", False)),
            created_at=_str_or_none(d.pop("created_at", None)),
            updated_at=str(d.pop("updated_at", None) or _now_iso()),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def compute_overdue(self, today: date) -> bool:
        """True when the end date lies before *today* and the task is open.

        An unparsable end date never makes a task overdue.
        """
        end = _parse_date(self.end_date)
        return end is not None and end < today and not self.is_completed

    def with_display_id(self, display_id: int) -> "Task":
        return replace(self, assigned_to=list(self.assigned_to), display_id=display_id)


def refresh_overdue(tasks: Iterable[Task], today: date) -> list[Task]:
    """Return copies of *tasks* with ``is_overdue`` recomputed for *today*."""
    return [
        replace(t, assigned_to=list(t.assigned_to), is_overdue=t.compute_overdue(today))
        for t in tasks
    ]


# ---------------------------------------------------------------------------
# Epic dataclass
# ---------------------------------------------------------------------------

@dataclass
class Epic:
    """A first-class epic entity with its own id."""

    id: str
    name: str
    description: str = ""
    status: EpicStatus = EpicStatus.ACTIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Epic":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            status=_coerce_enum(EpicStatus, data.get("status"), EpicStatus.ACTIVE),
        )
