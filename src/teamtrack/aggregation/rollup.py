"""Epic grouping and rollups.

All functions here are pure: they take a task collection and return new
containers without touching the tasks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from ..utils import _parse_date
from .epics import EpicRegistry, resolve_epic
from .model import Task


def percentage(completed: int, total: int) -> float:
    """``completed / total * 100``, or 0 when there is nothing to complete."""
    if total <= 0:
        return 0.0
    return completed / total * 100


@dataclass
class EpicRollup:
    """Aggregate statistics for one epic bucket."""

    total: int = 0
    completed: int = 0
    percentage_completion: float = 0.0
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    assigned_to: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "percentageCompletion": self.percentage_completion,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "assignedTo": list(self.assigned_to),
        }


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def group_tasks_by_epic_key(
    tasks: Iterable[Task],
    registry: Optional[EpicRegistry] = None,
) -> dict[str, list[Task]]:
    """Group tasks by canonical epic key, in first-appearance order."""
    grouped: dict[str, list[Task]] = {}
    for task in tasks:
        grouped.setdefault(resolve_epic(task, registry).key, []).append(task)
    return grouped


def group_tasks_by_epic(
    tasks: Iterable[Task],
    registry: Optional[EpicRegistry] = None,
) -> dict[str, list[Task]]:
    """Group tasks by epic display name; tasks without an epic go to ``"No Epic"``."""
    grouped: dict[str, list[Task]] = {}
    for task in tasks:
        grouped.setdefault(resolve_epic(task, registry).name, []).append(task)
    return grouped


# ---------------------------------------------------------------------------
# Rollups
# ---------------------------------------------------------------------------

def rollup_tasks(tasks: Iterable[Task]) -> EpicRollup:
    """Roll up one group of tasks.

    Unparsable start/end dates are left out of the min/max instead of
    raising.
    """
    rollup = EpicRollup()
    seen: set[str] = set()
    for task in tasks:
        rollup.total += 1
        if task.is_completed:
            rollup.completed += 1

        start = _parse_date(task.start_date)
        if start is not None and (rollup.start_date is None or start < rollup.start_date):
            rollup.start_date = start
        end = _parse_date(task.end_date)
        if end is not None and (rollup.end_date is None or end > rollup.end_date):
            rollup.end_date = end

        for member in task.assigned_to:
            if member not in seen:
                seen.add(member)
                rollup.assigned_to.append(member)

    rollup.percentage_completion = percentage(rollup.completed, rollup.total)
    return rollup


def rollup_epics(grouping: Mapping[str, Iterable[Task]]) -> dict[str, EpicRollup]:
    return {name: rollup_tasks(group) for name, group in grouping.items()}


def compute_epic_counts(
    tasks: Iterable[Task],
    registry: Optional[EpicRegistry] = None,
) -> dict[str, int]:
    """Recompute EpicCounts (display name -> task count) from scratch."""
    counts: dict[str, int] = {}
    for task in tasks:
        name = resolve_epic(task, registry).name
        counts[name] = counts.get(name, 0) + 1
    return counts


def epic_deadline(rollup: EpicRollup, today: date) -> tuple[Optional[int], bool]:
    """Return ``(days_left, is_overdue)`` for an epic's end date.

    ``days_left`` is negative once the end date has passed and ``None`` when
    the epic has no usable end date.
    """
    if rollup.end_date is None:
        return None, False
    days_left = (rollup.end_date - today).days
    return days_left, days_left < 0
