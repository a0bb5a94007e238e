"""KPI summary for the dashboard.

The summary is a read-only snapshot recomputed from a task collection on
every call. ``monthly`` is the all-time rollup of the given scope (it is not
windowed to a calendar month); ``current`` only counts tasks that started
between the first day of the reference month and the reference time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

from ..utils import _now, _parse_date
from .epics import EpicRegistry
from .model import Task
from .rollup import EpicRollup, group_tasks_by_epic, percentage, rollup_epics


@dataclass
class CompletionStats:
    total: int = 0
    completed: int = 0
    percentage_completion: float = 0.0

    @classmethod
    def of(cls, tasks: list[Task]) -> "CompletionStats":
        completed = sum(1 for t in tasks if t.is_completed)
        return cls(total=len(tasks), completed=completed, percentage_completion=percentage(completed, len(tasks)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "percentageCompletion": self.percentage_completion,
        }


@dataclass
class TargetVsAccomplishment:
    target: int = 0
    accomplished: int = 0


@dataclass
class MonthlyStats(CompletionStats):
    target_vs_accomplishment: TargetVsAccomplishment = field(default_factory=TargetVsAccomplishment)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["targetVsAccomplishment"] = {
            "target": self.target_vs_accomplishment.target,
            "accomplished": self.target_vs_accomplishment.accomplished,
        }
        return data


@dataclass
class KPISummary:
    current: CompletionStats = field(default_factory=CompletionStats)
    monthly: MonthlyStats = field(default_factory=MonthlyStats)
    epics: dict[str, EpicRollup] = field(default_factory=dict)
    overdue_tasks: list[Task] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "current": self.current.to_dict(),
            "monthly": self.monthly.to_dict(),
            "epics": {name: rollup.to_dict() for name, rollup in self.epics.items()},
            "overdueTasks": [t.to_dict() for t in self.overdue_tasks],
        }


def filter_by_member(tasks: Iterable[Task], member_id: Optional[str]) -> list[Task]:
    if not member_id:
        return list(tasks)
    return [t for t in tasks if member_id in t.assigned_to]


def compute_kpi_summary(
    tasks: Iterable[Task],
    now: Optional[datetime] = None,
    member_id: Optional[str] = None,
    registry: Optional[EpicRegistry] = None,
) -> KPISummary:
    """Compute the KPI summary for *tasks*, optionally scoped to one member.

    Args:
        tasks: Task collection (decorated or not).
        now: Reference time; defaults to the current UTC time.
        member_id: When given, only tasks assigned to this member count.
        registry: Epic registry used to resolve epic membership.

    Returns:
        A :class:`KPISummary`. Empty input yields all-zero fields.
    """
    now = now or _now()
    scope = filter_by_member(tasks, member_id)

    today = now.date()
    month_start = today.replace(day=1)
    this_month = []
    for task in scope:
        start = _parse_date(task.start_date)
        if start is not None and month_start <= start <= today:
            this_month.append(task)

    epics = rollup_epics(group_tasks_by_epic(scope, registry))
    monthly_base = CompletionStats.of(scope)
    monthly = MonthlyStats(
        total=monthly_base.total,
        completed=monthly_base.completed,
        percentage_completion=monthly_base.percentage_completion,
        target_vs_accomplishment=TargetVsAccomplishment(
            target=sum(r.total for r in epics.values()),
            accomplished=sum(r.completed for r in epics.values()),
        ),
    )

    return KPISummary(
        current=CompletionStats.of(this_month),
        monthly=monthly,
        epics=epics,
        overdue_tasks=[t for t in scope if t.is_overdue and not t.is_completed],
    )
