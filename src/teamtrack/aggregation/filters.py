"""Task listing filters and pagination used by the backlog and task screens."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, Iterable, Optional, Sequence, TypeVar

from ..constants import DEFAULT_PAGE_SIZE
from ..utils import _parse_date
from .epics import EpicRegistry, resolve_epic
from .model import Task

T = TypeVar("T")

ALL = "all"


@dataclass
class TaskFilter:
    search: str = ""
    display_id: Optional[int] = None
    epic: str = ALL
    member_id: Optional[str] = None
    start_after: Optional[str] = None
    end_before: Optional[str] = None

    def matches(self, task: Task, registry: Optional[EpicRegistry] = None) -> bool:
        if self.search:
            q = self.search.lower()
            if q not in task.title.lower() and q not in (task.description or "").lower():
                return False
        if self.display_id is not None and task.display_id != self.display_id:
            return False
        if self.epic and self.epic != ALL and resolve_epic(task, registry).name != self.epic:
            return False
        if self.member_id and self.member_id != ALL and self.member_id not in task.assigned_to:
            return False

        lower = _parse_date(self.start_after)
        if lower is not None:
            start = _parse_date(task.start_date)
            if start is None or start < lower:
                return False
        upper = _parse_date(self.end_before)
        if upper is not None:
            end = _parse_date(task.end_date)
            if end is None or end > upper:
                return False
        return True


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total: int = 0

    @property
    def pages(self) -> int:
        return max(1, math.ceil(self.total / self.page_size)) if self.page_size > 0 else 1


def filter_tasks(
    decorated: Iterable[Task],
    flt: TaskFilter,
    registry: Optional[EpicRegistry] = None,
) -> list[Task]:
    return [t for t in decorated if flt.matches(t, registry)]


def paginate(items: Sequence[T], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    """Slice *items* into a 1-based page; out-of-range pages are empty."""
    page = max(1, page)
    page_size = max(1, page_size)
    start = (page - 1) * page_size
    return Page(items=list(items[start:start + page_size]), page=page, page_size=page_size, total=len(items))


def epic_filter_options(tasks: Iterable[Task], registry: Optional[EpicRegistry] = None) -> list[str]:
    return sorted({resolve_epic(t, registry).name for t in tasks})
