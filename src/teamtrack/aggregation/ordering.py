"""Display-id assignment.

Display ids are 1-based positions in creation order. They are recomputed on
every read, so inserting or deleting a task renumbers everything after it.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..utils import _parse_iso
from .model import Task


def _sort_key(task: Task) -> tuple[bool, float, str]:
    created = _parse_iso(task.created_at)
    # Unparsable timestamps sort after every parsable one, then by id.
    if created is None:
        return (True, 0.0, task.id)
    return (False, created.timestamp(), task.id)


def sort_by_creation(tasks: Iterable[Task]) -> list[Task]:
    return sorted(tasks, key=_sort_key)


def assign_display_ids(tasks: Iterable[Task]) -> list[Task]:
    """Return copies of *tasks* ordered by ``created_at`` with ``display_id`` 1..n.

    Equal timestamps are ordered by ``id`` so repeated calls over the same
    collection always pair each id with the same display id.
    """
    return [task.with_display_id(index) for index, task in enumerate(sort_by_creation(tasks), start=1)]


def find_by_display_id(decorated: Iterable[Task], display_id: int) -> Optional[Task]:
    for task in decorated:
        if task.display_id == display_id:
            return task
    return None
