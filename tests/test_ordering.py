"""Tests for display-id assignment."""

from __future__ import annotations

from teamtrack.aggregation.model import Task
from teamtrack.aggregation.ordering import assign_display_ids, find_by_display_id, sort_by_creation


def _task(task_id: str, created_at: str) -> Task:
    return Task(id=task_id, title=task_id, created_at=created_at)


def test_ids_follow_creation_order() -> None:
    tasks = [
        _task("c", "2024-03-03T00:00:00Z"),
        _task("a", "2024-03-01T00:00:00Z"),
        _task("b", "2024-03-02T00:00:00+00:00"),
    ]
    decorated = assign_display_ids(tasks)
    assert [(t.id, t.display_id) for t in decorated] == [("a", 1), ("b", 2), ("c", 3)]
    assert all(t.display_id is None for t in tasks)


def test_ties_broken_by_id_and_stable_across_calls() -> None:
    tasks = [_task("t2", "2024-03-01T00:00:00Z"), _task("t1", "2024-03-01T00:00:00Z")]
    first = [(t.id, t.display_id) for t in assign_display_ids(tasks)]
    second = [(t.id, t.display_id) for t in assign_display_ids(list(reversed(tasks)))]
    assert first == second == [("t1", 1), ("t2", 2)]


def test_unparsable_timestamps_sort_last() -> None:
    tasks = [_task("x", "not-a-date"), _task("y", "2024-03-01T00:00:00Z")]
    assert [t.id for t in sort_by_creation(tasks)] == ["y", "x"]


def test_renumbering_after_delete() -> None:
    tasks = [_task(f"t{i}", f"2024-03-0{i}T00:00:00Z") for i in range(1, 4)]
    remaining = [t for t in tasks if t.id != "t1"]
    decorated = assign_display_ids(remaining)
    assert [(t.id, t.display_id) for t in decorated] == [("t2", 1), ("t3", 2)]


def test_empty() -> None:
    assert assign_display_ids([]) == []


def test_find_by_display_id() -> None:
    decorated = assign_display_ids([_task("a", "2024-01-01T00:00:00Z"), _task("b", "2024-01-02T00:00:00Z")])
    found = find_by_display_id(decorated, 2)
    assert found is not None and found.id == "b"
    assert find_by_display_id(decorated, 9) is None
