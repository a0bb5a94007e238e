"""Tests for epic grouping and rollups."""

from __future__ import annotations

from datetime import date

import pytest

from teamtrack.aggregation.epics import EpicRegistry
from teamtrack.aggregation.model import Epic, Task, TaskStatus
from teamtrack.aggregation.rollup import (
    EpicRollup,
    compute_epic_counts,
    epic_deadline,
    group_tasks_by_epic,
    group_tasks_by_epic_key,
    percentage,
    rollup_epics,
    rollup_tasks,
)
from teamtrack.constants import NO_EPIC


def test_percentage() -> None:
    assert percentage(0, 0) == 0.0
    assert percentage(1, 4) == 25.0
    assert percentage(3, 3) == 100.0


class TestGrouping:
    def test_group_by_name_with_no_epic_bucket(self) -> None:
        tasks = [
            Task(id="1", epic="Alpha"),
            Task(id="2"),
            Task(id="3", epic="Alpha"),
        ]
        grouped = group_tasks_by_epic(tasks)
        assert list(grouped) == ["Alpha", NO_EPIC]
        assert [t.id for t in grouped["Alpha"]] == ["1", "3"]

    def test_id_and_name_references_share_a_group(self) -> None:
        registry = EpicRegistry([Epic(id="e1", name="Alpha")])
        tasks = [Task(id="1", epic_id="e1"), Task(id="2", epic="Alpha")]
        assert list(group_tasks_by_epic_key(tasks, registry)) == ["e1"]
        assert len(group_tasks_by_epic(tasks, registry)["Alpha"]) == 2

    def test_every_task_in_exactly_one_group(self) -> None:
        tasks = [Task(id=str(i), epic=("A" if i % 2 else None)) for i in range(7)]
        grouped = group_tasks_by_epic(tasks)
        assert sum(len(g) for g in grouped.values()) == 7


class TestRollup:
    def test_rollup_fields(self) -> None:
        tasks = [
            Task(id="1", status=TaskStatus.COMPLETED, start_date="2024-03-05", end_date="2024-03-20", assigned_to=["u1"]),
            Task(id="2", start_date="2024-03-01", end_date="bad", assigned_to=["u2", "u1"]),
            Task(id="3", start_date="garbage", end_date="2024-04-02T10:00:00Z"),
        ]
        rollup = rollup_tasks(tasks)
        assert rollup.total == 3
        assert rollup.completed == 1
        assert rollup.percentage_completion == pytest.approx(100 / 3)
        assert rollup.start_date == date(2024, 3, 1)
        assert rollup.end_date == date(2024, 4, 2)
        assert rollup.assigned_to == ["u1", "u2"]

    def test_empty_rollup(self) -> None:
        rollup = rollup_tasks([])
        assert rollup == EpicRollup()

    def test_to_dict_camel_case(self) -> None:
        data = rollup_tasks([Task(id="1", start_date="2024-03-01", end_date="2024-03-02")]).to_dict()
        assert data["percentageCompletion"] == 0.0
        assert data["startDate"] == "2024-03-01"
        assert data["endDate"] == "2024-03-02"
        assert data["assignedTo"] == []

    def test_rollup_epics(self) -> None:
        rollups = rollup_epics({"A": [Task(id="1", status=TaskStatus.COMPLETED)], "B": []})
        assert rollups["A"].percentage_completion == 100.0
        assert rollups["B"].total == 0


def test_compute_epic_counts() -> None:
    tasks = [Task(id="1", epic="A"), Task(id="2", epic="A"), Task(id="3")]
    assert compute_epic_counts(tasks) == {"A": 2, NO_EPIC: 1}
    assert compute_epic_counts([]) == {}


def test_epic_deadline() -> None:
    today = date(2024, 3, 10)
    assert epic_deadline(EpicRollup(end_date=date(2024, 3, 15)), today) == (5, False)
    assert epic_deadline(EpicRollup(end_date=date(2024, 3, 7)), today) == (-3, True)
    assert epic_deadline(EpicRollup(), today) == (None, False)
