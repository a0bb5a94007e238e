"""Tests for the KPI summary."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from teamtrack.aggregation.kpi import compute_kpi_summary, filter_by_member
from teamtrack.aggregation.model import Task, TaskStatus
from teamtrack.constants import NO_EPIC

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def tasks() -> list[Task]:
    return [
        Task(id="1", epic="Alpha", status=TaskStatus.COMPLETED, start_date="2024-03-02", assigned_to=["u1"]),
        Task(id="2", epic="Alpha", start_date="2024-03-15", assigned_to=["u2"], is_overdue=True),
        Task(id="3", epic="Beta", start_date="2024-02-28", assigned_to=["u1"]),
        Task(id="4", start_date="2024-03-20", status=TaskStatus.COMPLETED, is_overdue=True),
        Task(id="5", epic="Beta", start_date="not a date", assigned_to=["u1", "u2"]),
    ]


class TestKPISummary:
    def test_empty_input_is_all_zero(self) -> None:
        summary = compute_kpi_summary([], now=NOW)
        assert summary.current.total == 0
        assert summary.current.percentage_completion == 0.0
        assert summary.monthly.total == 0
        assert summary.monthly.target_vs_accomplishment.target == 0
        assert summary.epics == {}
        assert summary.overdue_tasks == []

    def test_current_window_is_month_start_to_today(self, tasks: list[Task]) -> None:
        summary = compute_kpi_summary(tasks, now=NOW)
        # Tasks 1 and 2 started this month on or before today.
        assert summary.current.total == 2
        assert summary.current.completed == 1
        assert summary.current.percentage_completion == 50.0

    def test_monthly_is_whole_scope(self, tasks: list[Task]) -> None:
        summary = compute_kpi_summary(tasks, now=NOW)
        assert summary.monthly.total == 5
        assert summary.monthly.completed == 2
        assert summary.monthly.percentage_completion == 40.0
        tva = summary.monthly.target_vs_accomplishment
        assert (tva.target, tva.accomplished) == (5, 2)

    def test_epics_and_overdue(self, tasks: list[Task]) -> None:
        summary = compute_kpi_summary(tasks, now=NOW)
        assert set(summary.epics) == {"Alpha", "Beta", NO_EPIC}
        assert summary.epics["Alpha"].completed == 1
        # Completed tasks never count as overdue.
        assert [t.id for t in summary.overdue_tasks] == ["2"]

    def test_member_scope(self, tasks: list[Task]) -> None:
        summary = compute_kpi_summary(tasks, now=NOW, member_id="u1")
        assert summary.monthly.total == 3
        assert summary.current.total == 1
        assert set(summary.epics) == {"Alpha", "Beta"}
        assert summary.overdue_tasks == []

    def test_to_dict_shape(self, tasks: list[Task]) -> None:
        data = compute_kpi_summary(tasks, now=NOW).to_dict()
        assert set(data) == {"current", "monthly", "epics", "overdueTasks"}
        assert data["monthly"]["targetVsAccomplishment"] == {"target": 5, "accomplished": 2}
        assert data["overdueTasks"][0]["id"] == "2"


def test_filter_by_member() -> None:
    tasks = [Task(id="1", assigned_to=["u1"]), Task(id="2")]
    assert [t.id for t in filter_by_member(tasks, "u1")] == ["1"]
    assert len(filter_by_member(tasks, None)) == 2
