"""Rich tables for the CLI's `--table` output."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Mapping

from rich.console import Console
from rich.table import Table

from .aggregation.kpi import KPISummary
from .aggregation.model import Task
from .aggregation.rollup import EpicRollup, epic_deadline

_STATUS_STYLES = {
    "pending": "yellow",
    "in_progress": "cyan",
    "completed": "green",
}


def _pct(value: float) -> str:
    return f"{value:.1f}%"


def tasks_table(tasks: Iterable[Task], title: str = "Tasks") -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title")
    table.add_column("Epic")
    table.add_column("Status")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Assignees")
    for task in tasks:
        status = task.status.value
        style = _STATUS_STYLES.get(status, "white")
        table.add_row(
            str(task.display_id or ""),
            task.title,
            task.epic or "",
            f"[{style}]{status}[/{style}]",
            task.start_date or "",
            task.end_date or "",
            ", ".join(task.assigned_to),
        )
    return table


def epics_table(rollups: Mapping[str, EpicRollup], today: date) -> Table:
    table = Table(title="Epics")
    table.add_column("Epic")
    table.add_column("Total", justify="right")
    table.add_column("Done", justify="right")
    table.add_column("Completion", justify="right")
    table.add_column("Span")
    table.add_column("Deadline")
    for name, rollup in rollups.items():
        days_left, overdue = epic_deadline(rollup, today)
        if days_left is None:
            deadline = ""
        elif overdue:
            deadline = f"[red]days overdue {abs(days_left)}[/red]"
        else:
            deadline = f"[green]days left +{days_left}[/green]"
        span = ""
        if rollup.start_date and rollup.end_date:
            span = f"{rollup.start_date.isoformat()} - {rollup.end_date.isoformat()}"
        table.add_row(
            name,
            str(rollup.total),
            str(rollup.completed),
            _pct(rollup.percentage_completion),
            span,
            deadline,
        )
    return table


def counts_table(counts: Mapping[str, int]) -> Table:
    table = Table(title="Epic counts")
    table.add_column("Epic")
    table.add_column("Tasks", justify="right")
    for name in sorted(counts):
        table.add_row(name, str(counts[name]))
    return table


def print_kpi(console: Console, summary: KPISummary, today: date) -> None:
    overview = Table(title="KPI")
    overview.add_column("Scope")
    overview.add_column("Total", justify="right")
    overview.add_column("Completed", justify="right")
    overview.add_column("Completion", justify="right")
    for label, stats in (("Current month", summary.current), ("All tasks", summary.monthly)):
        overview.add_row(label, str(stats.total), str(stats.completed), _pct(stats.percentage_completion))
    console.print(overview)

    tva = summary.monthly.target_vs_accomplishment
    console.print(f"[bold]Target vs accomplishment:[/bold] {tva.accomplished} / {tva.target}")
    if summary.overdue_tasks:
        console.print(f"[red]You have {len(summary.overdue_tasks)} overdue task(s).[/red]")
        console.print(tasks_table(summary.overdue_tasks, title="Overdue"))
    console.print(epics_table(summary.epics, today))
