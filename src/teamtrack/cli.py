"""Command-line entrypoint: run the aggregation engine over a task snapshot."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from rich.console import Console

from .aggregation.board import TaskBoard
from .aggregation.filters import TaskFilter
from .aggregation.model import refresh_overdue
from .aggregation.paste import PasteCandidates, PasteField, segment_paste
from .aggregation.rollup import epic_deadline
from .config import (
    VALID_LOG_LEVELS,
    get_kpi_config,
    get_listing_config,
    get_log_level,
    get_paste_settings,
    load_config,
)
from .render import counts_table, epics_table, print_kpi, tasks_table
from .snapshot import Snapshot, SnapshotError, load_snapshot
from .utils import _now, _parse_iso


def _configure_logging(level: str = "INFO") -> None:
    """Configure loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan>\n"
            "{message}"
        ),
    )


def _resolve_project_dir(project_dir: Optional[str]) -> Path:
    return Path(project_dir).expanduser().resolve() if project_dir else Path.cwd().resolve()


def _write_json(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, default=str) + "\n")


def _snapshot(args: argparse.Namespace) -> Snapshot:
    snapshot = load_snapshot(Path(args.snapshot))
    if get_kpi_config(args.config)["recompute_overdue"]:
        snapshot.tasks = refresh_overdue(snapshot.tasks, _reference_now(args).date())
    return snapshot


def _board(args: argparse.Namespace) -> TaskBoard:
    return _snapshot(args).board()


def _reference_now(args: argparse.Namespace) -> datetime:
    raw = getattr(args, "now", None)
    if not raw:
        return _now()
    parsed = _parse_iso(raw)
    if parsed is None:
        raise ValueError(f"Invalid --now timestamp: {raw}")
    return parsed


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

def _tasks(args: argparse.Namespace) -> int:
    board = _board(args)
    flt = TaskFilter(
        search=args.search or "",
        display_id=args.id,
        epic=args.epic or "all",
        member_id=args.member,
        start_after=args.start_after,
        end_before=args.end_before,
    )
    page_size = args.page_size or get_listing_config(args.config)["page_size"]
    page = board.listing(flt, page=args.page, page_size=page_size)
    if args.table:
        Console().print(tasks_table(page.items, title=f"Tasks (page {page.page}/{page.pages})"))
        return 0
    _write_json({
        "tasks": [dict(t.to_dict(), displayId=t.display_id) for t in page.items],
        "total": page.total,
        "page": page.page,
        "pages": page.pages,
        "epics": board.epic_filter_options(),
    })
    return 0


def _epics(args: argparse.Namespace) -> int:
    board = _board(args)
    today = _reference_now(args).date()
    rollups = board.epic_rollups()
    if args.table:
        Console().print(epics_table(rollups, today))
        return 0
    payload: dict[str, Any] = {}
    for name, rollup in rollups.items():
        days_left, overdue = epic_deadline(rollup, today)
        payload[name] = dict(rollup.to_dict(), daysLeft=days_left, isOverdue=overdue)
    _write_json({"epics": payload, "available": [{"id": i, "name": n} for i, n in board.available_epics()]})
    return 0


def _counts(args: argparse.Namespace) -> int:
    snapshot = _snapshot(args)
    if args.verify and snapshot.epic_counts is None:
        sys.stderr.write("Snapshot has no epicCounts to verify\n")
        return 1
    board = snapshot.board(use_server_counts=args.verify)
    counts = board.epic_counts(include_empty=False)
    drift = board.verify_counts() if args.verify else {}
    if args.table:
        Console().print(counts_table(counts))
    else:
        payload: dict[str, Any] = {"epicCounts": counts}
        if args.verify:
            payload["drift"] = {name: {"ledger": have, "actual": want} for name, (have, want) in drift.items()}
        _write_json(payload)
    return 1 if drift else 0


def _kpi(args: argparse.Namespace) -> int:
    board = _board(args)
    now = _reference_now(args)
    summary = board.kpi(now=now, member_id=args.member)
    if args.table:
        print_kpi(Console(), summary, now.date())
        return 0
    _write_json(summary.to_dict())
    return 0


def _paste(args: argparse.Namespace) -> int:
    text = args.text if args.text is not None else sys.stdin.read()
    result = segment_paste(text, PasteField(args.field), get_paste_settings(args.config))
    if isinstance(result, PasteCandidates):
        _write_json({"mode": "multiple", "field": result.field.value, "candidates": list(result.fragments)})
    else:
        _write_json({"mode": "single", "field": result.field.value, "candidates": []})
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Team task/epic aggregation over a dashboard snapshot")
    parser.add_argument("--project-dir", default=None, help="Directory holding .teamtrack/config.yaml (default: cwd)")
    parser.add_argument("--log-level", default=None, help="Log level (default: from config, else INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def _snapshot_cmd(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("snapshot", help="JSON/YAML snapshot exported from the tasks API")
        sub.add_argument("--table", action="store_true", help="Render a table instead of JSON")
        return sub

    tasks = _snapshot_cmd("tasks", "List tasks with display ids")
    tasks.add_argument("--search", default=None)
    tasks.add_argument("--epic", default=None, help="Epic display name (default: all)")
    tasks.add_argument("--member", default=None, help="Only tasks assigned to this member id")
    tasks.add_argument("--id", type=int, default=None, help="Display id")
    tasks.add_argument("--start-after", default=None, help="Start date lower bound (YYYY-MM-DD)")
    tasks.add_argument("--end-before", default=None, help="End date upper bound (YYYY-MM-DD)")
    tasks.add_argument("--page", type=int, default=1)
    tasks.add_argument("--page-size", type=int, default=None)
    tasks.set_defaults(func=_tasks)

    epics = _snapshot_cmd("epics", "Per-epic rollups")
    epics.add_argument("--now", default=None, help="Reference timestamp (ISO, default: now)")
    epics.set_defaults(func=_epics)

    counts = _snapshot_cmd("counts", "Epic task counts")
    counts.add_argument("--verify", action="store_true", help="Compare the snapshot's epicCounts with a recompute")
    counts.set_defaults(func=_counts)

    kpi = _snapshot_cmd("kpi", "KPI summary")
    kpi.add_argument("--member", default=None, help="Scope to one member id")
    kpi.add_argument("--now", default=None, help="Reference timestamp (ISO, default: now)")
    kpi.set_defaults(func=_kpi)

    paste = subparsers.add_parser("paste", help="Split pasted text into task candidates")
    paste.add_argument("text", nargs="?", default=None, help="Text to analyse (default: stdin)")
    paste.add_argument("--field", default="title", choices=[f.value for f in PasteField])
    paste.set_defaults(func=_paste)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config, err = load_config(_resolve_project_dir(args.project_dir))
    level = (args.log_level or get_log_level(config)).upper()
    if level not in VALID_LOG_LEVELS:
        choices = ", ".join(sorted(VALID_LOG_LEVELS))
        sys.stderr.write(f"Invalid log level {level!r}; choose from {choices}\n")
        return 1
    _configure_logging(level)
    if err:
        logger.warning("Ignoring unreadable config: {}", err)
    args.config = config

    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return int(handler(args) or 0)
    except (SnapshotError, ValueError) as exc:
        sys.stderr.write(f"{exc}\n")
        return 1


def run() -> None:
    sys.exit(main())
