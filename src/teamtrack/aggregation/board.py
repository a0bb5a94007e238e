"""Task board: the in-memory snapshot every dashboard screen reads from.

This is the primary entry-point for screen controllers. It wraps a task
snapshot fetched from the REST collaborator with the shared aggregation
rules (display ids, epic grouping, KPI, listing filters) and keeps the
epic count ledger in lockstep with local writes through four hooks:
:meth:`TaskBoard.on_create`, :meth:`TaskBoard.on_delete`,
:meth:`TaskBoard.on_update` and :meth:`TaskBoard.on_bulk_update`.

Hooks are called after the collaborator confirmed a write. They patch the
snapshot and the ledger only; they never issue requests.
"""

from __future__ import annotations

from dataclasses import fields, replace
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from loguru import logger

from ..constants import DEFAULT_PAGE_SIZE
from ..utils import _now_iso
from .epics import EpicRegistry, name_key
from .filters import Page, TaskFilter, epic_filter_options, filter_tasks, paginate
from .kpi import KPISummary, compute_kpi_summary
from .ledger import EpicCountLedger
from .model import Epic, Task, TaskStatus
from .ordering import assign_display_ids
from .payloads import TASK_FIELD_ALIASES
from .rollup import EpicRollup, group_tasks_by_epic, rollup_epics

_EPIC_FIELDS = {"epic", "epic_id"}
_MUTABLE_FIELDS = {f.name for f in fields(Task)} - {"id", "display_id"}


class TaskBoard:
    """Hold a task snapshot and derive every dashboard view from it.

    Parameters
    ----------
    tasks:
        Snapshot as fetched from the collaborator.
    epics:
        First-class epics; authoritative for epic names.
    epic_counts:
        Server-supplied counts. When omitted the ledger is seeded by a
        recompute over *tasks*.
    """

    def __init__(
        self,
        tasks: Iterable[Task] = (),
        epics: Iterable[Epic] = (),
        epic_counts: Optional[Mapping[str, int]] = None,
    ) -> None:
        self._tasks: list[Task] = list(tasks)
        self._index: dict[str, int] = {t.id: i for i, t in enumerate(self._tasks)}
        self.registry = EpicRegistry.from_sources(epics, self._tasks)
        if epic_counts is not None:
            self.ledger = EpicCountLedger.from_counts(epic_counts, self.registry)
        else:
            self.ledger = EpicCountLedger.from_tasks(self._tasks, self.registry)

    # ------------------------------------------------------------------
    # Snapshot access
    # ------------------------------------------------------------------

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def get_task(self, task_id: str) -> Optional[Task]:
        idx = self._index.get(task_id)
        return self._tasks[idx] if idx is not None else None

    def _reindex(self) -> None:
        self._index = {t.id: i for i, t in enumerate(self._tasks)}

    # ------------------------------------------------------------------
    # Read paths
    # ------------------------------------------------------------------

    def decorated(self) -> list[Task]:
        return assign_display_ids(self._tasks)

    def grouped(self) -> dict[str, list[Task]]:
        return group_tasks_by_epic(self.decorated(), self.registry)

    def epic_rollups(self) -> dict[str, EpicRollup]:
        return rollup_epics(self.grouped())

    def epic_counts(self, include_empty: bool = True) -> dict[str, int]:
        return self.ledger.counts(include_empty=include_empty)

    def kpi(self, now: Optional[datetime] = None, member_id: Optional[str] = None) -> KPISummary:
        return compute_kpi_summary(self.decorated(), now=now, member_id=member_id, registry=self.registry)

    def listing(
        self,
        flt: Optional[TaskFilter] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page[Task]:
        matched = filter_tasks(self.decorated(), flt or TaskFilter(), self.registry)
        return paginate(matched, page=page, page_size=page_size)

    def available_epics(self) -> list[tuple[str, str]]:
        return self.registry.available()

    def epic_filter_options(self) -> list[str]:
        return epic_filter_options(self._tasks, self.registry)

    def verify_counts(self) -> dict[str, tuple[int, int]]:
        """Compare the ledger with a recompute and log any drift."""
        drift = self.ledger.drift(self._tasks)
        if drift:
            logger.warning("Epic counts drifted from the snapshot: {}", drift)
        return drift

    # ------------------------------------------------------------------
    # Epics
    # ------------------------------------------------------------------

    def add_epic(self, epic: Epic) -> None:
        """Register a first-class epic, re-keying counts held under its bare name."""
        previous = self.registry.id_for_name(epic.name)
        self.registry.register(epic.id, epic.name)
        current = self.registry.id_for_name(epic.name)
        if current == epic.id:
            self.ledger.move_key(name_key(epic.name), epic.id)
        elif previous is not None and current is None:
            # Bare-name tasks no longer resolve to a single epic; recount.
            logger.warning("Epic name {!r} is now ambiguous; reseeding counts", epic.name)
            self.ledger = EpicCountLedger.from_tasks(self._tasks, self.registry)

    def rename_epic(self, epic_id: str, name: str) -> bool:
        """Rename a registered epic; id-keyed counts follow the new label."""
        old = self.registry.label(epic_id) if epic_id in self.registry else None
        if not self.registry.rename(epic_id, name):
            return False
        # Bare-name references to either label may now resolve differently.
        if any(not t.epic_id and t.epic in {old, name} for t in self._tasks):
            logger.warning("Renaming epic {} changes bare-name membership; reseeding counts", epic_id)
            self.ledger = EpicCountLedger.from_tasks(self._tasks, self.registry)
        return True

    def _learn_epic(self, task: Task) -> None:
        if task.epic_id and task.epic and task.epic_id not in self.registry:
            self.add_epic(Epic(id=task.epic_id, name=task.epic))

    # ------------------------------------------------------------------
    # Mutation hooks
    # ------------------------------------------------------------------

    def on_create(self, tasks: Iterable[Task]) -> list[Task]:
        """Add newly created tasks (single or bulk) and count them."""
        added: list[Task] = []
        for task in tasks:
            if task.id in self._index:
                logger.warning("Ignoring create for task {} already on the board", task.id)
                continue
            self._learn_epic(task)
            self._index[task.id] = len(self._tasks)
            self._tasks.append(task)
            self.ledger.record_create([task])
            added.append(task)
        if added:
            logger.debug("Created {} task(s)", len(added))
        return added

    def on_delete(self, task_ids: Iterable[str]) -> list[Task]:
        """Remove tasks (single or bulk) and decrement their epics."""
        wanted = set()
        for task_id in task_ids:
            if task_id not in self._index:
                logger.warning("Ignoring delete for unknown task {}", task_id)
                continue
            wanted.add(task_id)
        removed = [t for t in self._tasks if t.id in wanted]
        if not removed:
            return []
        self._tasks = [t for t in self._tasks if t.id not in wanted]
        self._reindex()
        self.ledger.record_delete(removed)
        logger.debug("Deleted {} task(s)", len(removed))
        return removed

    def on_update(self, task_id: str, before: Optional[Task], after: Task) -> Optional[Task]:
        """Replace one task with the collaborator's updated copy.

        *before* defaults to the board's current copy. Counts move only if
        the task's epic changed.
        """
        idx = self._index.get(task_id)
        if idx is None:
            logger.warning("Ignoring update for unknown task {}", task_id)
            return None
        before = before or self._tasks[idx]
        self._learn_epic(after)
        self._tasks[idx] = after
        self.ledger.record_update(before, after)
        return after

    def on_bulk_update(
        self,
        task_ids: Sequence[str],
        before: Optional[Sequence[Task]],
        after: Mapping[str, Any],
    ) -> list[Task]:
        """Apply one shared set of field changes to a batch of tasks.

        Args:
            task_ids: Tasks the collaborator updated.
            before: Their prior copies; defaults to the board's copies.
            after: The shared changes, e.g. ``{"epic": "Beta"}``.

        Returns:
            The updated tasks.
        """
        if before is None:
            before = [t for t in (self.get_task(tid) for tid in task_ids) if t is not None]
        changes = self.normalize_changes(after)
        targeted = set(task_ids)
        prior = {t.id: t for t in before if t.id in targeted}

        updated: list[Task] = []
        for task_id in task_ids:
            idx = self._index.get(task_id)
            if idx is None:
                logger.warning("Ignoring bulk update for unknown task {}", task_id)
                prior.pop(task_id, None)
                continue
            prior.setdefault(task_id, self._tasks[idx])
            task = self.apply_changes(prior[task_id], changes)
            self._tasks[idx] = task
            updated.append(task)

        if updated and _EPIC_FIELDS & set(changes):
            ledger = self.ledger
            self._learn_epic(updated[0])
            # A reseed already counted the updated snapshot.
            if self.ledger is ledger:
                new_ref = self.registry.resolve(updated[0])
                self.ledger.record_bulk_update(prior.values(), new_ref)
        return updated

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def normalize_changes(self, changes: Mapping[str, Any], task_id: str = "") -> dict[str, Any]:
        """Map camelCase keys to task fields and drop keys no task field matches."""
        values: dict[str, Any] = {}
        for key, value in changes.items():
            name = TASK_FIELD_ALIASES.get(key, key)
            if name not in _MUTABLE_FIELDS:
                logger.warning("Ignoring unknown task field {!r} in changes for {}", key, task_id or "batch")
                continue
            values[name] = value
        return values

    def apply_changes(self, task: Task, changes: Mapping[str, Any]) -> Task:
        """Return a copy of *task* with *changes* applied.

        Setting only one of ``epic`` / ``epic_id`` reassigns the epic as a
        whole: the other field is cleared or relabelled from the registry.
        """
        values = self.normalize_changes(changes, task.id)
        if "status" in values and isinstance(values["status"], str):
            try:
                values["status"] = TaskStatus(values["status"])
            except ValueError:
                values.pop("status")
        if "epic" in values and "epic_id" not in values:
            values["epic_id"] = None
        elif "epic_id" in values and "epic" not in values:
            epic_id = values["epic_id"]
            values["epic"] = self.registry.label(epic_id) if epic_id in self.registry else None
        if "assigned_to" in values:
            values["assigned_to"] = list(values["assigned_to"] or [])
        else:
            values["assigned_to"] = list(task.assigned_to)
        values["updated_at"] = _now_iso()
        return replace(task, **values)
