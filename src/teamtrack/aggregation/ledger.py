"""Incrementally maintained epic task counts.

The ledger mirrors what :func:`.rollup.compute_epic_counts` would return for
the current snapshot, but is patched per mutation instead of recomputed.
Counts are stored by canonical epic key; display names are looked up when
the map is read, so renaming an epic relabels its count without moving it.

Decrements are floored at zero. Hitting the floor means the ledger and the
real collection had already diverged, so every floor event is logged and
counted in :attr:`EpicCountLedger.floor_events`.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Mapping, Optional

from loguru import logger

from .epics import EpicRef, EpicRegistry
from .model import Task
from .rollup import compute_epic_counts


class EpicCountLedger:
    def __init__(self, registry: Optional[EpicRegistry] = None) -> None:
        self.registry = registry if registry is not None else EpicRegistry()
        self.floor_events = 0
        self._counts: dict[str, int] = {}
        self._labels: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    @classmethod
    def from_tasks(cls, tasks: Iterable[Task], registry: Optional[EpicRegistry] = None) -> "EpicCountLedger":
        ledger = cls(registry)
        ledger.record_create(tasks)
        return ledger

    @classmethod
    def from_counts(
        cls,
        counts: Mapping[str, int],
        registry: Optional[EpicRegistry] = None,
    ) -> "EpicCountLedger":
        """Seed from a server-supplied ``epicCounts`` map keyed by display name."""
        ledger = cls(registry)
        for name, value in counts.items():
            ref = ledger.registry.resolve_name(name)
            ledger._labels[ref.key] = ref.name
            ledger._counts[ref.key] = ledger._counts.get(ref.key, 0) + max(0, int(value))
        return ledger

    # ------------------------------------------------------------------
    # Primitive steps
    # ------------------------------------------------------------------

    def _increment(self, ref: EpicRef, amount: int = 1) -> None:
        self._labels.setdefault(ref.key, ref.name)
        self._counts[ref.key] = self._counts.get(ref.key, 0) + amount

    def _decrement(self, ref: EpicRef, amount: int = 1) -> None:
        self._labels.setdefault(ref.key, ref.name)
        current = self._counts.get(ref.key, 0)
        if amount > current:
            self.floor_events += 1
            logger.warning(
                "Epic count for {!r} would drop below zero ({} - {}); clamping to 0",
                ref.name,
                current,
                amount,
            )
        self._counts[ref.key] = max(0, current - amount)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record_create(self, tasks: Iterable[Task]) -> None:
        for task in tasks:
            self._increment(self.registry.resolve(task))

    def record_delete(self, tasks: Iterable[Task]) -> None:
        """Decrement the prior epic of every removed task."""
        for task in tasks:
            self._decrement(self.registry.resolve(task))

    def record_update(self, before: Task, after: Task) -> bool:
        """Move one count if and only if the task's epic changed.

        Returns True when the counts were touched.
        """
        old_ref = self.registry.resolve(before)
        new_ref = self.registry.resolve(after)
        if old_ref.key == new_ref.key:
            return False
        self._decrement(old_ref)
        self._increment(new_ref)
        logger.debug("Moved task {} from epic {!r} to {!r}", after.id, old_ref.name, new_ref.name)
        return True

    def record_bulk_update(self, before: Iterable[Task], new_ref: EpicRef) -> int:
        """Move a batch of tasks into *new_ref* in one step per old epic.

        Members already in *new_ref* are left alone. Each other old epic is
        decremented once by its number of members. Returns how many tasks
        moved.
        """
        old_refs: dict[str, EpicRef] = {}
        sizes: Counter[str] = Counter()
        for task in before:
            ref = self.registry.resolve(task)
            if ref.key == new_ref.key:
                continue
            old_refs.setdefault(ref.key, ref)
            sizes[ref.key] += 1

        moved = 0
        for key, size in sizes.items():
            self._decrement(old_refs[key], size)
            moved += size
        if moved:
            self._increment(new_ref, moved)
            logger.debug("Bulk-moved {} task(s) to epic {!r}", moved, new_ref.name)
        return moved

    def move_key(self, old_key: str, new_key: str) -> None:
        """Fold the count kept under *old_key* into *new_key*.

        Used when a name-keyed epic gets registered under a real id.
        """
        if old_key == new_key or old_key not in self._counts:
            return
        value = self._counts.pop(old_key)
        label = self._labels.pop(old_key, None)
        self._counts[new_key] = self._counts.get(new_key, 0) + value
        if label is not None:
            self._labels.setdefault(new_key, label)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _label(self, key: str) -> str:
        if key in self.registry:
            return self.registry.label(key)
        return self._labels.get(key) or self.registry.label(key)

    def counts(self, include_empty: bool = True) -> dict[str, int]:
        """Return display name -> count."""
        out: dict[str, int] = {}
        for key, value in self._counts.items():
            if value == 0 and not include_empty:
                continue
            name = self._label(key)
            out[name] = out.get(name, 0) + value
        return out

    def get(self, name: str) -> int:
        return self.counts().get(name, 0)

    def total(self) -> int:
        return sum(self._counts.values())

    def drift(self, tasks: Iterable[Task]) -> dict[str, tuple[int, int]]:
        """Compare with a full recompute; returns ``{name: (ledger, actual)}`` for mismatches."""
        expected = compute_epic_counts(tasks, self.registry)
        current = self.counts(include_empty=False)
        mismatched: dict[str, tuple[int, int]] = {}
        for name in sorted(set(expected) | set(current)):
            have, want = current.get(name, 0), expected.get(name, 0)
            if have != want:
                mismatched[name] = (have, want)
        return mismatched
