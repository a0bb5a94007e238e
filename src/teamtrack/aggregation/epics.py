"""Canonical epic identity.

Tasks reference their epic either by ``epic_id`` or by the free-text
``epic`` name. Every grouping, rollup and counter in this package resolves a
task through :class:`EpicRegistry` to one :class:`EpicRef`, whose ``key`` is
the identity and whose ``name`` is only a display label:

1. a known ``epic_id`` wins, labelled with the registry's name;
2. an unknown ``epic_id`` is still the key, labelled with the task's name;
3. a bare name that matches exactly one registered epic resolves to it;
4. any other bare name is keyed by the name itself;
5. no reference at all lands in the ``"No Epic"`` bucket.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from loguru import logger

from ..constants import NO_EPIC
from .model import Epic, Task

NAME_KEY_PREFIX = "name:"


@dataclass(frozen=True)
class EpicRef:
    key: str
    name: str

    @property
    def is_no_epic(self) -> bool:
        return self.key == NO_EPIC


NO_EPIC_REF = EpicRef(key=NO_EPIC, name=NO_EPIC)


def name_key(name: str) -> str:
    return f"{NAME_KEY_PREFIX}{name}"


class EpicRegistry:
    """Map epic ids to display names and resolve tasks to epic refs."""

    def __init__(self, epics: Iterable[Epic] = ()) -> None:
        self._names: dict[str, str] = {}
        for epic in epics:
            self.register(epic.id, epic.name)

    @classmethod
    def from_sources(cls, epics: Iterable[Epic], tasks: Iterable[Task]) -> "EpicRegistry":
        """Build a registry from the epic list plus ``(epic_id, epic)`` pairs on tasks.

        The epic list is authoritative; task pairs only fill in ids the list
        does not know about.
        """
        registry = cls(epics)
        for task in tasks:
            if task.epic_id and task.epic and task.epic_id not in registry._names:
                registry.register(task.epic_id, task.epic)
        return registry

    # -- mutation -----------------------------------------------------------

    def register(self, epic_id: str, name: str) -> None:
        self._names[epic_id] = name

    def rename(self, epic_id: str, name: str) -> bool:
        if epic_id not in self._names:
            return False
        self._names[epic_id] = name
        return True

    # -- lookups ------------------------------------------------------------

    def __contains__(self, epic_id: object) -> bool:
        return epic_id in self._names

    def __len__(self) -> int:
        return len(self._names)

    def id_for_name(self, name: str) -> Optional[str]:
        """Return the id of the single epic called *name*, or None if absent/ambiguous."""
        matches = [eid for eid, label in self._names.items() if label == name]
        return matches[0] if len(matches) == 1 else None

    def label(self, key: str) -> str:
        if key in self._names:
            return self._names[key]
        if key.startswith(NAME_KEY_PREFIX):
            return key[len(NAME_KEY_PREFIX):]
        return key

    def resolve(self, task: Task) -> EpicRef:
        if task.epic_id:
            known = self._names.get(task.epic_id)
            if known is not None:
                if task.epic and task.epic != known:
                    logger.debug(
                        "Task {} carries stale epic label {!r}; using {!r}",
                        task.id,
                        task.epic,
                        known,
                    )
                return EpicRef(key=task.epic_id, name=known)
            return EpicRef(key=task.epic_id, name=task.epic or task.epic_id)
        if task.epic:
            return self.resolve_name(task.epic)
        return NO_EPIC_REF

    def resolve_name(self, name: Optional[str]) -> EpicRef:
        """Resolve a bare display name (as found on tasks or in server counts)."""
        if not name or name == NO_EPIC:
            return NO_EPIC_REF
        epic_id = self.id_for_name(name)
        if epic_id is not None:
            return EpicRef(key=epic_id, name=name)
        return EpicRef(key=name_key(name), name=name)

    def available(self) -> list[tuple[str, str]]:
        """Return ``(id, name)`` pairs sorted by name for pickers."""
        return sorted(self._names.items(), key=lambda item: (item[1].casefold(), item[0]))


def resolve_epic(task: Task, registry: Optional[EpicRegistry] = None) -> EpicRef:
    return (registry or _EMPTY_REGISTRY).resolve(task)


_EMPTY_REGISTRY = EpicRegistry()
