"""Tests for canonical epic resolution (aggregation/epics.py)."""

from __future__ import annotations

import pytest

from teamtrack.aggregation.epics import NO_EPIC_REF, EpicRef, EpicRegistry, name_key, resolve_epic
from teamtrack.aggregation.model import Epic, Task
from teamtrack.constants import NO_EPIC


@pytest.fixture
def registry() -> EpicRegistry:
    return EpicRegistry([Epic(id="e1", name="Alpha"), Epic(id="e2", name="Beta")])


class TestResolve:
    def test_known_id_wins_over_stale_label(self, registry: EpicRegistry) -> None:
        ref = registry.resolve(Task(id="t", epic_id="e1", epic="Old Alpha"))
        assert ref == EpicRef(key="e1", name="Alpha")

    def test_unknown_id_keeps_task_label(self, registry: EpicRegistry) -> None:
        assert registry.resolve(Task(id="t", epic_id="e9", epic="Gamma")) == EpicRef(key="e9", name="Gamma")
        assert registry.resolve(Task(id="t", epic_id="e9")) == EpicRef(key="e9", name="e9")

    def test_bare_name_matching_registered_epic(self, registry: EpicRegistry) -> None:
        assert registry.resolve(Task(id="t", epic="Beta")) == EpicRef(key="e2", name="Beta")

    def test_bare_unregistered_name(self, registry: EpicRegistry) -> None:
        ref = registry.resolve(Task(id="t", epic="Loose"))
        assert ref == EpicRef(key=name_key("Loose"), name="Loose")

    def test_no_reference_is_no_epic(self, registry: EpicRegistry) -> None:
        ref = registry.resolve(Task(id="t"))
        assert ref is NO_EPIC_REF
        assert ref.is_no_epic
        assert ref.name == NO_EPIC

    def test_ambiguous_name_is_keyed_by_name(self) -> None:
        registry = EpicRegistry([Epic(id="e1", name="Same"), Epic(id="e2", name="Same")])
        assert registry.id_for_name("Same") is None
        assert registry.resolve(Task(id="t", epic="Same")).key == name_key("Same")

    def test_resolve_without_registry(self) -> None:
        assert resolve_epic(Task(id="t", epic="Alpha")) == EpicRef(key=name_key("Alpha"), name="Alpha")

    def test_resolve_name_no_epic_literal(self, registry: EpicRegistry) -> None:
        assert registry.resolve_name(NO_EPIC) is NO_EPIC_REF
        assert registry.resolve_name("") is NO_EPIC_REF


class TestRegistry:
    def test_from_sources_epic_list_is_authoritative(self) -> None:
        tasks = [Task(id="t1", epic_id="e1", epic="Stale"), Task(id="t2", epic_id="e3", epic="Gamma")]
        registry = EpicRegistry.from_sources([Epic(id="e1", name="Alpha")], tasks)
        assert registry.label("e1") == "Alpha"
        assert registry.label("e3") == "Gamma"
        assert len(registry) == 2

    def test_rename(self, registry: EpicRegistry) -> None:
        assert registry.rename("e1", "Alpha 2") is True
        assert registry.rename("missing", "x") is False
        assert registry.resolve(Task(id="t", epic_id="e1")).name == "Alpha 2"

    def test_label_strips_name_prefix(self, registry: EpicRegistry) -> None:
        assert registry.label(name_key("Loose")) == "Loose"
        assert registry.label("unknown") == "unknown"

    def test_available_sorted_by_name(self) -> None:
        registry = EpicRegistry([Epic(id="z", name="beta"), Epic(id="a", name="Alpha")])
        assert registry.available() == [("a", "Alpha"), ("z", "beta")]
        assert "z" in registry
        assert "nope" not in registry
