"""
Unit tests for PatternRegistry.

Tests entry lifecycle, deduplication, snapshot ordering and introspection.
"""

import pytest

from mediator.event.patterns import compile_pattern
from mediator.event.registry import EntryState, PatternRegistry
from mediator.event.types import EventActor
from mediator.exceptions import ChainStateError


def _actor(tag):
    return EventActor(callback=lambda event, payload: None, identifier=tag)


@pytest.fixture
def registry():
    return PatternRegistry()


class TestEntryLifecycle:
    """Test Unregistered -> Active -> Inactive -> Active."""

    def test_first_activate_creates(self, registry):
        entry, state = registry.activate(compile_pattern("a:*"))
        assert state is EntryState.CREATED
        assert entry.active is True
        assert entry.actors == []

    def test_second_activate_reuses_entry(self, registry):
        first, _ = registry.activate(compile_pattern("a:*"))
        second, state = registry.activate(compile_pattern("a:*"))
        assert second is first
        assert state is EntryState.ALREADY_ACTIVE
        assert len(registry) == 1

    def test_deactivate_keeps_actors(self, registry):
        matcher = compile_pattern("a:*")
        entry, _ = registry.activate(matcher)
        registry.attach(entry, _actor("one"))

        returned = registry.deactivate(matcher)

        assert returned is entry
        assert entry.active is False
        assert [a.identifier for a in entry.actors] == ["one"]

    def test_reactivate_restores_same_entry(self, registry):
        matcher = compile_pattern("a:*")
        entry, _ = registry.activate(matcher)
        registry.attach(entry, _actor("one"))
        registry.deactivate(matcher)

        again, state = registry.activate(matcher)

        assert again is entry
        assert state is EntryState.REACTIVATED
        assert [a.identifier for a in again.actors] == ["one"]

    def test_deactivate_unknown_returns_none(self, registry):
        assert registry.deactivate(compile_pattern("never")) is None
        assert len(registry) == 0


class TestMatching:
    """Test match_event snapshots."""

    def test_registration_then_attachment_order(self, registry):
        first, _ = registry.activate(compile_pattern("**:success"))
        second, _ = registry.activate(compile_pattern("user:*"))
        registry.attach(second, _actor("s1"))
        registry.attach(first, _actor("f1"))
        registry.attach(first, _actor("f2"))

        matches = registry.match_event("user:success")

        assert [m.source for m, _ in matches] == ["**:success", "user:*"]
        assert [a.identifier for _, actors in matches for a in actors] == ["f1", "f2", "s1"]

    def test_inactive_entries_skipped(self, registry):
        matcher = compile_pattern("a")
        entry, _ = registry.activate(matcher)
        registry.attach(entry, _actor("x"))
        registry.deactivate(matcher)

        assert registry.match_event("a") == []

    def test_entries_without_actors_omitted(self, registry):
        registry.activate(compile_pattern("a"))
        assert registry.match_event("a") == []

    def test_reactivated_entry_keeps_original_position(self, registry):
        first = compile_pattern("a")
        second = compile_pattern("a*")
        entry_a, _ = registry.activate(first)
        entry_b, _ = registry.activate(second)
        registry.attach(entry_a, _actor("a"))
        registry.attach(entry_b, _actor("b"))

        registry.deactivate(first)
        registry.activate(first)

        assert [m.source for m, _ in registry.match_event("a")] == ["a", "a*"]

    def test_snapshot_is_isolated_from_later_attach(self, registry):
        entry, _ = registry.activate(compile_pattern("a"))
        registry.attach(entry, _actor("one"))

        (_, actors), = registry.match_event("a")
        registry.attach(entry, _actor("two"))

        assert [a.identifier for a in actors] == ["one"]


class TestAttach:
    """Test actor attachment."""

    def test_attach_returns_count(self, registry):
        entry, _ = registry.activate(compile_pattern("a"))
        assert registry.attach(entry, _actor("1")) == 1
        assert registry.attach(entry, _actor("2")) == 2

    def test_attach_to_cleared_entry_raises(self, registry):
        entry, _ = registry.activate(compile_pattern("a"))
        registry.clear_all()

        with pytest.raises(ChainStateError):
            registry.attach(entry, _actor("late"))

    def test_attach_to_foreign_entry_raises(self, registry):
        other = PatternRegistry()
        entry, _ = other.activate(compile_pattern("a"))
        registry.activate(compile_pattern("a"))

        with pytest.raises(ChainStateError):
            registry.attach(entry, _actor("x"))


class TestIntrospection:
    """Test counts and pattern listing."""

    def test_counts(self, registry):
        a, _ = registry.activate(compile_pattern("a:*"))
        b, _ = registry.activate(compile_pattern("b"))
        registry.attach(a, _actor("1"))
        registry.attach(a, _actor("2"))
        registry.attach(b, _actor("3"))
        registry.deactivate(compile_pattern("b"))

        assert len(registry) == 2
        assert registry.get_active_count() == 1
        assert registry.get_total_actor_count() == 3
        assert registry.get_actor_count_for_event("a:x") == 2
        assert registry.get_actor_count_for_event("b") == 0

    def test_patterns_in_registration_order(self, registry):
        registry.activate(compile_pattern("z"))
        registry.activate(compile_pattern("a"))
        registry.deactivate(compile_pattern("z"))

        assert registry.get_patterns() == ["z", "a"]
        assert registry.get_patterns(active_only=True) == ["a"]

    def test_clear_all_returns_previous_actor_count(self, registry):
        entry, _ = registry.activate(compile_pattern("a"))
        registry.attach(entry, _actor("1"))

        assert registry.clear_all() == 1
        assert len(registry) == 0
        assert registry.is_active(compile_pattern("a")) is False
