"""
PatternRegistry: Storage and lookup for mediator entries.

Purpose
-------
Owns the mapping from canonical pattern keys to entries. An entry pairs one
compiled pattern with its active flag and its ordered actor list.

Responsibilities
----------------
- Create an entry on the first listen of a distinct pattern
- Reactivate / deactivate entries without touching their actors
- Append actors in attachment order
- Snapshot the actors of every active entry matching an event name
- Provide introspection (patterns, counts)

Design Decisions
----------------
- **One entry per canonical key**: re-listening reuses the entry, so actors
  accumulate in one place and run once per publish.
- **Registration order**: dict insertion order; a reactivated entry keeps
  its original position.
- **Snapshot under lock**: `match_event()` copies the matching actor lists
  while holding the lock and returns tuples, so callers can invoke actors
  with the lock released. Actors may then re-enter the mediator freely.
- **Reentrant lock**: registration calls made from within other registry
  calls on the same thread never deadlock.

Thread Safety
-------------
All public methods are serialized by a single `threading.RLock`.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from mediator.event.patterns import Matcher
from mediator.event.types import EventActor
from mediator.exceptions import ChainStateError


class EntryState(Enum):
    """Outcome of `PatternRegistry.activate()`."""

    CREATED = "created"
    REACTIVATED = "reactivated"
    ALREADY_ACTIVE = "already_active"


@dataclass(slots=True, eq=False)
class RegistryEntry:
    """
    Registry record for one pattern.

    Attributes
    ----------
    matcher:
        The compiled pattern.
    active:
        True while listened; cleared by unlisten.
    actors:
        Attached actors in attachment order. Never shrinks.
    """

    matcher: Matcher
    active: bool = True
    actors: list[EventActor] = field(default_factory=list)


class PatternRegistry:
    """
    Registry of pattern entries.

    Examples
    --------
    >>> registry = PatternRegistry()
    >>> entry, state = registry.activate(compile_pattern("user:*"))
    >>> state
    <EntryState.CREATED: 'created'>
    >>> registry.attach(entry, EventActor.from_callback("user:*", on_user))
    >>> [m.source for m, _ in registry.match_event("user:login")]
    ['user:*']
    """

    def __init__(self) -> None:
        self._entries: dict[str, RegistryEntry] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------ #
    # Modification
    # ------------------------------------------------------------------ #

    def activate(self, matcher: Matcher) -> tuple[RegistryEntry, EntryState]:
        """
        Create or reactivate the entry for ``matcher``.

        Returns
        -------
        tuple[RegistryEntry, EntryState]:
            The entry, and whether it was created, reactivated, or was
            already active.
        """
        with self._lock:
            entry = self._entries.get(matcher.key)
            if entry is None:
                entry = RegistryEntry(matcher=matcher)
                self._entries[matcher.key] = entry
                return entry, EntryState.CREATED

            if entry.active:
                return entry, EntryState.ALREADY_ACTIVE

            entry.active = True
            return entry, EntryState.REACTIVATED

    def deactivate(self, matcher: Matcher) -> Optional[RegistryEntry]:
        """
        Mark the entry for ``matcher`` inactive. Its actors are kept.

        Returns
        -------
        Optional[RegistryEntry]:
            The entry, or None if the pattern was never listened.
        """
        with self._lock:
            entry = self._entries.get(matcher.key)
            if entry is not None:
                entry.active = False
            return entry

    def attach(self, entry: RegistryEntry, actor: EventActor) -> int:
        """
        Append ``actor`` to ``entry``.

        Returns
        -------
        int:
            The entry's actor count after attaching.

        Raises
        ------
        ChainStateError:
            If ``entry`` no longer belongs to this registry (after clear_all()).
        """
        with self._lock:
            if self._entries.get(entry.matcher.key) is not entry:
                raise ChainStateError(entry.matcher.source)
            entry.actors.append(actor)
            return len(entry.actors)

    def clear_all(self) -> int:
        """
        Remove every entry and return the previous total actor count.
        """
        with self._lock:
            total = self.get_total_actor_count()
            self._entries.clear()
            return total

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def match_event(self, event_name: str) -> list[tuple[Matcher, tuple[EventActor, ...]]]:
        """
        Snapshot the actors of every active entry matching ``event_name``.

        Each entry is tested once. Entries appear in registration order;
        actors in attachment order. Entries with no actors are omitted.

        Examples
        --------
        >>> for matcher, actors in registry.match_event("user:login:success"):
        ...     for actor in actors:
        ...         actor.callback(Event("user:login:success", matcher.source), payload)
        """
        with self._lock:
            return [
                (entry.matcher, tuple(entry.actors))
                for entry in self._entries.values()
                if entry.active and entry.actors and entry.matcher.test(event_name)
            ]

    def is_active(self, matcher: Matcher) -> bool:
        with self._lock:
            entry = self._entries.get(matcher.key)
            return entry is not None and entry.active

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def get_patterns(self, *, active_only: bool = False) -> list[str]:
        """
        Return pattern sources in registration order.
        """
        with self._lock:
            return [
                str(entry.matcher)
                for entry in self._entries.values()
                if entry.active or not active_only
            ]

    def get_actor_count_for_event(self, event_name: str) -> int:
        """
        Count the actors a publish of ``event_name`` would invoke right now.
        """
        return sum(len(actors) for _, actors in self.match_event(event_name))

    def get_total_actor_count(self) -> int:
        with self._lock:
            return sum(len(entry.actors) for entry in self._entries.values())

    def get_active_count(self) -> int:
        with self._lock:
            return sum(1 for entry in self._entries.values() if entry.active)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
