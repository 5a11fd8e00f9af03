"""
MediatorMetrics and MediatorMetricsRecorder.

Purpose
-------
Provides metrics collection and reporting for the mediator, enabling
observability into publishing, actor invocation, and error rates.

Responsibilities
----------------
- Record publishes, actor invocations and actor errors by event name
- Track registry size (entries, active entries, actors)
- Provide immutable snapshots of metrics
- Generate formatted metric summaries

Design Decisions
----------------
- **Immutable snapshots**: MediatorMetrics is frozen; mutations go through
  the recorder
- **Separation**: Recorder (mutable, locked) vs Metrics (immutable snapshot)
- **Locked recorder**: publish may run on several threads at once
- **Bounded keys**: per-event maps hold at most `max_event_names` names;
  later names share the `OTHER_EVENTS_KEY` bucket
"""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MediatorMetrics:
    """
    Immutable snapshot of mediator metrics.

    Attributes
    ----------
    events_published:
        Mapping of event names to publish counts.
    actor_invocations:
        Mapping of event names to the number of actor calls they caused.
    actor_errors:
        Mapping of event names to failed actor calls.
    total_entries:
        Number of registered patterns (active or not).
    active_entries:
        Number of currently listened patterns.
    total_actors:
        Number of attached actors across all entries.

    Examples
    --------
    >>> metrics = MediatorMetrics(
    ...     events_published={"user:login": 4},
    ...     actor_invocations={"user:login": 8},
    ...     actor_errors={"user:login": 2},
    ... )
    >>> metrics.get_summary()["error_rate"]
    25.0
    """

    events_published: dict[str, int] = field(default_factory=dict)
    actor_invocations: dict[str, int] = field(default_factory=dict)
    actor_errors: dict[str, int] = field(default_factory=dict)
    total_entries: int = 0
    active_entries: int = 0
    total_actors: int = 0

    def get_summary(self) -> dict[str, Any]:
        """
        Generate a formatted summary of metrics.

        Returns
        -------
        dict[str, Any]:
            Totals, the per-event mappings, registry sizes, and
            ``error_rate``: percentage of actor invocations that failed.
        """
        total_events = sum(self.events_published.values())
        total_invocations = sum(self.actor_invocations.values())
        total_errors = sum(self.actor_errors.values())

        error_rate = (total_errors / max(1, total_invocations)) * 100.0

        return {
            "total_events_published": total_events,
            "events_by_name": dict(self.events_published),
            "total_actor_invocations": total_invocations,
            "total_errors": total_errors,
            "errors_by_event": dict(self.actor_errors),
            "total_entries": self.total_entries,
            "active_entries": self.active_entries,
            "total_actors": self.total_actors,
            "error_rate": round(error_rate, 2),
        }


OTHER_EVENTS_KEY = "<other>"
DEFAULT_MAX_EVENT_NAMES = 1000


class MediatorMetricsRecorder:
    """
    Mutable metrics recorder for the mediator.

    Per-event counters are kept for at most ``max_event_names`` distinct
    names. Names first seen after that limit are counted under
    ``OTHER_EVENTS_KEY``, so totals stay exact while memory stays bounded
    for hosts that put ids in event names (``user:<id>:login``).

    Examples
    --------
    >>> recorder = MediatorMetricsRecorder(max_event_names=2)
    >>> for name in ("a", "b", "c", "d"):
    ...     recorder.record_publish(name)
    >>> recorder.snapshot().events_published
    {'a': 1, 'b': 1, '<other>': 2}
    """

    def __init__(self, max_event_names: int = DEFAULT_MAX_EVENT_NAMES) -> None:
        if max_event_names < 1:
            raise ValueError(f"max_event_names must be >= 1, got {max_event_names}")

        self._lock = threading.Lock()
        self._max_event_names = max_event_names
        self._tracked_names: set[str] = set()
        self._events_published: defaultdict[str, int] = defaultdict(int)
        self._actor_invocations: defaultdict[str, int] = defaultdict(int)
        self._actor_errors: defaultdict[str, int] = defaultdict(int)
        self._total_entries = 0
        self._active_entries = 0
        self._total_actors = 0

    @property
    def max_event_names(self) -> int:
        return self._max_event_names

    def _bucket(self, event_name: str) -> str:
        # Caller holds the lock.
        if event_name in self._tracked_names:
            return event_name
        if len(self._tracked_names) < self._max_event_names:
            self._tracked_names.add(event_name)
            return event_name
        return OTHER_EVENTS_KEY

    def record_publish(self, event_name: str) -> None:
        with self._lock:
            self._events_published[self._bucket(event_name)] += 1

    def record_invocation(self, event_name: str) -> None:
        with self._lock:
            self._actor_invocations[self._bucket(event_name)] += 1

    def record_error(self, event_name: str) -> None:
        with self._lock:
            self._actor_errors[self._bucket(event_name)] += 1

    def update_registry_counts(
        self,
        *,
        total_entries: int,
        active_entries: int,
        total_actors: int,
    ) -> None:
        """Store the registry sizes observed after a registration change."""
        with self._lock:
            self._total_entries = max(0, total_entries)
            self._active_entries = max(0, active_entries)
            self._total_actors = max(0, total_actors)

    def reset(self) -> None:
        """Drop all counters."""
        with self._lock:
            self._tracked_names.clear()
            self._events_published.clear()
            self._actor_invocations.clear()
            self._actor_errors.clear()
            self._total_entries = 0
            self._active_entries = 0
            self._total_actors = 0

    def snapshot(self) -> MediatorMetrics:
        """
        Return an immutable snapshot of current metrics.

        Creates new dict instances to prevent accidental mutation leaks.
        """
        with self._lock:
            return MediatorMetrics(
                events_published=dict(self._events_published),
                actor_invocations=dict(self._actor_invocations),
                actor_errors=dict(self._actor_errors),
                total_entries=self._total_entries,
                active_entries=self._active_entries,
                total_actors=self._total_actors,
            )
