"""
Event log context helpers.

Purpose
-------
Builds the LogContext a publish runs under, so every log line emitted while
its actors run (including lines logged by the actors themselves) carries the
event name and one correlation id.

Design Decisions
----------------
- **Scoped, not sticky**: a context manager that is reset when dispatch ends,
  so one publish never leaks its fields into the next
- **Nested publishes keep the correlation id** of the outermost publish
- **Minimal payload exposure**: only the payload's type name is recorded,
  never its value
- **Per-actor scope**: each actor call adds the matched pattern and the
  actor id, so a failing or chatty actor is identifiable in every line
"""

from __future__ import annotations

from typing import Any

from mediator.event.types import Event, EventActor
from mediator.logging.logger import LogContext


def event_log_context(event_name: str, payload: Any) -> LogContext:
    """
    Return the LogContext for dispatching ``event_name``.

    Examples
    --------
    >>> with event_log_context("user:login:success", {"user_id": 7}):
    ...     logger.info("dispatching")  # carries event_name + correlation_id
    """
    return LogContext(
        component="mediator",
        operation="publish",
        event_name=event_name,
        payload_type=type(payload).__name__,
        # a publish nested inside an actor is not itself inside that actor
        pattern=None,
        actor_id=None,
    )


def actor_log_context(event: Event, actor: EventActor) -> LogContext:
    """Return the LogContext for one actor call within a publish."""
    return LogContext(pattern=event.pattern, actor_id=actor.identifier)
