"""
Core types for the mediator.

Purpose
-------
Provides the type definitions shared by the registry and the dispatcher:
the event identity handed to actors, actor records, and the type aliases
for callbacks and pattern input.

Design Decisions
----------------
- **Payload is Any**: the mediator never inspects or validates payloads
- **Event is frozen**: actors of the same publish all see the same identity
- **EventActor with slots**: small immutable record per attached callback
- **Factory pattern**: from_callback() provides actor creation with
  auto-generated identifiers used in logs and error reports
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from mediator.event.patterns import Matcher, RegexSpec, WildcardSpec

# Anything accepted by Mediator.listen() / Mediator.unlisten().
PatternSource = Union[str, "re.Pattern[str]", WildcardSpec, RegexSpec, Matcher]


@dataclass(frozen=True, slots=True)
class Event:
    """
    Identity of a published event as seen by an actor.

    Attributes
    ----------
    name:
        The event name passed to ``publish``.
    pattern:
        Source text of the listened pattern that matched (for regexes, the
        expression source). Lets one actor attached to several patterns
        tell them apart.

    Examples
    --------
    >>> def on_success(event: Event, payload: Any) -> None:
    ...     print(event.name, payload)
    """

    name: str
    pattern: str

    def __str__(self) -> str:
        return self.name


# Actor callbacks receive the event identity and the payload, unmodified.
ActorCallback = Callable[[Event, Any], Any]


@dataclass(frozen=True, slots=True)
class EventActor:
    """
    A callback attached to a registry entry.

    Attributes
    ----------
    callback:
        Synchronous callable invoked as ``callback(event, payload)``.
    identifier:
        Readable identifier for logs and error reports.
    """

    callback: ActorCallback
    identifier: str

    @classmethod
    def from_callback(
        cls,
        pattern: str,
        callback: ActorCallback,
        identifier: Optional[str] = None,
    ) -> EventActor:
        """
        Create an EventActor, generating an identifier when none is given.

        Examples
        --------
        >>> actor = EventActor.from_callback("user:*", on_user_event)
        >>> actor.identifier
        'app.handlers.on_user_event@user:*'
        """
        if identifier is None:
            module = getattr(callback, "__module__", None) or "unknown"
            qualname = getattr(
                callback, "__qualname__", getattr(callback, "__name__", type(callback).__name__)
            )
            identifier = f"{module}.{qualname}@{pattern}"

        return cls(callback=callback, identifier=identifier)
