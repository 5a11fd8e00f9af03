"""
Mediator: synchronous wildcard pub/sub with a chainable registration API.

Purpose
-------
Provides the Mediator class: application modules register interest with
``listen(pattern).act(fn)``; the host calls ``publish(name, payload)``
whenever an event occurs, and every actor of every active matching pattern
runs with the event identity and the payload.

Responsibilities
----------------
- Compile patterns and create / reactivate / deactivate registry entries
- Attach actors through `ListenHandle`, the object returned by ``listen``
- Dispatch each published event to matching actors, in registration order
  then attachment order
- Error isolation (one failing actor never stops the others)
- Metrics collection and introspection
- LogContext integration for structured logging

Design Decisions
----------------
- **Instance-based**: no module-level singleton; hosts create and share a
  Mediator explicitly, and tests build a fresh one per case
- **Handles instead of a shared "current pattern"**: each ``listen`` returns
  a handle bound to its own entry, so interleaved or nested chains never
  attach actors to the wrong pattern
- **Strictly synchronous**: ``publish`` returns after every matching actor
  has run or failed; coroutine functions are rejected as actors
- **Locking**: the registry lock is held only while snapshotting matching
  actors; actors run unlocked and may publish or listen re-entrantly
- **No cycle detection**: an actor that republishes its own event recurses
  until Python's recursion limit; avoiding that is the caller's job
- **Config-driven defaults**: metrics, actor validation and unknown-unlisten
  warnings come from Config unless overridden per instance

Dependencies
------------
- mediator.logging.logger (structured logging)
- mediator.config.config (Config for defaults)
- mediator.event.patterns (compile_pattern)
- mediator.event.registry (PatternRegistry)
- mediator.event.metrics (MediatorMetrics, MediatorMetricsRecorder)
- mediator.event.errors (handle_actor_error)
- mediator.event.context (event_log_context, actor_log_context)
"""

from __future__ import annotations

import inspect
import warnings
from typing import Any, Optional

from mediator.config.config import Config
from mediator.config.errors import ConfigError
from mediator.event.context import actor_log_context, event_log_context
from mediator.event.errors import ErrorHandler, handle_actor_error
from mediator.event.metrics import (
    DEFAULT_MAX_EVENT_NAMES,
    MediatorMetrics,
    MediatorMetricsRecorder,
)
from mediator.event.patterns import Matcher, compile_pattern
from mediator.event.registry import PatternRegistry, RegistryEntry
from mediator.event.types import ActorCallback, Event, EventActor, PatternSource
from mediator.exceptions import (
    ActorInvocationError,
    InvalidActorError,
    UnknownPatternWarning,
)
from mediator.logging.logger import get_logger

logger = get_logger(__name__)


class ListenHandle:
    """
    Chain handle returned by `Mediator.listen`.

    Bound to exactly one registry entry; ``act`` always attaches to that
    entry, however many other chains are in progress.

    Examples
    --------
    >>> mediator.listen("order:created").act(create_invoice).act(audit)
    >>> mediator.listen("**:failure").act(notify).listen("**:success").act(notify)
    """

    __slots__ = ("_mediator", "_entry")

    def __init__(self, mediator: Mediator, entry: RegistryEntry) -> None:
        self._mediator = mediator
        self._entry = entry

    @property
    def matcher(self) -> Matcher:
        return self._entry.matcher

    @property
    def pattern(self) -> str:
        return self._entry.matcher.source

    def act(self, callback: ActorCallback, *, identifier: Optional[str] = None) -> ListenHandle:
        """
        Attach ``callback`` to this handle's pattern and return the handle.

        Raises
        ------
        InvalidActorError:
            If the callback cannot be invoked as ``callback(event, payload)``.
        ChainStateError:
            If the mediator was cleared since this handle was created.
        """
        self._mediator._attach(self._entry, callback, identifier)
        return self

    def listen(self, pattern: PatternSource) -> ListenHandle:
        """Start a new chain on the same mediator."""
        return self._mediator.listen(pattern)

    def unlisten(self) -> None:
        """Deactivate this handle's pattern; its actors are kept."""
        self._mediator.unlisten(self._entry.matcher)

    def __repr__(self) -> str:
        return f"ListenHandle(pattern={str(self._entry.matcher)!r}, actors={len(self._entry.actors)})"


class Mediator:
    """
    In-process event mediator.

    Thread Safety
    -------------
    ``listen``, ``act`` and ``unlisten`` may be called from any thread. A
    ``publish`` sees the registry as it was when matching started;
    registrations made by its actors apply from the next publish.

    Examples
    --------
    >>> mediator = Mediator()
    >>> mediator.listen("user:*:success").act(lambda event, payload: print(event.name))
    >>> mediator.publish("user:login:success", {"user_id": 7})
    user:login:success
    """

    def __init__(
        self,
        registry: Optional[PatternRegistry] = None,
        metrics: Optional[MediatorMetricsRecorder] = None,
        *,
        error_handler: Optional[ErrorHandler] = None,
        enable_metrics: Optional[bool] = None,
        validate_actors: Optional[bool] = None,
        warn_unknown_unlisten: Optional[bool] = None,
    ) -> None:
        """
        Initialize the mediator.

        Parameters
        ----------
        registry:
            Optional PatternRegistry instance. Creates default if None.
        metrics:
            Optional MediatorMetricsRecorder. Creates default if None.
        error_handler:
            Optional host callback receiving each ActorInvocationError.
        enable_metrics:
            Whether to collect metrics. Uses config if None.
        validate_actors:
            Whether ``act`` checks callback signatures. Uses config if None.
        warn_unknown_unlisten:
            Whether ``unlisten`` of an unknown pattern issues an
            UnknownPatternWarning. Uses config if None.
        """
        self._registry = registry if registry is not None else PatternRegistry()
        self._metrics = (
            metrics
            if metrics is not None
            else MediatorMetricsRecorder(max_event_names=self._load_max_event_names())
        )
        self._error_handler = error_handler

        self._metrics_enabled = self._load_flag(
            key="mediator.metrics_enabled", override=enable_metrics, default=True
        )
        self._validate_actors = self._load_flag(
            key="mediator.validate_actors", override=validate_actors, default=True
        )
        self._warn_unknown_unlisten = self._load_flag(
            key="mediator.warn_unknown_unlisten",
            override=warn_unknown_unlisten,
            default=True,
        )

        logger.debug(
            "Mediator initialized",
            extra={
                "metrics_enabled": self._metrics_enabled,
                "validate_actors": self._validate_actors,
                "warn_unknown_unlisten": self._warn_unknown_unlisten,
            },
        )

    # ------------------------------------------------------------------ #
    # Configuration Loading
    # ------------------------------------------------------------------ #

    @staticmethod
    def _load_flag(key: str, override: Optional[bool], default: bool) -> bool:
        """
        Resolve a boolean setting: override -> config -> default.
        """
        if override is not None:
            return bool(override)

        try:
            return bool(Config.get(key, default))
        except ConfigError as exc:
            logger.warning(
                "Failed to load mediator setting from config, using default",
                extra={
                    "config_key": key,
                    "default_value": default,
                    "error": str(exc),
                },
            )
            return default

    @staticmethod
    def _load_max_event_names() -> int:
        """
        Resolve the per-event metrics cap from config, falling back to the default.
        """
        try:
            value = int(Config.get("mediator.metrics_max_event_names", DEFAULT_MAX_EVENT_NAMES))
        except ConfigError as exc:
            logger.warning(
                "Failed to load metrics cap from config, using default",
                extra={"default_value": DEFAULT_MAX_EVENT_NAMES, "error": str(exc)},
            )
            return DEFAULT_MAX_EVENT_NAMES
        return max(1, value)

    # ------------------------------------------------------------------ #
    # Actor Validation
    # ------------------------------------------------------------------ #

    @staticmethod
    def _validate_actor(callback: ActorCallback) -> None:
        """
        Ensure callback can be called synchronously as ``callback(event, payload)``.

        This catches mis-registered actors at ``act`` time rather than at
        publish time, where the failure would only be logged.

        Raises
        ------
        InvalidActorError:
            If the callback is not callable, is a coroutine function, or
            cannot accept two positional arguments.
        """
        callback_name = getattr(callback, "__qualname__", None) or getattr(
            callback, "__name__", repr(callback)
        )

        if not callable(callback):
            raise InvalidActorError(callback_name, "actor is not callable")

        if inspect.iscoroutinefunction(callback) or inspect.iscoroutinefunction(
            getattr(callback, "__call__", None)
        ):
            raise InvalidActorError(
                callback_name, "coroutine functions cannot be actors; dispatch is synchronous"
            )

        try:
            sig = inspect.signature(callback)
        except (TypeError, ValueError):
            # Built-ins or C-level callables may not expose a signature cleanly.
            # Trust the caller in this case.
            return

        try:
            sig.bind(None, None)
        except TypeError:
            raise InvalidActorError(
                callback_name,
                f"actor must accept (event, payload), signature is {sig}",
            ) from None

    # ------------------------------------------------------------------ #
    # Registration API
    # ------------------------------------------------------------------ #

    def listen(self, pattern: PatternSource) -> ListenHandle:
        """
        Register (or reactivate) a pattern and return a handle for ``act``.

        Parameters
        ----------
        pattern:
            Wildcard string like "user:*:success" or "**:failure", or a
            compiled regular expression.

        Returns
        -------
        ListenHandle:
            Handle bound to the pattern's entry.

        Raises
        ------
        InvalidPatternError:
            If the pattern is malformed. The registry is not modified.

        Examples
        --------
        >>> mediator.listen("order:created").act(create_invoice)
        >>> mediator.listen(re.compile(r":failure$")).act(alert)
        """
        matcher = compile_pattern(pattern)
        entry, state = self._registry.activate(matcher)
        self._refresh_registry_metrics()

        logger.debug(
            "Mediator: listening",
            extra={
                "pattern": str(matcher),
                "pattern_kind": matcher.kind,
                "state": state.value,
                "actor_count": len(entry.actors),
            },
        )

        return ListenHandle(self, entry)

    def _attach(
        self,
        entry: RegistryEntry,
        callback: ActorCallback,
        identifier: Optional[str],
    ) -> None:
        if self._validate_actors:
            self._validate_actor(callback)

        actor = EventActor.from_callback(
            pattern=str(entry.matcher),
            callback=callback,
            identifier=identifier,
        )
        count = self._registry.attach(entry, actor)
        self._refresh_registry_metrics()

        logger.debug(
            "Mediator: actor attached",
            extra={
                "pattern": str(entry.matcher),
                "actor_id": actor.identifier,
                "actor_count": count,
            },
        )

    def unlisten(self, pattern: PatternSource) -> None:
        """
        Stop matching ``pattern``. Its actors are kept for a later ``listen``.

        Unknown patterns are a no-op; an UnknownPatternWarning is issued when
        enabled.

        Raises
        ------
        InvalidPatternError:
            If the pattern is malformed.

        Examples
        --------
        >>> mediator.unlisten("order:created")
        >>> mediator.listen("order:created")  # previous actors run again
        """
        matcher = compile_pattern(pattern)
        entry = self._registry.deactivate(matcher)

        if entry is None:
            logger.info(
                "Mediator: unlisten of unknown pattern ignored",
                extra={"pattern": str(matcher)},
            )
            if self._warn_unknown_unlisten:
                warnings.warn(
                    f"unlisten() of pattern '{matcher}' that was never listened",
                    UnknownPatternWarning,
                    stacklevel=2,
                )
            return

        self._refresh_registry_metrics()
        logger.debug(
            "Mediator: unlistened",
            extra={"pattern": str(matcher), "actor_count": len(entry.actors)},
        )

    def clear(self) -> None:
        """
        Remove all entries and actors.

        Primarily intended for tests or full re-initialization. Handles
        created before the call raise ChainStateError on ``act``.
        """
        total = self._registry.clear_all()

        if self._metrics_enabled:
            self._metrics.reset()

        logger.info(
            "Mediator: cleared all entries",
            extra={"previous_actor_count": total},
        )

    def set_error_handler(self, error_handler: Optional[ErrorHandler]) -> None:
        """Install (or remove, with None) the host's actor error handler."""
        self._error_handler = error_handler

    # ------------------------------------------------------------------ #
    # Publish API
    # ------------------------------------------------------------------ #

    def publish(self, event_name: str, payload: Any = None) -> None:
        """
        Dispatch an event to the actors of every active matching pattern.

        Actors run synchronously, entry by entry in registration order, and
        within an entry in attachment order. Each receives
        ``(Event(name, pattern), payload)`` with the payload unmodified.
        An actor raising an exception is reported through the error channel
        and the remaining actors still run.

        Parameters
        ----------
        event_name:
            Name of the event, e.g. "user:login:success".
        payload:
            Any value; passed through untouched.

        Raises
        ------
        TypeError:
            If ``event_name`` is not a string.

        Examples
        --------
        >>> mediator.publish("order:created", order)
        >>> mediator.publish("email:send:failure", error)
        """
        if not isinstance(event_name, str):
            raise TypeError(f"event_name must be a str, got {type(event_name).__name__}")

        if self._metrics_enabled:
            self._metrics.record_publish(event_name)

        with event_log_context(event_name, payload):
            matches = self._registry.match_event(event_name)

            if not matches:
                logger.debug(
                    "Mediator: no actors for event",
                    extra={"event_name": event_name},
                )
                return

            logger.debug(
                "Mediator: dispatching event",
                extra={
                    "event_name": event_name,
                    "pattern_count": len(matches),
                    "actor_count": sum(len(actors) for _, actors in matches),
                },
            )

            for matcher, actors in matches:
                event = Event(name=event_name, pattern=matcher.source)
                for actor in actors:
                    self._invoke(actor, event, payload)

    def _invoke(self, actor: EventActor, event: Event, payload: Any) -> None:
        if self._metrics_enabled:
            self._metrics.record_invocation(event.name)

        with actor_log_context(event, actor):
            try:
                actor.callback(event, payload)
            except Exception as exc:
                error = ActorInvocationError(
                    event_name=event.name,
                    pattern=event.pattern,
                    actor_id=actor.identifier,
                    original_error=exc,
                )
                error.__cause__ = exc
                handle_actor_error(
                    logger=logger,
                    error=error,
                    metrics=self._metrics if self._metrics_enabled else None,
                    error_handler=self._error_handler,
                )

    # ------------------------------------------------------------------ #
    # Metrics & Introspection
    # ------------------------------------------------------------------ #

    def _refresh_registry_metrics(self) -> None:
        if not self._metrics_enabled:
            return
        self._metrics.update_registry_counts(
            total_entries=len(self._registry),
            active_entries=self._registry.get_active_count(),
            total_actors=self._registry.get_total_actor_count(),
        )

    def get_metrics(self) -> Optional[MediatorMetrics]:
        """
        Return an immutable snapshot of current metrics, or None if disabled.
        """
        if not self._metrics_enabled:
            return None
        return self._metrics.snapshot()

    def get_metrics_summary(self) -> dict[str, Any]:
        """
        Get a formatted metrics summary (empty when metrics are disabled).

        Examples
        --------
        >>> summary = mediator.get_metrics_summary()
        >>> print(f"Error rate: {summary.get('error_rate', 0)}%")
        """
        metrics = self.get_metrics()
        if metrics is None:
            return {}
        return metrics.get_summary()

    def is_listening(self, pattern: PatternSource) -> bool:
        """Return True if ``pattern`` is registered and active."""
        return self._registry.is_active(compile_pattern(pattern))

    def get_patterns(self, *, active_only: bool = False) -> list[str]:
        """
        Return registered patterns in registration order.

        Regex patterns are rendered as ``/source/``.

        Examples
        --------
        >>> mediator.get_patterns()
        ['order:created', '**:failure', '/:success$/']
        """
        return self._registry.get_patterns(active_only=active_only)

    def get_actor_count(self, event_name: Optional[str] = None) -> int:
        """
        Get the number of actors.

        Parameters
        ----------
        event_name:
            If provided, returns how many actor calls a publish of this
            event would make right now. Otherwise returns the total number
            of attached actors.
        """
        if event_name is not None:
            return self._registry.get_actor_count_for_event(event_name)
        return self._registry.get_total_actor_count()

    def __len__(self) -> int:
        return len(self._registry)

    def __repr__(self) -> str:
        return (
            f"Mediator(entries={len(self._registry)}, "
            f"active={self._registry.get_active_count()}, "
            f"actors={self._registry.get_total_actor_count()})"
        )

    # ------------------------------------------------------------------ #
    # Configuration Toggles
    # ------------------------------------------------------------------ #

    def enable_metrics(self) -> None:
        """Enable metrics collection."""
        self._metrics_enabled = True
        self._refresh_registry_metrics()
        logger.info("Mediator: metrics enabled")

    def disable_metrics(self) -> None:
        """Disable metrics collection."""
        self._metrics_enabled = False
        logger.info("Mediator: metrics disabled")
