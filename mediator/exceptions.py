"""
Exceptions for the wildcard mediator.

Purpose
-------
Define the structured exception hierarchy raised (or reported) by the
mediator: malformed patterns, rejected actors, and actor failures captured
during dispatch.

Design Notes
------------
- All mediator exceptions inherit from `MediatorError`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `error_code`: short, stable identifier for programmatic use
- `InvalidPatternError` and `InvalidActorError` also subclass `ValueError` /
  `TypeError` so callers catching the builtin categories keep working.
- `UnknownPatternWarning` is a warning category, never raised as an error.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


def describe_error(exc: BaseException) -> str:
    """
    Render ``exc`` for messages and log fields without trusting its ``__str__``.

    Falls back to ``repr`` and then to the bare type name when rendering fails.
    """
    try:
        return str(exc)
    except Exception:
        pass
    try:
        return repr(exc)
    except Exception:
        return f"<unprintable {type(exc).__name__}>"


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class MediatorError(Exception):
    """
    Base exception for all mediator errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        error_code: Optional code for programmatic handling

    Example:
        >>> raise MediatorError("Mediator misuse", {"pattern": "user:*"})
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}"
            ")"
        )


class InvalidPatternError(MediatorError, ValueError):
    """
    Raised when a pattern cannot be compiled.

    Covers wildcard strings with three or more consecutive ``*`` and values
    that are neither a wildcard string nor a regular expression. Raised
    synchronously by ``listen``; the registry is left untouched.

    Args:
        pattern: The offending pattern as supplied by the caller
        reason: Why the pattern was rejected
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING

    def __init__(self, pattern: Any, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(
            f'Invalid pattern "{pattern}": {reason}',
            details={"pattern": str(pattern), "reason": reason},
            error_code="INVALID_PATTERN",
        )


class InvalidActorError(MediatorError, TypeError):
    """
    Raised by ``act`` when a callback cannot be used as an actor.

    Args:
        actor_name: Qualified name of the rejected callback
        reason: Why the callback was rejected
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING

    def __init__(self, actor_name: str, reason: str) -> None:
        self.actor_name = actor_name
        self.reason = reason
        super().__init__(
            f"Invalid actor '{actor_name}': {reason}",
            details={"actor": actor_name, "reason": reason},
            error_code="INVALID_ACTOR",
        )


class ChainStateError(MediatorError, RuntimeError):
    """
    Raised by ``act`` on a handle whose entry is no longer registered.

    A handle is bound to the entry produced by its ``listen`` call. After
    ``Mediator.clear()`` that entry is discarded, and acting on the old
    handle would attach an actor nothing can ever reach.

    Args:
        pattern: Source text of the handle's pattern
    """

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        super().__init__(
            f"Cannot act on '{pattern}': its entry was cleared; call listen() again",
            details={"pattern": pattern},
            error_code="STALE_CHAIN",
        )


class ActorInvocationError(MediatorError):
    """
    Wraps an exception raised by an actor during ``publish``.

    Never propagated to the publisher. It is handed to the error channel
    (logs, metrics, optional host error handler) and dispatch continues with
    the remaining actors.

    Args:
        event_name: Name of the event being dispatched
        pattern: Canonical source of the entry whose actor failed
        actor_id: Identifier of the failing actor
        original_error: The exception the actor raised
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR

    def __init__(
        self,
        event_name: str,
        pattern: str,
        actor_id: str,
        original_error: Exception,
    ) -> None:
        self.event_name = event_name
        self.pattern = pattern
        self.actor_id = actor_id
        self.original_error = original_error
        rendered = describe_error(original_error)
        super().__init__(
            f"Actor '{actor_id}' failed for event '{event_name}': {rendered}",
            details={
                "event_name": event_name,
                "pattern": pattern,
                "actor_id": actor_id,
                "error": rendered,
                "error_type": type(original_error).__name__,
            },
            error_code="ACTOR_INVOCATION_FAILED",
        )


class UnknownPatternWarning(UserWarning):
    """Issued when ``unlisten`` targets a pattern that was never listened."""
