"""
Error handling helpers for mediator dispatch.

Purpose
-------
Provides the single reporting path for actor failures, ensuring consistent
logging, metrics recording, and error isolation.

Responsibilities
----------------
- Log actor failures with full context and stack trace
- Update metrics when errors occur
- Forward the wrapped failure to the host's error handler, if any
- Never let reporting itself abort a publish
"""

from __future__ import annotations

from logging import Logger
from typing import Callable, Optional

from mediator.event.metrics import MediatorMetricsRecorder
from mediator.exceptions import ActorInvocationError, describe_error

ErrorHandler = Callable[[ActorInvocationError], None]


def handle_actor_error(
    *,
    logger: Logger,
    error: ActorInvocationError,
    metrics: Optional[MediatorMetricsRecorder],
    error_handler: Optional[ErrorHandler],
) -> None:
    """
    Report an actor failure.

    Parameters
    ----------
    logger:
        Logger instance to use for error logging.
    error:
        The wrapped actor failure. Its ``__cause__`` is the original error.
    metrics:
        Optional recorder to update. If None, metrics are skipped.
    error_handler:
        Optional host callback receiving the wrapped error.

    Notes
    -----
    This function never raises ``Exception``. A failing ``error_handler`` is
    logged and otherwise ignored.

    Examples
    --------
    >>> try:
    ...     actor.callback(event, payload)
    ... except Exception as exc:
    ...     error = ActorInvocationError(event.name, event.pattern, actor.identifier, exc)
    ...     handle_actor_error(logger=logger, error=error, metrics=recorder, error_handler=None)
    """
    if metrics is not None:
        metrics.record_error(error.event_name)

    logger.error(
        "Mediator actor error",
        extra={
            "event_name": error.event_name,
            "pattern": error.pattern,
            "actor_id": error.actor_id,
            "error": error.details["error"],
            "error_type": type(error.original_error).__name__,
        },
        exc_info=(type(error.original_error), error.original_error, error.original_error.__traceback__),
    )

    if error_handler is None:
        return

    try:
        error_handler(error)
    except Exception as exc:
        logger.error(
            "Mediator error handler failed",
            extra={
                "event_name": error.event_name,
                "actor_id": error.actor_id,
                "error": describe_error(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )
