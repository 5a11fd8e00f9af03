"""
Host emitter bridge.

Purpose
-------
Connects a host's own event-emission function to a Mediator without
replacing it: the returned wrapper publishes to the mediator first and then
performs the host's native emission unchanged, returning its result.

Works for plain functions and for coroutine functions; for the latter the
bridge is itself a coroutine function (mediator dispatch stays synchronous,
the host emission is awaited).

Examples
--------
>>> emit = bridge(mediator, signal_bus.emit)
>>> emit("order:created", order)            # mediator actors, then signal_bus.emit
>>> broadcast = bridge(mediator, hub.broadcast)   # async def broadcast(...)
>>> await broadcast("user:login:success", user)
"""

from __future__ import annotations

import functools
import inspect
from typing import Any, Callable

from mediator.event.bus import Mediator
from mediator.logging.logger import get_logger

logger = get_logger(__name__)


def _payload_of(args: tuple[Any, ...]) -> Any:
    return args[0] if args else None


def bridge(mediator: Mediator, emit: Callable[..., Any]) -> Callable[..., Any]:
    """
    Wrap ``emit`` so every emission is also published to ``mediator``.

    The wrapper takes ``(name, *args, **kwargs)``. The mediator receives
    ``(name, args[0])``, or ``(name, None)`` when no positional argument
    follows the name; ``emit`` receives every argument exactly as given.
    Exceptions raised by ``emit`` propagate to the caller.

    Raises
    ------
    TypeError:
        If ``emit`` is not callable.
    """
    if not callable(emit):
        raise TypeError(f"emit must be callable, got {type(emit).__name__}")

    emit_name = getattr(emit, "__qualname__", repr(emit))

    if inspect.iscoroutinefunction(emit):

        @functools.wraps(emit)
        async def async_bridged(name: str, *args: Any, **kwargs: Any) -> Any:
            mediator.publish(name, _payload_of(args))
            return await emit(name, *args, **kwargs)

        logger.debug("Mediator bridge installed", extra={"emitter": emit_name, "is_async": True})
        return async_bridged

    @functools.wraps(emit)
    def bridged(name: str, *args: Any, **kwargs: Any) -> Any:
        mediator.publish(name, _payload_of(args))
        return emit(name, *args, **kwargs)

    logger.debug("Mediator bridge installed", extra={"emitter": emit_name, "is_async": False})
    return bridged
