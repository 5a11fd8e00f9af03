"""
Wildcard mediator.

An in-process event mediator: modules register interest in event names with
wildcard strings or regular expressions, the host publishes events, and the
mediator invokes every matching actor.

Usage
-----
>>> from mediator import Mediator
>>> mediator = Mediator()
>>> mediator.listen("order:*:success").act(send_receipt)
>>> mediator.publish("order:payment:success", order)
"""

from mediator.event import (
    Event,
    ListenHandle,
    Matcher,
    Mediator,
    RegexSpec,
    WildcardSpec,
    bridge,
    compile_pattern,
)
from mediator.exceptions import (
    ActorInvocationError,
    ChainStateError,
    InvalidActorError,
    InvalidPatternError,
    MediatorError,
    UnknownPatternWarning,
)

__version__ = "1.0.0"

__all__ = [
    "Mediator",
    "ListenHandle",
    "Event",
    "Matcher",
    "WildcardSpec",
    "RegexSpec",
    "compile_pattern",
    "bridge",
    "MediatorError",
    "InvalidPatternError",
    "InvalidActorError",
    "ChainStateError",
    "ActorInvocationError",
    "UnknownPatternWarning",
]
