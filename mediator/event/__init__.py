"""
Event mediation for the mediator package.

Purpose
-------
Pattern compilation, the pattern registry, and the Mediator dispatcher with
its chainable listen / act / unlisten API.
"""

from mediator.event.adapter import bridge
from mediator.event.bus import ListenHandle, Mediator
from mediator.event.metrics import MediatorMetrics
from mediator.event.patterns import (
    Matcher,
    RegexSpec,
    WildcardSpec,
    compile_pattern,
)
from mediator.event.types import ActorCallback, Event, PatternSource

__all__ = [
    "Mediator",
    "ListenHandle",
    "MediatorMetrics",
    "Event",
    "ActorCallback",
    "PatternSource",
    "Matcher",
    "WildcardSpec",
    "RegexSpec",
    "compile_pattern",
    "bridge",
]
