"""
Pytest Configuration and Fixtures for the Mediator Tests
=========================================================

Purpose
-------
Centralized test fixtures for the mediator test suite.

Responsibilities
----------------
- Test environment flags
- A fresh Mediator per test (no shared registry between tests)
- An actor recorder for asserting invocation order and arguments
- Isolation of class-level Config state and MEDIATOR_* environment variables
"""

from __future__ import annotations

import os
from typing import Any, Callable, Generator

import pytest

from mediator import Event, Mediator
from mediator.config.config import Config
from mediator.logging.logger import clear_log_context


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ["MEDIATOR_ENVIRONMENT"] = "testing"
    os.environ["MEDIATOR_LOG_LEVEL"] = "DEBUG"


@pytest.fixture(autouse=True)
def _isolate_global_state() -> Generator[None, None, None]:
    """Force Config to reload and drop log context after every test."""
    clear_log_context()
    yield
    Config._loaded = False
    clear_log_context()


# ============================================================================
# MEDIATOR FIXTURES
# ============================================================================


@pytest.fixture
def mediator() -> Mediator:
    """Fresh mediator with metrics on and actor validation on."""
    return Mediator(
        enable_metrics=True,
        validate_actors=True,
        warn_unknown_unlisten=True,
    )


class ActorRecorder:
    """Collects actor calls as (tag, event, payload) tuples."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, Event, Any]] = []

    def actor(self, tag: Any) -> Callable[[Event, Any], None]:
        def _actor(event: Event, payload: Any) -> None:
            self.calls.append((tag, event, payload))

        _actor.__qualname__ = f"actor_{tag}"
        return _actor

    @property
    def tags(self) -> list[Any]:
        return [tag for tag, _, _ in self.calls]

    def names(self) -> list[str]:
        return [event.name for _, event, _ in self.calls]

    def reset(self) -> None:
        self.calls.clear()


@pytest.fixture
def recorder() -> ActorRecorder:
    return ActorRecorder()


# ============================================================================
# CONFIG FIXTURES
# ============================================================================


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every MEDIATOR_* variable so Config sees only built-in defaults."""
    for key in list(os.environ):
        if key.startswith("MEDIATOR_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
