"""
Mediator Logging Subsystem

Purpose
-------
Stdlib logging with dispatch-aware context:

- Every record emitted while a publish is running carries the dispatch
  fields (`DISPATCH_FIELDS`): the correlation id shared by nested publishes,
  the event name, and, inside an actor, the matched pattern and actor id.
- Fields live in a ContextVar, so they follow threads and asyncio tasks
  without being passed around.
- Output goes through a QueueHandler so actors never block on slow streams.

Design Decisions
----------------
- The mediator is a library: importing it never touches the root logger.
  Hosts that want this output call setup_logging() once at startup.
- One formatter switch: JSON (production, or MEDIATOR_LOG_JSON=true) or a
  single-line console format that prints the dispatch fields inline.
- The optional file under MEDIATOR_LOG_DIR is always JSON.

Dependencies
------------
- mediator.config.config.Config
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from typing import Any, Dict, Optional

from mediator.config.config import Config

DISPATCH_FIELDS = (
    "correlation_id",
    "component",
    "operation",
    "event_name",
    "pattern",
    "actor_id",
)

# Printed for dispatch fields that are not set.
MISSING = "-"

_context: ContextVar[Dict[str, Any]] = ContextVar("mediator_log_context", default={})

_queue_handler: Optional[QueueHandler] = None
_listener: Optional[QueueListener] = None


# ============================================================================
# Context
# ============================================================================


def new_correlation_id() -> str:
    return uuid.uuid4().hex[:8]


class LogContext:
    """
    Bind log fields for the duration of a ``with`` (or ``async with``) block.

    Nested contexts inherit every field of the enclosing one, including its
    correlation id; a new id is generated only at the outermost level.

    Examples
    --------
    >>> with LogContext(component="billing", operation="charge"):
    ...     mediator.publish("invoice:paid", invoice)  # same correlation id
    """

    def __init__(
        self,
        component: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **fields: Any,
    ) -> None:
        self._fields: Dict[str, Any] = dict(fields)
        if component is not None:
            self._fields["component"] = component
        if operation is not None:
            self._fields["operation"] = operation
        if correlation_id is not None:
            self._fields["correlation_id"] = correlation_id
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        merged = {**_context.get(), **self._fields}
        merged.setdefault("correlation_id", new_correlation_id())
        self._token = _context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def get_log_context() -> Dict[str, Any]:
    return dict(_context.get())


def set_log_context(**fields: Any) -> None:
    """Merge ``fields`` into the current context until it is cleared or reset."""
    _context.set({**_context.get(), **{k: v for k, v in fields.items() if v is not None}})


def clear_log_context() -> None:
    _context.set({})


# ============================================================================
# Filter & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    """
    Stamp `DISPATCH_FIELDS` onto every record.

    Context values win; otherwise a value passed via ``extra`` is kept;
    otherwise the field is `MISSING`.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _context.get()
        for name in DISPATCH_FIELDS:
            value = context.get(name)
            if value is None:
                value = getattr(record, name, None)
            setattr(record, name, MISSING if value is None else value)
        return True


# Attributes every LogRecord has; anything else on a record came from `extra`.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """One JSON object per line: core fields, set dispatch fields, then extras."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in DISPATCH_FIELDS:
            value = getattr(record, name, None)
            if value not in (None, MISSING):
                data[name] = value

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in DISPATCH_FIELDS and not key.startswith("_")
        }
        if extra:
            data["extra"] = extra

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            data["exception"] = record.exc_text

        return json.dumps(data, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable single line with the dispatch fields inline::

        12:00:01 INFO  mediator.event.bus [3f2a9c1e user:login -> actor_x] Mediator actor error
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[90m",
        "INFO": "\033[94m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "CRITICAL": "\033[91m\033[1m",
    }
    RESET = "\033[0m"

    def __init__(self, colors: bool = False) -> None:
        super().__init__(datefmt="%H:%M:%S")
        self.colors = colors

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        level = f"{record.levelname:<5}"
        if self.colors and record.levelname in self.LEVEL_COLORS:
            level = f"{self.LEVEL_COLORS[record.levelname]}{level}{self.RESET}"

        scope = " ".join(
            str(value)
            for value in (
                getattr(record, "correlation_id", MISSING),
                getattr(record, "event_name", MISSING),
            )
        )
        actor_id = getattr(record, "actor_id", MISSING)
        if actor_id != MISSING:
            scope = f"{scope} -> {actor_id}"

        line = f"{self.formatTime(record, self.datefmt)} {level} {record.name} [{scope}] {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        elif record.exc_text:
            line = f"{line}\n{record.exc_text}"
        return line


def build_formatter() -> logging.Formatter:
    """Pick the console formatter from Config."""
    Config.ensure_loaded()
    use_json = Config.LOG_JSON if Config.LOG_JSON is not None else Config.is_production()
    if use_json:
        return JSONFormatter()
    return ConsoleFormatter(colors=Config.LOG_COLORS and sys.stdout.isatty())


# ============================================================================
# Setup
# ============================================================================


def setup_logging() -> None:
    """
    Route the root logger through a queue to stdout (and the JSON file
    under MEDIATOR_LOG_DIR, when set). Calling it again is a no-op.
    """
    global _queue_handler, _listener

    if _queue_handler is not None:
        return

    Config.ensure_loaded()
    level = getattr(logging, Config.LOG_LEVEL, logging.INFO)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(build_formatter())
    handlers = [console]

    if Config.LOG_DIR is not None:
        Config.LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            Config.LOG_DIR / "mediator.json.log",
            when="midnight",
            backupCount=1,
            encoding="utf-8",
            utc=True,
        )
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    _listener = QueueListener(queue.Queue(10_000), *handlers, respect_handler_level=True)
    _queue_handler = QueueHandler(_listener.queue)
    _queue_handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(_queue_handler)
    _listener.start()

    logging.getLogger(__name__).debug(
        "Logging initialized",
        extra={"log_level": Config.LOG_LEVEL, "log_dir": str(Config.LOG_DIR) if Config.LOG_DIR else None},
    )


def shutdown_logging() -> None:
    """Flush and detach what setup_logging() installed."""
    global _queue_handler, _listener

    if _queue_handler is None:
        return

    logging.getLogger().removeHandler(_queue_handler)
    _queue_handler.close()
    _queue_handler = None

    if _listener is not None:
        _listener.stop()
        for handler in _listener.handlers:
            handler.close()
        _listener = None


def is_logging_configured() -> bool:
    return _queue_handler is not None


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)
