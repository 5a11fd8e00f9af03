"""
Structured logging for the mediator.

Usage
-----
>>> from mediator.logging import get_logger, setup_logging
>>> setup_logging()  # host startup, optional
>>> logger = get_logger(__name__)
"""

from mediator.logging.logger import (
    DISPATCH_FIELDS,
    ConsoleFormatter,
    ContextFilter,
    JSONFormatter,
    LogContext,
    clear_log_context,
    get_log_context,
    get_logger,
    is_logging_configured,
    set_log_context,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "DISPATCH_FIELDS",
    "ConsoleFormatter",
    "ContextFilter",
    "JSONFormatter",
    "LogContext",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "is_logging_configured",
    "set_log_context",
    "setup_logging",
    "shutdown_logging",
]
