"""
Configuration for the mediator.

Usage
-----
>>> from mediator.config import Config
>>> Config.ensure_loaded()
>>> Config.METRICS_ENABLED
True
"""

from mediator.config.config import Config, Environment
from mediator.config.errors import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

__all__ = [
    "Config",
    "Environment",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
]
