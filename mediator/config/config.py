"""
Static configuration management for the mediator.

Purpose
-------
Provides centralized configuration loaded from environment variables (with
.env support) and an optional YAML file, with typed parsing and safe
fallbacks. Values are read once at load time and exposed as class
attributes.

Responsibilities
----------------
- Load configuration from environment variables, reading the host's .env
  on load (never at import)
- Merge an optional YAML file named by MEDIATOR_CONFIG_FILE
- Provide type-safe access to all configuration values
- Track which values came from the environment versus defaults

Non-Responsibilities
--------------------
- Registry state (owned by each Mediator instance)
- Logging setup (handled by mediator.logging.logger)

Architecture Notes
------------------
- Singleton pattern via class methods (no instantiation)
- Loads lazily on first access via Config.ensure_loaded()
- Precedence: environment -> YAML -> built-in default
- Malformed environment values fall back and are recorded as
  validation errors; a malformed YAML file raises ConfigLoadError

Environment Variables
---------------------
- MEDIATOR_ENVIRONMENT: Environment type (default: development)
- MEDIATOR_LOG_LEVEL: Logging level (default: INFO)
- MEDIATOR_LOG_JSON: Force JSON console logs (default: production only)
- MEDIATOR_LOG_COLORS: Colored console logs in dev (default: true)
- MEDIATOR_LOG_DIR: Directory for the rotating JSON log file (default: none)
- MEDIATOR_METRICS_ENABLED: Collect dispatch metrics (default: true)
- MEDIATOR_VALIDATE_ACTORS: Check actor signatures at act() (default: true)
- MEDIATOR_WARN_UNKNOWN_UNLISTEN: Warn on unlisten of unknown pattern
  (default: true)
- MEDIATOR_METRICS_MAX_EVENT_NAMES: Distinct event names tracked per
  metrics map before overflow is bucketed (default: 1000)
- MEDIATOR_CONFIG_FILE: Path to a YAML file with the same settings
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from mediator.config.errors import ConfigLoadError, ConfigValidationError

_TRUE_VALUES = {"true", "yes", "1", "on"}
_FALSE_VALUES = {"false", "no", "0", "off"}


class Environment(Enum):
    """Deployment environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Parse environment string safely with fallback.

        Example
        -------
        >>> Environment.from_string("production") == Environment.PRODUCTION
        True
        >>> Environment.from_string("invalid") == Environment.DEVELOPMENT
        True
        """
        try:
            return cls(value.lower())
        except ValueError:
            logging.warning(
                f"Unknown environment '{value}', defaulting to development"
            )
            return cls.DEVELOPMENT


class _ConfigLoadMetrics:
    """
    Internal metrics tracker for configuration loading.

    Tracks which configuration values came from environment variables
    versus YAML or defaults, and any validation errors encountered.
    """

    def __init__(self):
        self.env_vars_loaded: Dict[str, bool] = {}
        self.validation_errors: Dict[str, str] = {}
        self.defaults_used: Dict[str, Any] = {}
        self.last_reload: Optional[str] = None

    def record_env_load(self, key: str, from_env: bool, default: Any):
        """Record whether a config value came from environment."""
        self.env_vars_loaded[key] = from_env
        if not from_env:
            self.defaults_used[key] = default

    def record_validation_error(self, key: str, error: str):
        """Record a validation error."""
        self.validation_errors[key] = error

    def get_summary(self) -> Dict[str, Any]:
        """Get configuration loading summary."""
        return {
            "total_configs": len(self.env_vars_loaded),
            "from_environment": sum(1 for v in self.env_vars_loaded.values() if v),
            "from_defaults": sum(1 for v in self.env_vars_loaded.values() if not v),
            "validation_errors": len(self.validation_errors),
            "defaults_used": list(self.defaults_used.keys()),
            "last_reload": self.last_reload,
        }


class Config:
    """
    Centralized configuration for the mediator.

    Usage
    -----
    >>> Config.ensure_loaded()
    >>> Config.METRICS_ENABLED
    True
    >>> Config.get("mediator.validate_actors", True)
    True
    """

    # =========================================================================
    # Internal State
    # =========================================================================

    _metrics: Optional[_ConfigLoadMetrics] = None
    _loaded: bool = False
    _values: Dict[str, Any] = {}

    # =========================================================================
    # Environment / Logging
    # =========================================================================

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True
    LOG_DIR: Optional[Path] = None

    # =========================================================================
    # Mediator Behaviour
    # =========================================================================

    METRICS_ENABLED: bool = True
    VALIDATE_ACTORS: bool = True
    WARN_UNKNOWN_UNLISTEN: bool = True
    METRICS_MAX_EVENT_NAMES: int = 1000

    CONFIG_FILE: Optional[Path] = None

    # =========================================================================
    # Parsing Helpers
    # =========================================================================

    @classmethod
    def _init_metrics(cls):
        if cls._metrics is None:
            cls._metrics = _ConfigLoadMetrics()

    @classmethod
    def _parse_bool(cls, raw_value: str) -> Optional[bool]:
        normalized = raw_value.lower().strip()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        return None

    @classmethod
    def _safe_bool(cls, key: str, default: bool) -> bool:
        """
        Safely parse boolean from environment.

        Recognizes: true/false, yes/no, 1/0, on/off (case-insensitive).

        Example
        -------
        >>> Config._safe_bool("MEDIATOR_METRICS_ENABLED", True)
        True
        """
        cls._init_metrics()

        raw_value = os.getenv(key)

        if raw_value is None:
            cls._metrics.record_env_load(key, False, default)
            return default

        value = cls._parse_bool(raw_value)
        if value is None:
            error = f"{key}='{raw_value}' is not a valid boolean, using default {default}"
            logging.warning(error)
            cls._metrics.record_validation_error(key, error)
            return default

        cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _safe_optional_bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        """Like `_safe_bool`, but ``None`` is a valid default meaning "auto"."""
        cls._init_metrics()

        raw_value = os.getenv(key)
        if raw_value is None:
            cls._metrics.record_env_load(key, False, default)
            return default

        value = cls._parse_bool(raw_value)
        if value is None:
            error = f"{key}='{raw_value}' is not a valid boolean, using default {default}"
            logging.warning(error)
            cls._metrics.record_validation_error(key, error)
            return default

        cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _safe_int(cls, key: str, default: int, min_val: Optional[int] = None) -> int:
        """
        Safely parse an integer from the environment.

        Non-integers and values below ``min_val`` fall back to ``default``
        and are recorded as validation errors.

        Example
        -------
        >>> Config._safe_int("MEDIATOR_METRICS_MAX_EVENT_NAMES", 1000, min_val=1)
        1000
        """
        cls._init_metrics()

        raw_value = os.getenv(key)
        if raw_value is None or not raw_value.strip():
            cls._metrics.record_env_load(key, False, default)
            return default

        try:
            value = int(raw_value)
        except ValueError:
            value = None

        if value is None or (min_val is not None and value < min_val):
            error = f"{key}='{raw_value}' is not an integer >= {min_val}, using default {default}"
            logging.warning(error)
            cls._metrics.record_validation_error(key, error)
            return default

        cls._metrics.record_env_load(key, True, default)
        return value

    @classmethod
    def _safe_str(cls, key: str, default: str) -> str:
        """Get a string from the environment, treating blank values as unset."""
        cls._init_metrics()

        raw_value = os.getenv(key)
        if raw_value is None or not raw_value.strip():
            cls._metrics.record_env_load(key, False, default)
            return default

        cls._metrics.record_env_load(key, True, default)
        return raw_value.strip()

    @classmethod
    def _safe_optional_path(cls, key: str) -> Optional[Path]:
        raw_value = cls._safe_str(key, "")
        return Path(raw_value).expanduser() if raw_value else None

    # =========================================================================
    # YAML
    # =========================================================================

    @staticmethod
    def _load_yaml(path: Path) -> Dict[str, Any]:
        """
        Load the YAML configuration file.

        Raises
        ------
        ConfigLoadError:
            If the file is missing, unparsable, or its root is not a mapping.
        """
        try:
            with path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except OSError as exc:
            raise ConfigLoadError(f"Cannot read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigLoadError(f"Invalid YAML in config file {path}: {exc}") from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"Config file {path} must contain a mapping, got {type(data).__name__}"
            )
        return data

    @staticmethod
    def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
        flat: Dict[str, Any] = {}
        for key, value in data.items():
            dotted = f"{prefix}{key}"
            if isinstance(value, dict):
                flat.update(Config._flatten(value, prefix=f"{dotted}."))
            else:
                flat[dotted] = value
        return flat

    @classmethod
    def _yaml_bool(cls, yaml_values: Dict[str, Any], key: str, default: Optional[bool]) -> Optional[bool]:
        if key not in yaml_values:
            return default
        value = yaml_values[key]
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            parsed = cls._parse_bool(value)
            if parsed is not None:
                return parsed
        raise ConfigValidationError(
            f"Config key '{key}' must be a boolean, got {value!r}"
        )

    @classmethod
    def _yaml_int(cls, yaml_values: Dict[str, Any], key: str, default: int) -> int:
        if key not in yaml_values:
            return default
        value = yaml_values[key]
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError(
                f"Config key '{key}' must be an integer, got {value!r}"
            )
        return value

    @classmethod
    def _yaml_str(cls, yaml_values: Dict[str, Any], key: str, default: str) -> str:
        if key not in yaml_values:
            return default
        value = yaml_values[key]
        if not isinstance(value, str):
            raise ConfigValidationError(
                f"Config key '{key}' must be a string, got {value!r}"
            )
        return value

    # =========================================================================
    # Configuration Loading
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """
        Load all configuration from the environment and optional YAML file.

        Can be called again to pick up changed environment variables.

        Raises
        ------
        ConfigLoadError:
            If MEDIATOR_CONFIG_FILE is set but cannot be loaded.
        ConfigValidationError:
            If a YAML value has the wrong type.
        """
        # The host's .env, searched from the working directory; variables
        # already in the environment win over it.
        load_dotenv(find_dotenv(usecwd=True), override=False)
        cls._metrics = _ConfigLoadMetrics()

        cls.CONFIG_FILE = cls._safe_optional_path("MEDIATOR_CONFIG_FILE")
        yaml_values = cls._flatten(cls._load_yaml(cls.CONFIG_FILE)) if cls.CONFIG_FILE else {}

        cls.ENVIRONMENT = Environment.from_string(
            cls._safe_str(
                "MEDIATOR_ENVIRONMENT",
                cls._yaml_str(yaml_values, "environment", "development"),
            )
        ).value

        log_level = cls._safe_str(
            "MEDIATOR_LOG_LEVEL", cls._yaml_str(yaml_values, "logging.level", "INFO")
        ).upper()
        if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            error = f"Invalid log level '{log_level}', using INFO"
            logging.warning(error)
            cls._metrics.record_validation_error("MEDIATOR_LOG_LEVEL", error)
            log_level = "INFO"
        cls.LOG_LEVEL = log_level

        cls.LOG_JSON = cls._safe_optional_bool(
            "MEDIATOR_LOG_JSON", cls._yaml_bool(yaml_values, "logging.json", None)
        )
        cls.LOG_COLORS = cls._safe_bool(
            "MEDIATOR_LOG_COLORS", cls._yaml_bool(yaml_values, "logging.colors", True)
        )
        cls.LOG_DIR = cls._safe_optional_path("MEDIATOR_LOG_DIR")
        if cls.LOG_DIR is None and "logging.dir" in yaml_values:
            cls.LOG_DIR = Path(cls._yaml_str(yaml_values, "logging.dir", "")).expanduser()

        cls.METRICS_ENABLED = cls._safe_bool(
            "MEDIATOR_METRICS_ENABLED",
            cls._yaml_bool(yaml_values, "mediator.metrics_enabled", True),
        )
        cls.VALIDATE_ACTORS = cls._safe_bool(
            "MEDIATOR_VALIDATE_ACTORS",
            cls._yaml_bool(yaml_values, "mediator.validate_actors", True),
        )
        cls.WARN_UNKNOWN_UNLISTEN = cls._safe_bool(
            "MEDIATOR_WARN_UNKNOWN_UNLISTEN",
            cls._yaml_bool(yaml_values, "mediator.warn_unknown_unlisten", True),
        )
        cls.METRICS_MAX_EVENT_NAMES = cls._safe_int(
            "MEDIATOR_METRICS_MAX_EVENT_NAMES",
            cls._yaml_int(yaml_values, "mediator.metrics_max_event_names", 1000),
            min_val=1,
        )

        cls._values = {
            **yaml_values,
            "environment": cls.ENVIRONMENT,
            "logging.level": cls.LOG_LEVEL,
            "logging.json": cls.LOG_JSON,
            "logging.colors": cls.LOG_COLORS,
            "logging.dir": str(cls.LOG_DIR) if cls.LOG_DIR else None,
            "mediator.metrics_enabled": cls.METRICS_ENABLED,
            "mediator.validate_actors": cls.VALIDATE_ACTORS,
            "mediator.warn_unknown_unlisten": cls.WARN_UNKNOWN_UNLISTEN,
            "mediator.metrics_max_event_names": cls.METRICS_MAX_EVENT_NAMES,
        }

        cls._metrics.last_reload = datetime.now(timezone.utc).isoformat()
        cls._loaded = True

    @classmethod
    def ensure_loaded(cls) -> None:
        """Load configuration once, on first use."""
        if not cls._loaded:
            cls.load()

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Read a merged configuration value by dotted key.

        Example
        -------
        >>> Config.get("mediator.metrics_enabled", True)
        True
        """
        cls.ensure_loaded()
        value = cls._values.get(key)
        return default if value is None else value

    # =========================================================================
    # Environment Checks
    # =========================================================================

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production environment."""
        return cls.ENVIRONMENT.lower() == "production"

    @classmethod
    def is_testing(cls) -> bool:
        """Check if running in testing environment."""
        return cls.ENVIRONMENT.lower() == "testing"

    # =========================================================================
    # Metrics & Summary
    # =========================================================================

    @classmethod
    def get_metrics(cls) -> Optional[_ConfigLoadMetrics]:
        """Get configuration loading metrics."""
        return cls._metrics

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """
        Get configuration summary for debugging.

        Example
        -------
        >>> Config.get_config_summary()["environment"]
        'development'
        """
        cls.ensure_loaded()
        return {
            "environment": cls.ENVIRONMENT,
            "log_level": cls.LOG_LEVEL,
            "log_json": cls.LOG_JSON,
            "log_dir": str(cls.LOG_DIR) if cls.LOG_DIR else None,
            "metrics_enabled": cls.METRICS_ENABLED,
            "validate_actors": cls.VALIDATE_ACTORS,
            "warn_unknown_unlisten": cls.WARN_UNKNOWN_UNLISTEN,
            "metrics_max_event_names": cls.METRICS_MAX_EVENT_NAMES,
            "config_file": str(cls.CONFIG_FILE) if cls.CONFIG_FILE else None,
        }
