"""
Configuration error hierarchy for the mediator.

Exception Hierarchy
-------------------
ConfigError (base)
├── ConfigValidationError (type / value validation failures)
└── ConfigLoadError (YAML file missing, unreadable or malformed)
"""


class ConfigError(Exception):
    """
    Base exception for all configuration-related errors.

    Example
    -------
    >>> try:
    ...     Config.load()
    ... except ConfigError as e:
    ...     logger.error(f"Config operation failed: {e}")
    """
    pass


class ConfigValidationError(ConfigError):
    """
    Raised when a configuration value has the wrong type.

    This exception is raised when a YAML value cannot be interpreted as
    the type its key requires (for example a list where a boolean is
    expected).
    """
    pass


class ConfigLoadError(ConfigError):
    """
    Raised when the YAML configuration file cannot be loaded.

    This exception is raised when:
    - MEDIATOR_CONFIG_FILE points to a file that does not exist
    - The file is not valid YAML
    - The YAML root is not a mapping
    """
    pass
