"""
Configuration error hierarchy for Ascent.

Purpose
-------
Provides exceptions for configuration loading with clear error
classification and helpful messages.

Exception Hierarchy
-------------------
ConfigError (base)
├── ConfigValidationError (schema/type validation failures)
└── ConfigInitializationError (file missing or unreadable at startup)
"""


class ConfigError(Exception):
    """
    Base exception for all configuration-related errors.

    Example
    -------
    >>> try:
    ...     scale = load_rank_scale(path)
    ... except ConfigError as e:
    ...     logger.error(f"Config load failed: {e}")
    """
    pass


class ConfigValidationError(ConfigError):
    """
    Raised when configuration validation fails.

    This exception is raised when:
    - A progression table is missing a rank
    - A value has the wrong type or is out of range
    - The rank list is empty or contains duplicates
    """
    pass


class ConfigInitializationError(ConfigError):
    """
    Raised when a configuration file cannot be read or parsed.

    This is a critical error that typically requires intervention
    before the application can continue.
    """
    pass


__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ConfigInitializationError",
]
