"""
Base Service Foundation

Purpose
-------
Provides the foundational class for Ascent services. Services orchestrate
the pure progression logic: they load rows inside a `DatabaseService`
transaction, convert them to domain values, run the pure transitions, and
write the results back.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Safe config access
- Input validation helpers that raise domain `ValidationError`

What this class does NOT do:
- Open transactions on behalf of callers it was not asked to serve
- Contain progression rules (those live in the `*_logic` modules)

Usage
-----
    class ProgressionService(BaseService):
        def __init__(self, config, logger, rank_scale):
            super().__init__(config, logger)
            self.scale = rank_scale
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Type

if TYPE_CHECKING:
    from logging import Logger

    from ascent.core.config.config import Config


class BaseService:
    """
    Base class for all services.

    Args:
        config: Static configuration class (usually `Config`)
        logger: Structured logger instance
    """

    def __init__(self, config: Type[Config], logger: Logger) -> None:
        self._config = config
        self.log = logger

    def get_config(
        self, key: str, default: Optional[Any] = None, required: bool = False
    ) -> Any:
        """
        Safely retrieve a configuration value.

        Raises:
            ConfigurationError: If required=True and key is missing
        """
        from ascent.core.exceptions import ConfigurationError

        value = getattr(self._config, key, default)
        if required and value is None:
            raise ConfigurationError(
                key, f"Required configuration key '{key}' is missing"
            )
        return value

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(
            f"Service operation: {operation}",
            extra={"operation": operation, **context},
        )

    def validate_positive_int(self, value: int, name: str) -> None:
        """
        Raises:
            ValidationError: If value is not a positive integer
        """
        from .exceptions import ValidationError

        if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
            raise ValidationError(
                name, f"{name} must be a positive integer, got {value}"
            )
