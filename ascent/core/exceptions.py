"""
Infrastructure exceptions for Ascent.

Two hierarchies share one structured base, `AscentError`:

- `AscentInfrastructureException` (here): configuration problems and
  corrupted data that need an operator.
- `AscentDomainException` (`ascent.modules.shared.exceptions`): requests a
  service refuses (missing record, bad input, wrong state).

Every error carries `message`, `details`, `severity`, `is_retryable` and
`error_code`. Business outcomes such as "no tier met" or "review refused"
are typed results and never raised.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"
    INFO = "info"  # expected refusals (validation, not found)
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"  # data integrity


class AscentError(Exception):
    """
    Structured error base.

    Subclasses set DEFAULT_SEVERITY / DEFAULT_RETRYABLE and usually a fixed
    `error_code`; the constructor arguments override them per instance.
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}
        self.severity = severity or self.DEFAULT_SEVERITY
        self.is_retryable = self.DEFAULT_RETRYABLE if is_retryable is None else is_retryable
        self.error_code = error_code or type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        if not self.details:
            return f"[{self.error_code}] {self.message}"
        return f"[{self.error_code}] {self.message} | Details: {self.details}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, details={self.details!r}, "
            f"severity={self.severity.value!r}, is_retryable={self.is_retryable!r})"
        )


class AscentInfrastructureException(AscentError):
    """Base for infrastructure errors (configuration, data integrity)."""


class ConfigurationError(AscentInfrastructureException):
    """
    Raised when a configuration key is invalid or missing.

    Args:
        config_key: The configuration key that has issues
        message: Description of the configuration problem
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL
    DEFAULT_RETRYABLE = False

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={
                "config_key": config_key,
                "message": message,
            },
            error_code="CONFIG_ERROR",
        )


class RankIntegrityError(AscentInfrastructureException):
    """
    Raised when a stored rank symbol cannot be parsed.

    A malformed rank means a corrupted record: nothing downstream can be
    trusted, so this is never caught by the progression engine itself.

    Args:
        value: The offending raw value
        source: Where the value was read from (column, config key, ...)
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL
    DEFAULT_RETRYABLE = False

    def __init__(self, value: Any, source: Optional[str] = None) -> None:
        self.value = value
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(
            f"Malformed rank symbol {value!r}{where}",
            details={"value": repr(value), "source": source},
            error_code="RANK_INTEGRITY",
        )


# ============================================================================
# CLASSIFICATION
# ============================================================================


def get_error_severity(exc: BaseException) -> ErrorSeverity:
    """Severity of an Ascent error; anything else counts as ERROR."""
    if isinstance(exc, AscentError):
        return exc.severity
    return ErrorSeverity.ERROR


def is_transient_error(exc: BaseException) -> bool:
    return isinstance(exc, AscentError) and exc.is_retryable


def should_alert(exc: BaseException) -> bool:
    return get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
