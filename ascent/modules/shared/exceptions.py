"""
Domain exceptions for Ascent services.

Raised when a service refuses a request: the record does not exist, the
input is invalid, or the transition is not allowed in the current state.
All three log at INFO and never alert (see `ascent.core.exceptions`).

Expected business outcomes (no tier met, review refused, breakthrough not
yet earned) are returned as typed results instead.
"""

from __future__ import annotations

from typing import Any, Optional

from ascent.core.exceptions import AscentError, ErrorSeverity


class AscentDomainException(AscentError):
    """Base for errors raised by services on behalf of a caller."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO


class NotFoundError(AscentDomainException):
    """
    A referenced record does not exist.

    Args:
        resource_type: Kind of record ("Submission", "Athlete", ...)
        identifier: The id that was looked up
    """

    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        suffix = "" if identifier is None else f": {identifier}"
        super().__init__(
            f"{resource_type} not found{suffix}",
            details={"resource_type": resource_type, "identifier": identifier},
            error_code="NOT_FOUND",
        )


class ValidationError(AscentDomainException):
    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={"field": field, "message": message},
            error_code="VALIDATION_ERROR",
        )


class InvalidOperationError(AscentDomainException):
    """
    The action is not allowed in the record's current state, e.g. deciding
    a submission another reviewer already decided.
    """

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Invalid operation '{action}': {reason}",
            details={"action": action, "reason": reason},
            error_code="INVALID_OPERATION",
        )
