"""
Shared pieces for the domain value objects.

Value objects are frozen dataclasses that check their invariants in
`__post_init__`. Transitions return a new value together with the
`DomainEvent`s describing the change; persisting either is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DomainEvent:
    """Something that happened to a value object, e.g. "domain_level.xp_banked"."""

    event_name: str
    payload: Dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class DomainValidationError(Exception):
    """
    A value object was built with impossible values.

    This is a programming or data error, never a business outcome.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def validate_non_negative(value: int, field_name: str) -> None:
    if value < 0:
        raise DomainValidationError(
            f"{field_name} must be non-negative, got {value}", field=field_name
        )


def validate_range(value: int, min_val: int, max_val: int, field_name: str) -> None:
    """Inclusive on both ends."""
    if not min_val <= value <= max_val:
        raise DomainValidationError(
            f"{field_name} must be between {min_val} and {max_val}, got {value}",
            field=field_name,
        )
