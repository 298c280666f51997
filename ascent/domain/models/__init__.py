"""
Domain models for Ascent.

Immutable value objects with self-validating invariants. Services convert
between these and the SQLAlchemy schema models in `ascent.database.models`.
"""

from ascent.domain.models.base import (
    DomainEvent,
    DomainValidationError,
    validate_non_negative,
    validate_range,
)
from ascent.domain.models.domain_level import DomainLevelState, LevelTransition
from ascent.domain.models.rank import (
    DEFAULT_RANK_SCALE,
    MAX_SUBLEVEL,
    SUBLEVELS_PER_RANK,
    ClaimedTiers,
    Rank,
    RankScale,
    calculate_prime,
    format_level,
    from_numeric,
    is_higher_level,
    to_numeric,
)

__all__ = [
    "DomainEvent",
    "DomainValidationError",
    "validate_non_negative",
    "validate_range",
    "DomainLevelState",
    "LevelTransition",
    "DEFAULT_RANK_SCALE",
    "MAX_SUBLEVEL",
    "SUBLEVELS_PER_RANK",
    "ClaimedTiers",
    "Rank",
    "RankScale",
    "calculate_prime",
    "format_level",
    "from_numeric",
    "is_higher_level",
    "to_numeric",
]
