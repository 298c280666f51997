"""
Database Model Enums
====================

Lightweight enumerations for database models.

These enums provide type-safe constants for categorical columns across the
schema. Columns store the `.value` string; services convert at the boundary.
They are declarative schema helpers, not business logic containers.
"""

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    """
    Account role.

    COACH, GYM_ADMIN and SYSTEM_ADMIN are the elevated roles that may review
    any submission.
    """

    ATHLETE = "ATHLETE"
    PARENT = "PARENT"
    COACH = "COACH"
    GYM_ADMIN = "GYM_ADMIN"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"


class XPSource(str, enum.Enum):
    """Origin of an XP ledger entry."""

    CHALLENGE = "CHALLENGE"
    TRAINING = "TRAINING"
    COMPETITION = "COMPETITION"
    EVENT = "EVENT"
    BONUS = "BONUS"
    ADMIN = "ADMIN"


class SubmissionStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    NEEDS_REVISION = "NEEDS_REVISION"


class GradingType(str, enum.Enum):
    """
    How a challenge attempt is measured.

    Only TIME is lower-is-better; every other graded type improves upward.
    PASS_FAIL challenges have no grade table.
    """

    PASS_FAIL = "PASS_FAIL"
    REPS = "REPS"
    TIME = "TIME"
    DISTANCE = "DISTANCE"
    TIMED_REPS = "TIMED_REPS"
    WEIGHTED_REPS = "WEIGHTED_REPS"

    @property
    def is_lower_better(self) -> bool:
        return self is GradingType.TIME
