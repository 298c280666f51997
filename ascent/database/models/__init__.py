"""
Database Models Package
=======================

SQLAlchemy ORM models for the Ascent progression engine.

All models:
- Are schema-only, no business logic
- Use Mapped[] syntax with mapped_column()
- Inherit IdMixin and TimestampMixin
- Declare explicit foreign keys with CASCADE rules

Organization
------------
- identity: User, Athlete
- catalog: Domain, Division, Challenge, ChallengeGrade
- submission: ChallengeSubmission
- progression: DomainLevel, XPTransaction, BreakthroughRule
- enums: Role, XPSource, SubmissionStatus, GradingType
"""

from ascent.core.database.base import Base

from .catalog import Challenge, ChallengeGrade, Division, Domain
from .enums import GradingType, Role, SubmissionStatus, XPSource
from .identity import Athlete, User
from .progression import BreakthroughRule, DomainLevel, XPTransaction
from .submission import ChallengeSubmission

__all__ = [
    "Base",
    "User",
    "Athlete",
    "Domain",
    "Division",
    "Challenge",
    "ChallengeGrade",
    "ChallengeSubmission",
    "DomainLevel",
    "XPTransaction",
    "BreakthroughRule",
    "Role",
    "XPSource",
    "SubmissionStatus",
    "GradingType",
]
