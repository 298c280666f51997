"""
Challenge catalog: domains, divisions, challenges and their grade tables.
Schema only.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ascent.core.database.base import Base, IdMixin, IdType, TimestampMixin
from ascent.database.models.enums import GradingType


class Domain(Base, IdMixin, TimestampMixin):
    """Athletic skill area (strength, endurance, ...)."""

    __tablename__ = "domains"
    __table_args__ = (Index("ix_domains_slug", "slug", unique=True),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Division(Base, IdMixin, TimestampMixin):
    """
    Age/gender bracket selecting which grade table applies.

    Null gender or age bounds mean the bracket is open on that side.
    """

    __tablename__ = "divisions"
    __table_args__ = (Index("ix_divisions_slug", "slug", unique=True),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    gender: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    age_min: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    age_max: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Challenge(Base, IdMixin, TimestampMixin):
    """
    A measurable challenge with a rank window and an XP split across up to
    three domains.
    """

    __tablename__ = "challenges"
    __table_args__ = (
        Index("ix_challenges_slug", "slug", unique=True),
        Index("ix_challenges_primary_domain", "primary_domain_id"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    grading_type: Mapped[str] = mapped_column(
        String(32), nullable=False, default=GradingType.PASS_FAIL.value
    )
    grading_unit: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    min_rank: Mapped[str] = mapped_column(String(1), nullable=False, default="F")
    max_rank: Mapped[str] = mapped_column(String(1), nullable=False, default="S")

    primary_domain_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("domains.id", ondelete="RESTRICT"), nullable=False
    )
    primary_xp_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    secondary_domain_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("domains.id", ondelete="SET NULL"), nullable=True
    )
    secondary_xp_percent: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tertiary_domain_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("domains.id", ondelete="SET NULL"), nullable=True
    )
    tertiary_xp_percent: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ChallengeGrade(Base, IdMixin, TimestampMixin):
    """Target value an athlete in `division` must meet for `rank`."""

    __tablename__ = "challenge_grades"
    __table_args__ = (
        Index(
            "ix_challenge_grades_challenge_division_rank",
            "challenge_id",
            "division_id",
            "rank",
            unique=True,
        ),
    )

    challenge_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
    )
    division_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("divisions.id", ondelete="CASCADE"), nullable=False
    )
    rank: Mapped[str] = mapped_column(String(1), nullable=False)
    target_value: Mapped[float] = mapped_column(Float, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    bonus_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
