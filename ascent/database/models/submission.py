"""
ChallengeSubmission: one athlete's attempt at a challenge.
Schema only.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ascent.core.database.base import Base, IdMixin, IdType, TimestampMixin, utc_now
from ascent.database.models.enums import SubmissionStatus


class ChallengeSubmission(Base, IdMixin, TimestampMixin):
    """
    Submission record.

    `claimed_tiers` holds the comma-separated, ascending list of ranks whose
    tier reward has already been paid (e.g. "F,E,D"); parse it with
    `ClaimedTiers.parse`. `xp_awarded` is the running total paid for this
    submission across all domains. `xp_reversed_at` is set once the award has
    been reversed; such a submission is never paid again.
    """

    __tablename__ = "challenge_submissions"
    __table_args__ = (
        Index("ix_challenge_submissions_athlete_challenge", "athlete_id", "challenge_id"),
        Index("ix_challenge_submissions_status_submitted", "status", "submitted_at"),
    )

    athlete_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False
    )
    challenge_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False
    )
    submitted_by_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=SubmissionStatus.PENDING.value
    )
    auto_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    achieved_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    achieved_rank: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)
    claimed_tiers: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    xp_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    video_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    reviewed_by_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    review_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    xp_reversed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
