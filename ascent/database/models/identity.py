"""
User and Athlete: identity records consumed by review eligibility.
Schema only.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ascent.core.database.base import Base, IdMixin, IdType, TimestampMixin
from ascent.database.models.enums import Role


class User(Base, IdMixin, TimestampMixin):
    """
    Login account.

    `can_review` is cleared when review privileges are revoked;
    `review_banned_at` records when. `suspended_at` set means the account is
    suspended.
    """

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_email", "email", unique=True),)

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(
        String(32), nullable=False, default=Role.ATHLETE.value
    )

    can_review: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    review_banned_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    suspended_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class Athlete(Base, IdMixin, TimestampMixin):
    """
    Athlete profile.

    An adult athlete owns a profile through `user_id`; a minor's profile is
    managed by a guardian account through `parent_id`.
    """

    __tablename__ = "athletes"
    __table_args__ = (
        Index("ix_athletes_user", "user_id", unique=True),
        Index("ix_athletes_parent", "parent_id"),
    )

    user_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    parent_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )

    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str] = mapped_column(String(16), nullable=False)
