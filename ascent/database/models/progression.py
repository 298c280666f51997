"""
Progression state: per-domain levels, the XP ledger, breakthrough rules.
Schema only.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ascent.core.database.base import Base, IdMixin, IdType, TimestampMixin


class DomainLevel(Base, IdMixin, TimestampMixin):
    """
    An athlete's level in one domain.

    `current_xp` is the total XP earned in the domain. `rank` + `sublevel`
    form the displayed level (e.g. "C7"). `banked_xp` is XP beyond the
    current rank's cap held until a breakthrough.
    """

    __tablename__ = "domain_levels"
    __table_args__ = (
        Index("ix_domain_levels_athlete_domain", "athlete_id", "domain_id", unique=True),
        Index("ix_domain_levels_domain", "domain_id"),
    )

    athlete_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False
    )
    domain_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("domains.id", ondelete="CASCADE"), nullable=False
    )

    rank: Mapped[str] = mapped_column(String(1), nullable=False, default="F")
    sublevel: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_xp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    banked_xp: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    breakthrough_ready: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )


class XPTransaction(Base, IdMixin, TimestampMixin):
    """
    Append-only XP ledger entry.

    Rows are inserted on award and deleted on reversal or reconciliation
    cleanup; they are never updated. For CHALLENGE entries `source_id` is
    the submission id.
    """

    __tablename__ = "xp_transactions"
    __table_args__ = (
        Index("ix_xp_transactions_athlete_domain", "athlete_id", "domain_id"),
        Index("ix_xp_transactions_source", "source", "source_id"),
    )

    athlete_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False
    )
    domain_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("domains.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[Optional[int]] = mapped_column(IdType, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class BreakthroughRule(Base, IdMixin, TimestampMixin):
    """
    Requirement for moving from `from_rank` to `to_rank` in a domain:
    `challenge_count` distinct challenges completed at `tier_required` or
    better. A rule with a division applies only to athletes in it.
    """

    __tablename__ = "breakthrough_rules"
    __table_args__ = (
        Index(
            "ix_breakthrough_rules_domain_ranks_division",
            "domain_id",
            "from_rank",
            "to_rank",
            "division_id",
            unique=True,
        ),
    )

    domain_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("domains.id", ondelete="CASCADE"), nullable=False
    )
    division_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("divisions.id", ondelete="CASCADE"), nullable=True
    )
    from_rank: Mapped[str] = mapped_column(String(1), nullable=False)
    to_rank: Mapped[str] = mapped_column(String(1), nullable=False)
    tier_required: Mapped[str] = mapped_column(String(1), nullable=False)
    challenge_count: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
