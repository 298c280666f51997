"""
Result types returned by the progression service.

Plain frozen dataclasses; `to_dict()` produces the payload a presentation
layer shows after an award (tier achievement + level-ups) or a breakthrough.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ascent.domain.models.domain_level import LevelTransition
from ascent.domain.models.rank import ClaimedTiers, Rank


@dataclass(frozen=True)
class DomainAward:
    domain_id: int
    domain_name: str
    xp: int
    transition: LevelTransition


@dataclass(frozen=True)
class AwardResult:
    """
    Outcome of awarding XP for one submission.

    `new_tiers` empty means nothing was newly earned (e.g. a repeated or
    concurrent award); that is a normal outcome, not an error.
    """

    submission_id: int
    challenge_name: str
    achieved_rank: Optional[Rank]
    new_tiers: Tuple[Rank, ...] = ()
    total_xp: int = 0
    claimed: ClaimedTiers = field(default_factory=ClaimedTiers)
    is_new_best: bool = False
    domain_awards: Tuple[DomainAward, ...] = ()

    @property
    def awarded(self) -> bool:
        return bool(self.new_tiers)

    @property
    def level_ups(self) -> List[DomainAward]:
        return [award for award in self.domain_awards if award.transition.leveled_up]

    def to_dict(self) -> Dict[str, Any]:
        tier_achievement: Optional[Dict[str, Any]] = None
        if self.new_tiers:
            tier_achievement = {
                "tier": self.new_tiers[-1].symbol,
                "challenge_name": self.challenge_name,
                "xp_breakdown": [
                    {"domain": award.domain_name, "xp": award.xp}
                    for award in self.domain_awards
                ],
                "total_xp": self.total_xp,
                "is_new_best": self.is_new_best,
            }
        return {
            "submission_id": self.submission_id,
            "achieved_rank": self.achieved_rank.symbol if self.achieved_rank else None,
            "new_tiers": [rank.symbol for rank in self.new_tiers],
            "claimed_tiers": self.claimed.serialize(),
            "xp_awarded": self.total_xp,
            "tier_achievement": tier_achievement,
            "level_ups": [
                {
                    "domain": award.domain_name,
                    "previous_level": award.transition.before.numeric_level,
                    "new_level": award.transition.after.numeric_level,
                    "xp_gained": award.xp,
                }
                for award in self.level_ups
            ],
        }


@dataclass(frozen=True)
class ReversalResult:
    submission_id: int
    xp_reversed: int
    ledger_rows_deleted: int
    domain_reversals: Tuple[DomainAward, ...] = ()


@dataclass(frozen=True)
class BreakthroughOutcome:
    success: bool
    new_rank: Optional[Rank] = None
    new_sublevel: Optional[int] = None
    released_xp: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "new_rank": self.new_rank.symbol if self.new_rank else None,
            "new_sublevel": self.new_sublevel,
            "released_xp": self.released_xp,
        }


@dataclass(frozen=True)
class ReconciliationResult:
    athlete_id: int
    athlete_name: str
    submissions_found: int
    changes: Tuple[str, ...] = ()
    ledger_rows_deleted: int = 0

    @property
    def message(self) -> str:
        if self.changes:
            return f"Reconciled {len(self.changes)} domain(s)"
        return "No changes needed - XP already accurate"
