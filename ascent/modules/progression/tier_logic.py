"""
Tier achievement and tier-claim calculations.

Purpose
-------
- `resolve_achieved_rank`: which rank's bar an achieved value meets, given
  the grade table for the athlete's division.
- `claim_tiers`: which tier rewards are newly earned for a submission and
  how much XP they pay, given the tiers already claimed.

Both are pure and deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from ascent.domain.models.rank import ClaimedTiers, Rank, RankScale


def resolve_achieved_rank(
    achieved_value: float,
    grades: Iterable[Tuple[Rank, float]],
    lower_is_better: bool = False,
) -> Optional[Rank]:
    """
    Highest rank whose target `achieved_value` meets.

    Targets are inclusive (a value equal to the target meets it). Grades are
    scanned from easiest to hardest; the best rank met wins even if the
    table is not monotonic.

    Args:
        achieved_value: Measured result
        grades: (rank, target_value) pairs for the athlete's division
        lower_is_better: True for timed challenges

    Returns:
        The best rank met, or None when no bar is met or there are no grades
    """
    if lower_is_better:
        ordered = sorted(grades, key=lambda g: g[1], reverse=True)
    else:
        ordered = sorted(grades, key=lambda g: g[1])

    best: Optional[Rank] = None
    for rank, target in ordered:
        met = achieved_value <= target if lower_is_better else achieved_value >= target
        if met and (best is None or rank > best):
            best = rank
    return best


@dataclass(frozen=True)
class TierClaim:
    """
    Outcome of claiming tiers for one submission.

    Attributes
    ----------
    new_tiers : Tuple[Rank, ...]
        Ranks newly paid, ascending
    xp : int
        Sum of the flat tier rewards for `new_tiers`
    claimed : ClaimedTiers
        Previously claimed tiers plus `new_tiers`
    """

    new_tiers: Tuple[Rank, ...]
    xp: int
    claimed: ClaimedTiers

    @property
    def is_empty(self) -> bool:
        return not self.new_tiers

    @property
    def highest_tier(self) -> Optional[Rank]:
        return self.new_tiers[-1] if self.new_tiers else None


def claim_tiers(
    achieved: Optional[Rank],
    min_rank: Rank,
    max_rank: Rank,
    already_claimed: ClaimedTiers,
    scale: RankScale,
) -> TierClaim:
    """
    Tiers earned by reaching `achieved` on a challenge spanning
    [min_rank, max_rank].

    Every rank from min_rank up to min(achieved, max_rank) is eligible; the
    ones not in `already_claimed` are paid. Running again with the returned
    `claimed` set pays nothing.
    """
    if achieved is None or achieved < min_rank:
        return TierClaim(new_tiers=(), xp=0, claimed=already_claimed)

    ceiling = min(achieved, max_rank)
    new_tiers: Sequence[Rank] = tuple(
        rank for rank in min_rank.between(ceiling) if rank not in already_claimed
    )
    xp = sum(scale.tier_reward(rank) for rank in new_tiers)

    return TierClaim(
        new_tiers=tuple(new_tiers),
        xp=xp,
        claimed=already_claimed.union(new_tiers),
    )
