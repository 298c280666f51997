"""
Level state machine.

Purpose
-------
Pure transitions over `DomainLevelState`:

- `apply_xp`: add XP; advance the sublevel within the current rank, or pin
  at sublevel 9 and bank the excess once the rank's cap is reached.
- `apply_breakthrough`: move a banked, qualified level to the next rank.
- `reverse_xp`: subtract XP previously awarded.

Each returns a `LevelTransition` (before, after, events). Nothing is
persisted here; the caller writes `after`.

Design Notes
------------
- `apply_xp` never lowers the level and never changes the rank letter; only
  a breakthrough does.
- At the top rank a breakthrough is a no-op and XP keeps banking.
- `reverse_xp` never promotes: a recomputed level above the current rank is
  pinned back at sublevel 9 of the current rank with the excess re-banked.
  It may demote when XP falls below the current rank's threshold.
"""

from __future__ import annotations

from typing import List

from ascent.domain.models.base import DomainEvent, validate_non_negative
from ascent.domain.models.domain_level import DomainLevelState, LevelTransition
from ascent.domain.models.rank import MAX_SUBLEVEL, Rank, RankScale
from ascent.modules.progression.constants import (
    EVENT_BREAKTHROUGH,
    EVENT_SUBLEVEL_ADVANCED,
    EVENT_XP_BANKED,
    EVENT_XP_REVERSED,
)


def _sublevel_within_rank(total_xp: int, rank: Rank, scale: RankScale) -> int:
    """Whole sublevels bought inside `rank` by `total_xp`, clamped to [0, 9]."""
    progress = total_xp - scale.threshold(rank)
    if progress <= 0:
        return 0
    return min(progress // scale.sublevel_cost(rank), MAX_SUBLEVEL)


# ============================================================================
# AWARD
# ============================================================================


def apply_xp(state: DomainLevelState, amount: int, scale: RankScale) -> LevelTransition:
    """
    Add `amount` XP to a domain level.

    Example (reference curve):
        E9 with 50 banked (3050 XP) + 500 -> E9, 550 banked, ready.
    """
    validate_non_negative(amount, "amount")
    total = state.current_xp + amount
    cap = scale.rank_cap_xp(state.rank)
    events: List[DomainEvent] = []

    if total >= cap:
        after = state.with_changes(
            current_xp=total,
            sublevel=MAX_SUBLEVEL,
            banked_xp=total - cap,
            breakthrough_ready=True,
        )
    else:
        candidate_rank, candidate_sublevel = scale.level_for_xp(total)
        if candidate_rank == state.rank:
            sublevel = max(state.sublevel, candidate_sublevel)
        elif candidate_rank > state.rank:
            # Only reachable on curves where a rank's cap lies above the next threshold.
            sublevel = max(state.sublevel, _sublevel_within_rank(total, state.rank, scale))
        else:
            sublevel = state.sublevel
        after = state.with_changes(
            current_xp=total,
            sublevel=sublevel,
            banked_xp=0,
            breakthrough_ready=False,
        )

    if after.sublevel > state.sublevel:
        events.append(
            DomainEvent(
                EVENT_SUBLEVEL_ADVANCED,
                {
                    "rank": after.rank.symbol,
                    "from_sublevel": state.sublevel,
                    "to_sublevel": after.sublevel,
                    "amount": amount,
                },
            )
        )
    if after.banked_xp > state.banked_xp or (
        after.breakthrough_ready and not state.breakthrough_ready
    ):
        events.append(
            DomainEvent(
                EVENT_XP_BANKED,
                {
                    "rank": after.rank.symbol,
                    "banked_xp": after.banked_xp,
                    "newly_banked": after.banked_xp - state.banked_xp,
                    "breakthrough_ready": after.breakthrough_ready,
                },
            )
        )

    return LevelTransition(before=state, after=after, events=events)


# ============================================================================
# BREAKTHROUGH
# ============================================================================


def can_breakthrough(state: DomainLevelState, qualified: bool) -> bool:
    return state.breakthrough_ready and qualified and state.rank.next() is not None


def apply_breakthrough(
    state: DomainLevelState, qualified: bool, scale: RankScale
) -> LevelTransition:
    """
    Advance to the next rank at sublevel 0.

    Requires `breakthrough_ready` and the external qualification signal;
    otherwise (and always at the top rank) the state is returned unchanged.
    Total XP is kept, so the banked XP becomes the new rank's starting XP.
    """
    if not can_breakthrough(state, qualified):
        return LevelTransition(before=state, after=state)

    next_rank = state.rank.next()
    after = state.with_changes(
        rank=next_rank,
        sublevel=0,
        banked_xp=0,
        breakthrough_ready=False,
    )
    event = DomainEvent(
        EVENT_BREAKTHROUGH,
        {
            "from_rank": state.rank.symbol,
            "to_rank": next_rank.symbol,
            "released_xp": state.banked_xp,
            "rank_start_xp": max(0, after.current_xp - scale.threshold(next_rank)),
        },
    )
    return LevelTransition(before=state, after=after, events=[event])


# ============================================================================
# REVERSAL
# ============================================================================


def reverse_xp(state: DomainLevelState, share: int, scale: RankScale) -> LevelTransition:
    """
    Subtract `share` XP, flooring at zero, and recompute the level.
    """
    validate_non_negative(share, "share")
    new_xp = max(0, state.current_xp - share)

    rank, sublevel = scale.level_for_xp(new_xp)
    if rank > state.rank:
        rank, sublevel = state.rank, MAX_SUBLEVEL

    cap = scale.rank_cap_xp(rank)
    pinned = sublevel == MAX_SUBLEVEL
    after = DomainLevelState(
        current_xp=new_xp,
        rank=rank,
        sublevel=sublevel,
        banked_xp=max(0, new_xp - cap) if pinned else 0,
        breakthrough_ready=pinned and new_xp >= cap,
    )

    event = DomainEvent(
        EVENT_XP_REVERSED,
        {
            "requested": share,
            "removed": state.current_xp - new_xp,
            "from_level": state.display,
            "to_level": after.display,
        },
    )
    return LevelTransition(before=state, after=after, events=[event])
