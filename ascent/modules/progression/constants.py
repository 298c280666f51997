"""
Progression system constants.

Single source of truth for:
- Default breakthrough requirements per rank transition
- Domain event names emitted by level transitions
- Ledger note formats written by the progression service
"""

from __future__ import annotations

from typing import Dict, Tuple

from ascent.domain.models.rank import Rank


# ============================================================================
# BREAKTHROUGH DEFAULTS
# ============================================================================

# from_rank -> (tier_required, distinct challenge count)
DEFAULT_BREAKTHROUGH_RULES: Dict[Rank, Tuple[Rank, int]] = {
    Rank.F: (Rank.E, 3),
    Rank.E: (Rank.D, 5),
    Rank.D: (Rank.C, 7),
    Rank.C: (Rank.B, 10),
    Rank.B: (Rank.A, 12),
    Rank.A: (Rank.S, 15),
}


# ============================================================================
# DOMAIN EVENTS
# ============================================================================

EVENT_SUBLEVEL_ADVANCED = "domain_level.sublevel_advanced"
EVENT_XP_BANKED = "domain_level.xp_banked"
EVENT_BREAKTHROUGH = "domain_level.breakthrough"
EVENT_XP_REVERSED = "domain_level.xp_reversed"


# ============================================================================
# LEDGER NOTES
# ============================================================================

AWARD_NOTE_FORMAT = "Completed {tiers} tier(s)"
BREAKTHROUGH_NOTE_FORMAT = "Breakthrough: {from_rank} → {to_rank}"


def format_award_note(tiers) -> str:
    """Ledger note for a tier award, e.g. "Completed F,E tier(s)"."""
    return AWARD_NOTE_FORMAT.format(tiers=",".join(str(t) for t in tiers))
