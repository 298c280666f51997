"""
Progression module: tier claims, XP distribution, level transitions,
breakthroughs and reconciliation.

Pure logic lives in the `*_logic` modules; `ProgressionService` persists
their results.
"""

from ascent.modules.progression.breakthrough_logic import (
    BreakthroughProgress,
    BreakthroughRuleSpec,
    QualifyingAttempt,
    evaluate_breakthrough,
    select_breakthrough_rule,
)
from ascent.modules.progression.curve_loader import load_rank_scale
from ascent.modules.progression.distribution import XPSplit, distribute_xp
from ascent.modules.progression.division_logic import (
    find_matching_division,
    grades_for_division,
)
from ascent.modules.progression.level_logic import apply_breakthrough, apply_xp, reverse_xp
from ascent.modules.progression.reconciliation_logic import (
    ReconciliationPlan,
    plan_reconciliation,
)
from ascent.modules.progression.results import (
    AwardResult,
    BreakthroughOutcome,
    ReconciliationResult,
    ReversalResult,
)
from ascent.modules.progression.service import ProgressionService
from ascent.modules.progression.tier_logic import TierClaim, claim_tiers, resolve_achieved_rank

__all__ = [
    "BreakthroughProgress",
    "BreakthroughRuleSpec",
    "QualifyingAttempt",
    "evaluate_breakthrough",
    "select_breakthrough_rule",
    "load_rank_scale",
    "XPSplit",
    "distribute_xp",
    "find_matching_division",
    "grades_for_division",
    "apply_breakthrough",
    "apply_xp",
    "reverse_xp",
    "ReconciliationPlan",
    "plan_reconciliation",
    "AwardResult",
    "BreakthroughOutcome",
    "ReconciliationResult",
    "ReversalResult",
    "ProgressionService",
    "TierClaim",
    "claim_tiers",
    "resolve_achieved_rank",
]
