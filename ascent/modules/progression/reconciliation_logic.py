"""
Reconciliation planner.

Purpose
-------
Rebuild an athlete's domain levels from the source of truth: every approved
submission that awarded XP. The planner is pure; it compares the expected
state with what is stored and returns a `ReconciliationPlan` describing the
writes needed. Applying the plan and planning again yields an empty plan.

Rules
-----
- Expected XP per domain = sum over approved submissions (xp_awarded > 0)
  of that submission's split share.
- Expected level = `level_for_xp(total)`, banked 0, breakthrough not ready.
- A level is upserted only when some field differs from the expectation.
- A stored level whose expected XP is zero is deleted.
- A CHALLENGE ledger row whose source is not one of those submissions is
  deleted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ascent.domain.models.domain_level import DomainLevelState
from ascent.domain.models.rank import RankScale
from ascent.modules.progression.distribution import XPSplit, distribute_xp


@dataclass(frozen=True)
class AwardedSubmission:
    submission_id: int
    xp_awarded: int
    split: XPSplit


@dataclass(frozen=True)
class LedgerEntry:
    transaction_id: int
    source_id: Optional[int]


@dataclass(frozen=True)
class ReconciliationChange:
    domain_id: int
    old: Optional[DomainLevelState]
    new: Optional[DomainLevelState]

    def describe(self, domain_name: Optional[str] = None) -> str:
        name = domain_name or f"domain {self.domain_id}"
        old_xp = self.old.current_xp if self.old else 0
        old_level = self.old.display if self.old else "F0"
        new_xp = self.new.current_xp if self.new else 0
        new_level = self.new.display if self.new else "F0"
        return f"{name}: {old_xp} XP ({old_level}) → {new_xp} XP ({new_level})"


@dataclass(frozen=True)
class ReconciliationPlan:
    upserts: Dict[int, DomainLevelState] = field(default_factory=dict)
    level_deletions: Tuple[int, ...] = ()
    ledger_deletions: Tuple[int, ...] = ()
    changes: Tuple[ReconciliationChange, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.upserts or self.level_deletions or self.ledger_deletions)

    def describe(self, domain_names: Optional[Mapping[int, str]] = None) -> List[str]:
        names = domain_names or {}
        return [change.describe(names.get(change.domain_id)) for change in self.changes]


def expected_domain_xp(submissions: Iterable[AwardedSubmission]) -> Dict[int, int]:
    totals: Dict[int, int] = {}
    for submission in submissions:
        if submission.xp_awarded <= 0:
            continue
        for domain_id, share in distribute_xp(submission.xp_awarded, submission.split).items():
            totals[domain_id] = totals.get(domain_id, 0) + share
    return totals


def expected_state(total_xp: int, scale: RankScale) -> DomainLevelState:
    rank, sublevel = scale.level_for_xp(total_xp)
    return DomainLevelState(
        current_xp=total_xp,
        rank=rank,
        sublevel=sublevel,
        banked_xp=0,
        breakthrough_ready=False,
    )


def plan_reconciliation(
    submissions: Iterable[AwardedSubmission],
    current_levels: Mapping[int, DomainLevelState],
    challenge_ledger: Iterable[LedgerEntry],
    scale: RankScale,
) -> ReconciliationPlan:
    """
    Compute the writes that bring stored state in line with approved
    submissions.

    Args:
        submissions: The athlete's approved submissions
        current_levels: Stored levels keyed by domain id
        challenge_ledger: The athlete's CHALLENGE ledger rows
        scale: Progression curve
    """
    submissions = list(submissions)
    totals = expected_domain_xp(submissions)

    upserts: Dict[int, DomainLevelState] = {}
    deletions: List[int] = []
    changes: List[ReconciliationChange] = []

    for domain_id in sorted(set(totals) | set(current_levels)):
        total = totals.get(domain_id, 0)
        stored = current_levels.get(domain_id)

        if total == 0:
            if stored is not None:
                deletions.append(domain_id)
                changes.append(ReconciliationChange(domain_id, stored, None))
            continue

        expected = expected_state(total, scale)
        if stored != expected:
            upserts[domain_id] = expected
            changes.append(ReconciliationChange(domain_id, stored, expected))

    valid_sources: Set[int] = {s.submission_id for s in submissions if s.xp_awarded > 0}
    orphaned = tuple(
        entry.transaction_id
        for entry in challenge_ledger
        if entry.source_id is None or entry.source_id not in valid_sources
    )

    return ReconciliationPlan(
        upserts=upserts,
        level_deletions=tuple(deletions),
        ledger_deletions=orphaned,
        changes=tuple(changes),
    )
