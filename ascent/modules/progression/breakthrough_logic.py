"""
Breakthrough qualification.

Purpose
-------
Decide whether an athlete has earned the right to move a domain to the next
rank letter. The requirement for a transition is a rule: complete
`challenge_count` distinct challenges in the domain at `tier_required` or
better.

Rule lookup order:
1. Active rule for the domain, rank transition and athlete's division
2. Active rule for the domain and rank transition with no division
3. Built-in default (`DEFAULT_BREAKTHROUGH_RULES`)

Only challenges whose *primary* domain is the domain count, and only active
challenges with approved submissions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from ascent.domain.models.rank import Rank
from ascent.modules.progression.constants import DEFAULT_BREAKTHROUGH_RULES


@dataclass(frozen=True)
class BreakthroughRuleSpec:
    from_rank: Rank
    to_rank: Rank
    tier_required: Rank
    challenge_count: int
    domain_id: Optional[int] = None
    division_id: Optional[int] = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row) -> "BreakthroughRuleSpec":
        source = "breakthrough_rules"
        return cls(
            from_rank=Rank.parse(row.from_rank, source),
            to_rank=Rank.parse(row.to_rank, source),
            tier_required=Rank.parse(row.tier_required, source),
            challenge_count=row.challenge_count,
            domain_id=row.domain_id,
            division_id=row.division_id,
            is_active=row.is_active,
        )


@dataclass(frozen=True)
class QualifyingAttempt:
    """One submission as seen by the qualification check."""

    challenge_id: int
    challenge_name: str
    primary_domain_id: int
    achieved_rank: Optional[Rank]
    approved: bool = True
    challenge_active: bool = True


@dataclass(frozen=True)
class BreakthroughProgress:
    rule: BreakthroughRuleSpec
    current_progress: int
    qualifying: Tuple[QualifyingAttempt, ...]

    @property
    def from_rank(self) -> Rank:
        return self.rule.from_rank

    @property
    def to_rank(self) -> Rank:
        return self.rule.to_rank

    @property
    def tier_required(self) -> Rank:
        return self.rule.tier_required

    @property
    def challenge_count(self) -> int:
        return self.rule.challenge_count

    @property
    def is_complete(self) -> bool:
        return self.current_progress >= self.rule.challenge_count


def default_rule(from_rank: Rank) -> Optional[BreakthroughRuleSpec]:
    to_rank = from_rank.next()
    if to_rank is None or from_rank not in DEFAULT_BREAKTHROUGH_RULES:
        return None
    tier_required, count = DEFAULT_BREAKTHROUGH_RULES[from_rank]
    return BreakthroughRuleSpec(
        from_rank=from_rank,
        to_rank=to_rank,
        tier_required=tier_required,
        challenge_count=count,
    )


def select_breakthrough_rule(
    rules: Iterable[BreakthroughRuleSpec],
    domain_id: int,
    from_rank: Rank,
    division_id: Optional[int] = None,
) -> Optional[BreakthroughRuleSpec]:
    """Rule governing from_rank -> next in `domain_id`; None at the top rank."""
    to_rank = from_rank.next()
    if to_rank is None:
        return None

    candidates = [
        rule
        for rule in rules
        if rule.is_active
        and rule.domain_id == domain_id
        and rule.from_rank == from_rank
        and rule.to_rank == to_rank
    ]

    if division_id is not None:
        for rule in candidates:
            if rule.division_id == division_id:
                return rule
    for rule in candidates:
        if rule.division_id is None:
            return rule
    return default_rule(from_rank)


def evaluate_breakthrough(
    history: Iterable[QualifyingAttempt],
    rule: BreakthroughRuleSpec,
    domain_id: int,
) -> BreakthroughProgress:
    """
    Count distinct qualifying challenges in `history`.

    A challenge with several qualifying submissions counts once; the first
    qualifying attempt seen is reported.
    """
    seen: List[int] = []
    qualifying: List[QualifyingAttempt] = []
    for attempt in history:
        if not (attempt.approved and attempt.challenge_active):
            continue
        if attempt.primary_domain_id != domain_id or attempt.achieved_rank is None:
            continue
        if attempt.achieved_rank < rule.tier_required:
            continue
        if attempt.challenge_id in seen:
            continue
        seen.append(attempt.challenge_id)
        qualifying.append(attempt)

    return BreakthroughProgress(
        rule=rule,
        current_progress=len(qualifying),
        qualifying=tuple(qualifying),
    )
