"""
Unit Tests for Breakthrough Qualification
=========================================

Test Coverage
-------------
- Rule selection: division rule, then global rule, then built-in default
- Distinct-challenge counting with tier, domain and status filters
"""

import pytest

from ascent.domain.models.rank import Rank
from ascent.modules.progression.breakthrough_logic import (
    BreakthroughRuleSpec,
    QualifyingAttempt,
    default_rule,
    evaluate_breakthrough,
    select_breakthrough_rule,
)

DOMAIN = 1
OTHER_DOMAIN = 2


def attempt(challenge_id, rank, domain=DOMAIN, approved=True, active=True):
    return QualifyingAttempt(
        challenge_id=challenge_id,
        challenge_name=f"Challenge {challenge_id}",
        primary_domain_id=domain,
        achieved_rank=rank,
        approved=approved,
        challenge_active=active,
    )


# ============================================================================
# RULE SELECTION
# ============================================================================


@pytest.mark.unit
class TestSelectBreakthroughRule:
    """Test select_breakthrough_rule()."""

    @pytest.fixture
    def rules(self):
        return [
            BreakthroughRuleSpec(Rank.F, Rank.E, Rank.D, 2, domain_id=DOMAIN),
            BreakthroughRuleSpec(Rank.F, Rank.E, Rank.C, 1, domain_id=DOMAIN, division_id=7),
            BreakthroughRuleSpec(Rank.F, Rank.E, Rank.B, 9, domain_id=OTHER_DOMAIN),
        ]

    def test_division_rule_wins(self, rules):
        rule = select_breakthrough_rule(rules, DOMAIN, Rank.F, division_id=7)

        assert rule.tier_required is Rank.C
        assert rule.challenge_count == 1

    def test_global_rule_when_no_division_rule(self, rules):
        rule = select_breakthrough_rule(rules, DOMAIN, Rank.F, division_id=99)

        assert rule.division_id is None
        assert rule.tier_required is Rank.D

    def test_inactive_rule_is_ignored(self):
        rules = [
            BreakthroughRuleSpec(Rank.F, Rank.E, Rank.C, 1, domain_id=DOMAIN, is_active=False)
        ]

        rule = select_breakthrough_rule(rules, DOMAIN, Rank.F)

        assert rule == default_rule(Rank.F)

    def test_default_when_no_rule_for_domain(self, rules):
        rule = select_breakthrough_rule(rules, DOMAIN, Rank.E)

        assert rule.from_rank is Rank.E
        assert rule.to_rank is Rank.D
        assert rule.tier_required is Rank.D
        assert rule.challenge_count == 5

    def test_top_rank_has_no_rule(self, rules):
        assert select_breakthrough_rule(rules, DOMAIN, Rank.S) is None
        assert default_rule(Rank.S) is None


# ============================================================================
# EVALUATION
# ============================================================================


@pytest.mark.unit
class TestEvaluateBreakthrough:
    """Test evaluate_breakthrough()."""

    @pytest.fixture
    def rule(self):
        return BreakthroughRuleSpec(Rank.F, Rank.E, Rank.E, 3, domain_id=DOMAIN)

    def test_counts_distinct_challenges(self, rule):
        # Arrange: challenge 1 qualifies twice
        history = [attempt(1, Rank.E), attempt(1, Rank.D), attempt(2, Rank.C)]

        # Act
        progress = evaluate_breakthrough(history, rule, DOMAIN)

        # Assert
        assert progress.current_progress == 2
        assert [a.challenge_id for a in progress.qualifying] == [1, 2]
        assert not progress.is_complete

    def test_complete_when_count_reached(self, rule):
        history = [attempt(1, Rank.E), attempt(2, Rank.E), attempt(3, Rank.S)]

        progress = evaluate_breakthrough(history, rule, DOMAIN)

        assert progress.is_complete
        assert progress.to_rank is Rank.E
        assert progress.challenge_count == 3

    @pytest.mark.parametrize(
        "excluded",
        [
            attempt(9, Rank.F),
            attempt(9, None),
            attempt(9, Rank.A, domain=OTHER_DOMAIN),
            attempt(9, Rank.A, approved=False),
            attempt(9, Rank.A, active=False),
        ],
        ids=["below-tier", "no-rank", "other-domain", "not-approved", "inactive-challenge"],
    )
    def test_non_qualifying_attempts_ignored(self, rule, excluded):
        progress = evaluate_breakthrough([excluded], rule, DOMAIN)

        assert progress.current_progress == 0
        assert progress.qualifying == ()
