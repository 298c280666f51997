"""
Unit Tests for Tier Achievement and Tier Claims
===============================================

Test Coverage
-------------
- Resolving the achieved rank from a grade table (both directions)
- Claiming tier rewards within a challenge's rank window
- Claim idempotence
"""

import pytest

from ascent.domain.models.rank import ClaimedTiers, Rank
from ascent.modules.progression.tier_logic import claim_tiers, resolve_achieved_rank

REPS_GRADES = [(Rank.F, 10), (Rank.E, 20), (Rank.D, 30), (Rank.C, 40)]
TIME_GRADES = [(Rank.F, 60.0), (Rank.E, 50.0), (Rank.D, 40.0)]


@pytest.mark.unit
class TestResolveAchievedRank:
    """Test resolve_achieved_rank()."""

    @pytest.mark.parametrize(
        "value, expected",
        [(5, None), (10, Rank.F), (19, Rank.F), (35, Rank.D), (40, Rank.C), (99, Rank.C)],
    )
    def test_higher_is_better(self, value, expected):
        assert resolve_achieved_rank(value, REPS_GRADES) is expected

    @pytest.mark.parametrize(
        "value, expected",
        [(61.0, None), (60.0, Rank.F), (45.0, Rank.E), (40.0, Rank.D), (12.5, Rank.D)],
    )
    def test_lower_is_better(self, value, expected):
        assert resolve_achieved_rank(value, TIME_GRADES, lower_is_better=True) is expected

    def test_grade_order_does_not_matter(self):
        shuffled = [REPS_GRADES[2], REPS_GRADES[0], REPS_GRADES[3], REPS_GRADES[1]]

        assert resolve_achieved_rank(25, shuffled) is Rank.E

    def test_empty_grades_is_none(self):
        assert resolve_achieved_rank(1000, []) is None

    def test_highest_rank_met_wins_on_inverted_table(self):
        """A non-monotonic table still yields the best rank whose bar is met."""
        # Arrange: E has an easier bar than F
        grades = [(Rank.F, 10), (Rank.E, 5)]

        # Act & Assert
        assert resolve_achieved_rank(12, grades) is Rank.E


@pytest.mark.unit
class TestClaimTiers:
    """Test claim_tiers()."""

    def test_achievement_capped_at_max_rank(self, scale):
        # Arrange: window F..D, achieved C
        # Act
        claim = claim_tiers(Rank.C, Rank.F, Rank.D, ClaimedTiers(), scale)

        # Assert
        assert claim.new_tiers == (Rank.F, Rank.E, Rank.D)
        assert claim.xp == 150
        assert claim.claimed.serialize() == "F,E,D"
        assert claim.highest_tier is Rank.D

    def test_achievement_inside_window(self, scale):
        claim = claim_tiers(Rank.C, Rank.F, Rank.S, ClaimedTiers(), scale)

        assert claim.new_tiers == (Rank.F, Rank.E, Rank.D, Rank.C)
        assert claim.xp == 250

    def test_claim_is_idempotent(self, scale):
        """Re-running with the updated claimed set pays nothing."""
        # Arrange
        first = claim_tiers(Rank.C, Rank.F, Rank.S, ClaimedTiers(), scale)

        # Act
        second = claim_tiers(Rank.C, Rank.F, Rank.S, first.claimed, scale)

        # Assert
        assert second.is_empty
        assert second.xp == 0
        assert second.claimed == first.claimed

    def test_only_unclaimed_tiers_are_paid(self, scale):
        claim = claim_tiers(Rank.D, Rank.F, Rank.S, ClaimedTiers.parse("F,E"), scale)

        assert claim.new_tiers == (Rank.D,)
        assert claim.xp == 75
        assert claim.claimed.serialize() == "F,E,D"

    def test_window_starts_at_min_rank(self, scale):
        claim = claim_tiers(Rank.C, Rank.E, Rank.S, ClaimedTiers(), scale)

        assert claim.new_tiers == (Rank.E, Rank.D, Rank.C)
        assert claim.xp == 225

    def test_below_min_rank_earns_nothing(self, scale):
        claim = claim_tiers(Rank.E, Rank.D, Rank.S, ClaimedTiers(), scale)

        assert claim.is_empty
        assert claim.xp == 0
        assert claim.highest_tier is None

    def test_no_achieved_rank_earns_nothing(self, scale):
        existing = ClaimedTiers.parse("F")

        claim = claim_tiers(None, Rank.F, Rank.S, existing, scale)

        assert claim.is_empty
        assert claim.claimed == existing
