"""
Unit Tests for the Level State Machine
======================================

Test Coverage
-------------
- Sublevel progression within a rank
- Overflow banking at the rank cap
- Breakthrough gating and the top-rank no-op
- XP reversal (floor, demotion, no promotion)
- Monotonicity and sublevel/ready invariants over award sequences

Testing Strategy
----------------
- Pure unit tests against the reference curve
"""

import pytest

from ascent.domain.models.base import DomainValidationError
from ascent.domain.models.domain_level import DomainLevelState
from ascent.domain.models.rank import Rank
from ascent.modules.progression.constants import (
    EVENT_BREAKTHROUGH,
    EVENT_SUBLEVEL_ADVANCED,
    EVENT_XP_BANKED,
    EVENT_XP_REVERSED,
)
from ascent.modules.progression.level_logic import apply_breakthrough, apply_xp, reverse_xp


# ============================================================================
# APPLY XP
# ============================================================================


@pytest.mark.unit
class TestApplyXP:
    """Test apply_xp()."""

    def test_advances_sublevel_within_rank(self, scale):
        # Arrange
        state = DomainLevelState.initial()

        # Act
        transition = apply_xp(state, 250, scale)

        # Assert
        assert transition.after.current_xp == 250
        assert transition.after.rank is Rank.F
        assert transition.after.sublevel == 2
        assert transition.after.banked_xp == 0
        assert transition.leveled_up
        assert transition.event_names() == [EVENT_SUBLEVEL_ADVANCED]

    def test_zero_amount_changes_nothing(self, scale):
        state = DomainLevelState(current_xp=550, sublevel=5)

        transition = apply_xp(state, 0, scale)

        assert not transition.changed
        assert transition.events == []

    def test_reaching_cap_banks_excess(self, scale):
        # Arrange: F9 at 950 XP, F cap is 1000
        state = DomainLevelState(current_xp=950, sublevel=9)

        # Act
        transition = apply_xp(state, 100, scale)

        # Assert
        after = transition.after
        assert after.rank is Rank.F
        assert after.sublevel == 9
        assert after.banked_xp == 50
        assert after.breakthrough_ready is True
        assert transition.event_names() == [EVENT_XP_BANKED]

    def test_large_award_pins_at_nine(self, scale):
        state = DomainLevelState(current_xp=350, sublevel=3)

        transition = apply_xp(state, 5000, scale)

        assert transition.after.sublevel == 9
        assert transition.after.banked_xp == 4350
        assert transition.after.rank is Rank.F
        assert transition.event_names() == [EVENT_SUBLEVEL_ADVANCED, EVENT_XP_BANKED]

    def test_banked_level_keeps_banking(self, scale):
        """E9 with 50 banked plus 500 XP stays E9 with 550 banked."""
        # Arrange: E cap is 3000
        state = DomainLevelState(
            current_xp=3050, rank=Rank.E, sublevel=9, banked_xp=50, breakthrough_ready=True
        )

        # Act
        transition = apply_xp(state, 500, scale)

        # Assert
        after = transition.after
        assert after.rank is Rank.E
        assert after.sublevel == 9
        assert after.banked_xp == 550
        assert after.breakthrough_ready is True
        banked = transition.find_event(EVENT_XP_BANKED)
        assert banked is not None
        assert banked.payload["newly_banked"] == 500

    def test_top_rank_keeps_banking(self, scale):
        state = DomainLevelState(
            current_xp=127000, rank=Rank.S, sublevel=9, breakthrough_ready=True
        )

        transition = apply_xp(state, 1000, scale)

        assert transition.after.rank is Rank.S
        assert transition.after.banked_xp == 1000

    def test_sublevel_catches_up_after_breakthrough(self, scale):
        # Arrange: just broke through to D carrying 550 XP into the rank
        state = DomainLevelState(current_xp=3550, rank=Rank.D, sublevel=0)

        # Act
        transition = apply_xp(state, 10, scale)

        # Assert: (3560 - 3000) // 400 = 1
        assert transition.after.rank is Rank.D
        assert transition.after.sublevel == 1

    def test_negative_amount_rejected(self, scale):
        with pytest.raises(DomainValidationError):
            apply_xp(DomainLevelState.initial(), -5, scale)

    def test_never_lowers_level_or_changes_rank(self, scale):
        """Positive awards are monotonic and respect the banking invariant."""
        # Arrange
        state = DomainLevelState.initial()
        amounts = [25, 75, 150, 1, 99, 300, 10, 400, 50, 2000, 7, 125, 5000]

        for amount in amounts:
            # Act
            transition = apply_xp(state, amount, scale)
            after = transition.after

            # Assert
            assert after.numeric_level >= state.numeric_level
            assert after.rank is Rank.F
            assert 0 <= after.sublevel <= 9
            at_cap = after.current_xp >= scale.rank_cap_xp(after.rank)
            assert after.breakthrough_ready == (after.sublevel == 9 and at_cap)
            state = after


# ============================================================================
# BREAKTHROUGH
# ============================================================================


@pytest.mark.unit
class TestApplyBreakthrough:
    """Test apply_breakthrough()."""

    @pytest.fixture
    def banked_e(self):
        return DomainLevelState(
            current_xp=3550, rank=Rank.E, sublevel=9, banked_xp=550, breakthrough_ready=True
        )

    def test_qualified_breakthrough_advances_rank(self, scale, banked_e):
        # Act
        transition = apply_breakthrough(banked_e, True, scale)

        # Assert
        after = transition.after
        assert after.rank is Rank.D
        assert after.sublevel == 0
        assert after.banked_xp == 0
        assert after.breakthrough_ready is False
        assert after.current_xp == 3550
        event = transition.find_event(EVENT_BREAKTHROUGH)
        assert event is not None
        assert event.payload["released_xp"] == 550
        assert event.payload["rank_start_xp"] == 550

    def test_requires_qualification(self, scale, banked_e):
        transition = apply_breakthrough(banked_e, False, scale)

        assert not transition.changed
        assert transition.events == []

    def test_requires_ready(self, scale):
        state = DomainLevelState(current_xp=2500, rank=Rank.E, sublevel=7)

        transition = apply_breakthrough(state, True, scale)

        assert not transition.changed

    def test_top_rank_is_noop(self, scale):
        state = DomainLevelState(
            current_xp=130000, rank=Rank.S, sublevel=9, banked_xp=3000, breakthrough_ready=True
        )

        transition = apply_breakthrough(state, True, scale)

        assert not transition.changed
        assert transition.after.banked_xp == 3000


# ============================================================================
# REVERSAL
# ============================================================================


@pytest.mark.unit
class TestReverseXP:
    """Test reverse_xp()."""

    def test_recomputes_level(self, scale):
        # Arrange: D2 at 3900
        state = DomainLevelState(current_xp=3900, rank=Rank.D, sublevel=2)

        # Act
        transition = reverse_xp(state, 500, scale)

        # Assert
        assert transition.after.current_xp == 3400
        assert transition.after.display == "D1"
        assert transition.after.breakthrough_ready is False
        assert transition.event_names() == [EVENT_XP_REVERSED]

    def test_can_demote(self, scale):
        state = DomainLevelState(current_xp=3100, rank=Rank.D, sublevel=0)

        transition = reverse_xp(state, 500, scale)

        # (2600 - 1000) // 200 = 8
        assert transition.after.display == "E8"
        assert transition.rank_changed

    def test_floors_at_zero(self, scale):
        state = DomainLevelState(current_xp=250, sublevel=2)

        transition = reverse_xp(state, 1000, scale)

        assert transition.after == DomainLevelState.initial()
        assert transition.find_event(EVENT_XP_REVERSED).payload["removed"] == 250

    def test_never_promotes(self, scale):
        """A recomputed level above the current rank is re-pinned and re-banked."""
        # Arrange: E9 with 2000 banked (5000 XP, E cap 3000)
        state = DomainLevelState(
            current_xp=5000, rank=Rank.E, sublevel=9, banked_xp=2000, breakthrough_ready=True
        )

        # Act
        transition = reverse_xp(state, 500, scale)

        # Assert
        after = transition.after
        assert after.rank is Rank.E
        assert after.sublevel == 9
        assert after.banked_xp == 1500
        assert after.breakthrough_ready is True

    def test_dropping_below_cap_clears_ready(self, scale):
        state = DomainLevelState(
            current_xp=3100, rank=Rank.E, sublevel=9, banked_xp=100, breakthrough_ready=True
        )

        transition = reverse_xp(state, 200, scale)

        # 2900 is still E9 but below the 3000 cap
        assert transition.after.display == "E9"
        assert transition.after.banked_xp == 0
        assert transition.after.breakthrough_ready is False
