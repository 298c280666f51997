"""
Unit Tests for the Rank Scale Domain Model
==========================================

Test Coverage
-------------
- Rank parsing and integrity errors
- Numeric level encoding round trip and clamping
- Prime level calculation
- RankScale table validation and lookups
- ClaimedTiers canonical form

Testing Strategy
----------------
- Pure unit tests (no database)
- AAA pattern (Arrange, Act, Assert)
"""

import pytest

from ascent.core.exceptions import RankIntegrityError
from ascent.domain.models.base import DomainValidationError
from ascent.domain.models.rank import (
    DEFAULT_RANK_SCALE,
    MAX_NUMERIC_LEVEL,
    ClaimedTiers,
    Rank,
    RankScale,
    calculate_prime,
    format_level,
    from_numeric,
    is_higher_level,
    to_numeric,
)


# ============================================================================
# RANK TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestRank:
    """Test the Rank enumeration."""

    def test_ranks_are_ordered(self):
        """F is lowest and S is highest."""
        assert [r.symbol for r in Rank] == ["F", "E", "D", "C", "B", "A", "S"]
        assert Rank.F < Rank.C < Rank.S
        assert Rank.lowest() is Rank.F
        assert Rank.top() is Rank.S

    def test_parse_symbol(self):
        assert Rank.parse("C") is Rank.C
        assert Rank.parse(" B ") is Rank.B
        assert Rank.parse(Rank.A) is Rank.A

    @pytest.mark.parametrize("bad", ["X", "", "c", "CC", None, 3])
    def test_parse_malformed_symbol_raises_integrity_error(self, bad):
        """A malformed stored rank is a data-integrity failure, never coerced."""
        # Act & Assert
        with pytest.raises(RankIntegrityError) as exc_info:
            Rank.parse(bad, "domain_levels.rank")

        assert exc_info.value.error_code == "RANK_INTEGRITY"

    def test_parse_optional(self):
        assert Rank.parse_optional(None) is None
        assert Rank.parse_optional("") is None
        assert Rank.parse_optional("E") is Rank.E

    def test_next(self):
        assert Rank.F.next() is Rank.E
        assert Rank.A.next() is Rank.S
        assert Rank.S.next() is None

    def test_between(self):
        assert Rank.F.between(Rank.D) == [Rank.F, Rank.E, Rank.D]
        assert Rank.C.between(Rank.C) == [Rank.C]
        assert Rank.C.between(Rank.F) == []


# ============================================================================
# NUMERIC LEVEL TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestNumericLevel:
    """Test the index*10 + sublevel encoding."""

    def test_round_trip_for_every_rank_and_sublevel(self):
        for rank in Rank:
            for sublevel in range(10):
                assert from_numeric(to_numeric(rank, sublevel)) == (rank, sublevel)

    def test_encoding_values(self):
        assert to_numeric(Rank.F, 0) == 0
        assert to_numeric(Rank.C, 7) == 37
        assert to_numeric(Rank.S, 9) == MAX_NUMERIC_LEVEL == 69

    def test_from_numeric_clamps(self):
        assert from_numeric(-5) == (Rank.F, 0)
        assert from_numeric(500) == (Rank.S, 9)

    def test_format_level(self):
        assert format_level(Rank.C, 7) == "C7"

    def test_is_higher_level(self):
        assert is_higher_level(Rank.D, 0, Rank.E, 9)
        assert not is_higher_level(Rank.E, 9, Rank.E, 9)


@pytest.mark.unit
@pytest.mark.domain
class TestCalculatePrime:
    def test_no_levels_is_f0(self):
        assert calculate_prime([]) == (Rank.F, 0)

    def test_floor_of_average(self):
        # Arrange: C7 (37), E2 (12), D5 (25) -> 74 / 3 = 24.67 -> 24
        levels = [(Rank.C, 7), (Rank.E, 2), (Rank.D, 5)]

        # Act
        prime = calculate_prime(levels)

        # Assert
        assert prime == (Rank.E, 4)


# ============================================================================
# RANK SCALE TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestRankScale:
    """Test the progression curve value object."""

    def test_reference_tables(self, scale):
        assert scale.sublevel_cost(Rank.F) == 100
        assert scale.sublevel_cost(Rank.S) == 6400
        assert scale.threshold(Rank.C) == 7000
        assert scale.tier_reward(Rank.B) == 150
        assert scale.label(Rank.B) == "Breakthrough"

    def test_rank_cap_matches_next_threshold(self, scale):
        """On the reference curve a rank is exhausted exactly at the next threshold."""
        for rank in Rank:
            if rank.next() is not None:
                assert scale.rank_cap_xp(rank) == scale.threshold(rank.next())
        assert scale.rank_cap_xp(Rank.S) == 127000

    @pytest.mark.parametrize(
        "total_xp, expected",
        [
            (0, (Rank.F, 0)),
            (99, (Rank.F, 0)),
            (100, (Rank.F, 1)),
            (999, (Rank.F, 9)),
            (1000, (Rank.E, 0)),
            (1200, (Rank.E, 1)),
            (2999, (Rank.E, 9)),
            (3000, (Rank.D, 0)),
            (127000, (Rank.S, 9)),
            (500000, (Rank.S, 9)),
        ],
    )
    def test_level_for_xp(self, scale, total_xp, expected):
        assert scale.level_for_xp(total_xp) == expected

    def test_level_for_xp_rejects_negative(self, scale):
        with pytest.raises(DomainValidationError):
            scale.level_for_xp(-1)

    def test_xp_for_level(self, scale):
        assert scale.xp_for_level(Rank.D, 2) == 3800

    def test_pass_fail_xp_rounds_half_up(self, scale):
        # (25 + 50) / 2 = 37.5 -> 38
        assert scale.pass_fail_xp(Rank.F, Rank.E) == 38
        assert scale.pass_fail_xp(Rank.C, Rank.C) == 100

    def test_rejects_wrong_length(self):
        with pytest.raises(DomainValidationError) as exc_info:
            RankScale.from_tables([100] * 6, [0, 1, 2, 3, 4, 5], [1] * 6)

        assert exc_info.value.field == "xp_per_sublevel"

    def test_rejects_non_increasing_cumulative(self):
        with pytest.raises(DomainValidationError) as exc_info:
            RankScale.from_tables(
                [100] * 7, [0, 1000, 1000, 3000, 4000, 5000, 6000], [10] * 7
            )

        assert exc_info.value.field == "cumulative_xp"

    def test_rejects_non_zero_start(self):
        with pytest.raises(DomainValidationError):
            RankScale.from_tables([100] * 7, [5, 10, 20, 30, 40, 50, 60], [10] * 7)

    def test_rejects_cap_that_skips_next_threshold(self):
        # Arrange: E caps at 1000 + 10 * 100 = 2000 but D starts at 2500
        thresholds = [0, 1000, 2500, 3500, 4500, 5500, 6500]

        # Act / Assert
        with pytest.raises(DomainValidationError, match=r"cumulative_xp\[D\] must be 2000") as exc_info:
            RankScale.from_tables([100] * 7, thresholds, [1] * 7)

        assert exc_info.value.field == "cumulative_xp"

    def test_accepts_contiguous_custom_curve(self):
        scale = RankScale.from_tables(
            [10, 20, 30, 40, 50, 60, 70], [0, 100, 300, 600, 1000, 1500, 2100], [1] * 7
        )

        for rank in list(Rank)[:-1]:
            assert scale.rank_cap_xp(rank) == scale.threshold(rank.next())

    def test_rejects_zero_sublevel_cost(self):
        with pytest.raises(DomainValidationError):
            RankScale.from_tables(
                [100, 0, 100, 100, 100, 100, 100], list(DEFAULT_RANK_SCALE.cumulative_xp), [1] * 7
            )

    def test_is_immutable(self, scale):
        with pytest.raises(Exception):  # FrozenInstanceError
            scale.xp_per_tier = (1,) * 7  # type: ignore[misc]


# ============================================================================
# CLAIMED TIERS TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestClaimedTiers:
    def test_parse_and_serialize_are_canonical(self):
        assert ClaimedTiers.parse("D,F,E").serialize() == "F,E,D"
        assert ClaimedTiers.parse("F,F,E").serialize() == "F,E"

    def test_empty(self):
        assert ClaimedTiers.parse("").serialize() == ""
        assert ClaimedTiers.parse(None).serialize() == ""
        assert not ClaimedTiers()

    def test_parse_rejects_malformed(self):
        with pytest.raises(RankIntegrityError):
            ClaimedTiers.parse("F,Z")

    def test_union_and_membership(self):
        # Arrange
        claimed = ClaimedTiers.of(Rank.F, Rank.E)

        # Act
        merged = claimed.union([Rank.D, Rank.E])

        # Assert
        assert list(merged) == [Rank.F, Rank.E, Rank.D]
        assert Rank.D in merged
        assert Rank.D not in claimed
        assert len(merged) == 3
