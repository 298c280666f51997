"""
Unit Tests for Shared Formulas
==============================
"""

from datetime import date

import pytest

from ascent.modules.shared.formulas import (
    calculate_age,
    percent_share,
    round_half_up_div,
    total_pages,
)


@pytest.mark.unit
class TestRounding:
    @pytest.mark.parametrize(
        "numerator, denominator, expected",
        [(5, 2, 3), (4, 3, 1), (0, 7, 0), (250, 100, 3), (249, 100, 2)],
    )
    def test_round_half_up_div(self, numerator, denominator, expected):
        assert round_half_up_div(numerator, denominator) == expected

    def test_zero_denominator_rejected(self):
        with pytest.raises(ValueError):
            round_half_up_div(1, 0)

    @pytest.mark.parametrize(
        "amount, percent, expected",
        [(250, 70, 175), (250, 30, 75), (25, 10, 3), (15, 50, 8), (100, 0, 0)],
    )
    def test_percent_share(self, amount, percent, expected):
        assert percent_share(amount, percent) == expected


@pytest.mark.unit
class TestCalculateAge:
    def test_day_before_birthday(self):
        assert calculate_age(date(2008, 3, 15), today=date(2026, 3, 14)) == 17

    def test_on_birthday(self):
        assert calculate_age(date(2008, 3, 15), today=date(2026, 3, 15)) == 18

    def test_leap_day_birthday(self):
        assert calculate_age(date(2008, 2, 29), today=date(2026, 2, 28)) == 17
        assert calculate_age(date(2008, 2, 29), today=date(2026, 3, 1)) == 18


@pytest.mark.unit
class TestTotalPages:
    @pytest.mark.parametrize("total, expected", [(0, 0), (1, 1), (20, 1), (21, 2), (45, 3)])
    def test_total_pages(self, total, expected):
        assert total_pages(total, 20) == expected

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValueError):
            total_pages(10, 0)
