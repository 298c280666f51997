"""
Ascent shared formulas

Purpose
-------
Pure calculation helpers used by more than one feature module: integer
percentage shares, age from a date of birth, and page arithmetic.

Design Notes
------------
- Pure functions only (no side effects, no config access)
- Integer arithmetic throughout so XP totals never drift through floats
"""

from __future__ import annotations

from datetime import date
from typing import Optional


def round_half_up_div(numerator: int, denominator: int) -> int:
    """
    Integer division rounding .5 away from zero for non-negative inputs.

    Example:
        >>> round_half_up_div(5, 2)
        3
        >>> round_half_up_div(4, 3)
        1
    """
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (2 * numerator + denominator) // (2 * denominator)


def percent_share(amount: int, percent: int) -> int:
    """
    `percent`% of `amount`, rounded half up.

    Example:
        >>> percent_share(250, 70)
        175
        >>> percent_share(25, 10)
        3
    """
    return round_half_up_div(amount * percent, 100)


def calculate_age(date_of_birth: date, today: Optional[date] = None) -> int:
    """
    Whole years between a birth date and today.

    The birthday itself counts: someone born 2008-03-15 is 18 on 2026-03-15.

    Example:
        >>> calculate_age(date(2008, 3, 15), today=date(2026, 3, 14))
        17
        >>> calculate_age(date(2008, 3, 15), today=date(2026, 3, 15))
        18
    """
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed to show `total` items; 0 when there are none."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return (total + page_size - 1) // page_size
