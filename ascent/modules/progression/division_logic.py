"""
Division matching.

Picks the grade table that applies to an athlete: the first active
division, by sort order, whose gender is open or equal to the athlete's and
whose age bounds (inclusive, open when null) contain the athlete's age.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional, Tuple, TypeVar

from ascent.domain.models.rank import Rank
from ascent.modules.shared.formulas import calculate_age

D = TypeVar("D")


def division_matches(division, age: int, gender: str) -> bool:
    if not division.is_active:
        return False
    if division.gender is not None and division.gender != gender:
        return False
    if division.age_min is not None and age < division.age_min:
        return False
    if division.age_max is not None and age > division.age_max:
        return False
    return True


def find_matching_division(
    divisions: Iterable[D],
    date_of_birth: date,
    gender: str,
    today: Optional[date] = None,
) -> Optional[D]:
    """First matching division by `sort_order`, or None."""
    age = calculate_age(date_of_birth, today)
    for division in sorted(divisions, key=lambda d: d.sort_order):
        if division_matches(division, age, gender):
            return division
    return None


def grades_for_division(grades: Iterable, division_id: int) -> List[Tuple[Rank, float]]:
    """(rank, target_value) pairs of `grades` belonging to `division_id`."""
    return [
        (Rank.parse(grade.rank, "challenge_grades.rank"), float(grade.target_value))
        for grade in grades
        if grade.division_id == division_id
    ]
