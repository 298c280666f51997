"""
Domain level state for one (athlete, domain) pair.

Purpose
-------
Immutable snapshot of an athlete's progress in a single domain, plus the
`LevelTransition` record returned by every progression transition.

XP Accounting
-------------
- `current_xp` is the athlete's total XP in the domain; it is what the
  cumulative table in `RankScale` is indexed by.
- XP within the current rank is derived: `current_xp - threshold(rank)`.
- `banked_xp` is the excess beyond the current rank's cap while the level is
  pinned at sublevel 9, otherwise 0.

Invariants
----------
- 0 <= sublevel <= 9
- current_xp >= 0, banked_xp >= 0
- breakthrough_ready implies sublevel == 9
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional

from ascent.domain.models.base import (
    DomainEvent,
    DomainValidationError,
    validate_non_negative,
    validate_range,
)
from ascent.domain.models.rank import MAX_SUBLEVEL, Rank, format_level, to_numeric


@dataclass(frozen=True)
class DomainLevelState:
    """
    Attributes
    ----------
    current_xp : int
        Total XP accumulated in the domain
    rank : Rank
        Current rank letter
    sublevel : int
        Progress within the rank (0-9)
    banked_xp : int
        XP beyond the rank's cap, held until a breakthrough
    breakthrough_ready : bool
        Whether the level is pinned at sublevel 9 awaiting a breakthrough
    """

    current_xp: int = 0
    rank: Rank = Rank.F
    sublevel: int = 0
    banked_xp: int = 0
    breakthrough_ready: bool = False

    def __post_init__(self) -> None:
        validate_non_negative(self.current_xp, "current_xp")
        validate_non_negative(self.banked_xp, "banked_xp")
        validate_range(self.sublevel, 0, MAX_SUBLEVEL, "sublevel")
        if not isinstance(self.rank, Rank):
            object.__setattr__(self, "rank", Rank.parse(self.rank, "rank"))
        if self.breakthrough_ready and self.sublevel != MAX_SUBLEVEL:
            raise DomainValidationError(
                "breakthrough_ready requires sublevel 9", field="breakthrough_ready"
            )

    @classmethod
    def initial(cls) -> "DomainLevelState":
        return cls()

    @property
    def numeric_level(self) -> int:
        return to_numeric(self.rank, self.sublevel)

    @property
    def display(self) -> str:
        return format_level(self.rank, self.sublevel)

    def with_changes(self, **changes) -> "DomainLevelState":
        return replace(self, **changes)


@dataclass(frozen=True)
class LevelTransition:
    """
    Result of a pure level transition.

    The caller persists `after` and may publish `events`.
    """

    before: DomainLevelState
    after: DomainLevelState
    events: List[DomainEvent] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.before != self.after

    @property
    def leveled_up(self) -> bool:
        return self.after.numeric_level > self.before.numeric_level

    @property
    def rank_changed(self) -> bool:
        return self.after.rank != self.before.rank

    @property
    def previous_level(self) -> str:
        return self.before.display

    @property
    def new_level(self) -> str:
        return self.after.display

    def event_names(self) -> List[str]:
        return [event.event_name for event in self.events]

    def find_event(self, event_name: str) -> Optional[DomainEvent]:
        for event in self.events:
            if event.event_name == event_name:
                return event
        return None
