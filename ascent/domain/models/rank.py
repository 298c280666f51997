"""
Rank scale domain model for Ascent.

Purpose
-------
Reference data shared by every part of the progression engine:

- `Rank`: the seven ordered rank letters, F (lowest) to S (highest).
- Numeric level encoding `index(rank) * 10 + sublevel`, a single comparable
  integer in [0, 69].
- `RankScale`: the progression curve (XP per sublevel, cumulative XP to reach
  each rank, flat XP reward per claimed tier, display labels). It is an
  immutable value injected into every engine call so alternate curves can be
  tested side by side.
- `ClaimedTiers`: the ordered small-set of tier rewards already paid out for
  one submission, with its comma-separated form used only at the persistence
  boundary.

Design Notes
------------
- A rank symbol that cannot be parsed means a corrupted record; it raises
  `RankIntegrityError` instead of being coerced to a default.
- `to_numeric` / `from_numeric` are total: `from_numeric` clamps its input.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from ascent.core.exceptions import RankIntegrityError
from ascent.domain.models.base import DomainValidationError, validate_non_negative

SUBLEVELS_PER_RANK = 10
MAX_SUBLEVEL = SUBLEVELS_PER_RANK - 1


# ============================================================================
# RANK
# ============================================================================


class Rank(enum.IntEnum):
    """Rank letters in ascending order."""

    F = 0
    E = 1
    D = 2
    C = 3
    B = 4
    A = 5
    S = 6

    @property
    def symbol(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name

    @classmethod
    def lowest(cls) -> "Rank":
        return cls.F

    @classmethod
    def top(cls) -> "Rank":
        return cls.S

    @classmethod
    def parse(cls, value: Union["Rank", str], source: Optional[str] = None) -> "Rank":
        """
        Parse a stored rank symbol.

        Raises
        ------
        RankIntegrityError
            If the value is not one of the rank letters.
        """
        if isinstance(value, Rank):
            return value
        if not isinstance(value, str):
            raise RankIntegrityError(value, source)
        try:
            return cls[value.strip()]
        except KeyError:
            raise RankIntegrityError(value, source) from None

    @classmethod
    def parse_optional(
        cls, value: Optional[Union["Rank", str]], source: Optional[str] = None
    ) -> Optional["Rank"]:
        if value is None or value == "":
            return None
        return cls.parse(value, source)

    def next(self) -> Optional["Rank"]:
        """The rank above this one, or None at the top rank."""
        if self is Rank.S:
            return None
        return Rank(self.value + 1)

    def between(self, upper: "Rank") -> List["Rank"]:
        """All ranks from self to upper, inclusive, ascending."""
        return [Rank(i) for i in range(self.value, upper.value + 1)]


# ============================================================================
# NUMERIC LEVEL ENCODING
# ============================================================================

MAX_NUMERIC_LEVEL = len(Rank) * SUBLEVELS_PER_RANK - 1


def to_numeric(rank: Rank, sublevel: int) -> int:
    """Encode (rank, sublevel) as index(rank) * 10 + sublevel."""
    return rank.value * SUBLEVELS_PER_RANK + sublevel


def from_numeric(numeric: int) -> Tuple[Rank, int]:
    """Decode a numeric level, clamping to [0, 69]."""
    clamped = max(0, min(MAX_NUMERIC_LEVEL, numeric))
    return Rank(clamped // SUBLEVELS_PER_RANK), clamped % SUBLEVELS_PER_RANK


def format_level(rank: Rank, sublevel: int) -> str:
    """Short display form, e.g. "C7"."""
    return f"{rank.symbol}{sublevel}"


def is_higher_level(
    rank_a: Rank, sublevel_a: int, rank_b: Rank, sublevel_b: int
) -> bool:
    return to_numeric(rank_a, sublevel_a) > to_numeric(rank_b, sublevel_b)


def calculate_prime(levels: Iterable[Tuple[Rank, int]]) -> Tuple[Rank, int]:
    """
    Overall athlete level across domains.

    Floor of the average numeric level; F0 when the athlete has no levels.
    """
    numerics = [to_numeric(rank, sublevel) for rank, sublevel in levels]
    if not numerics:
        return Rank.F, 0
    return from_numeric(sum(numerics) // len(numerics))


# ============================================================================
# RANK SCALE (PROGRESSION CURVE)
# ============================================================================


def _per_rank(values: Iterable[int]) -> Tuple[int, ...]:
    return tuple(int(v) for v in values)


@dataclass(frozen=True)
class RankScale:
    """
    Immutable progression curve.

    Each table holds one entry per rank, indexed by `Rank.value`.

    Attributes
    ----------
    xp_per_sublevel : Tuple[int, ...]
        XP cost of one sublevel within each rank
    cumulative_xp : Tuple[int, ...]
        Total XP required to reach sublevel 0 of each rank
    xp_per_tier : Tuple[int, ...]
        Flat XP reward for claiming a tier of each rank on a challenge
    labels : Tuple[str, ...]
        Display names
    """

    xp_per_sublevel: Tuple[int, ...]
    cumulative_xp: Tuple[int, ...]
    xp_per_tier: Tuple[int, ...]
    labels: Tuple[str, ...] = field(
        default=(
            "Foundation",
            "Emerging",
            "Developing",
            "Competent",
            "Breakthrough",
            "Advanced",
            "Supreme",
        )
    )

    def __post_init__(self) -> None:
        count = len(Rank)
        for name in ("xp_per_sublevel", "cumulative_xp", "xp_per_tier", "labels"):
            if len(getattr(self, name)) != count:
                raise DomainValidationError(
                    f"{name} must have exactly {count} entries", field=name
                )

        for rank in Rank:
            if self.xp_per_sublevel[rank] <= 0:
                raise DomainValidationError(
                    f"xp_per_sublevel[{rank.symbol}] must be positive",
                    field="xp_per_sublevel",
                )
            validate_non_negative(self.xp_per_tier[rank], f"xp_per_tier[{rank.symbol}]")

        if self.cumulative_xp[0] != 0:
            raise DomainValidationError(
                "cumulative_xp must start at 0 for the lowest rank", field="cumulative_xp"
            )
        for lower, upper in zip(self.cumulative_xp, self.cumulative_xp[1:]):
            if upper <= lower:
                raise DomainValidationError(
                    "cumulative_xp must be strictly increasing", field="cumulative_xp"
                )

        # A rank's cap is where the next rank starts.
        for rank in list(Rank)[:-1]:
            cap = self.cumulative_xp[rank] + SUBLEVELS_PER_RANK * self.xp_per_sublevel[rank]
            if cap != self.cumulative_xp[rank + 1]:
                raise DomainValidationError(
                    f"cumulative_xp[{rank.next().symbol}] must be {cap}, the cap of "
                    f"rank {rank.symbol}, got {self.cumulative_xp[rank + 1]}",
                    field="cumulative_xp",
                )

    @classmethod
    def from_tables(
        cls,
        xp_per_sublevel: Iterable[int],
        cumulative_xp: Iterable[int],
        xp_per_tier: Iterable[int],
        labels: Optional[Iterable[str]] = None,
    ) -> "RankScale":
        if labels is None:
            return cls(
                _per_rank(xp_per_sublevel), _per_rank(cumulative_xp), _per_rank(xp_per_tier)
            )
        return cls(
            _per_rank(xp_per_sublevel),
            _per_rank(cumulative_xp),
            _per_rank(xp_per_tier),
            tuple(str(label) for label in labels),
        )

    # ------------------------------------------------------------------
    # Table lookups
    # ------------------------------------------------------------------

    def sublevel_cost(self, rank: Rank) -> int:
        return self.xp_per_sublevel[rank]

    def threshold(self, rank: Rank) -> int:
        """Total XP required to reach sublevel 0 of `rank`."""
        return self.cumulative_xp[rank]

    def tier_reward(self, rank: Rank) -> int:
        return self.xp_per_tier[rank]

    def label(self, rank: Rank) -> str:
        return self.labels[rank]

    def rank_cap_xp(self, rank: Rank) -> int:
        """
        Total XP at which `rank` is exhausted.

        Anything beyond this is banked until a breakthrough.
        """
        return self.threshold(rank) + SUBLEVELS_PER_RANK * self.sublevel_cost(rank)

    def xp_for_level(self, rank: Rank, sublevel: int) -> int:
        return self.threshold(rank) + sublevel * self.sublevel_cost(rank)

    def level_for_xp(self, total_xp: int) -> Tuple[Rank, int]:
        """
        Rank and sublevel implied by a total XP amount.

        Highest rank whose threshold is <= total_xp; sublevel is the number of
        whole sublevels bought past that threshold, capped at 9.
        """
        validate_non_negative(total_xp, "total_xp")
        rank = Rank.F
        for candidate in Rank:
            if self.threshold(candidate) <= total_xp:
                rank = candidate
            else:
                break
        sublevel = (total_xp - self.threshold(rank)) // self.sublevel_cost(rank)
        return rank, min(sublevel, MAX_SUBLEVEL)

    def pass_fail_xp(self, min_rank: Rank, max_rank: Rank) -> int:
        """
        XP for a pass/fail challenge: the mean of the two bounding tier
        rewards, rounded half up.
        """
        total = self.tier_reward(min_rank) + self.tier_reward(max_rank)
        return (total + 1) // 2


DEFAULT_RANK_SCALE = RankScale(
    xp_per_sublevel=(100, 200, 400, 800, 1600, 3200, 6400),
    cumulative_xp=(0, 1000, 3000, 7000, 15000, 31000, 63000),
    xp_per_tier=(25, 50, 75, 100, 150, 200, 300),
)


# ============================================================================
# CLAIMED TIERS
# ============================================================================


@dataclass(frozen=True)
class ClaimedTiers:
    """
    Ordered set of ranks whose tier reward has been paid for a submission.

    Always canonical: ascending, no duplicates. Construct with any iterable
    of ranks; use `parse` / `serialize` at the persistence boundary.

    >>> ClaimedTiers.parse("D,F,E").serialize()
    'F,E,D'
    """

    tiers: Tuple[Rank, ...] = ()

    def __post_init__(self) -> None:
        canonical = tuple(sorted(set(Rank.parse(t) for t in self.tiers)))
        object.__setattr__(self, "tiers", canonical)

    @classmethod
    def of(cls, *ranks: Rank) -> "ClaimedTiers":
        return cls(tuple(ranks))

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ClaimedTiers":
        """Parse the stored comma-separated form. Empty or None is the empty set."""
        if not raw:
            return cls()
        symbols = [part.strip() for part in raw.split(",")]
        return cls(tuple(Rank.parse(s, "claimed_tiers") for s in symbols if s))

    def serialize(self) -> str:
        return ",".join(rank.symbol for rank in self.tiers)

    def union(self, ranks: Iterable[Rank]) -> "ClaimedTiers":
        return ClaimedTiers(self.tiers + tuple(ranks))

    def __contains__(self, rank: object) -> bool:
        return rank in self.tiers

    def __iter__(self) -> Iterator[Rank]:
        return iter(self.tiers)

    def __len__(self) -> int:
        return len(self.tiers)

    def __bool__(self) -> bool:
        return bool(self.tiers)

    def __str__(self) -> str:
        return self.serialize()
