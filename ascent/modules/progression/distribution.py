"""
XP distribution across a challenge's domains.

A challenge credits XP to a primary domain and, optionally, a secondary and
tertiary domain, each with a percentage. Shares are rounded half up per
domain, so the shares may differ from the total by a point of rounding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ascent.domain.models.base import DomainValidationError, validate_non_negative
from ascent.modules.shared.formulas import percent_share


@dataclass(frozen=True)
class XPSplit:
    """
    Domain percentages for one challenge.

    Secondary and tertiary shares apply only when both the domain and the
    percentage are set. The applicable percentages must sum to at most 100.
    """

    primary_domain_id: int
    primary_percent: int = 100
    secondary_domain_id: Optional[int] = None
    secondary_percent: Optional[int] = None
    tertiary_domain_id: Optional[int] = None
    tertiary_percent: Optional[int] = None

    def __post_init__(self) -> None:
        total = 0
        for domain_id, percent in self.entries():
            validate_non_negative(percent, f"percent[{domain_id}]")
            total += percent
        if total > 100:
            raise DomainValidationError(
                f"XP split percentages sum to {total}, must be at most 100",
                field="xp_percent",
            )

    @classmethod
    def from_challenge(cls, challenge) -> "XPSplit":
        """Build a split from a `Challenge` row (or anything with its attributes)."""
        return cls(
            primary_domain_id=challenge.primary_domain_id,
            primary_percent=challenge.primary_xp_percent,
            secondary_domain_id=challenge.secondary_domain_id,
            secondary_percent=challenge.secondary_xp_percent,
            tertiary_domain_id=challenge.tertiary_domain_id,
            tertiary_percent=challenge.tertiary_xp_percent,
        )

    def entries(self) -> List[Tuple[int, int]]:
        """Applicable (domain_id, percent) pairs in primary, secondary, tertiary order."""
        pairs = [(self.primary_domain_id, self.primary_percent)]
        if self.secondary_domain_id is not None and self.secondary_percent:
            pairs.append((self.secondary_domain_id, self.secondary_percent))
        if self.tertiary_domain_id is not None and self.tertiary_percent:
            pairs.append((self.tertiary_domain_id, self.tertiary_percent))
        return pairs

    def domain_ids(self) -> List[int]:
        seen: List[int] = []
        for domain_id, _ in self.entries():
            if domain_id not in seen:
                seen.append(domain_id)
        return seen


def distribute_xp(amount: int, split: XPSplit) -> Dict[int, int]:
    """
    Per-domain XP shares for `amount`.

    Example:
        >>> distribute_xp(250, XPSplit(1, 70, 2, 30))
        {1: 175, 2: 75}
    """
    validate_non_negative(amount, "amount")
    shares: Dict[int, int] = {}
    for domain_id, percent in split.entries():
        shares[domain_id] = shares.get(domain_id, 0) + percent_share(amount, percent)
    return shares


def credited_by_domain(entries: Iterable) -> Dict[int, int]:
    """Sum ledger entries (anything with `domain_id` and `amount`) per domain."""
    totals: Dict[int, int] = {}
    for entry in entries:
        totals[entry.domain_id] = totals.get(entry.domain_id, 0) + entry.amount
    return totals
