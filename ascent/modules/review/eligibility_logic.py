"""
Review eligibility.

Purpose
-------
Decide whether a reviewer may review a submission. Rules are evaluated in
order and the first failure wins:

1. Suspended account: refused (even for elevated roles)
2. Review privileges revoked: refused unless elevated
3. Elevated role (COACH, GYM_ADMIN, SYSTEM_ADMIN): allowed
4. Reviewer owns the submission or is the owner's guardian: refused
5. Reviewer has no athlete profile: refused
6. Reviewer is under the minimum review age: refused
7. Reviewer's rank in the submission's primary domain must be at least one
   letter above the submission's tier; S may review S

A submission without an achieved rank counts as tier F; a reviewer without
a level in the domain counts as rank F.

The review queue applies the same rules to every pending submission, so
listing and the single check can never disagree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Generic, Iterable, List, Optional, Sequence, TypeVar

from ascent.database.models.enums import Role
from ascent.domain.models.rank import Rank
from ascent.modules.review.constants import (
    ELEVATED_ROLES,
    REASON_NO_ATHLETE_PROFILE,
    REASON_OWN_SUBMISSION,
    REASON_RANK_TOO_LOW,
    REASON_REVIEW_REVOKED,
    REASON_SUSPENDED,
    REASON_UNDERAGE,
)
from ascent.modules.shared.formulas import calculate_age, total_pages

T = TypeVar("T")


@dataclass(frozen=True)
class ReviewerProfile:
    """
    Everything the rules need to know about a reviewer.

    `domain_ranks` maps domain id to the reviewer's rank letter there; it is
    empty when the reviewer has no athlete profile.
    """

    user_id: int
    role: Role
    can_review: bool = True
    suspended: bool = False
    athlete_id: Optional[int] = None
    date_of_birth: Optional[date] = None
    domain_ranks: Dict[int, Rank] = field(default_factory=dict)

    @property
    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES

    @property
    def has_athlete_profile(self) -> bool:
        return self.athlete_id is not None

    def rank_in(self, domain_id: int) -> Rank:
        return self.domain_ranks.get(domain_id, Rank.lowest())


@dataclass(frozen=True)
class SubmissionView:
    submission_id: int
    primary_domain_id: int
    achieved_rank: Optional[Rank] = None
    owner_user_id: Optional[int] = None
    owner_parent_id: Optional[int] = None
    athlete_name: Optional[str] = None
    challenge_name: Optional[str] = None
    submitted_at: Optional[datetime] = None

    @property
    def tier(self) -> Rank:
        return self.achieved_rank if self.achieved_rank is not None else Rank.lowest()


@dataclass(frozen=True)
class ReviewDecision:
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def accept(cls) -> "ReviewDecision":
        return cls(allowed=True)

    @classmethod
    def reject(cls, reason: str) -> "ReviewDecision":
        return cls(allowed=False, reason=reason)

    def to_dict(self) -> Dict[str, object]:
        if self.allowed:
            return {"allowed": True}
        return {"allowed": False, "reason": self.reason}


@dataclass(frozen=True)
class ReviewQueuePage(Generic[T]):
    items: Sequence[T]
    total: int
    page: int
    total_pages: int
    review_banned: Optional[bool] = None


def minimum_reviewer_rank(tier: Rank) -> Rank:
    """Lowest rank allowed to review a submission of `tier`; S for S."""
    next_rank = tier.next()
    return next_rank if next_rank is not None else Rank.top()


def reviewer_standing(reviewer: ReviewerProfile) -> Optional[ReviewDecision]:
    """
    Rules 1-3, which depend on the reviewer alone.

    Returns a final decision, or None when the submission must be examined.
    """
    if reviewer.suspended:
        return ReviewDecision.reject(REASON_SUSPENDED)
    if not reviewer.can_review and not reviewer.is_elevated:
        return ReviewDecision.reject(REASON_REVIEW_REVOKED)
    if reviewer.is_elevated:
        return ReviewDecision.accept()
    return None


def evaluate_review_eligibility(
    reviewer: ReviewerProfile,
    submission: SubmissionView,
    min_age: int = 18,
    today: Optional[date] = None,
) -> ReviewDecision:
    """Apply the review rules in order; first failure wins."""
    standing = reviewer_standing(reviewer)
    if standing is not None:
        return standing

    if reviewer.user_id in (submission.owner_user_id, submission.owner_parent_id):
        return ReviewDecision.reject(REASON_OWN_SUBMISSION)

    if not reviewer.has_athlete_profile or reviewer.date_of_birth is None:
        return ReviewDecision.reject(REASON_NO_ATHLETE_PROFILE)

    if calculate_age(reviewer.date_of_birth, today) < min_age:
        return ReviewDecision.reject(REASON_UNDERAGE.format(min_age=min_age))

    tier = submission.tier
    reviewer_rank = reviewer.rank_in(submission.primary_domain_id)
    if tier is Rank.top() and reviewer_rank is Rank.top():
        return ReviewDecision.accept()
    if reviewer_rank > tier:
        return ReviewDecision.accept()

    return ReviewDecision.reject(
        REASON_RANK_TOO_LOW.format(rank=minimum_reviewer_rank(tier).symbol)
    )


def filter_reviewable(
    reviewer: ReviewerProfile,
    submissions: Iterable[SubmissionView],
    min_age: int = 18,
    today: Optional[date] = None,
) -> List[SubmissionView]:
    """Submissions the reviewer may review, input order preserved."""
    return [
        submission
        for submission in submissions
        if evaluate_review_eligibility(reviewer, submission, min_age, today).allowed
    ]


def paginate(items: Sequence[T], page: int = 1, limit: int = 20) -> ReviewQueuePage[T]:
    """Slice `items` into 1-based page `page` of size `limit`."""
    page = max(1, page)
    start = (page - 1) * limit
    return ReviewQueuePage(
        items=list(items[start:start + limit]),
        total=len(items),
        page=page,
        total_pages=total_pages(len(items), limit),
    )


def build_review_queue(
    reviewer: ReviewerProfile,
    pending: Sequence[SubmissionView],
    page: int = 1,
    limit: int = 20,
    min_age: int = 18,
    today: Optional[date] = None,
) -> ReviewQueuePage[SubmissionView]:
    """
    One page of the pending submissions the reviewer may review.

    A non-elevated reviewer who is suspended or review-banned gets an empty
    first page flagged with `review_banned`.
    """
    if not reviewer.is_elevated and (reviewer.suspended or not reviewer.can_review):
        return ReviewQueuePage(
            items=[],
            total=0,
            page=1,
            total_pages=0,
            review_banned=not reviewer.can_review,
        )
    return paginate(filter_reviewable(reviewer, pending, min_age, today), page, limit)
