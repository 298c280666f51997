"""
Review module: peer review eligibility, the review queue, and review
decisions.
"""

from ascent.modules.review.eligibility_logic import (
    ReviewDecision,
    ReviewerProfile,
    ReviewQueuePage,
    SubmissionView,
    build_review_queue,
    evaluate_review_eligibility,
    filter_reviewable,
    paginate,
)
from ascent.modules.review.service import ReviewOutcome, ReviewService

__all__ = [
    "ReviewDecision",
    "ReviewerProfile",
    "ReviewQueuePage",
    "SubmissionView",
    "build_review_queue",
    "evaluate_review_eligibility",
    "filter_reviewable",
    "paginate",
    "ReviewOutcome",
    "ReviewService",
]
