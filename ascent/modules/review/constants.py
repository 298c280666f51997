"""
Review system constants.

Refusal reasons are user-facing strings and are returned verbatim.
"""

from __future__ import annotations

from typing import FrozenSet

from ascent.database.models.enums import Role, SubmissionStatus

ELEVATED_ROLES: FrozenSet[Role] = frozenset({Role.COACH, Role.GYM_ADMIN, Role.SYSTEM_ADMIN})

DECISION_STATUSES: FrozenSet[SubmissionStatus] = frozenset(
    {
        SubmissionStatus.APPROVED,
        SubmissionStatus.REJECTED,
        SubmissionStatus.NEEDS_REVISION,
    }
)


# ============================================================================
# REFUSAL REASONS
# ============================================================================

REASON_USER_NOT_FOUND = "User not found"
REASON_SUBMISSION_NOT_FOUND = "Submission not found"
REASON_SUSPENDED = "Your account is suspended"
REASON_REVIEW_REVOKED = "Your review privileges have been revoked"
REASON_OWN_SUBMISSION = "Cannot review your own submission"
REASON_NO_ATHLETE_PROFILE = "You must have an athlete profile to review"
REASON_UNDERAGE = "You must be {min_age} or older to review submissions"
REASON_RANK_TOO_LOW = "You need to be {rank}-rank or higher in this domain to review"
REASON_ALREADY_REVIEWED = "This submission has already been reviewed"


# ============================================================================
# DECISION MESSAGES
# ============================================================================

DECISION_MESSAGES = {
    SubmissionStatus.APPROVED: "Submission approved! XP has been awarded.",
    SubmissionStatus.REJECTED: "Submission rejected.",
    SubmissionStatus.NEEDS_REVISION: "Revision requested. The athlete will be notified.",
}
