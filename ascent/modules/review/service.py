"""
Review Service
==============

Purpose
-------
Peer review of challenge submissions: who may review what, the queue of
submissions a reviewer may act on, and recording a review decision.

Domain
------
- Single eligibility check (`can_review`)
- Paginated review queue (`list_reviewable`)
- Review decision with optional re-grade and XP award (`review_submission`)

Design Notes
------------
- Eligibility is decided by `eligibility_logic`; this service only loads
  the reviewer and submission into its value types.
- A decision moves a submission out of PENDING with a conditional UPDATE
  (`... WHERE status = 'PENDING'`). Of two concurrent decisions exactly one
  succeeds; the other raises `InvalidOperationError`.
- Approval, re-grade and the XP award commit in the same transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional, Type

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ascent.core.database.service import DatabaseService
from ascent.core.logging.logger import LogContext, get_logger
from ascent.database.models import (
    Athlete,
    Challenge,
    ChallengeSubmission,
    DomainLevel,
    Role,
    SubmissionStatus,
    User,
)
from ascent.domain.models.rank import Rank
from ascent.modules.progression.repository import (
    AthleteRepository,
    ChallengeRepository,
    DomainLevelRepository,
    SubmissionRepository,
    UserRepository,
)
from ascent.modules.progression.results import AwardResult
from ascent.modules.progression.service import ProgressionService
from ascent.modules.review.constants import (
    DECISION_MESSAGES,
    DECISION_STATUSES,
    REASON_ALREADY_REVIEWED,
    REASON_SUBMISSION_NOT_FOUND,
    REASON_USER_NOT_FOUND,
)
from ascent.modules.review.eligibility_logic import (
    ReviewDecision,
    ReviewerProfile,
    ReviewQueuePage,
    SubmissionView,
    build_review_queue,
    evaluate_review_eligibility,
    reviewer_standing,
)
from ascent.modules.shared.base_service import BaseService
from ascent.modules.shared.exceptions import (
    InvalidOperationError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from logging import Logger

    from ascent.core.config.config import Config


@dataclass(frozen=True)
class ReviewOutcome:
    submission_id: int
    status: SubmissionStatus
    achieved_rank: Optional[Rank]
    message: str
    award: Optional[AwardResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "submission_id": self.submission_id,
            "status": self.status.value,
            "achieved_rank": self.achieved_rank.symbol if self.achieved_rank else None,
            "message": self.message,
            "celebration": self.award.to_dict() if self.award and self.award.awarded else None,
        }


def submission_view(
    submission: ChallengeSubmission, challenge: Challenge, athlete: Athlete
) -> SubmissionView:
    return SubmissionView(
        submission_id=submission.id,
        primary_domain_id=challenge.primary_domain_id,
        achieved_rank=Rank.parse_optional(
            submission.achieved_rank, "challenge_submissions.achieved_rank"
        ),
        owner_user_id=athlete.user_id,
        owner_parent_id=athlete.parent_id,
        athlete_name=athlete.display_name,
        challenge_name=challenge.name,
        submitted_at=submission.submitted_at,
    )


class ReviewService(BaseService):
    """
    Service for submission review.

    Public Methods
    --------------
    - can_review() -> Whether a user may review a submission
    - list_reviewable() -> Page of pending submissions the user may review
    - review_submission() -> Record a decision; award XP on approval
    """

    def __init__(
        self,
        config: Type[Config],
        logger: Logger,
        progression: ProgressionService,
    ) -> None:
        super().__init__(config, logger)
        self.progression = progression

        repo_log = get_logger(f"{__name__}.repository")
        self._users = UserRepository(User, repo_log)
        self._athletes = AthleteRepository(Athlete, repo_log)
        self._challenges = ChallengeRepository(Challenge, repo_log)
        self._submissions = SubmissionRepository(ChallengeSubmission, repo_log)
        self._levels = DomainLevelRepository(DomainLevel, repo_log)

    @property
    def min_reviewer_age(self) -> int:
        return self.get_config("REVIEWER_MIN_AGE", default=18)

    # ========================================================================
    # Loading
    # ========================================================================

    async def _load_reviewer(
        self, session: AsyncSession, user_id: int
    ) -> Optional[ReviewerProfile]:
        user = await self._users.get(session, user_id)
        if user is None:
            return None

        athlete = await self._athletes.for_user(session, user_id)
        domain_ranks: Dict[int, Rank] = {}
        if athlete is not None:
            for level in await self._levels.for_athlete(session, athlete.id):
                domain_ranks[level.domain_id] = Rank.parse(level.rank, "domain_levels.rank")

        return ReviewerProfile(
            user_id=user.id,
            role=Role(user.role),
            can_review=user.can_review,
            suspended=user.suspended_at is not None,
            athlete_id=athlete.id if athlete is not None else None,
            date_of_birth=athlete.date_of_birth if athlete is not None else None,
            domain_ranks=domain_ranks,
        )

    async def _load_submission(
        self, session: AsyncSession, submission_id: int
    ) -> Optional[SubmissionView]:
        submission = await self._submissions.get(session, submission_id)
        if submission is None:
            return None
        challenge = await self._challenges.get(session, submission.challenge_id)
        athlete = await self._athletes.get(session, submission.athlete_id)
        if challenge is None or athlete is None:
            return None
        return submission_view(submission, challenge, athlete)

    async def _decide(
        self,
        session: AsyncSession,
        reviewer_user_id: int,
        submission_id: int,
        today: Optional[date] = None,
    ) -> ReviewDecision:
        reviewer = await self._load_reviewer(session, reviewer_user_id)
        if reviewer is None:
            return ReviewDecision.reject(REASON_USER_NOT_FOUND)

        standing = reviewer_standing(reviewer)
        if standing is not None and not standing.allowed:
            return standing

        view = await self._load_submission(session, submission_id)
        if view is None:
            return ReviewDecision.reject(REASON_SUBMISSION_NOT_FOUND)
        if standing is not None:
            return standing

        return evaluate_review_eligibility(reviewer, view, self.min_reviewer_age, today)

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def can_review(
        self, reviewer_user_id: int, submission_id: int, today: Optional[date] = None
    ) -> ReviewDecision:
        """
        Whether `reviewer_user_id` may review `submission_id`.

        This is a **read-only** operation using get_session(). A refusal is
        a normal result carrying the reason, never an exception.
        """
        self.validate_positive_int(reviewer_user_id, "reviewer_user_id")
        self.validate_positive_int(submission_id, "submission_id")

        async with DatabaseService.get_session() as session:
            decision = await self._decide(session, reviewer_user_id, submission_id, today)

        self.log.debug(
            "Review eligibility evaluated",
            extra={
                "user_id": reviewer_user_id,
                "submission_id": submission_id,
                "allowed": decision.allowed,
                "reason": decision.reason,
            },
        )
        return decision

    async def list_reviewable(
        self,
        reviewer_user_id: int,
        page: int = 1,
        limit: Optional[int] = None,
        today: Optional[date] = None,
    ) -> ReviewQueuePage[SubmissionView]:
        """
        Pending submissions the reviewer may review, newest first.

        Raises:
            NotFoundError: Reviewer user missing
        """
        self.validate_positive_int(reviewer_user_id, "reviewer_user_id")
        self.validate_positive_int(page, "page")
        limit = limit if limit is not None else self.get_config("REVIEW_QUEUE_PAGE_SIZE", 20)
        self.validate_positive_int(limit, "limit")

        self.log_operation("list_reviewable", user_id=reviewer_user_id, page=page)

        async with DatabaseService.get_session() as session:
            reviewer = await self._load_reviewer(session, reviewer_user_id)
            if reviewer is None:
                raise NotFoundError("User", reviewer_user_id)

            pending = [
                submission_view(submission, challenge, athlete)
                for submission, challenge, athlete in await self._submissions.pending_with_context(
                    session
                )
            ]

        return build_review_queue(
            reviewer, pending, page, limit, self.min_reviewer_age, today
        )

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    async def review_submission(
        self,
        reviewer_user_id: int,
        submission_id: int,
        status: SubmissionStatus,
        review_notes: Optional[str] = None,
        achieved_value: Optional[float] = None,
        today: Optional[date] = None,
    ) -> ReviewOutcome:
        """
        Record a review decision for a pending submission.

        When `achieved_value` is given the submission is re-graded against
        the athlete's division before the decision is stored (the previous
        rank is kept if the athlete matches no division). On approval with
        an achieved rank, XP is awarded in the same transaction.

        This is a **write operation** using get_transaction().

        Raises:
            ValidationError: `status` is not a decision status
            NotFoundError: Submission missing
            InvalidOperationError: Reviewer not allowed, or the submission
                is no longer pending
        """
        self.validate_positive_int(reviewer_user_id, "reviewer_user_id")
        self.validate_positive_int(submission_id, "submission_id")
        try:
            status = SubmissionStatus(status)
        except ValueError:
            raise ValidationError("status", f"Unknown submission status: {status}") from None
        if status not in DECISION_STATUSES:
            raise ValidationError("status", f"{status.value} is not a review decision")

        self.log_operation(
            "review_submission",
            user_id=reviewer_user_id,
            submission_id=submission_id,
            status=status.value,
        )

        async with DatabaseService.get_transaction() as session:
            async with LogContext(user_id=reviewer_user_id, operation="review_submission"):
                decision = await self._decide(session, reviewer_user_id, submission_id, today)
                if not decision.allowed:
                    if decision.reason == REASON_SUBMISSION_NOT_FOUND:
                        raise NotFoundError("Submission", submission_id)
                    raise InvalidOperationError("review_submission", decision.reason or "")

                submission = await self._submissions.get(session, submission_id)
                if submission is None:
                    raise NotFoundError("Submission", submission_id)

                achieved_rank = Rank.parse_optional(
                    submission.achieved_rank, "challenge_submissions.achieved_rank"
                )
                values: Dict[str, Any] = {
                    "status": status.value,
                    "review_notes": review_notes or None,
                    "reviewed_by_id": reviewer_user_id,
                    "reviewed_at": datetime.now(timezone.utc),
                }

                if achieved_value is not None:
                    achieved_rank = await self._regrade(
                        session, submission, achieved_value, achieved_rank, today
                    )
                    values["achieved_value"] = achieved_value
                    values["achieved_rank"] = achieved_rank.symbol if achieved_rank else None

                result = await session.execute(
                    update(ChallengeSubmission)
                    .where(
                        ChallengeSubmission.id == submission_id,
                        ChallengeSubmission.status == SubmissionStatus.PENDING.value,
                    )
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                if not result.rowcount:
                    raise InvalidOperationError("review_submission", REASON_ALREADY_REVIEWED)

                submission = await self._submissions.get_for_update(session, submission_id)
                await session.refresh(submission)

                award: Optional[AwardResult] = None
                if status is SubmissionStatus.APPROVED and achieved_rank is not None:
                    award = await self.progression.award_locked(session, submission)

                self.log.info(
                    f"Submission {submission_id} reviewed: {status.value}",
                    extra={
                        "submission_id": submission_id,
                        "reviewer_user_id": reviewer_user_id,
                        "status": status.value,
                        "achieved_rank": achieved_rank.symbol if achieved_rank else None,
                        "xp_awarded": award.total_xp if award else 0,
                    },
                )

                return ReviewOutcome(
                    submission_id=submission_id,
                    status=status,
                    achieved_rank=achieved_rank,
                    message=DECISION_MESSAGES[status],
                    award=award,
                )

    async def _regrade(
        self,
        session: AsyncSession,
        submission: ChallengeSubmission,
        achieved_value: float,
        current: Optional[Rank],
        today: Optional[date],
    ) -> Optional[Rank]:
        challenge = await self._challenges.get(session, submission.challenge_id)
        athlete = await self._athletes.get(session, submission.athlete_id)
        if challenge is None:
            raise NotFoundError("Challenge", submission.challenge_id)
        if athlete is None:
            raise NotFoundError("Athlete", submission.athlete_id)

        division = await self.progression.find_division(session, athlete, today)
        if division is None:
            return current
        return await self.progression.grade_value(
            session, challenge, division.id, achieved_value
        )
