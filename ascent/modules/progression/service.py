"""
Progression Service
===================

Purpose
-------
Persists the outcomes of the pure progression logic: awarding tier XP for a
submission, reversing it, processing breakthroughs, and rebuilding an
athlete's levels from their approved submissions.

Domain
------
- Grade an achieved value against the athlete's division grade table
- Claim tier rewards once per submission and split XP across domains
- Apply XP to per-domain levels and append ledger entries
- Reverse a submission's XP and remove its ledger entries
- Advance a rank letter through a qualified breakthrough
- Reconcile stored levels and ledger with approved submissions

Design Notes
------------
- Every write runs in one `DatabaseService.get_transaction()`; rows that are
  read-modify-written are locked with SELECT ... FOR UPDATE.
- The award path re-reads `claimed_tiers` under the submission lock, so two
  concurrent awards for the same submission pay at most once; the loser sees
  an empty award, not an error.
- Business refusals come back as typed results (`AwardResult`,
  `BreakthroughOutcome`); only invalid input or missing records raise.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession

from ascent.core.database.service import DatabaseService
from ascent.core.logging.logger import LogContext, get_logger
from ascent.database.models import (
    Athlete,
    BreakthroughRule,
    Challenge,
    ChallengeGrade,
    ChallengeSubmission,
    Division,
    Domain,
    DomainLevel,
    GradingType,
    SubmissionStatus,
    XPSource,
    XPTransaction,
)
from ascent.domain.models.domain_level import DomainLevelState, LevelTransition
from ascent.domain.models.rank import ClaimedTiers, Rank, RankScale, calculate_prime
from ascent.modules.progression.breakthrough_logic import (
    BreakthroughProgress,
    BreakthroughRuleSpec,
    QualifyingAttempt,
    evaluate_breakthrough,
    select_breakthrough_rule,
)
from ascent.modules.progression.constants import BREAKTHROUGH_NOTE_FORMAT, format_award_note
from ascent.modules.progression.curve_loader import load_rank_scale
from ascent.modules.progression.distribution import XPSplit, credited_by_domain, distribute_xp
from ascent.modules.progression.division_logic import (
    find_matching_division,
    grades_for_division,
)
from ascent.modules.progression.level_logic import apply_breakthrough, apply_xp, reverse_xp
from ascent.modules.progression.reconciliation_logic import (
    AwardedSubmission,
    LedgerEntry,
    plan_reconciliation,
)
from ascent.modules.progression.repository import (
    AthleteRepository,
    BreakthroughRuleRepository,
    ChallengeGradeRepository,
    ChallengeRepository,
    DivisionRepository,
    DomainLevelRepository,
    DomainRepository,
    SubmissionRepository,
    XPTransactionRepository,
)
from ascent.modules.progression.results import (
    AwardResult,
    BreakthroughOutcome,
    DomainAward,
    ReconciliationResult,
    ReversalResult,
)
from ascent.modules.progression.tier_logic import claim_tiers, resolve_achieved_rank
from ascent.modules.shared.base_service import BaseService
from ascent.modules.shared.exceptions import InvalidOperationError, NotFoundError

if TYPE_CHECKING:
    from logging import Logger

    from ascent.core.config.config import Config


def state_of(level: DomainLevel) -> DomainLevelState:
    """Domain value for a stored level row."""
    return DomainLevelState(
        current_xp=level.current_xp,
        rank=Rank.parse(level.rank, "domain_levels.rank"),
        sublevel=level.sublevel,
        banked_xp=level.banked_xp,
        breakthrough_ready=level.breakthrough_ready,
    )


def write_state(level: DomainLevel, state: DomainLevelState) -> None:
    level.current_xp = state.current_xp
    level.rank = state.rank.symbol
    level.sublevel = state.sublevel
    level.banked_xp = state.banked_xp
    level.breakthrough_ready = state.breakthrough_ready


class ProgressionService(BaseService):
    """
    Service for XP awards, reversals, breakthroughs and reconciliation.

    Public Methods
    --------------
    - award_submission() -> Claim new tiers for an approved submission
    - reverse_submission() -> Remove a submission's XP
    - get_breakthrough_progress() -> Qualification progress for a domain
    - process_breakthrough() -> Advance a qualified domain to the next rank
    - reconcile_athlete() -> Rebuild levels from approved submissions
    - get_xp_history() -> Recent ledger entries
    - get_prime_level() -> Overall level across domains
    """

    def __init__(
        self,
        config: Type[Config],
        logger: Logger,
        rank_scale: Optional[RankScale] = None,
    ) -> None:
        """
        Args:
            config: Static configuration class
            logger: Structured logger instance
            rank_scale: Progression curve; loaded from
                `config.PROGRESSION_CONFIG_PATH` when omitted
        """
        super().__init__(config, logger)
        self.scale = (
            rank_scale
            if rank_scale is not None
            else load_rank_scale(self.get_config("PROGRESSION_CONFIG_PATH", required=True))
        )

        repo_log = get_logger(f"{__name__}.repository")
        self._athletes = AthleteRepository(Athlete, repo_log)
        self._domains = DomainRepository(Domain, repo_log)
        self._divisions = DivisionRepository(Division, repo_log)
        self._challenges = ChallengeRepository(Challenge, repo_log)
        self._grades = ChallengeGradeRepository(ChallengeGrade, repo_log)
        self._submissions = SubmissionRepository(ChallengeSubmission, repo_log)
        self._levels = DomainLevelRepository(DomainLevel, repo_log)
        self._ledger = XPTransactionRepository(XPTransaction, repo_log)
        self._rules = BreakthroughRuleRepository(BreakthroughRule, repo_log)

    # ========================================================================
    # PUBLIC API - Awards
    # ========================================================================

    async def award_submission(self, submission_id: int) -> AwardResult:
        """
        Award XP for any tiers an approved submission has newly earned.

        This is a **write operation** using get_transaction().

        Raises:
            NotFoundError: Submission or challenge missing
            InvalidOperationError: Submission is not approved or was reversed
        """
        self.validate_positive_int(submission_id, "submission_id")
        self.log_operation("award_submission", submission_id=submission_id)

        async with DatabaseService.get_transaction() as session:
            submission = await self._submissions.get_for_update(session, submission_id)
            if submission is None:
                raise NotFoundError("Submission", submission_id)

            async with LogContext(athlete_id=submission.athlete_id, operation="award_submission"):
                return await self.award_locked(session, submission)

    async def award_locked(
        self, session: AsyncSession, submission: ChallengeSubmission
    ) -> AwardResult:
        """
        Award path for a submission already locked in `session`.

        Used by `award_submission` and by the review flow so approval and
        award commit together.

        Raises:
            NotFoundError: Challenge missing
            InvalidOperationError: Submission is not approved, or its award
                was already reversed
        """
        if submission.status != SubmissionStatus.APPROVED.value:
            raise InvalidOperationError(
                "award_submission",
                f"Submission {submission.id} is {submission.status}, not APPROVED",
            )
        if submission.xp_reversed_at is not None:
            raise InvalidOperationError(
                "award_submission",
                f"Submission {submission.id} had its XP reversed and cannot be awarded again",
            )

        challenge = await self._challenges.get(session, submission.challenge_id)
        if challenge is None:
            raise NotFoundError("Challenge", submission.challenge_id)

        achieved = Rank.parse_optional(
            submission.achieved_rank, "challenge_submissions.achieved_rank"
        )
        previously_claimed = ClaimedTiers.parse(submission.claimed_tiers)
        claim = claim_tiers(
            achieved,
            Rank.parse(challenge.min_rank, "challenges.min_rank"),
            Rank.parse(challenge.max_rank, "challenges.max_rank"),
            previously_claimed,
            self.scale,
        )

        if claim.is_empty:
            self.log.info(
                "No new tiers to award",
                extra={
                    "submission_id": submission.id,
                    "achieved_rank": submission.achieved_rank,
                    "claimed_tiers": previously_claimed.serialize(),
                },
            )
            return AwardResult(
                submission_id=submission.id,
                challenge_name=challenge.name,
                achieved_rank=achieved,
                claimed=previously_claimed,
            )

        shares = distribute_xp(claim.xp, XPSplit.from_challenge(challenge))
        names = await self._domains.names_by_id(session, shares.keys())
        note = format_award_note(claim.new_tiers)

        domain_awards: List[DomainAward] = []
        for domain_id, share in shares.items():
            if share <= 0:
                continue
            transition = await self._apply_share(
                session, submission.athlete_id, domain_id, share
            )
            self._ledger.add(
                session,
                XPTransaction(
                    athlete_id=submission.athlete_id,
                    domain_id=domain_id,
                    amount=share,
                    source=XPSource.CHALLENGE.value,
                    source_id=submission.id,
                    note=note,
                ),
            )
            domain_awards.append(
                DomainAward(
                    domain_id=domain_id,
                    domain_name=names.get(domain_id, f"domain {domain_id}"),
                    xp=share,
                    transition=transition,
                )
            )

        submission.xp_awarded = (submission.xp_awarded or 0) + claim.xp
        submission.claimed_tiers = claim.claimed.serialize()
        await self._submissions.flush(session)

        self.log.info(
            f"Awarded {claim.xp} XP for submission {submission.id}",
            extra={
                "submission_id": submission.id,
                "athlete_id": submission.athlete_id,
                "new_tiers": [rank.symbol for rank in claim.new_tiers],
                "xp": claim.xp,
                "shares": shares,
            },
        )

        return AwardResult(
            submission_id=submission.id,
            challenge_name=challenge.name,
            achieved_rank=achieved,
            new_tiers=claim.new_tiers,
            total_xp=claim.xp,
            claimed=claim.claimed,
            is_new_best=not previously_claimed,
            domain_awards=tuple(domain_awards),
        )

    async def _apply_share(
        self, session: AsyncSession, athlete_id: int, domain_id: int, share: int
    ) -> LevelTransition:
        level = await self._levels.for_athlete_domain(
            session, athlete_id, domain_id, for_update=True
        )
        if level is None:
            level = self._levels.add(
                session,
                DomainLevel(athlete_id=athlete_id, domain_id=domain_id),
            )
            state = DomainLevelState.initial()
        else:
            state = state_of(level)

        transition = apply_xp(state, share, self.scale)
        write_state(level, transition.after)

        for event in transition.events:
            self.log.info(
                f"Level event: {event.event_name}",
                extra={
                    "athlete_id": athlete_id,
                    "domain_id": domain_id,
                    "event": event.event_name,
                    **event.payload,
                },
            )
        return transition

    # ========================================================================
    # PUBLIC API - Grading
    # ========================================================================

    async def find_division(
        self, session: AsyncSession, athlete: Athlete, today: Optional[date] = None
    ) -> Optional[Division]:
        """The athlete's division, or None when no active division matches."""
        divisions = await self._divisions.active(session)
        division = find_matching_division(
            divisions, athlete.date_of_birth, athlete.gender, today
        )
        if division is None:
            self.log.warning(
                "No matching division for athlete", extra={"athlete_id": athlete.id}
            )
        return division

    async def grade_value(
        self,
        session: AsyncSession,
        challenge: Challenge,
        division_id: int,
        achieved_value: float,
    ) -> Optional[Rank]:
        """
        Rank an achieved value against the challenge's grade table for a
        division. None when there are no grades for it or no bar is met.
        """
        grades = await self._grades.for_challenge(session, challenge.id)
        return resolve_achieved_rank(
            achieved_value,
            grades_for_division(grades, division_id),
            lower_is_better=GradingType(challenge.grading_type).is_lower_better,
        )

    # ========================================================================
    # PUBLIC API - Reversal
    # ========================================================================

    async def reverse_submission(self, submission_id: int) -> ReversalResult:
        """
        Remove the XP a submission awarded.

        Each domain loses what the submission's CHALLENGE ledger rows credited
        it (floored at 0) and is recomputed. Without ledger rows the total is
        split by the challenge's percentages instead. The rows are deleted,
        `xp_awarded` / `claimed_tiers` cleared and `xp_reversed_at` stamped,
        after which `award_locked` refuses the submission. A domain with no
        stored level has nothing to reverse and is skipped.

        Raises:
            NotFoundError: Submission or challenge missing
            InvalidOperationError: Submission has no awarded XP
        """
        self.validate_positive_int(submission_id, "submission_id")
        self.log_operation("reverse_submission", submission_id=submission_id)

        async with DatabaseService.get_transaction() as session:
            submission = await self._submissions.get_for_update(session, submission_id)
            if submission is None:
                raise NotFoundError("Submission", submission_id)
            if not submission.xp_awarded:
                raise InvalidOperationError(
                    "reverse_submission", f"Submission {submission_id} has no awarded XP"
                )

            challenge = await self._challenges.get(session, submission.challenge_id)
            if challenge is None:
                raise NotFoundError("Challenge", submission.challenge_id)

            xp = submission.xp_awarded
            shares = credited_by_domain(
                await self._ledger.for_submission(session, submission.id)
            )
            if not shares:
                shares = distribute_xp(xp, XPSplit.from_challenge(challenge))
            names = await self._domains.names_by_id(session, shares.keys())

            reversals: List[DomainAward] = []
            for domain_id, share in shares.items():
                level = await self._levels.for_athlete_domain(
                    session, submission.athlete_id, domain_id, for_update=True
                )
                if level is None:
                    continue
                transition = reverse_xp(state_of(level), share, self.scale)
                write_state(level, transition.after)
                reversals.append(
                    DomainAward(
                        domain_id=domain_id,
                        domain_name=names.get(domain_id, f"domain {domain_id}"),
                        xp=share,
                        transition=transition,
                    )
                )

            deleted = await self._ledger.delete_for_submission(session, submission.id)
            submission.xp_awarded = 0
            submission.claimed_tiers = ""
            submission.xp_reversed_at = datetime.now(timezone.utc)

            self.log.info(
                f"Reversed {xp} XP for submission {submission.id}",
                extra={
                    "submission_id": submission.id,
                    "athlete_id": submission.athlete_id,
                    "xp": xp,
                    "ledger_rows_deleted": deleted,
                    "levels": {r.domain_id: r.transition.new_level for r in reversals},
                },
            )

            return ReversalResult(
                submission_id=submission.id,
                xp_reversed=xp,
                ledger_rows_deleted=deleted,
                domain_reversals=tuple(reversals),
            )

    # ========================================================================
    # PUBLIC API - Breakthroughs
    # ========================================================================

    async def get_breakthrough_progress(
        self, athlete_id: int, domain_id: int
    ) -> Optional[BreakthroughProgress]:
        """
        Qualification progress for the athlete's next rank in a domain.

        This is a **read-only** operation using get_session(). Returns None
        at the top rank. An athlete with no level in the domain is treated
        as rank F.
        """
        self.validate_positive_int(athlete_id, "athlete_id")
        self.validate_positive_int(domain_id, "domain_id")

        async with DatabaseService.get_session() as session:
            athlete = await self._athletes.get(session, athlete_id)
            if athlete is None:
                raise NotFoundError("Athlete", athlete_id)
            level = await self._levels.for_athlete_domain(session, athlete_id, domain_id)
            rank = state_of(level).rank if level is not None else Rank.lowest()
            return await self._progress_for(session, athlete, domain_id, rank)

    async def _progress_for(
        self, session: AsyncSession, athlete: Athlete, domain_id: int, rank: Rank
    ) -> Optional[BreakthroughProgress]:
        division = await self.find_division(session, athlete)
        rules = [
            BreakthroughRuleSpec.from_row(row)
            for row in await self._rules.for_domain(session, domain_id)
        ]
        rule = select_breakthrough_rule(
            rules, domain_id, rank, division.id if division is not None else None
        )
        if rule is None:
            return None

        history = [
            QualifyingAttempt(
                challenge_id=challenge.id,
                challenge_name=challenge.name,
                primary_domain_id=challenge.primary_domain_id,
                achieved_rank=Rank.parse_optional(
                    submission.achieved_rank, "challenge_submissions.achieved_rank"
                ),
                approved=submission.status == SubmissionStatus.APPROVED.value,
                challenge_active=challenge.is_active,
            )
            for submission, challenge in await self._submissions.approved_with_challenges(
                session, athlete.id
            )
        ]
        return evaluate_breakthrough(history, rule, domain_id)

    async def process_breakthrough(
        self, athlete_id: int, domain_id: int
    ) -> BreakthroughOutcome:
        """
        Advance a domain to the next rank letter.

        Requires the level to be pinned at its rank cap and the
        breakthrough rule to be satisfied. Writes a zero-amount BONUS ledger
        entry noting the transition.

        This is a **write operation** using get_transaction().
        """
        self.validate_positive_int(athlete_id, "athlete_id")
        self.validate_positive_int(domain_id, "domain_id")
        self.log_operation("process_breakthrough", athlete_id=athlete_id, domain_id=domain_id)

        async with DatabaseService.get_transaction() as session:
            level = await self._levels.for_athlete_domain(
                session, athlete_id, domain_id, for_update=True
            )
            if level is None:
                return BreakthroughOutcome(success=False, error="Domain level not found")

            state = state_of(level)
            next_rank = state.rank.next()
            if next_rank is None:
                return BreakthroughOutcome(success=False, error="Already at maximum rank")

            athlete = await self._athletes.get(session, athlete_id)
            if athlete is None:
                return BreakthroughOutcome(success=False, error="Athlete not found")

            if not state.breakthrough_ready:
                return BreakthroughOutcome(
                    success=False, error="Rank XP cap not reached yet"
                )

            progress = await self._progress_for(session, athlete, domain_id, state.rank)
            qualified = progress is not None and progress.is_complete
            if not qualified:
                return BreakthroughOutcome(
                    success=False, error="Breakthrough requirements not met"
                )

            transition = apply_breakthrough(state, qualified, self.scale)
            write_state(level, transition.after)
            self._ledger.add(
                session,
                XPTransaction(
                    athlete_id=athlete_id,
                    domain_id=domain_id,
                    amount=0,
                    source=XPSource.BONUS.value,
                    note=BREAKTHROUGH_NOTE_FORMAT.format(
                        from_rank=state.rank.symbol, to_rank=next_rank.symbol
                    ),
                ),
            )

            self.log.info(
                f"Breakthrough {state.rank} → {next_rank}",
                extra={
                    "athlete_id": athlete_id,
                    "domain_id": domain_id,
                    "released_xp": state.banked_xp,
                },
            )

            return BreakthroughOutcome(
                success=True,
                new_rank=transition.after.rank,
                new_sublevel=transition.after.sublevel,
                released_xp=state.banked_xp,
            )

    # ========================================================================
    # PUBLIC API - Reconciliation
    # ========================================================================

    async def reconcile_athlete(self, athlete_id: int) -> ReconciliationResult:
        """
        Rebuild an athlete's domain levels from their approved submissions.

        Running it twice in a row performs no writes the second time.

        Raises:
            NotFoundError: Athlete missing
        """
        self.validate_positive_int(athlete_id, "athlete_id")
        self.log_operation("reconcile_athlete", athlete_id=athlete_id)

        async with DatabaseService.get_transaction() as session:
            athlete = await self._athletes.get_for_update(session, athlete_id)
            if athlete is None:
                raise NotFoundError("Athlete", athlete_id)

            submissions = await self._submissions.approved_with_xp(session, athlete_id)
            awarded: List[AwardedSubmission] = []
            for submission in submissions:
                challenge = await self._challenges.get(session, submission.challenge_id)
                if challenge is None:
                    raise NotFoundError("Challenge", submission.challenge_id)
                awarded.append(
                    AwardedSubmission(
                        submission_id=submission.id,
                        xp_awarded=submission.xp_awarded,
                        split=XPSplit.from_challenge(challenge),
                    )
                )

            rows = await self._levels.for_athlete(session, athlete_id, for_update=True)
            rows_by_domain: Dict[int, DomainLevel] = {row.domain_id: row for row in rows}
            ledger = [
                LedgerEntry(transaction_id=entry.id, source_id=entry.source_id)
                for entry in await self._ledger.challenge_entries(session, athlete_id)
            ]

            plan = plan_reconciliation(
                awarded,
                {domain_id: state_of(row) for domain_id, row in rows_by_domain.items()},
                ledger,
                self.scale,
            )

            for domain_id, state in plan.upserts.items():
                row = rows_by_domain.get(domain_id)
                if row is None:
                    row = self._levels.add(
                        session, DomainLevel(athlete_id=athlete_id, domain_id=domain_id)
                    )
                write_state(row, state)
            for domain_id in plan.level_deletions:
                await self._levels.delete(session, rows_by_domain[domain_id])

            deleted = 0
            if plan.ledger_deletions:
                deleted = await self._ledger.delete_where(
                    session, XPTransaction.id.in_(plan.ledger_deletions)
                )

            names = await self._domains.names_by_id(
                session, [change.domain_id for change in plan.changes]
            )
            result = ReconciliationResult(
                athlete_id=athlete_id,
                athlete_name=athlete.display_name,
                submissions_found=len(submissions),
                changes=tuple(plan.describe(names)),
                ledger_rows_deleted=deleted,
            )

            self.log.info(
                result.message,
                extra={
                    "athlete_id": athlete_id,
                    "changes": list(result.changes),
                    "ledger_rows_deleted": deleted,
                },
            )
            return result

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def get_xp_history(
        self, athlete_id: int, domain_id: Optional[int] = None, limit: int = 50
    ) -> List[Dict[str, Any]]:
        """Most recent ledger entries, newest first."""
        self.validate_positive_int(athlete_id, "athlete_id")
        self.validate_positive_int(limit, "limit")

        async with DatabaseService.get_session() as session:
            entries = await self._ledger.history(session, athlete_id, domain_id, limit)
            return [
                {
                    "id": entry.id,
                    "domain_id": entry.domain_id,
                    "amount": entry.amount,
                    "source": entry.source,
                    "source_id": entry.source_id,
                    "note": entry.note,
                    "created_at": entry.created_at.isoformat(),
                }
                for entry in entries
            ]

    async def get_prime_level(self, athlete_id: int) -> Dict[str, Any]:
        """Overall level: floor of the mean numeric level across domains."""
        self.validate_positive_int(athlete_id, "athlete_id")

        async with DatabaseService.get_session() as session:
            rows = await self._levels.for_athlete(session, athlete_id)
            rank, sublevel = calculate_prime(
                (state.rank, state.sublevel) for state in map(state_of, rows)
            )
            return {
                "athlete_id": athlete_id,
                "rank": rank.symbol,
                "sublevel": sublevel,
                "label": self.scale.label(rank),
                "domains": len(rows),
            }
