"""
Repositories for progression and review data.

Thin `BaseRepository` subclasses; queries used by more than one service
live here so both services read the same rows the same way.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ascent.database.models import (
    Athlete,
    BreakthroughRule,
    Challenge,
    ChallengeGrade,
    ChallengeSubmission,
    Division,
    Domain,
    DomainLevel,
    SubmissionStatus,
    User,
    XPSource,
    XPTransaction,
)
from ascent.modules.shared.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    pass


class AthleteRepository(BaseRepository[Athlete]):
    async def for_user(self, session: AsyncSession, user_id: int) -> Optional[Athlete]:
        return await self.find_one_where(session, Athlete.user_id == user_id)


class DomainRepository(BaseRepository[Domain]):
    async def names_by_id(self, session: AsyncSession, domain_ids) -> Dict[int, str]:
        ids = list(domain_ids)
        if not ids:
            return {}
        domains = await self.find_many_where(session, Domain.id.in_(ids))
        return {domain.id: domain.name for domain in domains}


class DivisionRepository(BaseRepository[Division]):
    async def active(self, session: AsyncSession) -> List[Division]:
        return await self.find_many_where(
            session, Division.is_active.is_(True), order_by=Division.sort_order
        )


class ChallengeRepository(BaseRepository[Challenge]):
    pass


class ChallengeGradeRepository(BaseRepository[ChallengeGrade]):
    async def for_challenge(
        self, session: AsyncSession, challenge_id: int
    ) -> List[ChallengeGrade]:
        return await self.find_many_where(
            session, ChallengeGrade.challenge_id == challenge_id
        )


class SubmissionRepository(BaseRepository[ChallengeSubmission]):
    async def approved_with_xp(
        self, session: AsyncSession, athlete_id: int
    ) -> List[ChallengeSubmission]:
        return await self.find_many_where(
            session,
            ChallengeSubmission.athlete_id == athlete_id,
            ChallengeSubmission.status == SubmissionStatus.APPROVED.value,
            ChallengeSubmission.xp_awarded > 0,
            order_by=ChallengeSubmission.id,
        )

    async def approved_with_challenges(self, session: AsyncSession, athlete_id: int):
        """(submission, challenge) pairs for approved, graded submissions."""
        stmt = (
            select(ChallengeSubmission, Challenge)
            .join(Challenge, Challenge.id == ChallengeSubmission.challenge_id)
            .where(
                ChallengeSubmission.athlete_id == athlete_id,
                ChallengeSubmission.status == SubmissionStatus.APPROVED.value,
                ChallengeSubmission.achieved_rank.is_not(None),
            )
            .order_by(ChallengeSubmission.submitted_at)
        )
        result = await session.execute(stmt)
        return list(result.tuples().all())

    async def pending_with_context(self, session: AsyncSession):
        """(submission, challenge, athlete) rows for every pending submission, newest first."""
        stmt = (
            select(ChallengeSubmission, Challenge, Athlete)
            .join(Challenge, Challenge.id == ChallengeSubmission.challenge_id)
            .join(Athlete, Athlete.id == ChallengeSubmission.athlete_id)
            .where(ChallengeSubmission.status == SubmissionStatus.PENDING.value)
            .order_by(ChallengeSubmission.submitted_at.desc(), ChallengeSubmission.id.desc())
        )
        result = await session.execute(stmt)
        return list(result.tuples().all())


class DomainLevelRepository(BaseRepository[DomainLevel]):
    async def for_athlete_domain(
        self,
        session: AsyncSession,
        athlete_id: int,
        domain_id: int,
        for_update: bool = False,
    ) -> Optional[DomainLevel]:
        return await self.find_one_where(
            session,
            DomainLevel.athlete_id == athlete_id,
            DomainLevel.domain_id == domain_id,
            for_update=for_update,
        )

    async def for_athlete(
        self, session: AsyncSession, athlete_id: int, for_update: bool = False
    ) -> List[DomainLevel]:
        return await self.find_many_where(
            session,
            DomainLevel.athlete_id == athlete_id,
            for_update=for_update,
            order_by=DomainLevel.domain_id,
        )


class XPTransactionRepository(BaseRepository[XPTransaction]):
    async def challenge_entries(
        self, session: AsyncSession, athlete_id: int
    ) -> List[XPTransaction]:
        return await self.find_many_where(
            session,
            XPTransaction.athlete_id == athlete_id,
            XPTransaction.source == XPSource.CHALLENGE.value,
        )

    async def for_submission(
        self, session: AsyncSession, submission_id: int
    ) -> List[XPTransaction]:
        return await self.find_many_where(
            session,
            XPTransaction.source == XPSource.CHALLENGE.value,
            XPTransaction.source_id == submission_id,
        )

    async def delete_for_submission(self, session: AsyncSession, submission_id: int) -> int:
        return await self.delete_where(
            session,
            XPTransaction.source == XPSource.CHALLENGE.value,
            XPTransaction.source_id == submission_id,
        )

    async def history(
        self,
        session: AsyncSession,
        athlete_id: int,
        domain_id: Optional[int] = None,
        limit: int = 50,
    ) -> List[XPTransaction]:
        conditions = [XPTransaction.athlete_id == athlete_id]
        if domain_id is not None:
            conditions.append(XPTransaction.domain_id == domain_id)
        return await self.find_many_where(
            session,
            *conditions,
            order_by=XPTransaction.id.desc(),
            limit=limit,
        )


class BreakthroughRuleRepository(BaseRepository[BreakthroughRule]):
    async def for_domain(self, session: AsyncSession, domain_id: int) -> List[BreakthroughRule]:
        return await self.find_many_where(
            session,
            BreakthroughRule.domain_id == domain_id,
            BreakthroughRule.is_active.is_(True),
        )
