"""
Pytest Configuration and Fixtures for Ascent Tests
===================================================

Purpose
-------
Centralized fixtures for the Ascent test suite: the reference progression
curve, logger mocks, an in-memory database, wired services, and a small
factory for seeding records.

Architecture Notes
------------------
- Unit tests exercise the pure logic modules directly (fast, no database)
- Integration tests run services against in-memory SQLite via aiosqlite
- The database fixture is function-scoped: every test gets a fresh schema
- Environment is forced to "testing" before any `ascent` import so Config
  and logging pick it up at import time
"""

from __future__ import annotations

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date  # noqa: E402
from typing import AsyncGenerator, Optional  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from ascent.core.config import Config  # noqa: E402
from ascent.core.database.service import DatabaseService  # noqa: E402
from ascent.core.logging.logger import get_logger  # noqa: E402
from ascent.database.models import (  # noqa: E402
    Athlete,
    BreakthroughRule,
    Challenge,
    ChallengeGrade,
    ChallengeSubmission,
    Division,
    Domain,
    DomainLevel,
    GradingType,
    Role,
    SubmissionStatus,
    User,
)
from ascent.domain.models.rank import DEFAULT_RANK_SCALE, RankScale  # noqa: E402
from ascent.modules.progression.service import ProgressionService  # noqa: E402
from ascent.modules.review.service import ReviewService  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
ADULT_DOB = date(1990, 6, 15)


# ============================================================================
# PURE FIXTURES (Unit Tests)
# ============================================================================


@pytest.fixture
def scale() -> RankScale:
    """Reference progression curve."""
    return DEFAULT_RANK_SCALE


@pytest.fixture
def mock_logger(mocker):
    return mocker.MagicMock()


# ============================================================================
# DATABASE FIXTURES (Integration Tests)
# ============================================================================


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[type[DatabaseService], None]:
    """
    Fresh in-memory database with the full schema.

    Scope: function (the StaticPool database disappears on shutdown)
    """
    await DatabaseService.initialize(TEST_DATABASE_URL)
    await DatabaseService.create_schema()
    yield DatabaseService
    await DatabaseService.shutdown()


@pytest.fixture
def progression_service(database, scale) -> ProgressionService:
    return ProgressionService(Config, get_logger("tests.progression"), rank_scale=scale)


@pytest.fixture
def review_service(database, progression_service) -> ReviewService:
    return ReviewService(Config, get_logger("tests.review"), progression_service)


# ============================================================================
# FACTORY
# ============================================================================


class Factory:
    """Inserts records in their own committed transactions and returns them."""

    def __init__(self) -> None:
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def _save(self, instance):
        async with DatabaseService.get_transaction() as session:
            session.add(instance)
            await session.flush()
        return instance

    async def user(
        self,
        role: Role = Role.ATHLETE,
        can_review: bool = True,
        suspended: bool = False,
    ) -> User:
        from ascent.core.database.base import utc_now

        n = self._next()
        return await self._save(
            User(
                email=f"user{n}@example.com",
                name=f"User {n}",
                role=role.value,
                can_review=can_review,
                review_banned_at=None if can_review else utc_now(),
                suspended_at=utc_now() if suspended else None,
            )
        )

    async def athlete(
        self,
        user: Optional[User] = None,
        parent: Optional[User] = None,
        date_of_birth: date = ADULT_DOB,
        gender: str = "MALE",
    ) -> Athlete:
        n = self._next()
        return await self._save(
            Athlete(
                user_id=user.id if user else None,
                parent_id=parent.id if parent else None,
                display_name=f"Athlete {n}",
                date_of_birth=date_of_birth,
                gender=gender,
            )
        )

    async def domain(self, name: Optional[str] = None) -> Domain:
        n = self._next()
        name = name or f"Domain {n}"
        return await self._save(Domain(name=name, slug=f"domain-{n}", sort_order=n))

    async def division(
        self,
        gender: Optional[str] = None,
        age_min: Optional[int] = None,
        age_max: Optional[int] = None,
        sort_order: int = 0,
        is_active: bool = True,
    ) -> Division:
        n = self._next()
        return await self._save(
            Division(
                name=f"Division {n}",
                slug=f"division-{n}",
                gender=gender,
                age_min=age_min,
                age_max=age_max,
                sort_order=sort_order,
                is_active=is_active,
            )
        )

    async def challenge(
        self,
        primary: Domain,
        primary_percent: int = 100,
        secondary: Optional[Domain] = None,
        secondary_percent: Optional[int] = None,
        min_rank: str = "F",
        max_rank: str = "S",
        grading_type: GradingType = GradingType.REPS,
        is_active: bool = True,
    ) -> Challenge:
        n = self._next()
        return await self._save(
            Challenge(
                name=f"Challenge {n}",
                slug=f"challenge-{n}",
                grading_type=grading_type.value,
                min_rank=min_rank,
                max_rank=max_rank,
                primary_domain_id=primary.id,
                primary_xp_percent=primary_percent,
                secondary_domain_id=secondary.id if secondary else None,
                secondary_xp_percent=secondary_percent,
                is_active=is_active,
            )
        )

    async def grade(
        self, challenge: Challenge, division: Division, rank: str, target: float
    ) -> ChallengeGrade:
        return await self._save(
            ChallengeGrade(
                challenge_id=challenge.id,
                division_id=division.id,
                rank=rank,
                target_value=target,
            )
        )

    async def submission(
        self,
        athlete: Athlete,
        challenge: Challenge,
        status: SubmissionStatus = SubmissionStatus.PENDING,
        achieved_rank: Optional[str] = None,
        achieved_value: Optional[float] = None,
        claimed_tiers: str = "",
        xp_awarded: int = 0,
    ) -> ChallengeSubmission:
        return await self._save(
            ChallengeSubmission(
                athlete_id=athlete.id,
                challenge_id=challenge.id,
                status=status.value,
                achieved_rank=achieved_rank,
                achieved_value=achieved_value,
                claimed_tiers=claimed_tiers,
                xp_awarded=xp_awarded,
            )
        )

    async def level(
        self,
        athlete: Athlete,
        domain: Domain,
        rank: str = "F",
        sublevel: int = 0,
        current_xp: int = 0,
        banked_xp: int = 0,
        breakthrough_ready: bool = False,
    ) -> DomainLevel:
        return await self._save(
            DomainLevel(
                athlete_id=athlete.id,
                domain_id=domain.id,
                rank=rank,
                sublevel=sublevel,
                current_xp=current_xp,
                banked_xp=banked_xp,
                breakthrough_ready=breakthrough_ready,
            )
        )

    async def breakthrough_rule(
        self,
        domain: Domain,
        from_rank: str,
        to_rank: str,
        tier_required: str,
        challenge_count: int,
        division: Optional[Division] = None,
    ) -> BreakthroughRule:
        return await self._save(
            BreakthroughRule(
                domain_id=domain.id,
                division_id=division.id if division else None,
                from_rank=from_rank,
                to_rank=to_rank,
                tier_required=tier_required,
                challenge_count=challenge_count,
            )
        )


@pytest.fixture
def factory(database) -> Factory:
    return Factory()


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


async def fetch(model, id_value):
    """Re-read a row in a fresh session."""
    async with DatabaseService.get_session() as session:
        return await session.get(model, id_value)


async def fetch_level(athlete_id: int, domain_id: int) -> Optional[DomainLevel]:
    from sqlalchemy import select

    async with DatabaseService.get_session() as session:
        result = await session.execute(
            select(DomainLevel).where(
                DomainLevel.athlete_id == athlete_id,
                DomainLevel.domain_id == domain_id,
            )
        )
        return result.scalar_one_or_none()
