"""
Database Service

Purpose
-------
Owns the single async engine and hands out sessions. Each progression
operation (award, reversal, reconciliation, breakthrough, review decision)
runs inside one `get_transaction()` block, so level updates and ledger rows
land together or not at all.

Pools
-----
- Server databases: AsyncAdaptedQueuePool sized from Config (NullPool under TESTING)
- In-memory SQLite: StaticPool, one shared connection
- File SQLite: NullPool

Usage
-----
    await DatabaseService.initialize()

    async with DatabaseService.get_transaction() as session:
        level = await DatabaseService.get_locked_entity(session, DomainLevel, level_id)
        level.current_xp += 100

Service code never calls `session.commit()` itself.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Dict, Optional, Type, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool, Pool, StaticPool

from ascent.core.config.config import Config
from ascent.core.database.base import Base
from ascent.core.exceptions import get_error_severity, is_transient_error, should_alert
from ascent.core.logging.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class DatabaseInitializationError(RuntimeError):
    """Engine could not be created from the configured URL."""


class DatabaseNotInitializedError(RuntimeError):
    """A session was requested before `initialize()`."""


# ============================================================================
# Engine settings
# ============================================================================


@dataclass(frozen=True)
class _EngineSettings:
    url: str
    echo: bool
    pool_class: Type[Pool]
    pool_size: int
    max_overflow: int
    pool_recycle: int
    pool_timeout: int

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def scheme(self) -> str:
        return self.url.split(":", 1)[0] if ":" in self.url else "unknown"

    def engine_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"echo": self.echo, "poolclass": self.pool_class}
        if self.pool_class is AsyncAdaptedQueuePool:
            kwargs.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_recycle=self.pool_recycle,
                pool_timeout=self.pool_timeout,
            )
        if self.is_sqlite:
            kwargs["connect_args"] = {"check_same_thread": False}
        return kwargs


def _choose_pool(url: str) -> Type[Pool]:
    if url.startswith("sqlite"):
        return StaticPool if ":memory:" in url else NullPool
    return NullPool if Config.is_testing() else AsyncAdaptedQueuePool


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000.0, 2)


# ============================================================================
# DatabaseService
# ============================================================================


class DatabaseService:
    """
    Process-wide engine and session factory, used through classmethods.

    - initialize() / shutdown() / is_initialized()
    - create_schema() / drop_schema()
    - get_session(): no automatic commit
    - get_transaction(): commit on success, rollback on error
    - get_locked_entity(): SELECT ... FOR UPDATE by primary key
    - health_check()
    """

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _init_lock: asyncio.Lock = asyncio.Lock()

    @classmethod
    def _read_settings(cls, url: Optional[str]) -> _EngineSettings:
        database_url = url or Config.DATABASE_URL
        if not database_url:
            raise DatabaseInitializationError("DATABASE_URL is not configured")

        return _EngineSettings(
            url=database_url,
            echo=Config.DATABASE_ECHO,
            pool_class=_choose_pool(database_url),
            pool_size=Config.DATABASE_POOL_SIZE,
            max_overflow=Config.DATABASE_MAX_OVERFLOW,
            pool_recycle=Config.DATABASE_POOL_RECYCLE,
            pool_timeout=Config.DATABASE_POOL_TIMEOUT,
        )

    @classmethod
    async def initialize(cls, url: Optional[str] = None) -> None:
        """
        Create the engine and session factory. No-op when already running.

        `url` overrides Config.DATABASE_URL.

        Raises:
            DatabaseInitializationError: Missing URL or engine creation failed
        """
        async with cls._init_lock:
            if cls._engine is not None:
                return

            settings = cls._read_settings(url)
            try:
                engine = create_async_engine(settings.url, **settings.engine_kwargs())
            except Exception as exc:
                logger.error(
                    "Database engine creation failed",
                    extra={"url_scheme": settings.scheme, "error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

            cls._engine = engine
            cls._session_factory = async_sessionmaker(
                bind=engine, class_=AsyncSession, expire_on_commit=False
            )
            logger.info(
                "Database initialized",
                extra={"url_scheme": settings.scheme, "pool_class": settings.pool_class.__name__},
            )

    @classmethod
    async def shutdown(cls) -> None:
        async with cls._init_lock:
            if cls._engine is None:
                return
            try:
                await cls._engine.dispose()
            finally:
                cls._engine = None
                cls._session_factory = None
            logger.info("Database shut down")

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._engine is not None

    @classmethod
    def _require_engine(cls) -> AsyncEngine:
        if cls._engine is None or cls._session_factory is None:
            raise DatabaseNotInitializedError(
                "DatabaseService.initialize() must be awaited before use"
            )
        return cls._engine

    # ========================================================================
    # Schema
    # ========================================================================

    @classmethod
    async def create_schema(cls) -> None:
        """Create every registered table. For development and tests; production uses migrations."""
        engine = cls._require_engine()

        import ascent.database.models  # noqa: F401  (registers tables)

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema created", extra={"tables": len(Base.metadata.tables)})

    @classmethod
    async def drop_schema(cls) -> None:
        engine = cls._require_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database schema dropped")

    @classmethod
    async def health_check(cls) -> bool:
        """`SELECT 1` against the engine. Returns False instead of raising."""
        if cls._engine is None:
            logger.warning("Health check on uninitialized database")
            return False

        try:
            async with cls._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except DBAPIError as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False
        return True

    # ========================================================================
    # Sessions
    # ========================================================================

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """Session without automatic commit. Writes belong in `get_transaction()`."""
        cls._require_engine()
        assert cls._session_factory is not None

        async with cls._session_factory() as session:
            yield session

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in one atomic transaction.

        Commits when the block exits normally. Any exception rolls back, is
        logged (ERROR for alerting severities, INFO for business errors such
        as ValidationError), and propagates unchanged.
        """
        cls._require_engine()
        assert cls._session_factory is not None

        start = time.perf_counter()
        async with cls._session_factory() as session:
            try:
                yield session
                await session.commit()
            except DBAPIError as exc:
                await session.rollback()
                logger.error(
                    "Database error; transaction rolled back",
                    extra={
                        "error_type": type(exc).__name__,
                        "duration_ms": _elapsed_ms(start),
                    },
                    exc_info=True,
                )
                raise
            except Exception as exc:
                await session.rollback()
                logger.log(
                    logging.ERROR if should_alert(exc) else logging.INFO,
                    "Transaction rolled back",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "severity": get_error_severity(exc).value,
                        "retryable": is_transient_error(exc),
                        "duration_ms": _elapsed_ms(start),
                    },
                )
                raise
            logger.debug("Transaction committed", extra={"duration_ms": _elapsed_ms(start)})

    @classmethod
    async def get_locked_entity(
        cls,
        session: AsyncSession,
        model: Type[T],
        primary_key: Any,
    ) -> Optional[T]:
        """Load a row with SELECT ... FOR UPDATE. Call inside `get_transaction()`."""
        return await session.get(model, primary_key, with_for_update=True)
