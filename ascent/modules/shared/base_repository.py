"""
Generic repository over one SQLAlchemy model.

Repositories only build and run queries against the session they are
given; the service owns the transaction. Pass `for_update=True` to lock the
selected rows (SELECT ... FOR UPDATE, a no-op on SQLite).

    class DomainLevelRepository(BaseRepository[DomainLevel]):
        async def for_athlete(self, session, athlete_id):
            return await self.find_many_where(
                session, DomainLevel.athlete_id == athlete_id
            )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import delete, select

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    def __init__(self, model_class: Type[T], logger: Logger) -> None:
        self.model_class = model_class
        self.log = logger

    @property
    def model_name(self) -> str:
        return self.model_class.__name__

    def _trace(self, action: str, **fields: Any) -> None:
        self.log.debug(
            f"{self.model_name}.{action}", extra={"model": self.model_name, **fields}
        )

    def _select(self, conditions: tuple, for_update: bool) -> Select[tuple[T]]:
        stmt = select(self.model_class).where(*conditions)
        return stmt.with_for_update() if for_update else stmt

    async def get(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        instance = await session.get(self.model_class, id_value)
        self._trace("get", id=id_value, found=instance is not None)
        return instance

    async def get_for_update(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        """Primary-key lookup holding a row lock until the transaction ends."""
        stmt = self._select(
            (self.model_class.id == id_value,), for_update=True  # type: ignore[attr-defined]
        )
        instance = (await session.execute(stmt)).scalar_one_or_none()
        self._trace("get_for_update", id=id_value, found=instance is not None)
        return instance

    async def find_one_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
    ) -> Optional[T]:
        """
        Single row matching every condition, or None.

        Raises:
            sqlalchemy.exc.MultipleResultsFound: More than one row matches
        """
        result = await session.execute(self._select(conditions, for_update))
        instance = result.scalar_one_or_none()
        self._trace("find_one_where", found=instance is not None, locked=for_update)
        return instance

    async def find_many_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
        order_by: Optional[Any] = None,
        limit: Optional[int] = None,
    ) -> List[T]:
        stmt = self._select(conditions, for_update)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        instances = list((await session.execute(stmt)).scalars().all())
        self._trace("find_many_where", found_count=len(instances), locked=for_update)
        return instances

    def add(self, session: AsyncSession, instance: T) -> T:
        session.add(instance)
        self._trace("add")
        return instance

    async def delete(self, session: AsyncSession, instance: T) -> None:
        await session.delete(instance)
        self._trace("delete")

    async def delete_where(
        self, session: AsyncSession, *conditions: ColumnElement[bool]
    ) -> int:
        """Bulk delete; returns the number of rows removed."""
        result = await session.execute(delete(self.model_class).where(*conditions))
        deleted = result.rowcount or 0
        self._trace("delete_where", deleted_count=deleted)
        return deleted

    async def flush(self, session: AsyncSession) -> None:
        await session.flush()
