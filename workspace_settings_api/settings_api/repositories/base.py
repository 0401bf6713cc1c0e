from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import Executable
from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """
    Thin wrapper over an AsyncSession shared by the repositories of one request.

    Writes are added and flushed here; commit and rollback are exposed so the
    settings store can draw the transaction boundary around a whole batch.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def execute(self, statement: Executable):
        return await self.session.execute(statement)

    async def scalars(self, statement: Executable):
        return (await self.session.execute(statement)).scalars()

    async def scalar_one_or_none(self, statement: Executable) -> Any:
        return (await self.session.execute(statement)).scalar_one_or_none()

    async def add(self, entity: Any) -> None:
        self.session.add(entity)

    async def add_all(self, entities: Iterable[Any]) -> None:
        self.session.add_all(list(entities))

    async def flush(self) -> None:
        """Send pending rows so later reads in the same transaction see them."""
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        """Discard every write since the last commit."""
        await self.session.rollback()
