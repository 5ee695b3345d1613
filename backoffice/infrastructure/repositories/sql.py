from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from backoffice.infrastructure.db.base import Base
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

ModelT = TypeVar("ModelT", bound=Base)


class SqlRepository(Generic[ModelT]):
    """Document-style access to one table: get, upsert, query, delete."""

    def __init__(self, session: AsyncSession, model: type[ModelT]) -> None:
        self.session = session
        self.model = model

    async def get(self, entity_id: str) -> ModelT | None:
        return await self.session.get(self.model, entity_id)

    async def upsert(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def query(
        self,
        *criteria: Any,
        order_by: Sequence[Any] = (),
        limit: int | None = None,
    ) -> list[ModelT]:
        stmt = select(self.model).where(*criteria).order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list((await self.session.execute(stmt)).scalars().all())

    async def first(self, *criteria: Any) -> ModelT | None:
        return await self.session.scalar(select(self.model).where(*criteria).limit(1))

    async def delete(self, entity: ModelT) -> None:
        await self.session.delete(entity)
        await self.session.flush()
