from __future__ import annotations

from backoffice.infrastructure.db.models import NotificationModel
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement


def addressed_to(role: str, user_id: str) -> ColumnElement[bool]:
    """Notifications whose role target or direct target matches the reader."""
    return or_(NotificationModel.for_role == role, NotificationModel.user_id == user_id)


class NotificationRepository:
    """Append-only store of notifications; only ``read`` is ever updated."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def append(self, notification: NotificationModel) -> NotificationModel:
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def get(self, notification_id: str) -> NotificationModel | None:
        return await self.session.get(NotificationModel, notification_id)

    async def query_for(
        self,
        *,
        role: str,
        user_id: str,
        unread_only: bool = False,
        limit: int | None = None,
    ) -> list[NotificationModel]:
        stmt = (
            select(NotificationModel)
            .where(addressed_to(role, user_id))
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        )
        if unread_only:
            stmt = stmt.where(NotificationModel.read.is_(False))
        if limit is not None:
            stmt = stmt.limit(limit)
        return list((await self.session.execute(stmt)).scalars().all())

    async def count_unread_for(self, *, role: str, user_id: str) -> int:
        stmt = (
            select(func.count(NotificationModel.id))
            .where(addressed_to(role, user_id))
            .where(NotificationModel.read.is_(False))
        )
        return int(await self.session.scalar(stmt) or 0)
