from __future__ import annotations

import structlog
from backoffice.infrastructure.db.models import (
    AdminModel,
    MaterialModel,
    ProductModel,
    StoreModel,
    SuperAdminModel,
)
from backoffice.infrastructure.repositories.sql import SqlRepository
from backoffice.infrastructure.repositories.notifications import NotificationRepository
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class UnitOfWork:
    """Groups the repositories sharing one session.

    Used as an async context manager it commits on success and rolls back on
    error. Services that need several independent commits (entity write, then
    notification write) call ``commit()`` explicitly instead.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.admins = SqlRepository(session, AdminModel)
        self.superadmins = SqlRepository(session, SuperAdminModel)
        self.materials = SqlRepository(session, MaterialModel)
        self.stores = SqlRepository(session, StoreModel)
        self.products = SqlRepository(session, ProductModel)
        self.notifications = NotificationRepository(session)

    async def __aenter__(self) -> UnitOfWork:
        logger.debug("uow_enter")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            await self.commit()
        logger.debug("uow_exit", exc_type=str(exc_type) if exc_type else None)

    async def commit(self) -> None:
        await self.session.commit()
        logger.debug("uow_commit")

    async def rollback(self) -> None:
        await self.session.rollback()
        logger.debug("uow_rollback")
