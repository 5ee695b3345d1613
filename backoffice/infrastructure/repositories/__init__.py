"""Repositories over the async SQLAlchemy session."""

from backoffice.infrastructure.repositories.notifications import NotificationRepository
from backoffice.infrastructure.repositories.sql import SqlRepository
from backoffice.infrastructure.repositories.unit_of_work import UnitOfWork

__all__ = ["NotificationRepository", "SqlRepository", "UnitOfWork"]
