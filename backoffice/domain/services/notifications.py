"""
Notification fan-out: durable, pull-based notifications.

A notification is addressed either to a role (every SuperAdmin sees it) or to a
single principal. Nothing is pushed; recipients poll ``list_for``. Message
text comes from ``NOTIFICATION_TEMPLATES`` so adding an entity kind means adding
rows to that table, not touching the workflow engine.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from backoffice.core.auth import Role
from backoffice.core.errors import AuthorizationError, NotFoundError, ValidationError
from backoffice.domain.models import Principal
from backoffice.infrastructure.db.models import NotificationModel, utcnow
from backoffice.infrastructure.repositories.notifications import NotificationRepository
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class NotificationTarget:
    for_role: str | None = None
    user_id: str | None = None

    @classmethod
    def role(cls, role: Role) -> NotificationTarget:
        return cls(for_role=role.value)

    @classmethod
    def user(cls, user_id: str) -> NotificationTarget:
        return cls(user_id=user_id)

    @property
    def is_empty(self) -> bool:
        return not self.for_role and not self.user_id


@dataclass(frozen=True, slots=True)
class NotificationTemplate:
    title: str
    message: str


@dataclass(frozen=True, slots=True)
class RenderedNotification:
    title: str
    message: str


# (entity kind, event) -> template. Placeholders: {label}, {actor}.
NOTIFICATION_TEMPLATES: dict[tuple[str, str], NotificationTemplate] = {
    ("material", "submitted"): NotificationTemplate(
        "New Material Awaiting Approval", "{actor} created a new material: {label}"
    ),
    ("material", "resubmitted"): NotificationTemplate(
        "Material Updated - Awaiting Approval", "{actor} updated material: {label}"
    ),
    ("material", "approved"): NotificationTemplate(
        "Material Approved", 'Your material "{label}" has been approved by SuperAdmin'
    ),
    ("material", "rejected"): NotificationTemplate(
        "Material Rejected", 'Your material "{label}" has been rejected by SuperAdmin'
    ),
    ("material", "pending"): NotificationTemplate(
        "Material Pending",
        'Your material "{label}" has been returned to pending review by SuperAdmin',
    ),
    ("admin", "submitted"): NotificationTemplate(
        "New Admin Registration",
        "{label} has registered as an admin and is awaiting approval.",
    ),
    ("admin", "resubmitted"): NotificationTemplate(
        "Admin Verification Updated",
        "{label} updated their identity details and is awaiting approval.",
    ),
    ("admin", "approved"): NotificationTemplate(
        "Account Approved", "Your admin account ({label}) has been approved by SuperAdmin"
    ),
    ("admin", "rejected"): NotificationTemplate(
        "Account Rejected", "Your admin account ({label}) has been rejected by SuperAdmin"
    ),
    ("admin", "pending"): NotificationTemplate(
        "Account Pending",
        "Your admin account ({label}) has been returned to pending review by SuperAdmin",
    ),
    ("store", "created"): NotificationTemplate(
        "Store Created: {label}", 'Store "{label}" has been created.'
    ),
    ("store", "updated"): NotificationTemplate(
        "Store Updated: {label}", 'Store "{label}" was updated by {actor}.'
    ),
    ("product", "created"): NotificationTemplate(
        "New Product Added", "{actor} created a new product: {label}"
    ),
}


def render_notification(kind: str, event: str, *, label: str, actor: str) -> RenderedNotification:
    template = NOTIFICATION_TEMPLATES.get((kind, event))
    if template is None:
        raise KeyError(f"No notification template for ({kind}, {event})")
    return RenderedNotification(
        title=template.title.format(label=label, actor=actor),
        message=template.message.format(label=label, actor=actor),
    )


class NotificationService:
    """Creates and reads notifications; each write is its own commit."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repository = NotificationRepository(session)

    async def notify(
        self,
        target: NotificationTarget,
        *,
        title: str,
        message: str,
        type: str,
        related_id: str | None = None,
    ) -> NotificationModel:
        if target.is_empty:
            raise ValidationError("Notification target requires for_role or user_id")

        notification = NotificationModel(
            title=title,
            message=message,
            type=type,
            related_id=related_id,
            for_role=target.for_role,
            user_id=target.user_id,
            read=False,
            created_at=utcnow(),
        )
        await self.repository.append(notification)
        await self.session.commit()

        logger.info(
            "notification_created",
            notification_id=notification.id,
            type=type,
            related_id=related_id,
            for_role=target.for_role,
            user_id=target.user_id,
        )
        return notification

    async def try_notify(
        self,
        target: NotificationTarget,
        rendered: RenderedNotification,
        *,
        type: str,
        related_id: str | None = None,
    ) -> bool:
        """Best-effort ``notify``: a failed write is rolled back and logged, never raised.

        Callers have already committed the entity write this notification
        describes; that write stands either way.
        """
        try:
            await self.notify(
                target,
                title=rendered.title,
                message=rendered.message,
                type=type,
                related_id=related_id,
            )
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error(
                "notification_emit_failed",
                type=type,
                related_id=related_id,
                error=str(exc),
            )
            return False
        return True

    async def list_for(
        self,
        principal: Principal,
        *,
        unread_only: bool = False,
        limit: int | None = None,
    ) -> list[NotificationModel]:
        """Notifications addressed to the principal's role or id, newest first."""
        return await self.repository.query_for(
            role=principal.role.value,
            user_id=principal.id,
            unread_only=unread_only,
            limit=limit,
        )

    async def unread_count(self, principal: Principal) -> int:
        return await self.repository.count_unread_for(
            role=principal.role.value, user_id=principal.id
        )

    async def mark_read(self, notification_id: str, principal: Principal) -> NotificationModel:
        notification = await self.repository.get(notification_id)
        if notification is None:
            raise NotFoundError("Notification not found")

        addressed = (
            notification.for_role == principal.role.value or notification.user_id == principal.id
        )
        if not addressed:
            raise AuthorizationError("Notification is not addressed to you")

        if not notification.read:
            notification.read = True
            await self.session.commit()
            logger.info("notification_marked_read", notification_id=notification_id)
        return notification
