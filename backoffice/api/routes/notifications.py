from __future__ import annotations

from backoffice.api.deps import get_db_session, require_capability
from backoffice.api.schemas.notifications import NotificationListResponse, NotificationResponse
from backoffice.core.permissions import Capability
from backoffice.domain import Principal
from backoffice.domain.services.notifications import NotificationService
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int | None = Query(None, ge=1, le=500),
    session: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(require_capability(Capability.NOTIFICATIONS_READ)),
) -> NotificationListResponse:
    """Notifications for the caller's role or addressed to the caller, newest first."""
    service = NotificationService(session)
    notifications = await service.list_for(principal, unread_only=unread_only, limit=limit)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=await service.unread_count(principal),
    )


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    session: AsyncSession = Depends(get_db_session),
    principal: Principal = Depends(require_capability(Capability.NOTIFICATIONS_READ)),
) -> NotificationResponse:
    notification = await NotificationService(session).mark_read(notification_id, principal)
    return NotificationResponse.model_validate(notification)
