"""Notification endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from kadig.auth import get_current_user
from kadig.database import get_session
from kadig.models import User
from kadig.schemas.notification import NotificationResponse
from kadig.services import notifications as notification_service

router = APIRouter()


@router.get(
    "/notifications",
    response_model=list[NotificationResponse],
    summary="List notifications",
)
async def list_notifications(
    unread: bool = Query(False, description="Only unread notifications"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[NotificationResponse]:
    """Your notifications, unread first."""
    notifications = await notification_service.list_notifications(
        session, user.id, unread_only=unread
    )
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.post(
    "/notifications/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification as read",
)
async def mark_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> NotificationResponse:
    notification = await notification_service.mark_read(session, user.id, notification_id)
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return NotificationResponse.model_validate(notification)
