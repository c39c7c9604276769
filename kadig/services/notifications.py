"""Notification service."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kadig.models import Notification
from kadig.services.portfolios import new_id


def add_notification(session: AsyncSession, user_id: str, title: str, body: str) -> Notification:
    """Queue a notification on the session. The caller commits."""
    notification = Notification(id=new_id(), user_id=user_id, title=title, body=body, read=False)
    session.add(notification)
    return notification


async def list_notifications(
    session: AsyncSession, user_id: str, unread_only: bool = False
) -> list[Notification]:
    """Get the user's notifications, unread first, then newest first."""
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.read.is_(False))
    result = await session.execute(
        query.order_by(Notification.read, Notification.created_at.desc())
    )
    return list(result.scalars().all())


async def mark_read(
    session: AsyncSession, user_id: str, notification_id: str
) -> Notification | None:
    result = await session.execute(
        select(Notification).where(
            Notification.id == notification_id, Notification.user_id == user_id
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        return None

    notification.read = True
    await session.commit()
    await session.refresh(notification)
    return notification
