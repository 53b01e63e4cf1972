"""Notification Service.

Notifications are written inline by the handler that triggers them, one row
per recipient.  Each insert runs in its own SAVEPOINT: a failed insert is
rolled back and logged, and the triggering operation still succeeds.
"""

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.errors import NotFound
from cuidoteca.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


async def notify(
    db: AsyncSession,
    user_id: uuid.UUID,
    message: str,
    type: NotificationType = NotificationType.GENERAL,
    *,
    connection_request_id: uuid.UUID | None = None,
    cuidoteca_id: uuid.UUID | None = None,
    event_id: uuid.UUID | None = None,
    post_id: uuid.UUID | None = None,
) -> Notification | None:
    """Insert one notification. Returns ``None`` if the insert failed."""
    try:
        async with db.begin_nested():
            notification = Notification(
                user_id=user_id,
                message=message,
                type=type,
                connection_request_id=connection_request_id,
                cuidoteca_id=cuidoteca_id,
                event_id=event_id,
                post_id=post_id,
            )
            db.add(notification)
        return notification
    except SQLAlchemyError:
        logger.exception(
            "Failed to create %s notification for user %s", type.value, user_id,
        )
        return None


async def notify_many(
    db: AsyncSession,
    user_ids: Iterable[uuid.UUID],
    message: str,
    type: NotificationType = NotificationType.GENERAL,
    **refs: uuid.UUID | None,
) -> int:
    """Fan out the same notification to several users.

    Returns the number of notifications actually created.
    """
    count = 0
    for user_id in user_ids:
        if await notify(db, user_id, message, type, **refs) is not None:
            count += 1
    return count


async def list_notifications(db: AsyncSession, user_id: uuid.UUID) -> list[Notification]:
    """All notifications of a user, newest first."""
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
    )
    return list(result.scalars().all())


async def unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
        )
    )
    return result.scalar() or 0


async def mark_as_read(db: AsyncSession, notification_id: uuid.UUID) -> Notification:
    """Flip ``read`` to true.

    Ownership is not checked: any authenticated caller can mark any
    notification read by id.
    """
    result = await db.execute(
        select(Notification).where(Notification.id == notification_id)
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFound("Notificação não encontrada")

    notification.read = True
    await db.flush()
    return notification


async def mark_all_as_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
    )
    return result.rowcount


async def delete_connection_request_notifications(
    db: AsyncSession, connection_id: uuid.UUID
) -> None:
    await db.execute(
        delete(Notification).where(Notification.connection_request_id == connection_id)
    )
