"""Notifications router."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import get_current_user
from cuidoteca.database import get_db
from cuidoteca.models.user import User
from cuidoteca.schemas.notification import (
    MarkAllReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from cuidoteca.services import notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/", response_model=list[NotificationResponse])
async def list_notifications(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """The caller's notifications, newest first."""
    return await notification_service.list_notifications(db, current_user.id)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return UnreadCountResponse(
        count=await notification_service.unread_count(db, current_user.id)
    )


@router.put("/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return MarkAllReadResponse(
        updated=await notification_service.mark_all_as_read(db, current_user.id)
    )


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_as_read(
    notification_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Mark one notification read.

    The notification is not checked against the caller.
    """
    return await notification_service.mark_as_read(db, notification_id)
