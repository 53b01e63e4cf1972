"""Messages router.

Direct messages between connected users and institution broadcasts.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import get_current_user, require_institution
from cuidoteca.core.rate_limit import limiter
from cuidoteca.database import get_db
from cuidoteca.models.user import User
from cuidoteca.schemas.message import (
    BulkMessageCreate,
    BulkMessageResponse,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
)
from cuidoteca.schemas.user import PublicUserResponse, UserSummary
from cuidoteca.services import message_service

router = APIRouter(prefix="/messages", tags=["Messages"])


@router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    body: MessageCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await message_service.send_message(db, current_user, body.receiver_id, body.content)


@router.post("/bulk", response_model=BulkMessageResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def send_bulk_message(
    request: Request,
    body: BulkMessageCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    """Send the same message to every member of a target group."""
    messages = await message_service.send_bulk_message(
        db, current_user, body.target_group, body.content
    )
    return BulkMessageResponse(count=len(messages), message_ids=[m.id for m in messages])


@router.get("/conversations", response_model=list[ConversationResponse])
async def conversations(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    entries = await message_service.conversations(db, current_user)
    return [
        ConversationResponse(
            user=UserSummary.model_validate(entry["user"]),
            last_message=entry["last_message"],
            last_message_at=entry["last_message_at"],
            unread_count=entry["unread_count"],
        )
        for entry in entries
    ]


@router.get("/contacts", response_model=list[PublicUserResponse])
async def messageable_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Users the caller is allowed to message."""
    return await message_service.messageable_users(db, current_user)


@router.get("/thread/{user_id}", response_model=list[MessageResponse])
async def get_thread(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Messages exchanged with ``user_id``, oldest first."""
    return await message_service.get_thread(db, current_user, user_id)


@router.put("/{message_id}/read", response_model=MessageResponse)
async def mark_message_read(
    message_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await message_service.mark_message_read(db, message_id, current_user)
