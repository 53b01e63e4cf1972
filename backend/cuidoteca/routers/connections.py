"""Connections router.

Peer connection requests between parents and cuidadores.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import get_current_user
from cuidoteca.database import get_db
from cuidoteca.models.user import User
from cuidoteca.schemas.connection import (
    ConnectionRequestCreate,
    ConnectionResponse,
    ConnectionStatusResponse,
    PendingRequestResponse,
)
from cuidoteca.schemas.user import PublicUserResponse, UserSummary
from cuidoteca.services import connection_service

router = APIRouter(prefix="/connections", tags=["Connections"])


@router.get("/", response_model=list[PublicUserResponse])
async def list_connections(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Users with an accepted connection to the caller."""
    return await connection_service.accepted_peers(db, current_user.id)


@router.post("/", response_model=ConnectionResponse, status_code=status.HTTP_201_CREATED)
async def request_connection(
    body: ConnectionRequestCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await connection_service.request_connection(db, current_user, body.recipient_id)


@router.get("/pending", response_model=list[PendingRequestResponse])
async def pending_requests(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Incoming requests waiting for the caller's answer."""
    connections = await connection_service.pending_requests(db, current_user.id)
    if not connections:
        return []
    result = await db.execute(
        select(User).where(User.id.in_({c.requester_id for c in connections}))
    )
    requesters = {u.id: u for u in result.scalars().all()}
    return [
        PendingRequestResponse(
            **ConnectionResponse.model_validate(c).model_dump(),
            requester=UserSummary.model_validate(requesters[c.requester_id]),
        )
        for c in connections
    ]


@router.get("/status/{user_id}", response_model=ConnectionStatusResponse)
async def connection_status(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    peer_status, connection = await connection_service.connection_status(
        db, current_user.id, user_id
    )
    return ConnectionStatusResponse(
        status=peer_status.value,
        connection_id=connection.id if connection is not None else None,
    )


@router.post("/{connection_id}/accept", response_model=ConnectionResponse)
async def accept_connection(
    connection_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await connection_service.accept_connection(db, connection_id, current_user)


@router.post("/{connection_id}/decline", response_model=ConnectionResponse)
async def decline_connection(
    connection_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await connection_service.decline_connection(db, connection_id, current_user)


@router.delete("/{connection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_connection(
    connection_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Cancel a pending request or sever an accepted connection."""
    await connection_service.remove_connection(db, connection_id, current_user)
    return None
