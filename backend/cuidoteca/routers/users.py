"""Users router.

Public directory of parents and cuidadores.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import get_current_user
from cuidoteca.core.errors import NotFound
from cuidoteca.database import get_db
from cuidoteca.models.user import User, UserRole
from cuidoteca.schemas.user import PublicProfileResponse, PublicUserResponse
from cuidoteca.services import connection_service

router = APIRouter(prefix="/users", tags=["Users"])

DIRECTORY_ROLES = (UserRole.PARENT, UserRole.CUIDADOR)


@router.get("/public", response_model=list[PublicUserResponse])
async def list_public_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    role: UserRole | None = Query(default=None),
    current_user: User = Depends(get_current_user),
):
    """List parents and cuidadores, optionally filtered by role."""
    if role is not None and role not in DIRECTORY_ROLES:
        return []
    roles = [role] if role is not None else list(DIRECTORY_ROLES)
    result = await db.execute(
        select(User)
        .where(User.role.in_(roles), User.id != current_user.id)
        .order_by(User.name)
    )
    return result.scalars().all()


@router.get("/{user_id}/public", response_model=PublicProfileResponse)
async def get_public_profile(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Public profile plus the caller's connection status toward the user."""
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("Usuário não encontrado")

    peer_status, connection = await connection_service.connection_status(
        db, current_user.id, user.id
    )
    profile = PublicUserResponse.model_validate(user)
    return PublicProfileResponse(
        **profile.model_dump(),
        connection_status=peer_status.value,
        connection_id=connection.id if connection is not None else None,
    )
