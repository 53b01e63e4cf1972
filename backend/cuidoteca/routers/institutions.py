"""Institutions router.

Institution directory and user -> institution links.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import get_current_user, require_institution
from cuidoteca.database import get_db
from cuidoteca.models.connection import UniversityConnection
from cuidoteca.models.user import User, UserRole
from cuidoteca.schemas.institution import InstitutionLinkResponse, InstitutionResponse
from cuidoteca.schemas.user import PublicUserResponse
from cuidoteca.services import connection_service

router = APIRouter(prefix="/institutions", tags=["Institutions"])


async def _linked_ids(db: AsyncSession, user: User) -> set[uuid.UUID]:
    result = await db.execute(
        select(UniversityConnection.institution_id).where(
            UniversityConnection.user_id == user.id
        )
    )
    return set(result.scalars().all())


def _to_response(
    institution: User, counts: dict[uuid.UUID, int], linked: set[uuid.UUID]
) -> InstitutionResponse:
    response = InstitutionResponse.model_validate(institution)
    response.connection_count = counts.get(institution.id, 0)
    response.is_connected = institution.id in linked
    return response


@router.get("/", response_model=list[InstitutionResponse])
async def list_institutions(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """All institutions with their number of linked users."""
    result = await db.execute(
        select(User).where(User.role == UserRole.INSTITUTION).order_by(User.institution_name)
    )
    counts = await connection_service.connection_counts(db)
    linked = await _linked_ids(db, current_user)
    return [_to_response(i, counts, linked) for i in result.scalars().all()]


@router.get("/mine", response_model=list[InstitutionResponse])
async def my_institutions(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Institutions the caller is linked to, oldest link first."""
    institutions = await connection_service.linked_institutions(db, current_user.id)
    counts = await connection_service.connection_counts(db)
    linked = {i.id for i in institutions}
    return [_to_response(i, counts, linked) for i in institutions]


@router.get("/members", response_model=list[PublicUserResponse])
async def institution_members(
    db: Annotated[AsyncSession, Depends(get_db)],
    role: UserRole | None = Query(default=None),
    current_user: User = Depends(require_institution),
):
    """Users linked to the calling institution."""
    return await connection_service.linked_users(db, current_user.id, role)


@router.get("/{institution_id}", response_model=InstitutionResponse)
async def get_institution(
    institution_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    institution = await connection_service.get_institution(db, institution_id)
    counts = await connection_service.connection_counts(db)
    linked = await _linked_ids(db, current_user)
    return _to_response(institution, counts, linked)


@router.post(
    "/{institution_id}/connect",
    response_model=InstitutionLinkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def connect_institution(
    institution_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await connection_service.connect_institution(db, current_user, institution_id)


@router.delete("/{institution_id}/connect", status_code=status.HTTP_204_NO_CONTENT)
async def disconnect_institution(
    institution_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Remove the link. Succeeds even if there was none."""
    await connection_service.disconnect_institution(db, current_user, institution_id)
    return None
