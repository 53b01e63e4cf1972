"""Cuidotecas router.

Institutions manage their cuidotecas; linked users browse them.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import get_current_user, require_institution
from cuidoteca.database import get_db
from cuidoteca.models.user import User
from cuidoteca.schemas.child import ChildSummary
from cuidoteca.schemas.cuidoteca import (
    CuidotecaCreate,
    CuidotecaDetailResponse,
    CuidotecaResponse,
    CuidotecaUpdate,
    EnrolledChild,
    EnrolledCuidador,
)
from cuidoteca.schemas.user import UserSummary
from cuidoteca.services import cuidoteca_service

router = APIRouter(prefix="/cuidotecas", tags=["Cuidotecas"])


@router.get("/", response_model=list[CuidotecaResponse])
async def list_cuidotecas(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Cuidotecas visible to the caller, with confirmed enrollment counts."""
    cuidotecas = await cuidoteca_service.list_cuidotecas(db, current_user)
    counts = await cuidoteca_service.confirmed_counts(db, [c.id for c in cuidotecas])
    responses = []
    for cuidoteca in cuidotecas:
        response = CuidotecaResponse.model_validate(cuidoteca)
        response.confirmed_count = counts.get(cuidoteca.id, 0)
        responses.append(response)
    return responses


@router.post("/", response_model=CuidotecaResponse, status_code=status.HTTP_201_CREATED)
async def create_cuidoteca(
    body: CuidotecaCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    """Create a cuidoteca and notify the institution's linked users."""
    return await cuidoteca_service.create_cuidoteca(db, current_user, body.model_dump())


@router.get("/{cuidoteca_id}", response_model=CuidotecaDetailResponse)
async def get_cuidoteca(
    cuidoteca_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Cuidoteca detail. Pending enrollments are only shown to the owner."""
    detail = await cuidoteca_service.cuidoteca_detail(db, cuidoteca_id, current_user)

    def children(rows):
        return [
            EnrolledChild(
                enrollment_id=enrollment.id,
                child=ChildSummary.model_validate(child),
                requested_days=enrollment.requested_days,
                requested_hours=enrollment.requested_hours,
            )
            for enrollment, child in rows
        ]

    def cuidadores(rows):
        return [
            EnrolledCuidador(
                enrollment_id=enrollment.id,
                cuidador=UserSummary.model_validate(cuidador),
                requested_days=enrollment.requested_days,
                requested_hours=enrollment.requested_hours,
            )
            for enrollment, cuidador in rows
        ]

    counts = await cuidoteca_service.confirmed_counts(db, [cuidoteca_id])
    base = CuidotecaResponse.model_validate(detail["cuidoteca"])
    base.confirmed_count = counts.get(cuidoteca_id, 0)
    return CuidotecaDetailResponse(
        **base.model_dump(),
        institution=UserSummary.model_validate(detail["institution"]),
        confirmed_children=children(detail["confirmed_children"]),
        pending_children=children(detail["pending_children"]),
        confirmed_cuidadores=cuidadores(detail["confirmed_cuidadores"]),
        pending_cuidadores=cuidadores(detail["pending_cuidadores"]),
    )


@router.put("/{cuidoteca_id}", response_model=CuidotecaResponse)
async def update_cuidoteca(
    cuidoteca_id: uuid.UUID,
    body: CuidotecaUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    return await cuidoteca_service.update_cuidoteca(
        db, cuidoteca_id, current_user, body.model_dump(exclude_unset=True)
    )


@router.delete("/{cuidoteca_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cuidoteca(
    cuidoteca_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    await cuidoteca_service.delete_cuidoteca(db, cuidoteca_id, current_user)
    return None
