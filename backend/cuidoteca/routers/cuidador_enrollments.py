"""Cuidador enrollments router.

Cuidadores apply to work in a cuidoteca; the owning institution reviews.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import get_current_user, require_cuidador, require_institution
from cuidoteca.database import get_db
from cuidoteca.models.user import User
from cuidoteca.schemas.enrollment import (
    CuidadorEnrollmentCreate,
    CuidadorEnrollmentDetailResponse,
    CuidadorEnrollmentResponse,
    CuidotecaSummary,
)
from cuidoteca.schemas.user import UserSummary
from cuidoteca.services import enrollment_service

router = APIRouter(prefix="/cuidador-enrollments", tags=["Cuidador enrollments"])


def _detail(enrollment, user, cuidoteca) -> CuidadorEnrollmentDetailResponse:
    return CuidadorEnrollmentDetailResponse(
        **CuidadorEnrollmentResponse.model_validate(enrollment).model_dump(),
        cuidoteca=CuidotecaSummary.model_validate(cuidoteca),
        user=UserSummary.model_validate(user),
    )


@router.post("/", response_model=CuidadorEnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def enroll_cuidador(
    body: CuidadorEnrollmentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await enrollment_service.enroll_cuidador(
        db,
        current_user,
        body.cuidoteca_id,
        body.requested_days,
        body.requested_hours,
    )


@router.get("/pending", response_model=list[CuidadorEnrollmentDetailResponse])
async def pending_cuidador_enrollments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    rows = await enrollment_service.pending_cuidador_enrollments(db, current_user)
    return [_detail(*row) for row in rows]


@router.get("/institution", response_model=list[CuidadorEnrollmentDetailResponse])
async def institution_cuidador_enrollments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    rows = await enrollment_service.institution_cuidador_enrollments(db, current_user)
    return [_detail(*row) for row in rows]


@router.get("/mine", response_model=list[CuidadorEnrollmentDetailResponse])
async def my_cuidador_enrollments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_cuidador),
):
    rows = await enrollment_service.my_cuidador_enrollments(db, current_user)
    return [_detail(*row) for row in rows]


@router.post("/{enrollment_id}/approve", response_model=CuidadorEnrollmentResponse)
async def approve_cuidador_enrollment(
    enrollment_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    return await enrollment_service.approve_cuidador_enrollment(db, enrollment_id, current_user)


@router.post("/{enrollment_id}/reject", response_model=CuidadorEnrollmentResponse)
async def reject_cuidador_enrollment(
    enrollment_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    return await enrollment_service.reject_cuidador_enrollment(db, enrollment_id, current_user)


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_cuidador_enrollment(
    enrollment_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    await enrollment_service.cancel_cuidador_enrollment(db, enrollment_id, current_user)
    return None
