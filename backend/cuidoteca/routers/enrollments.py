"""Enrollments router.

Child enrollment requests (parents) and their review (institutions).
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import get_current_user, require_institution, require_parent
from cuidoteca.database import get_db
from cuidoteca.models.user import User
from cuidoteca.schemas.child import ChildSummary
from cuidoteca.schemas.enrollment import (
    CuidotecaSummary,
    EnrollmentCreate,
    EnrollmentDetailResponse,
    EnrollmentResponse,
)
from cuidoteca.schemas.user import UserSummary
from cuidoteca.services import enrollment_service

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


def _detail(enrollment, child, user, cuidoteca) -> EnrollmentDetailResponse:
    return EnrollmentDetailResponse(
        **EnrollmentResponse.model_validate(enrollment).model_dump(),
        child=ChildSummary.model_validate(child),
        cuidoteca=CuidotecaSummary.model_validate(cuidoteca),
        user=UserSummary.model_validate(user),
    )


@router.post("/", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def enroll(
    body: EnrollmentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Request a spot for one of the caller's children."""
    return await enrollment_service.enroll_child(
        db,
        current_user,
        body.cuidoteca_id,
        body.child_id,
        body.requested_days,
        body.requested_hours,
    )


@router.get("/pending", response_model=list[EnrollmentDetailResponse])
async def pending_enrollments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    rows = await enrollment_service.pending_enrollments(db, current_user)
    return [_detail(*row) for row in rows]


@router.get("/institution", response_model=list[EnrollmentDetailResponse])
async def institution_enrollments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    """Every child enrollment across the caller's cuidotecas."""
    rows = await enrollment_service.institution_enrollments(db, current_user)
    return [_detail(*row) for row in rows]


@router.get("/mine", response_model=list[EnrollmentDetailResponse])
async def my_enrollments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    """Enrollments of the caller's children. ``user`` is the institution."""
    rows = await enrollment_service.my_enrollments(db, current_user)
    return [_detail(*row) for row in rows]


@router.post("/{enrollment_id}/approve", response_model=EnrollmentResponse)
async def approve_enrollment(
    enrollment_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    return await enrollment_service.approve_enrollment(db, enrollment_id, current_user)


@router.post("/{enrollment_id}/reject", response_model=EnrollmentResponse)
async def reject_enrollment(
    enrollment_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    return await enrollment_service.reject_enrollment(db, enrollment_id, current_user)


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_enrollment(
    enrollment_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Delete the enrollment (parent of the child or owning institution)."""
    await enrollment_service.cancel_enrollment(db, enrollment_id, current_user)
    return None
