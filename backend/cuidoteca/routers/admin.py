"""Admin router.

Platform-wide statistics for coordinators.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import require_coordinator
from cuidoteca.database import get_db
from cuidoteca.models.child import Child
from cuidoteca.models.cuidoteca import CuidotecaEnrollment, EnrollmentStatus
from cuidoteca.models.user import User, UserRole
from cuidoteca.schemas.admin import AdminStatsResponse

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/stats", response_model=AdminStatsResponse)
async def admin_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_coordinator),
):
    roles = await db.execute(select(User.role, func.count(User.id)).group_by(User.role))
    by_role = {role: count for role, count in roles.all()}

    enrollments = await db.execute(
        select(CuidotecaEnrollment.status, func.count(CuidotecaEnrollment.id))
        .group_by(CuidotecaEnrollment.status)
    )
    by_status = {status: count for status, count in enrollments.all()}

    total_children = (await db.execute(select(func.count(Child.id)))).scalar() or 0

    return AdminStatsResponse(
        total_parents=by_role.get(UserRole.PARENT, 0),
        total_cuidadores=by_role.get(UserRole.CUIDADOR, 0),
        total_institutions=by_role.get(UserRole.INSTITUTION, 0),
        total_children=total_children,
        confirmed_enrollments=by_status.get(EnrollmentStatus.CONFIRMED, 0),
        pending_enrollments=by_status.get(EnrollmentStatus.PENDING, 0),
    )
