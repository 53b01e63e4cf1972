"""Cuidoteca Service.

Creation, editing and listing of cuidotecas.  Creating one fans out a
``cuidoteca_created`` notification to every user linked to the institution.
"""

import logging
import uuid
from collections.abc import Iterable
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.errors import Forbidden, InvalidState, NotFound
from cuidoteca.models.child import Child
from cuidoteca.models.connection import UniversityConnection
from cuidoteca.models.cuidoteca import (
    Cuidoteca,
    CuidadorEnrollment,
    CuidotecaEnrollment,
    EnrollmentStatus,
)
from cuidoteca.models.notification import Notification, NotificationType
from cuidoteca.models.user import User, UserRole
from cuidoteca.services import connection_service, notification_service

logger = logging.getLogger(__name__)


def day_values(days: Iterable[Any]) -> list[str]:
    """Normalize weekday members or strings to their stored string values."""
    return [getattr(d, "value", d) for d in days]


def _check_age_range(min_age: int, max_age: int) -> None:
    if min_age > max_age:
        raise InvalidState("A idade mínima não pode ser maior que a idade máxima")


async def get_cuidoteca(db: AsyncSession, cuidoteca_id: uuid.UUID) -> Cuidoteca:
    result = await db.execute(select(Cuidoteca).where(Cuidoteca.id == cuidoteca_id))
    cuidoteca = result.scalar_one_or_none()
    if cuidoteca is None:
        raise NotFound("Cuidoteca não encontrada")
    return cuidoteca


async def get_owned_cuidoteca(
    db: AsyncSession, cuidoteca_id: uuid.UUID, institution: User
) -> Cuidoteca:
    cuidoteca = await get_cuidoteca(db, cuidoteca_id)
    if cuidoteca.institution_id != institution.id:
        raise Forbidden("Esta cuidoteca pertence a outra instituição")
    return cuidoteca


async def create_cuidoteca(
    db: AsyncSession, institution: User, data: dict[str, Any]
) -> Cuidoteca:
    """Insert a cuidoteca and notify every user linked to the institution."""
    data = dict(data)
    data["days"] = day_values(data.get("days") or [])
    _check_age_range(data.get("min_age", 0), data.get("max_age", 12))

    cuidoteca = Cuidoteca(institution_id=institution.id, **data)
    db.add(cuidoteca)
    await db.flush()

    recipients = await connection_service.linked_user_ids(db, institution.id)
    sent = await notification_service.notify_many(
        db,
        recipients,
        f"{institution.display_name} criou uma nova cuidoteca: {cuidoteca.name}",
        NotificationType.CUIDOTECA_CREATED,
        cuidoteca_id=cuidoteca.id,
    )
    logger.info(
        "Cuidoteca %s created by %s, %d notifications sent",
        cuidoteca.id, institution.id, sent,
    )
    await db.refresh(cuidoteca)
    return cuidoteca


async def update_cuidoteca(
    db: AsyncSession,
    cuidoteca_id: uuid.UUID,
    institution: User,
    changes: dict[str, Any],
) -> Cuidoteca:
    cuidoteca = await get_owned_cuidoteca(db, cuidoteca_id, institution)

    # every cuidoteca column is NOT NULL
    changes = {k: v for k, v in changes.items() if v is not None}
    if "days" in changes:
        changes["days"] = day_values(changes["days"])
    _check_age_range(
        changes.get("min_age", cuidoteca.min_age),
        changes.get("max_age", cuidoteca.max_age),
    )

    for field, value in changes.items():
        setattr(cuidoteca, field, value)
    await db.flush()
    await db.refresh(cuidoteca)
    return cuidoteca


async def delete_cuidoteca(
    db: AsyncSession, cuidoteca_id: uuid.UUID, institution: User
) -> None:
    """Delete a cuidoteca together with all of its enrollments."""
    cuidoteca = await get_owned_cuidoteca(db, cuidoteca_id, institution)

    await db.execute(
        delete(CuidotecaEnrollment).where(CuidotecaEnrollment.cuidoteca_id == cuidoteca.id)
    )
    await db.execute(
        delete(CuidadorEnrollment).where(CuidadorEnrollment.cuidoteca_id == cuidoteca.id)
    )
    await db.execute(
        delete(Notification).where(Notification.cuidoteca_id == cuidoteca.id)
    )
    await db.delete(cuidoteca)
    await db.flush()
    logger.info("Cuidoteca %s deleted by %s", cuidoteca_id, institution.id)


async def list_cuidotecas(db: AsyncSession, user: User) -> list[Cuidoteca]:
    """Cuidotecas visible to ``user``.

    Institutions see their own, coordinators see all of them, everybody else
    sees the cuidotecas of the institutions they are linked to.
    """
    query = select(Cuidoteca).order_by(Cuidoteca.created_at.desc())
    if user.role is UserRole.INSTITUTION:
        query = query.where(Cuidoteca.institution_id == user.id)
    elif user.role is not UserRole.COORDINATOR:
        linked = select(UniversityConnection.institution_id).where(
            UniversityConnection.user_id == user.id
        )
        query = query.where(Cuidoteca.institution_id.in_(linked))

    result = await db.execute(query)
    return list(result.scalars().all())


async def confirmed_counts(
    db: AsyncSession, cuidoteca_ids: list[uuid.UUID]
) -> dict[uuid.UUID, int]:
    """Number of confirmed child enrollments per cuidoteca."""
    if not cuidoteca_ids:
        return {}
    result = await db.execute(
        select(CuidotecaEnrollment.cuidoteca_id, func.count(CuidotecaEnrollment.id))
        .where(
            CuidotecaEnrollment.cuidoteca_id.in_(cuidoteca_ids),
            CuidotecaEnrollment.status == EnrollmentStatus.CONFIRMED,
        )
        .group_by(CuidotecaEnrollment.cuidoteca_id)
    )
    return {cuidoteca_id: count for cuidoteca_id, count in result.all()}


async def cuidoteca_detail(
    db: AsyncSession, cuidoteca_id: uuid.UUID, user: User
) -> dict[str, Any]:
    """Cuidoteca with its institution and enrollment lists.

    Pending lists are only filled in for the owning institution.
    """
    cuidoteca = await get_cuidoteca(db, cuidoteca_id)
    institution = await db.get(User, cuidoteca.institution_id)
    is_owner = user.id == cuidoteca.institution_id

    children = await db.execute(
        select(CuidotecaEnrollment, Child)
        .join(Child, Child.id == CuidotecaEnrollment.child_id)
        .where(CuidotecaEnrollment.cuidoteca_id == cuidoteca.id)
        .order_by(CuidotecaEnrollment.enrollment_date)
    )
    cuidadores = await db.execute(
        select(CuidadorEnrollment, User)
        .join(User, User.id == CuidadorEnrollment.cuidador_id)
        .where(CuidadorEnrollment.cuidoteca_id == cuidoteca.id)
        .order_by(CuidadorEnrollment.enrollment_date)
    )

    detail: dict[str, Any] = {
        "cuidoteca": cuidoteca,
        "institution": institution,
        "confirmed_children": [],
        "pending_children": [],
        "confirmed_cuidadores": [],
        "pending_cuidadores": [],
    }
    for enrollment, child in children.all():
        if enrollment.status is EnrollmentStatus.CONFIRMED:
            detail["confirmed_children"].append((enrollment, child))
        elif enrollment.status is EnrollmentStatus.PENDING and is_owner:
            detail["pending_children"].append((enrollment, child))
    for enrollment, cuidador in cuidadores.all():
        if enrollment.status is EnrollmentStatus.CONFIRMED:
            detail["confirmed_cuidadores"].append((enrollment, cuidador))
        elif enrollment.status is EnrollmentStatus.PENDING and is_owner:
            detail["pending_cuidadores"].append((enrollment, cuidador))
    return detail
