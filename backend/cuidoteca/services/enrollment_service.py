"""Enrollment Service.

State machine for child and cuidador enrollments in a cuidoteca::

    pending --approve--> confirmed
    pending --reject---> cancelled

Cancelling is a hard delete, available to the enrolling side and to the
owning institution.  Capacity is informational and never enforced here.
"""

import logging
import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.errors import AgeOutOfRange, Forbidden, InvalidState, NotFound, NotOwned
from cuidoteca.models.child import Child
from cuidoteca.models.cuidoteca import (
    Cuidoteca,
    CuidadorEnrollment,
    CuidotecaEnrollment,
    EnrollmentStatus,
)
from cuidoteca.models.notification import NotificationType
from cuidoteca.models.user import User, UserRole
from cuidoteca.services import notification_service
from cuidoteca.services.cuidoteca_service import day_values, get_cuidoteca

logger = logging.getLogger(__name__)

_OUTCOME_LABELS = {
    EnrollmentStatus.CONFIRMED: "aprovada",
    EnrollmentStatus.CANCELLED: "recusada",
}


def _check_requested_days(cuidoteca: Cuidoteca, requested_days: Sequence[Any]) -> list[str]:
    days = day_values(requested_days)
    if not days:
        raise InvalidState("Selecione ao menos um dia")
    offered = set(cuidoteca.days)
    unavailable = [d for d in days if d not in offered]
    if unavailable:
        raise InvalidState(
            f"A cuidoteca não funciona nos dias: {', '.join(unavailable)}"
        )
    return days


def _check_transition(status: EnrollmentStatus) -> None:
    if status is not EnrollmentStatus.PENDING:
        raise InvalidState(f"Esta matrícula já foi processada (status: {status.value})")


# ---------------------------------------------------------------------------
# Child enrollments
# ---------------------------------------------------------------------------

async def enroll_child(
    db: AsyncSession,
    parent: User,
    cuidoteca_id: uuid.UUID,
    child_id: uuid.UUID,
    requested_days: Sequence[Any],
    requested_hours: str,
) -> CuidotecaEnrollment:
    """Create a pending enrollment for one of the parent's children.

    Checks run in order: caller role, child ownership, cuidoteca existence,
    age band, requested days.
    """
    if parent.role is not UserRole.PARENT:
        raise Forbidden("Apenas pais podem matricular crianças")

    child = await db.get(Child, child_id)
    if child is None or child.parent_id != parent.id:
        raise NotOwned("Esta criança não pertence a você")

    cuidoteca = await get_cuidoteca(db, cuidoteca_id)

    if not cuidoteca.accepts_age(child.age):
        raise AgeOutOfRange(
            f"{child.name} tem {child.age} anos, mas esta cuidoteca aceita crianças "
            f"de {cuidoteca.min_age} a {cuidoteca.max_age} anos"
        )

    days = _check_requested_days(cuidoteca, requested_days)

    enrollment = CuidotecaEnrollment(
        cuidoteca_id=cuidoteca.id,
        child_id=child.id,
        status=EnrollmentStatus.PENDING,
        requested_days=days,
        requested_hours=requested_hours,
    )
    db.add(enrollment)
    await db.flush()

    await notification_service.notify(
        db,
        cuidoteca.institution_id,
        f"{parent.name} solicitou a matrícula de {child.name} na cuidoteca {cuidoteca.name}",
        NotificationType.ENROLLMENT_REQUEST,
        cuidoteca_id=cuidoteca.id,
    )
    logger.info(
        "Enrollment %s created: child %s -> cuidoteca %s",
        enrollment.id, child.id, cuidoteca.id,
    )
    await db.refresh(enrollment)
    return enrollment


async def _load_child_enrollment(
    db: AsyncSession, enrollment_id: uuid.UUID
) -> tuple[CuidotecaEnrollment, Cuidoteca, Child]:
    result = await db.execute(
        select(CuidotecaEnrollment, Cuidoteca, Child)
        .join(Cuidoteca, Cuidoteca.id == CuidotecaEnrollment.cuidoteca_id)
        .join(Child, Child.id == CuidotecaEnrollment.child_id)
        .where(CuidotecaEnrollment.id == enrollment_id)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFound("Matrícula não encontrada")
    return tuple(row)


async def _decide_child_enrollment(
    db: AsyncSession,
    enrollment_id: uuid.UUID,
    institution: User,
    outcome: EnrollmentStatus,
) -> CuidotecaEnrollment:
    enrollment, cuidoteca, child = await _load_child_enrollment(db, enrollment_id)
    if cuidoteca.institution_id != institution.id:
        raise Forbidden("Apenas a instituição responsável pode avaliar esta matrícula")
    _check_transition(enrollment.status)

    enrollment.status = outcome
    await db.flush()

    await notification_service.notify(
        db,
        child.parent_id,
        f"A matrícula de {child.name} na cuidoteca {cuidoteca.name} "
        f"foi {_OUTCOME_LABELS[outcome]}",
        NotificationType.ENROLLMENT_UPDATE,
        cuidoteca_id=cuidoteca.id,
    )
    logger.info("Enrollment %s -> %s", enrollment.id, outcome.value)
    await db.refresh(enrollment)
    return enrollment


async def approve_enrollment(
    db: AsyncSession, enrollment_id: uuid.UUID, institution: User
) -> CuidotecaEnrollment:
    return await _decide_child_enrollment(
        db, enrollment_id, institution, EnrollmentStatus.CONFIRMED
    )


async def reject_enrollment(
    db: AsyncSession, enrollment_id: uuid.UUID, institution: User
) -> CuidotecaEnrollment:
    return await _decide_child_enrollment(
        db, enrollment_id, institution, EnrollmentStatus.CANCELLED
    )


async def cancel_enrollment(
    db: AsyncSession, enrollment_id: uuid.UUID, actor: User
) -> None:
    """Hard-delete an enrollment. Allowed to the child's parent and the
    owning institution."""
    enrollment, cuidoteca, child = await _load_child_enrollment(db, enrollment_id)
    if actor.id not in (child.parent_id, cuidoteca.institution_id):
        raise Forbidden("Você não pode cancelar esta matrícula")

    await db.delete(enrollment)
    await db.flush()
    logger.info("Enrollment %s cancelled by %s", enrollment_id, actor.id)


def _child_enrollment_query():
    return (
        select(CuidotecaEnrollment, Child, User, Cuidoteca)
        .join(Child, Child.id == CuidotecaEnrollment.child_id)
        .join(User, User.id == Child.parent_id)
        .join(Cuidoteca, Cuidoteca.id == CuidotecaEnrollment.cuidoteca_id)
        .order_by(CuidotecaEnrollment.enrollment_date.desc())
    )


async def institution_enrollments(
    db: AsyncSession,
    institution: User,
    status: EnrollmentStatus | None = None,
) -> list[tuple[CuidotecaEnrollment, Child, User, Cuidoteca]]:
    """Child enrollments across the institution's cuidotecas.

    Each row is ``(enrollment, child, parent, cuidoteca)``.
    """
    query = _child_enrollment_query().where(Cuidoteca.institution_id == institution.id)
    if status is not None:
        query = query.where(CuidotecaEnrollment.status == status)
    result = await db.execute(query)
    return [tuple(row) for row in result.all()]


async def pending_enrollments(
    db: AsyncSession, institution: User
) -> list[tuple[CuidotecaEnrollment, Child, User, Cuidoteca]]:
    return await institution_enrollments(db, institution, EnrollmentStatus.PENDING)


async def my_enrollments(
    db: AsyncSession, parent: User
) -> list[tuple[CuidotecaEnrollment, Child, User, Cuidoteca]]:
    """Enrollments of the parent's children. The ``User`` in each row is the
    cuidoteca's institution."""
    result = await db.execute(
        select(CuidotecaEnrollment, Child, User, Cuidoteca)
        .join(Child, Child.id == CuidotecaEnrollment.child_id)
        .join(Cuidoteca, Cuidoteca.id == CuidotecaEnrollment.cuidoteca_id)
        .join(User, User.id == Cuidoteca.institution_id)
        .where(Child.parent_id == parent.id)
        .order_by(CuidotecaEnrollment.enrollment_date.desc())
    )
    return [tuple(row) for row in result.all()]


# ---------------------------------------------------------------------------
# Cuidador enrollments
# ---------------------------------------------------------------------------

async def enroll_cuidador(
    db: AsyncSession,
    cuidador: User,
    cuidoteca_id: uuid.UUID,
    requested_days: Sequence[Any],
    requested_hours: str,
) -> CuidadorEnrollment:
    """Create a pending cuidador enrollment. No age check applies."""
    if cuidador.role is not UserRole.CUIDADOR:
        raise Forbidden("Apenas cuidadores podem se inscrever como cuidador")

    cuidoteca = await get_cuidoteca(db, cuidoteca_id)
    days = _check_requested_days(cuidoteca, requested_days)

    enrollment = CuidadorEnrollment(
        cuidoteca_id=cuidoteca.id,
        cuidador_id=cuidador.id,
        status=EnrollmentStatus.PENDING,
        requested_days=days,
        requested_hours=requested_hours,
    )
    db.add(enrollment)
    await db.flush()

    await notification_service.notify(
        db,
        cuidoteca.institution_id,
        f"{cuidador.name} quer trabalhar na cuidoteca {cuidoteca.name}",
        NotificationType.ENROLLMENT_REQUEST,
        cuidoteca_id=cuidoteca.id,
    )
    logger.info(
        "Cuidador enrollment %s created: %s -> cuidoteca %s",
        enrollment.id, cuidador.id, cuidoteca.id,
    )
    await db.refresh(enrollment)
    return enrollment


async def _load_cuidador_enrollment(
    db: AsyncSession, enrollment_id: uuid.UUID
) -> tuple[CuidadorEnrollment, Cuidoteca]:
    result = await db.execute(
        select(CuidadorEnrollment, Cuidoteca)
        .join(Cuidoteca, Cuidoteca.id == CuidadorEnrollment.cuidoteca_id)
        .where(CuidadorEnrollment.id == enrollment_id)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFound("Inscrição de cuidador não encontrada")
    return tuple(row)


async def _decide_cuidador_enrollment(
    db: AsyncSession,
    enrollment_id: uuid.UUID,
    institution: User,
    outcome: EnrollmentStatus,
) -> CuidadorEnrollment:
    enrollment, cuidoteca = await _load_cuidador_enrollment(db, enrollment_id)
    if cuidoteca.institution_id != institution.id:
        raise Forbidden("Apenas a instituição responsável pode avaliar esta inscrição")
    _check_transition(enrollment.status)

    enrollment.status = outcome
    await db.flush()

    await notification_service.notify(
        db,
        enrollment.cuidador_id,
        f"Sua inscrição na cuidoteca {cuidoteca.name} foi {_OUTCOME_LABELS[outcome]}",
        NotificationType.ENROLLMENT_UPDATE,
        cuidoteca_id=cuidoteca.id,
    )
    logger.info("Cuidador enrollment %s -> %s", enrollment.id, outcome.value)
    await db.refresh(enrollment)
    return enrollment


async def approve_cuidador_enrollment(
    db: AsyncSession, enrollment_id: uuid.UUID, institution: User
) -> CuidadorEnrollment:
    return await _decide_cuidador_enrollment(
        db, enrollment_id, institution, EnrollmentStatus.CONFIRMED
    )


async def reject_cuidador_enrollment(
    db: AsyncSession, enrollment_id: uuid.UUID, institution: User
) -> CuidadorEnrollment:
    return await _decide_cuidador_enrollment(
        db, enrollment_id, institution, EnrollmentStatus.CANCELLED
    )


async def cancel_cuidador_enrollment(
    db: AsyncSession, enrollment_id: uuid.UUID, actor: User
) -> None:
    enrollment, cuidoteca = await _load_cuidador_enrollment(db, enrollment_id)
    if actor.id not in (enrollment.cuidador_id, cuidoteca.institution_id):
        raise Forbidden("Você não pode cancelar esta inscrição")

    await db.delete(enrollment)
    await db.flush()
    logger.info("Cuidador enrollment %s cancelled by %s", enrollment_id, actor.id)


async def institution_cuidador_enrollments(
    db: AsyncSession,
    institution: User,
    status: EnrollmentStatus | None = None,
) -> list[tuple[CuidadorEnrollment, User, Cuidoteca]]:
    """Rows of ``(enrollment, cuidador, cuidoteca)``."""
    query = (
        select(CuidadorEnrollment, User, Cuidoteca)
        .join(User, User.id == CuidadorEnrollment.cuidador_id)
        .join(Cuidoteca, Cuidoteca.id == CuidadorEnrollment.cuidoteca_id)
        .where(Cuidoteca.institution_id == institution.id)
        .order_by(CuidadorEnrollment.enrollment_date.desc())
    )
    if status is not None:
        query = query.where(CuidadorEnrollment.status == status)
    result = await db.execute(query)
    return [tuple(row) for row in result.all()]


async def pending_cuidador_enrollments(
    db: AsyncSession, institution: User
) -> list[tuple[CuidadorEnrollment, User, Cuidoteca]]:
    return await institution_cuidador_enrollments(db, institution, EnrollmentStatus.PENDING)


async def my_cuidador_enrollments(
    db: AsyncSession, cuidador: User
) -> list[tuple[CuidadorEnrollment, User, Cuidoteca]]:
    """Rows of ``(enrollment, institution, cuidoteca)``."""
    result = await db.execute(
        select(CuidadorEnrollment, User, Cuidoteca)
        .join(Cuidoteca, Cuidoteca.id == CuidadorEnrollment.cuidoteca_id)
        .join(User, User.id == Cuidoteca.institution_id)
        .where(CuidadorEnrollment.cuidador_id == cuidador.id)
        .order_by(CuidadorEnrollment.enrollment_date.desc())
    )
    return [tuple(row) for row in result.all()]
