"""Event Service.

Institution calendar items with RSVPs (going / not going) and check-ins.
Creating an event notifies every user linked to the institution.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.errors import AlreadyExists, Forbidden, NotFound, NotOwned
from cuidoteca.models.child import Child
from cuidoteca.models.connection import UniversityConnection
from cuidoteca.models.event import (
    Event,
    EventParticipation,
    EventRsvp,
    ParticipationStatus,
    RsvpStatus,
)
from cuidoteca.models.notification import Notification, NotificationType
from cuidoteca.models.user import User, UserRole
from cuidoteca.services import connection_service, notification_service

logger = logging.getLogger(__name__)


async def get_event(db: AsyncSession, event_id: uuid.UUID) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFound("Evento não encontrado")
    return event


async def get_owned_event(db: AsyncSession, event_id: uuid.UUID, institution: User) -> Event:
    event = await get_event(db, event_id)
    if event.institution_id != institution.id:
        raise Forbidden("Este evento pertence a outra instituição")
    return event


async def _require_link(db: AsyncSession, event: Event, user: User) -> None:
    if await connection_service.get_institution_link(db, user.id, event.institution_id) is None:
        raise Forbidden("Você não está conectado à instituição deste evento")


async def create_event(db: AsyncSession, institution: User, data: dict[str, Any]) -> Event:
    event = Event(institution_id=institution.id, **data)
    db.add(event)
    await db.flush()

    recipients = await connection_service.linked_user_ids(db, institution.id)
    sent = await notification_service.notify_many(
        db,
        recipients,
        f"Novo evento de {institution.display_name}: {event.title}",
        NotificationType.EVENT_CREATED,
        event_id=event.id,
    )
    logger.info("Event %s created by %s, %d notifications sent", event.id, institution.id, sent)
    await db.refresh(event)
    return event


async def update_event(
    db: AsyncSession, event_id: uuid.UUID, institution: User, changes: dict[str, Any]
) -> Event:
    event = await get_owned_event(db, event_id, institution)
    for field, value in changes.items():
        setattr(event, field, value)
    await db.flush()
    await db.refresh(event)
    return event


async def delete_event(db: AsyncSession, event_id: uuid.UUID, institution: User) -> None:
    """Delete an event along with its RSVPs, check-ins and notifications."""
    event = await get_owned_event(db, event_id, institution)

    await db.execute(delete(EventRsvp).where(EventRsvp.event_id == event.id))
    await db.execute(delete(EventParticipation).where(EventParticipation.event_id == event.id))
    await db.execute(delete(Notification).where(Notification.event_id == event.id))
    await db.delete(event)
    await db.flush()
    logger.info("Event %s deleted by %s", event_id, institution.id)


async def list_events(db: AsyncSession, user: User) -> list[Event]:
    """Events visible to ``user``, soonest first.

    Same scoping as cuidotecas: own events for institutions, every event for
    coordinators, events of linked institutions for everybody else.
    """
    query = select(Event).order_by(Event.event_date, Event.start_time)
    if user.role is UserRole.INSTITUTION:
        query = query.where(Event.institution_id == user.id)
    elif user.role is not UserRole.COORDINATOR:
        linked = select(UniversityConnection.institution_id).where(
            UniversityConnection.user_id == user.id
        )
        query = query.where(Event.institution_id.in_(linked))
    result = await db.execute(query)
    return list(result.scalars().all())


async def rsvp_counts(
    db: AsyncSession, event_ids: list[uuid.UUID]
) -> dict[uuid.UUID, dict[str, int]]:
    """``{event_id: {"going": n, "not_going": m}}`` for the given events."""
    counts = {event_id: {s.value: 0 for s in RsvpStatus} for event_id in event_ids}
    if not event_ids:
        return counts
    result = await db.execute(
        select(EventRsvp.event_id, EventRsvp.status, func.count(EventRsvp.id))
        .where(EventRsvp.event_id.in_(event_ids))
        .group_by(EventRsvp.event_id, EventRsvp.status)
    )
    for event_id, status, count in result.all():
        counts[event_id][status.value] = count
    return counts


async def user_rsvps(
    db: AsyncSession, user_id: uuid.UUID, event_ids: list[uuid.UUID]
) -> dict[uuid.UUID, RsvpStatus]:
    if not event_ids:
        return {}
    result = await db.execute(
        select(EventRsvp.event_id, EventRsvp.status).where(
            EventRsvp.user_id == user_id, EventRsvp.event_id.in_(event_ids)
        )
    )
    return {event_id: status for event_id, status in result.all()}


async def rsvp(
    db: AsyncSession, event_id: uuid.UUID, user: User, status: RsvpStatus
) -> EventRsvp:
    """Set the caller's RSVP, replacing any previous answer."""
    event = await get_event(db, event_id)
    await _require_link(db, event, user)

    result = await db.execute(
        select(EventRsvp).where(EventRsvp.event_id == event.id, EventRsvp.user_id == user.id)
    )
    existing = result.scalar_one_or_none()
    if existing is None:
        existing = EventRsvp(event_id=event.id, user_id=user.id, status=status)
        db.add(existing)
    else:
        existing.status = status
    await db.flush()
    await db.refresh(existing)
    return existing


async def rsvp_summary(
    db: AsyncSession, event_id: uuid.UUID, institution: User
) -> tuple[dict[str, int], list[tuple[EventRsvp, User]]]:
    """Counts plus the list of respondents. Owning institution only."""
    event = await get_owned_event(db, event_id, institution)
    counts = (await rsvp_counts(db, [event.id]))[event.id]
    result = await db.execute(
        select(EventRsvp, User)
        .join(User, User.id == EventRsvp.user_id)
        .where(EventRsvp.event_id == event.id)
        .order_by(User.name)
    )
    return counts, [tuple(row) for row in result.all()]


async def check_in(
    db: AsyncSession,
    event_id: uuid.UUID,
    user: User,
    child_id: uuid.UUID | None = None,
    observations: str | None = None,
) -> EventParticipation:
    """Record attendance for the caller, or for one of the caller's children.

    A cancelled check-in for the same (event, user, child) is reactivated.
    """
    event = await get_event(db, event_id)
    await _require_link(db, event, user)

    if child_id is not None:
        child = await db.get(Child, child_id)
        if child is None or child.parent_id != user.id:
            raise NotOwned("Esta criança não pertence a você")

    query = select(EventParticipation).where(
        EventParticipation.event_id == event.id,
        EventParticipation.user_id == user.id,
    )
    if child_id is None:
        query = query.where(EventParticipation.child_id.is_(None))
    else:
        query = query.where(EventParticipation.child_id == child_id)
    existing = (await db.execute(query)).scalar_one_or_none()

    if existing is not None:
        if existing.status is ParticipationStatus.CONFIRMED:
            raise AlreadyExists("Presença já confirmada neste evento")
        existing.status = ParticipationStatus.CONFIRMED
        existing.observations = observations
        participation = existing
    else:
        participation = EventParticipation(
            event_id=event.id,
            user_id=user.id,
            child_id=child_id,
            status=ParticipationStatus.CONFIRMED,
            observations=observations,
        )
        db.add(participation)
    await db.flush()
    await db.refresh(participation)
    logger.info("Check-in %s for event %s by %s", participation.id, event.id, user.id)
    return participation


async def cancel_check_in(
    db: AsyncSession, participation_id: uuid.UUID, user: User
) -> EventParticipation:
    result = await db.execute(
        select(EventParticipation).where(EventParticipation.id == participation_id)
    )
    participation = result.scalar_one_or_none()
    if participation is None:
        raise NotFound("Presença não encontrada")
    if participation.user_id != user.id:
        raise Forbidden("Apenas o participante pode cancelar a presença")

    participation.status = ParticipationStatus.CANCELLED
    await db.flush()
    await db.refresh(participation)
    return participation


async def event_participants(
    db: AsyncSession, event_id: uuid.UUID, institution: User
) -> list[tuple[EventParticipation, User, Child | None]]:
    """Check-ins of an event with participant and child. Owning institution only."""
    event = await get_owned_event(db, event_id, institution)
    result = await db.execute(
        select(EventParticipation, User, Child)
        .join(User, User.id == EventParticipation.user_id)
        .outerjoin(Child, Child.id == EventParticipation.child_id)
        .where(EventParticipation.event_id == event.id)
        .order_by(EventParticipation.created_at)
    )
    return [tuple(row) for row in result.all()]
