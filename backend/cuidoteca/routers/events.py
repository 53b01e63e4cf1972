"""Events router.

Institution events, RSVPs and check-ins.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import get_current_user, require_institution
from cuidoteca.database import get_db
from cuidoteca.models.event import Event
from cuidoteca.models.user import User
from cuidoteca.schemas.child import ChildSummary
from cuidoteca.schemas.event import (
    CheckInRequest,
    EventCreate,
    EventResponse,
    EventUpdate,
    ParticipantResponse,
    ParticipationResponse,
    RsvpAttendee,
    RsvpRequest,
    RsvpResponse,
    RsvpSummaryResponse,
)
from cuidoteca.schemas.user import UserSummary
from cuidoteca.services import event_service

router = APIRouter(prefix="/events", tags=["Events"])


async def _with_rsvps(
    db: AsyncSession, events: list[Event], user: User
) -> list[EventResponse]:
    ids = [e.id for e in events]
    counts = await event_service.rsvp_counts(db, ids)
    mine = await event_service.user_rsvps(db, user.id, ids)
    responses = []
    for event in events:
        response = EventResponse.model_validate(event)
        response.going_count = counts[event.id]["going"]
        response.not_going_count = counts[event.id]["not_going"]
        response.my_rsvp = mine.get(event.id)
        responses.append(response)
    return responses


@router.get("/", response_model=list[EventResponse])
async def list_events(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    events = await event_service.list_events(db, current_user)
    return await _with_rsvps(db, events, current_user)


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    body: EventCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    """Create an event and notify the institution's linked users."""
    return await event_service.create_event(db, current_user, body.model_dump())


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    event = await event_service.get_event(db, event_id)
    return (await _with_rsvps(db, [event], current_user))[0]


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: uuid.UUID,
    body: EventUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    changes = body.model_dump(exclude_unset=True)
    if changes.get("title") is None:
        changes.pop("title", None)
    if changes.get("event_date") is None:
        changes.pop("event_date", None)
    return await event_service.update_event(db, event_id, current_user, changes)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    await event_service.delete_event(db, event_id, current_user)
    return None


@router.post("/{event_id}/rsvp", response_model=RsvpResponse)
async def rsvp(
    event_id: uuid.UUID,
    body: RsvpRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Answer going / not going. A new answer replaces the previous one."""
    return await event_service.rsvp(db, event_id, current_user, body.status)


@router.get("/{event_id}/rsvps", response_model=RsvpSummaryResponse)
async def rsvp_summary(
    event_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    counts, rows = await event_service.rsvp_summary(db, event_id, current_user)
    return RsvpSummaryResponse(
        going=counts["going"],
        not_going=counts["not_going"],
        attendees=[
            RsvpAttendee(user=UserSummary.model_validate(user), status=answer.status)
            for answer, user in rows
        ],
    )


@router.post(
    "/{event_id}/check-in",
    response_model=ParticipationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def check_in(
    event_id: uuid.UUID,
    body: CheckInRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await event_service.check_in(
        db, event_id, current_user, body.child_id, body.observations
    )


@router.get("/{event_id}/participants", response_model=list[ParticipantResponse])
async def event_participants(
    event_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    rows = await event_service.event_participants(db, event_id, current_user)
    return [
        ParticipantResponse(
            **ParticipationResponse.model_validate(participation).model_dump(),
            user=UserSummary.model_validate(user),
            child=ChildSummary.model_validate(child) if child is not None else None,
        )
        for participation, user, child in rows
    ]


@router.post("/participations/{participation_id}/cancel", response_model=ParticipationResponse)
async def cancel_check_in(
    participation_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await event_service.cancel_check_in(db, participation_id, current_user)
