import re
import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cuidoteca.models.event import ParticipationStatus, RsvpStatus
from cuidoteca.schemas.child import ChildSummary
from cuidoteca.schemas.user import UserSummary

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _check_time(value: str | None) -> str | None:
    if value is not None and not _TIME_RE.match(value):
        raise ValueError("Time must be in HH:MM format")
    return value


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    event_date: date
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = Field(default=None, max_length=255)
    observations: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        return _check_time(value)


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    event_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = Field(default=None, max_length=255)
    observations: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        return _check_time(value)


class EventResponse(BaseModel):
    id: uuid.UUID
    institution_id: uuid.UUID
    title: str
    description: str | None = None
    event_date: date
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    observations: str | None = None
    created_at: datetime
    going_count: int = 0
    not_going_count: int = 0
    my_rsvp: RsvpStatus | None = None
    model_config = ConfigDict(from_attributes=True)


class RsvpRequest(BaseModel):
    status: RsvpStatus


class RsvpResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    user_id: uuid.UUID
    status: RsvpStatus
    model_config = ConfigDict(from_attributes=True)


class RsvpAttendee(BaseModel):
    user: UserSummary
    status: RsvpStatus


class RsvpSummaryResponse(BaseModel):
    going: int
    not_going: int
    attendees: list[RsvpAttendee]


class CheckInRequest(BaseModel):
    child_id: uuid.UUID | None = None
    observations: str | None = None


class ParticipationResponse(BaseModel):
    id: uuid.UUID
    event_id: uuid.UUID
    user_id: uuid.UUID
    child_id: uuid.UUID | None = None
    status: ParticipationStatus
    observations: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ParticipantResponse(ParticipationResponse):
    user: UserSummary
    child: ChildSummary | None = None
