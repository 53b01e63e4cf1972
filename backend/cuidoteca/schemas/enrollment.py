import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from cuidoteca.models.cuidoteca import EnrollmentStatus, Weekday
from cuidoteca.schemas.child import ChildSummary
from cuidoteca.schemas.user import UserSummary


class CuidotecaSummary(BaseModel):
    id: uuid.UUID
    name: str
    hours: str
    model_config = ConfigDict(from_attributes=True)


class EnrollmentCreate(BaseModel):
    cuidoteca_id: uuid.UUID
    child_id: uuid.UUID
    requested_days: list[Weekday] = Field(min_length=1)
    requested_hours: str = Field(min_length=1, max_length=50)


class CuidadorEnrollmentCreate(BaseModel):
    cuidoteca_id: uuid.UUID
    requested_days: list[Weekday] = Field(min_length=1)
    requested_hours: str = Field(min_length=1, max_length=50)


class EnrollmentResponse(BaseModel):
    id: uuid.UUID
    cuidoteca_id: uuid.UUID
    child_id: uuid.UUID
    status: EnrollmentStatus
    requested_days: list[Weekday]
    requested_hours: str
    enrollment_date: datetime
    model_config = ConfigDict(from_attributes=True)


class EnrollmentDetailResponse(EnrollmentResponse):
    """Enrollment with its child, cuidoteca and counterpart.

    ``user`` is the parent when listed for an institution and the
    institution when listed for a parent.
    """

    child: ChildSummary
    cuidoteca: CuidotecaSummary
    user: UserSummary


class CuidadorEnrollmentResponse(BaseModel):
    id: uuid.UUID
    cuidoteca_id: uuid.UUID
    cuidador_id: uuid.UUID
    status: EnrollmentStatus
    requested_days: list[Weekday]
    requested_hours: str
    enrollment_date: datetime
    model_config = ConfigDict(from_attributes=True)


class CuidadorEnrollmentDetailResponse(CuidadorEnrollmentResponse):
    """``user`` is the cuidador for institutions and the institution for
    the cuidador."""

    cuidoteca: CuidotecaSummary
    user: UserSummary
