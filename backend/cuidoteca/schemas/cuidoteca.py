import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cuidoteca.models.cuidoteca import Weekday
from cuidoteca.schemas.child import ChildSummary
from cuidoteca.schemas.user import UserSummary


class CuidotecaCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    hours: str = Field(min_length=1, max_length=50)
    days: list[Weekday] = Field(min_length=1)
    max_capacity: int = Field(default=20, ge=1)
    min_age: int = Field(default=0, ge=0)
    max_age: int = Field(default=12, ge=0)
    assigned_caretakers: list[str] = []

    @model_validator(mode="after")
    def check_ages(self) -> "CuidotecaCreate":
        if self.min_age > self.max_age:
            raise ValueError("min_age must not be greater than max_age")
        return self


class CuidotecaUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=150)
    hours: str | None = Field(default=None, min_length=1, max_length=50)
    days: list[Weekday] | None = Field(default=None, min_length=1)
    max_capacity: int | None = Field(default=None, ge=1)
    min_age: int | None = Field(default=None, ge=0)
    max_age: int | None = Field(default=None, ge=0)
    assigned_caretakers: list[str] | None = None


class CuidotecaResponse(BaseModel):
    id: uuid.UUID
    institution_id: uuid.UUID
    name: str
    hours: str
    days: list[Weekday]
    max_capacity: int
    min_age: int
    max_age: int
    assigned_caretakers: list[str]
    created_at: datetime
    confirmed_count: int = 0
    model_config = ConfigDict(from_attributes=True)


class EnrolledChild(BaseModel):
    enrollment_id: uuid.UUID
    child: ChildSummary
    requested_days: list[Weekday]
    requested_hours: str


class EnrolledCuidador(BaseModel):
    enrollment_id: uuid.UUID
    cuidador: UserSummary
    requested_days: list[Weekday]
    requested_hours: str


class CuidotecaDetailResponse(CuidotecaResponse):
    institution: UserSummary
    confirmed_children: list[EnrolledChild] = []
    pending_children: list[EnrolledChild] = []
    confirmed_cuidadores: list[EnrolledCuidador] = []
    pending_cuidadores: list[EnrolledCuidador] = []
