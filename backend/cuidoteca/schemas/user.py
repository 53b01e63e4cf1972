import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from cuidoteca.models.user import UserRole


class UserSummary(BaseModel):
    """Minimal user card embedded in other responses."""

    id: uuid.UUID
    name: str
    role: UserRole
    institution_name: str | None = None
    profile_picture: str | None = None
    model_config = ConfigDict(from_attributes=True)


class PublicUserResponse(UserSummary):
    course: str | None = None
    semester: str | None = None
    created_at: datetime


class PublicProfileResponse(PublicUserResponse):
    connection_status: str
    connection_id: uuid.UUID | None = None


class UserResponse(PublicUserResponse):
    email: str
    phone: str | None = None
    university_id: str | None = None
    address: str | None = None
