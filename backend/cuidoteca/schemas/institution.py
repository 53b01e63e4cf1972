import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class InstitutionResponse(BaseModel):
    id: uuid.UUID
    name: str
    institution_name: str | None = None
    email: str
    phone: str | None = None
    address: str | None = None
    profile_picture: str | None = None
    created_at: datetime
    connection_count: int = 0
    is_connected: bool = False
    model_config = ConfigDict(from_attributes=True)


class InstitutionLinkResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    institution_id: uuid.UUID
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)
