import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from cuidoteca.models.notification import NotificationType


class NotificationResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    message: str
    type: NotificationType
    read: bool
    connection_request_id: uuid.UUID | None = None
    cuidoteca_id: uuid.UUID | None = None
    event_id: uuid.UUID | None = None
    post_id: uuid.UUID | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UnreadCountResponse(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    updated: int
