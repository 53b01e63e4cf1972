import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from cuidoteca.schemas.user import UserSummary
from cuidoteca.services.message_service import TargetGroup


class MessageCreate(BaseModel):
    receiver_id: uuid.UUID
    content: str = Field(min_length=1, max_length=5000)


class BulkMessageCreate(BaseModel):
    target_group: TargetGroup
    content: str = Field(min_length=1, max_length=5000)


class MessageResponse(BaseModel):
    id: uuid.UUID
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    content: str
    read: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ConversationResponse(BaseModel):
    user: UserSummary
    last_message: str
    last_message_at: datetime
    unread_count: int


class BulkMessageResponse(BaseModel):
    count: int
    message_ids: list[uuid.UUID]
