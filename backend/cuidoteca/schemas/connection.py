import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from cuidoteca.models.connection import ConnectionStatus
from cuidoteca.schemas.user import UserSummary


class ConnectionRequestCreate(BaseModel):
    recipient_id: uuid.UUID


class ConnectionResponse(BaseModel):
    id: uuid.UUID
    requester_id: uuid.UUID
    recipient_id: uuid.UUID
    status: ConnectionStatus
    accepted_at: datetime | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PendingRequestResponse(ConnectionResponse):
    requester: UserSummary


class ConnectionStatusResponse(BaseModel):
    status: str  # not_connected | connected | pending_outgoing | pending_incoming
    connection_id: uuid.UUID | None = None
