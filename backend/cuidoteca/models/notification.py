import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cuidoteca.database import Base
from cuidoteca.types import enum_type, utcnow


class NotificationType(str, enum.Enum):
    GENERAL = "general"
    CONNECTION_REQUEST = "connection_request"
    CUIDOTECA_CREATED = "cuidoteca_created"
    EVENT_CREATED = "event_created"
    VOTE = "vote"
    POST_FLAGGED = "post_flagged"
    ENROLLMENT_REQUEST = "enrollment_request"
    ENROLLMENT_UPDATE = "enrollment_update"
    MESSAGE = "message"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        enum_type(NotificationType), nullable=False, default=NotificationType.GENERAL
    )
    connection_request_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("user_connections.id", ondelete="CASCADE"), nullable=True
    )
    cuidoteca_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("cuidotecas.id", ondelete="SET NULL"), nullable=True
    )
    event_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="SET NULL"), nullable=True
    )
    post_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True
    )
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.type.value!r}, read={self.read})>"
