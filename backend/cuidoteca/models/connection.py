import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cuidoteca.database import Base
from cuidoteca.types import enum_type, utcnow


class ConnectionStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class UniversityConnection(Base):
    """User -> institution link. Existence alone means "connected"."""

    __tablename__ = "university_connections"
    __table_args__ = (
        UniqueConstraint("user_id", "institution_id", name="uq_university_connection"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    institution_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<UniversityConnection(user_id={self.user_id}, "
            f"institution_id={self.institution_id})>"
        )


class UserConnection(Base):
    """Peer link between two non-institution users."""

    __tablename__ = "user_connections"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    status: Mapped[ConnectionStatus] = mapped_column(
        enum_type(ConnectionStatus, 20), nullable=False, default=ConnectionStatus.PENDING
    )
    accepted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def involves(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.requester_id, self.recipient_id)

    def other_party(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.recipient_id if user_id == self.requester_id else self.requester_id

    def __repr__(self) -> str:
        return f"<UserConnection(id={self.id}, status={self.status.value!r})>"
