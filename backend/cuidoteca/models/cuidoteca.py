import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cuidoteca.database import Base
from cuidoteca.types import TextArray, enum_type, utcnow


class Weekday(str, enum.Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class EnrollmentStatus(str, enum.Enum):
    """pending -> confirmed | cancelled. No transition out of the last two."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Cuidoteca(Base):
    __tablename__ = "cuidotecas"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    institution_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    hours: Mapped[str] = mapped_column(String(50), nullable=False)  # e.g. "08:00-12:00"
    days: Mapped[list[str]] = mapped_column(TextArray, nullable=False, default=list)
    max_capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    min_age: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_age: Mapped[int] = mapped_column(Integer, nullable=False, default=12)
    assigned_caretakers: Mapped[list[str]] = mapped_column(
        TextArray, nullable=False, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def accepts_age(self, age: int) -> bool:
        return self.min_age <= age <= self.max_age

    def __repr__(self) -> str:
        return f"<Cuidoteca(id={self.id}, name={self.name!r})>"


class CuidotecaEnrollment(Base):
    """A child's request to join a cuidoteca."""

    __tablename__ = "cuidoteca_enrollments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    cuidoteca_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("cuidotecas.id", ondelete="CASCADE"), nullable=False, index=True
    )
    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("children.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[EnrollmentStatus] = mapped_column(
        enum_type(EnrollmentStatus, 20), nullable=False, default=EnrollmentStatus.PENDING
    )
    requested_days: Mapped[list[str]] = mapped_column(TextArray, nullable=False, default=list)
    requested_hours: Mapped[str] = mapped_column(String(50), nullable=False)
    enrollment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<CuidotecaEnrollment(id={self.id}, status={self.status.value!r})>"


class CuidadorEnrollment(Base):
    """A cuidador's request to work in a cuidoteca."""

    __tablename__ = "cuidador_enrollments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    cuidoteca_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("cuidotecas.id", ondelete="CASCADE"), nullable=False, index=True
    )
    cuidador_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    status: Mapped[EnrollmentStatus] = mapped_column(
        enum_type(EnrollmentStatus, 20), nullable=False, default=EnrollmentStatus.PENDING
    )
    requested_days: Mapped[list[str]] = mapped_column(TextArray, nullable=False, default=list)
    requested_hours: Mapped[str] = mapped_column(String(50), nullable=False)
    enrollment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<CuidadorEnrollment(id={self.id}, status={self.status.value!r})>"
