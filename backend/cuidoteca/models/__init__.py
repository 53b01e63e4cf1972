"""SQLAlchemy ORM models.

All models are imported here so that Alembic can discover them
via ``Base.metadata`` when generating migrations.
"""

from cuidoteca.models.child import Child  # noqa: F401
from cuidoteca.models.connection import (  # noqa: F401
    ConnectionStatus,
    UniversityConnection,
    UserConnection,
)
from cuidoteca.models.cuidoteca import (  # noqa: F401
    Cuidoteca,
    CuidadorEnrollment,
    CuidotecaEnrollment,
    EnrollmentStatus,
    Weekday,
)
from cuidoteca.models.document import InstitutionDocument  # noqa: F401
from cuidoteca.models.event import (  # noqa: F401
    Event,
    EventParticipation,
    EventRsvp,
    ParticipationStatus,
    RsvpStatus,
)
from cuidoteca.models.message import Message  # noqa: F401
from cuidoteca.models.notification import Notification, NotificationType  # noqa: F401
from cuidoteca.models.post import Post, PostVote, VoteType  # noqa: F401
from cuidoteca.models.user import (  # noqa: F401
    PasswordResetToken,
    RefreshToken,
    User,
    UserRole,
)

__all__ = [
    "Child",
    "ConnectionStatus",
    "Cuidoteca",
    "CuidadorEnrollment",
    "CuidotecaEnrollment",
    "EnrollmentStatus",
    "Event",
    "EventParticipation",
    "EventRsvp",
    "InstitutionDocument",
    "Message",
    "Notification",
    "NotificationType",
    "ParticipationStatus",
    "PasswordResetToken",
    "Post",
    "PostVote",
    "RefreshToken",
    "RsvpStatus",
    "UniversityConnection",
    "User",
    "UserConnection",
    "UserRole",
    "VoteType",
    "Weekday",
]
