"""Connection Service.

Peer connections (``UserConnection``) with a request/accept/decline
lifecycle, and existence-only institution links (``UniversityConnection``).
"""

import enum
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.errors import (
    AlreadyConnected,
    AlreadyExists,
    Forbidden,
    InvalidPair,
    InvalidState,
    NotFound,
)
from cuidoteca.models.connection import ConnectionStatus, UniversityConnection, UserConnection
from cuidoteca.models.notification import NotificationType
from cuidoteca.models.user import User, UserRole
from cuidoteca.services import notification_service

logger = logging.getLogger(__name__)

# Unordered role pairs allowed to form a peer connection
PEER_ROLE_PAIRS: frozenset[frozenset[UserRole]] = frozenset({
    frozenset({UserRole.PARENT, UserRole.CUIDADOR}),
    frozenset({UserRole.PARENT}),
    frozenset({UserRole.CUIDADOR}),
})


class PeerStatus(str, enum.Enum):
    """Connection state as seen from the current user."""

    NOT_CONNECTED = "not_connected"
    CONNECTED = "connected"
    PENDING_OUTGOING = "pending_outgoing"
    PENDING_INCOMING = "pending_incoming"


def is_peer_pair(a: UserRole, b: UserRole) -> bool:
    return frozenset({a, b}) in PEER_ROLE_PAIRS


def _between(a: uuid.UUID, b: uuid.UUID):
    return or_(
        and_(UserConnection.requester_id == a, UserConnection.recipient_id == b),
        and_(UserConnection.requester_id == b, UserConnection.recipient_id == a),
    )


async def _get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("Usuário não encontrado")
    return user


async def get_connection(db: AsyncSession, connection_id: uuid.UUID) -> UserConnection:
    result = await db.execute(
        select(UserConnection).where(UserConnection.id == connection_id)
    )
    connection = result.scalar_one_or_none()
    if connection is None:
        raise NotFound("Solicitação de conexão não encontrada")
    return connection


async def find_active_connection(
    db: AsyncSession, a: uuid.UUID, b: uuid.UUID
) -> UserConnection | None:
    """The non-declined edge between two users, in either direction."""
    result = await db.execute(
        select(UserConnection)
        .where(_between(a, b), UserConnection.status != ConnectionStatus.DECLINED)
        .order_by(UserConnection.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Peer connections
# ---------------------------------------------------------------------------

async def request_connection(
    db: AsyncSession, requester: User, recipient_id: uuid.UUID
) -> UserConnection:
    """Create a pending peer connection and notify the recipient."""
    recipient = await _get_user(db, recipient_id)

    if recipient.id == requester.id or not is_peer_pair(requester.role, recipient.role):
        raise InvalidPair(
            f"Conexão não permitida entre {requester.role.value} e {recipient.role.value}"
        )

    if await find_active_connection(db, requester.id, recipient.id) is not None:
        raise AlreadyExists("Já existe uma conexão ou solicitação entre vocês")

    connection = UserConnection(
        requester_id=requester.id,
        recipient_id=recipient.id,
        status=ConnectionStatus.PENDING,
    )
    db.add(connection)
    await db.flush()

    await notification_service.notify(
        db,
        recipient.id,
        f"{requester.name} quer se conectar com você",
        NotificationType.CONNECTION_REQUEST,
        connection_request_id=connection.id,
    )
    logger.info("Connection %s requested: %s -> %s", connection.id, requester.id, recipient.id)
    await db.refresh(connection)
    return connection


async def _answer_connection(
    db: AsyncSession, connection_id: uuid.UUID, actor: User
) -> UserConnection:
    connection = await get_connection(db, connection_id)
    if connection.recipient_id != actor.id:
        raise Forbidden("Apenas o destinatário pode responder a esta solicitação")
    if connection.status is not ConnectionStatus.PENDING:
        raise InvalidState(
            f"Esta solicitação já foi respondida (status: {connection.status.value})"
        )
    return connection


async def accept_connection(
    db: AsyncSession, connection_id: uuid.UUID, actor: User
) -> UserConnection:
    """Recipient accepts: stamp ``accepted_at``, swap the request notification
    for an acceptance notice to the requester."""
    connection = await _answer_connection(db, connection_id, actor)

    connection.status = ConnectionStatus.ACCEPTED
    connection.accepted_at = datetime.now(timezone.utc)
    await db.flush()

    await notification_service.delete_connection_request_notifications(db, connection.id)
    await notification_service.notify(
        db,
        connection.requester_id,
        f"{actor.name} aceitou sua solicitação de conexão",
    )
    logger.info("Connection %s accepted", connection.id)
    await db.refresh(connection)
    return connection


async def decline_connection(
    db: AsyncSession, connection_id: uuid.UUID, actor: User
) -> UserConnection:
    """Recipient declines. The requester is not notified."""
    connection = await _answer_connection(db, connection_id, actor)

    connection.status = ConnectionStatus.DECLINED
    await db.flush()

    await notification_service.delete_connection_request_notifications(db, connection.id)
    logger.info("Connection %s declined", connection.id)
    await db.refresh(connection)
    return connection


async def remove_connection(
    db: AsyncSession, connection_id: uuid.UUID, actor: User
) -> None:
    """Either participant hard-deletes the edge (cancel or sever)."""
    connection = await get_connection(db, connection_id)
    if not connection.involves(actor.id):
        raise Forbidden("Você não participa desta conexão")

    await notification_service.delete_connection_request_notifications(db, connection.id)
    await db.delete(connection)
    await db.flush()
    logger.info("Connection %s removed by %s", connection_id, actor.id)


async def connection_status(
    db: AsyncSession, current_user_id: uuid.UUID, target_user_id: uuid.UUID
) -> tuple[PeerStatus, UserConnection | None]:
    connection = await find_active_connection(db, current_user_id, target_user_id)
    if connection is None:
        return PeerStatus.NOT_CONNECTED, None
    if connection.status is ConnectionStatus.ACCEPTED:
        return PeerStatus.CONNECTED, connection
    if connection.requester_id == current_user_id:
        return PeerStatus.PENDING_OUTGOING, connection
    return PeerStatus.PENDING_INCOMING, connection


async def pending_requests(db: AsyncSession, user_id: uuid.UUID) -> list[UserConnection]:
    """Incoming requests still waiting for an answer."""
    result = await db.execute(
        select(UserConnection)
        .where(
            UserConnection.recipient_id == user_id,
            UserConnection.status == ConnectionStatus.PENDING,
        )
        .order_by(UserConnection.created_at.desc())
    )
    return list(result.scalars().all())


async def accepted_peers(db: AsyncSession, user_id: uuid.UUID) -> list[User]:
    """Users with an accepted connection to ``user_id``."""
    result = await db.execute(
        select(UserConnection).where(
            or_(UserConnection.requester_id == user_id, UserConnection.recipient_id == user_id),
            UserConnection.status == ConnectionStatus.ACCEPTED,
        )
    )
    peer_ids = {c.other_party(user_id) for c in result.scalars().all()}
    if not peer_ids:
        return []
    users = await db.execute(select(User).where(User.id.in_(peer_ids)).order_by(User.name))
    return list(users.scalars().all())


async def are_peers(db: AsyncSession, a: uuid.UUID, b: uuid.UUID) -> bool:
    result = await db.execute(
        select(UserConnection.id).where(
            _between(a, b), UserConnection.status == ConnectionStatus.ACCEPTED
        ).limit(1)
    )
    return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Institution links
# ---------------------------------------------------------------------------

async def get_institution(db: AsyncSession, institution_id: uuid.UUID) -> User:
    result = await db.execute(
        select(User).where(User.id == institution_id, User.role == UserRole.INSTITUTION)
    )
    institution = result.scalar_one_or_none()
    if institution is None:
        raise NotFound("Instituição não encontrada")
    return institution


async def get_institution_link(
    db: AsyncSession, user_id: uuid.UUID, institution_id: uuid.UUID
) -> UniversityConnection | None:
    result = await db.execute(
        select(UniversityConnection).where(
            UniversityConnection.user_id == user_id,
            UniversityConnection.institution_id == institution_id,
        )
    )
    return result.scalar_one_or_none()


async def connect_institution(
    db: AsyncSession, user: User, institution_id: uuid.UUID
) -> UniversityConnection:
    """Insert-if-absent link from ``user`` to an institution."""
    institution = await get_institution(db, institution_id)
    if user.role is UserRole.INSTITUTION:
        raise Forbidden("Instituições não podem se conectar a outras instituições")

    if await get_institution_link(db, user.id, institution.id) is not None:
        raise AlreadyConnected()

    link = UniversityConnection(user_id=user.id, institution_id=institution.id)
    db.add(link)
    await db.flush()
    await db.refresh(link)
    logger.info("User %s linked to institution %s", user.id, institution.id)
    return link


async def disconnect_institution(
    db: AsyncSession, user: User, institution_id: uuid.UUID
) -> None:
    """Delete-if-present. Never fails on a missing link."""
    link = await get_institution_link(db, user.id, institution_id)
    if link is None:
        return
    await db.delete(link)
    await db.flush()
    logger.info("User %s unlinked from institution %s", user.id, institution_id)


async def linked_institutions(db: AsyncSession, user_id: uuid.UUID) -> list[User]:
    """Institutions the user is linked to, oldest link first."""
    result = await db.execute(
        select(User)
        .join(UniversityConnection, UniversityConnection.institution_id == User.id)
        .where(UniversityConnection.user_id == user_id)
        .order_by(UniversityConnection.created_at, UniversityConnection.id)
    )
    return list(result.scalars().all())


async def linked_users(
    db: AsyncSession, institution_id: uuid.UUID, role: UserRole | None = None
) -> list[User]:
    """Users linked to an institution, optionally filtered by role."""
    query = (
        select(User)
        .join(UniversityConnection, UniversityConnection.user_id == User.id)
        .where(UniversityConnection.institution_id == institution_id)
        .order_by(User.name)
    )
    if role is not None:
        query = query.where(User.role == role)
    result = await db.execute(query)
    return list(result.scalars().all())


async def linked_user_ids(db: AsyncSession, institution_id: uuid.UUID) -> list[uuid.UUID]:
    result = await db.execute(
        select(UniversityConnection.user_id).where(
            UniversityConnection.institution_id == institution_id
        )
    )
    return list(result.scalars().all())


async def connection_counts(db: AsyncSession) -> dict[uuid.UUID, int]:
    """Number of linked users per institution id."""
    result = await db.execute(
        select(UniversityConnection.institution_id, func.count(UniversityConnection.id))
        .group_by(UniversityConnection.institution_id)
    )
    return {institution_id: count for institution_id, count in result.all()}
