"""Message Service.

Direct messages gated by the connection graph:

* between two non-institution users an accepted ``UserConnection`` is needed
* when one side is an institution the other side must be linked to it

Conversations are derived from the message rows, nothing else is stored.
Institutions can also broadcast to a target group of their members.
"""

import enum
import logging
import uuid
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.errors import EmptyGroup, Forbidden, NotConnected, NotFound
from cuidoteca.models.child import Child
from cuidoteca.models.cuidoteca import (
    Cuidoteca,
    CuidadorEnrollment,
    CuidotecaEnrollment,
    EnrollmentStatus,
)
from cuidoteca.models.message import Message
from cuidoteca.models.notification import NotificationType
from cuidoteca.models.user import User, UserRole
from cuidoteca.services import connection_service, notification_service

logger = logging.getLogger(__name__)


class TargetGroup(str, enum.Enum):
    PARENTS = "parents"
    CUIDADORES = "cuidadores"
    ALL = "all"
    APPROVED_PARENTS = "approved-parents"
    APPROVED_CUIDADORES = "approved-cuidadores"
    APPROVED_ALL = "approved-all"


async def can_message(db: AsyncSession, sender: User, receiver: User) -> bool:
    if sender.id == receiver.id:
        return False
    sender_is_institution = sender.role is UserRole.INSTITUTION
    receiver_is_institution = receiver.role is UserRole.INSTITUTION
    if sender_is_institution and receiver_is_institution:
        return False
    if sender_is_institution:
        return await connection_service.get_institution_link(db, receiver.id, sender.id) is not None
    if receiver_is_institution:
        return await connection_service.get_institution_link(db, sender.id, receiver.id) is not None
    return await connection_service.are_peers(db, sender.id, receiver.id)


async def send_message(
    db: AsyncSession, sender: User, receiver_id: uuid.UUID, content: str
) -> Message:
    receiver = await db.get(User, receiver_id)
    if receiver is None:
        raise NotFound("Destinatário não encontrado")
    if not await can_message(db, sender, receiver):
        raise NotConnected("Você precisa estar conectado a este usuário para enviar mensagens")

    message = Message(sender_id=sender.id, receiver_id=receiver.id, content=content)
    db.add(message)
    await db.flush()

    await notification_service.notify(
        db,
        receiver.id,
        f"Nova mensagem de {sender.display_name}",
        NotificationType.MESSAGE,
    )
    await db.refresh(message)
    return message


async def get_thread(
    db: AsyncSession, user: User, other_id: uuid.UUID
) -> list[Message]:
    """Messages exchanged between ``user`` and ``other_id``, oldest first."""
    result = await db.execute(
        select(Message)
        .where(
            or_(
                (Message.sender_id == user.id) & (Message.receiver_id == other_id),
                (Message.sender_id == other_id) & (Message.receiver_id == user.id),
            )
        )
        .order_by(Message.created_at, Message.id)
    )
    return list(result.scalars().all())


async def mark_message_read(
    db: AsyncSession, message_id: uuid.UUID, user: User
) -> Message:
    message = await db.get(Message, message_id)
    if message is None:
        raise NotFound("Mensagem não encontrada")
    if message.receiver_id != user.id:
        raise Forbidden("Apenas o destinatário pode marcar a mensagem como lida")
    message.read = True
    await db.flush()
    await db.refresh(message)
    return message


async def conversations(db: AsyncSession, user: User) -> list[dict[str, Any]]:
    """One entry per counterpart, most recent conversation first.

    Each entry holds ``user``, ``last_message``, ``last_message_at`` and
    ``unread_count``.
    """
    result = await db.execute(
        select(Message)
        .where(or_(Message.sender_id == user.id, Message.receiver_id == user.id))
        .order_by(Message.created_at.desc())
    )

    entries: dict[uuid.UUID, dict[str, Any]] = {}
    for message in result.scalars().all():
        other_id = message.receiver_id if message.sender_id == user.id else message.sender_id
        entry = entries.get(other_id)
        if entry is None:
            entry = entries[other_id] = {
                "last_message": message.content,
                "last_message_at": message.created_at,
                "unread_count": 0,
            }
        if message.receiver_id == user.id and not message.read:
            entry["unread_count"] += 1

    if not entries:
        return []

    users = await db.execute(select(User).where(User.id.in_(entries.keys())))
    for other in users.scalars().all():
        entries[other.id]["user"] = other

    # dict preserves the newest-first insertion order
    return [entry for entry in entries.values() if "user" in entry]


async def messageable_users(db: AsyncSession, user: User) -> list[User]:
    """Everyone ``user`` is currently allowed to message."""
    if user.role is UserRole.INSTITUTION:
        return await connection_service.linked_users(db, user.id)
    peers = await connection_service.accepted_peers(db, user.id)
    institutions = await connection_service.linked_institutions(db, user.id)
    return peers + institutions


async def _approved_parent_ids(db: AsyncSession, institution_id: uuid.UUID) -> set[uuid.UUID]:
    result = await db.execute(
        select(Child.parent_id)
        .join(CuidotecaEnrollment, CuidotecaEnrollment.child_id == Child.id)
        .join(Cuidoteca, Cuidoteca.id == CuidotecaEnrollment.cuidoteca_id)
        .where(
            Cuidoteca.institution_id == institution_id,
            CuidotecaEnrollment.status == EnrollmentStatus.CONFIRMED,
        )
        .distinct()
    )
    return set(result.scalars().all())


async def _approved_cuidador_ids(db: AsyncSession, institution_id: uuid.UUID) -> set[uuid.UUID]:
    result = await db.execute(
        select(CuidadorEnrollment.cuidador_id)
        .join(Cuidoteca, Cuidoteca.id == CuidadorEnrollment.cuidoteca_id)
        .where(
            Cuidoteca.institution_id == institution_id,
            CuidadorEnrollment.status == EnrollmentStatus.CONFIRMED,
        )
        .distinct()
    )
    return set(result.scalars().all())


async def resolve_target_group(
    db: AsyncSession, institution: User, group: TargetGroup
) -> set[uuid.UUID]:
    """Recipient ids for a bulk message.

    Plain groups are the institution's linked users of that role.  The
    ``approved-*`` groups are users with at least one confirmed enrollment in
    one of the institution's cuidotecas.
    """
    if group is TargetGroup.PARENTS:
        return {u.id for u in await connection_service.linked_users(db, institution.id, UserRole.PARENT)}
    if group is TargetGroup.CUIDADORES:
        return {u.id for u in await connection_service.linked_users(db, institution.id, UserRole.CUIDADOR)}
    if group is TargetGroup.ALL:
        return set(await connection_service.linked_user_ids(db, institution.id))
    if group is TargetGroup.APPROVED_PARENTS:
        return await _approved_parent_ids(db, institution.id)
    if group is TargetGroup.APPROVED_CUIDADORES:
        return await _approved_cuidador_ids(db, institution.id)
    return (
        await _approved_parent_ids(db, institution.id)
        | await _approved_cuidador_ids(db, institution.id)
    )


async def send_bulk_message(
    db: AsyncSession, institution: User, group: TargetGroup, content: str
) -> list[Message]:
    """Insert one message per recipient of ``group``."""
    if institution.role is not UserRole.INSTITUTION:
        raise Forbidden("Apenas instituições podem enviar mensagens em massa")

    recipients = await resolve_target_group(db, institution, group)
    recipients.discard(institution.id)
    if not recipients:
        raise EmptyGroup()

    messages = [
        Message(sender_id=institution.id, receiver_id=recipient_id, content=content)
        for recipient_id in sorted(recipients, key=str)
    ]
    db.add_all(messages)
    await db.flush()
    logger.info(
        "Bulk message from %s to group %s: %d recipients",
        institution.id, group.value, len(messages),
    )
    return messages
