"""Post Service.

Community feed scoped to an institution.  A post is visible to the owning
institution and to every user linked to it.  Votes toggle, and the
``upvotes`` / ``downvotes`` counters on the post are kept in step with the
``post_votes`` rows.
"""

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.errors import Forbidden, NoInstitution, NotFound
from cuidoteca.models.connection import UniversityConnection
from cuidoteca.models.notification import Notification, NotificationType
from cuidoteca.models.post import Post, PostVote, VoteType
from cuidoteca.models.user import User, UserRole
from cuidoteca.services import connection_service, notification_service

logger = logging.getLogger(__name__)


async def visible_institution_ids(db: AsyncSession, user: User) -> set[uuid.UUID]:
    """Communities whose posts ``user`` may read."""
    result = await db.execute(
        select(UniversityConnection.institution_id).where(
            UniversityConnection.user_id == user.id
        )
    )
    ids = set(result.scalars().all())
    if user.role is UserRole.INSTITUTION:
        ids.add(user.id)
    return ids


async def get_post(db: AsyncSession, post_id: uuid.UUID) -> Post:
    result = await db.execute(select(Post).where(Post.id == post_id))
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFound("Publicação não encontrada")
    return post


async def get_visible_post(db: AsyncSession, post_id: uuid.UUID, user: User) -> Post:
    post = await get_post(db, post_id)
    if post.institution_id not in await visible_institution_ids(db, user):
        raise Forbidden("Você não participa desta comunidade")
    return post


async def resolve_post_institution(
    db: AsyncSession, author: User, institution_id: uuid.UUID | None = None
) -> uuid.UUID:
    """Pick the community a new post goes into.

    Institutions post into their own community.  Other users post into the
    requested institution if they are linked to it, otherwise into their
    first link (earliest ``created_at``, then lowest id).
    """
    if author.role is UserRole.INSTITUTION:
        if institution_id is not None and institution_id != author.id:
            raise Forbidden("Instituições só publicam na própria comunidade")
        return author.id

    institutions = await connection_service.linked_institutions(db, author.id)
    if not institutions:
        raise NoInstitution("Conecte-se a uma instituição para publicar")
    if institution_id is None:
        return institutions[0].id
    if institution_id not in {i.id for i in institutions}:
        raise Forbidden("Você não participa desta comunidade")
    return institution_id


async def create_post(
    db: AsyncSession,
    author: User,
    content: str,
    image_url: str | None = None,
    institution_id: uuid.UUID | None = None,
) -> Post:
    target = await resolve_post_institution(db, author, institution_id)
    post = Post(
        author_id=author.id,
        institution_id=target,
        content=content,
        image_url=image_url,
    )
    db.add(post)
    await db.flush()
    await db.refresh(post)
    logger.info("Post %s created by %s in community %s", post.id, author.id, target)
    return post


async def list_posts(
    db: AsyncSession, user: User, institution_id: uuid.UUID | None = None
) -> list[tuple[Post, User]]:
    """Visible posts with their authors, pinned first, then newest first."""
    visible = await visible_institution_ids(db, user)
    if institution_id is not None:
        if institution_id not in visible:
            raise Forbidden("Você não participa desta comunidade")
        visible = {institution_id}
    if not visible:
        return []

    result = await db.execute(
        select(Post, User)
        .join(User, User.id == Post.author_id)
        .where(Post.institution_id.in_(visible))
        .order_by(Post.pinned.desc(), Post.created_at.desc())
    )
    return [tuple(row) for row in result.all()]


async def get_user_vote(
    db: AsyncSession, post_id: uuid.UUID, user_id: uuid.UUID
) -> PostVote | None:
    result = await db.execute(
        select(PostVote).where(PostVote.post_id == post_id, PostVote.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def user_votes(
    db: AsyncSession, user_id: uuid.UUID, post_ids: list[uuid.UUID]
) -> dict[uuid.UUID, VoteType]:
    if not post_ids:
        return {}
    result = await db.execute(
        select(PostVote.post_id, PostVote.vote_type).where(
            PostVote.user_id == user_id, PostVote.post_id.in_(post_ids)
        )
    )
    return {post_id: vote_type for post_id, vote_type in result.all()}


def _bump(post: Post, vote_type: VoteType, delta: int) -> None:
    if vote_type is VoteType.UPVOTE:
        post.upvotes = max(0, post.upvotes + delta)
    else:
        post.downvotes = max(0, post.downvotes + delta)


async def vote(
    db: AsyncSession, post_id: uuid.UUID, user: User, vote_type: VoteType
) -> tuple[Post, VoteType | None]:
    """Toggle a vote.

    * no vote yet: store it and increment its counter
    * same type again: remove it and decrement its counter
    * opposite type: move the vote from one counter to the other

    The author is notified of new and changed votes, never of removals or of
    votes on their own post.

    Returns the post and the caller's resulting vote.
    """
    post = await get_visible_post(db, post_id, user)
    existing = await get_user_vote(db, post.id, user.id)

    if existing is None:
        db.add(PostVote(post_id=post.id, user_id=user.id, vote_type=vote_type))
        _bump(post, vote_type, +1)
        current: VoteType | None = vote_type
    elif existing.vote_type is vote_type:
        await db.delete(existing)
        _bump(post, vote_type, -1)
        current = None
    else:
        _bump(post, existing.vote_type, -1)
        _bump(post, vote_type, +1)
        existing.vote_type = vote_type
        current = vote_type
    await db.flush()

    if current is not None and post.author_id != user.id:
        label = "positivo" if current is VoteType.UPVOTE else "negativo"
        await notification_service.notify(
            db,
            post.author_id,
            f"{user.display_name} deu um voto {label} na sua publicação",
            NotificationType.VOTE,
            post_id=post.id,
        )

    await db.refresh(post)
    return post, current


async def _get_moderated_post(db: AsyncSession, post_id: uuid.UUID, actor: User) -> Post:
    post = await get_post(db, post_id)
    if actor.role is not UserRole.INSTITUTION or post.institution_id != actor.id:
        raise Forbidden("Apenas a instituição da comunidade pode moderar publicações")
    return post


async def toggle_pin(db: AsyncSession, post_id: uuid.UUID, actor: User) -> Post:
    post = await _get_moderated_post(db, post_id, actor)
    post.pinned = not post.pinned
    await db.flush()
    await db.refresh(post)
    return post


async def toggle_flag(db: AsyncSession, post_id: uuid.UUID, actor: User) -> Post:
    """Flip ``flagged``. Flagging (not unflagging) notifies the author."""
    post = await _get_moderated_post(db, post_id, actor)
    post.flagged = not post.flagged
    await db.flush()

    if post.flagged:
        await notification_service.notify(
            db,
            post.author_id,
            "Sua publicação foi sinalizada pela moderação da instituição",
            NotificationType.POST_FLAGGED,
            post_id=post.id,
        )
        logger.info("Post %s flagged by %s", post.id, actor.id)

    await db.refresh(post)
    return post


async def delete_post(db: AsyncSession, post_id: uuid.UUID, actor: User) -> None:
    post = await get_post(db, post_id)
    if post.author_id != actor.id:
        raise Forbidden("Apenas o autor pode excluir esta publicação")

    await db.execute(delete(PostVote).where(PostVote.post_id == post.id))
    await db.execute(delete(Notification).where(Notification.post_id == post.id))
    await db.delete(post)
    await db.flush()
    logger.info("Post %s deleted by %s", post_id, actor.id)
