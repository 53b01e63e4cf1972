"""Unit tests for post_service: community scoping and vote toggling."""

import pytest
import pytest_asyncio
from sqlalchemy import select

from cuidoteca.core.errors import Forbidden, NoInstitution
from cuidoteca.models.notification import Notification, NotificationType
from cuidoteca.models.post import VoteType
from cuidoteca.models.user import UserRole
from cuidoteca.services import connection_service, post_service


@pytest_asyncio.fixture()
async def community(db_session, make_user):
    institution = await make_user(UserRole.INSTITUTION, "Reitoria", institution_name="UFX")
    author = await make_user(UserRole.PARENT, "Ana")
    voter = await make_user(UserRole.CUIDADOR, "Bruno")
    for user in (author, voter):
        await connection_service.connect_institution(db_session, user, institution.id)
    post = await post_service.create_post(db_session, author, "Alguém tem carrinho para doar?")
    return institution, author, voter, post


class TestCommunity:
    async def test_post_goes_to_first_link(self, db_session, make_user):
        first = await make_user(UserRole.INSTITUTION)
        second = await make_user(UserRole.INSTITUTION)
        ana = await make_user(UserRole.PARENT)
        await connection_service.connect_institution(db_session, ana, first.id)
        await connection_service.connect_institution(db_session, ana, second.id)

        post = await post_service.create_post(db_session, ana, "Olá")
        assert post.institution_id == first.id

        chosen = await post_service.create_post(
            db_session, ana, "Olá de novo", institution_id=second.id
        )
        assert chosen.institution_id == second.id

    async def test_unlinked_user_cannot_post(self, db_session, make_user):
        ana = await make_user(UserRole.PARENT)
        with pytest.raises(NoInstitution):
            await post_service.create_post(db_session, ana, "Olá")

    async def test_institution_posts_into_own_community(self, db_session, make_user):
        uni = await make_user(UserRole.INSTITUTION)
        other = await make_user(UserRole.INSTITUTION)
        post = await post_service.create_post(db_session, uni, "Aviso")
        assert post.institution_id == uni.id
        with pytest.raises(Forbidden):
            await post_service.create_post(db_session, uni, "Aviso", institution_id=other.id)

    async def test_outsider_sees_nothing(self, db_session, community, make_user):
        outsider = await make_user(UserRole.PARENT)
        assert await post_service.list_posts(db_session, outsider) == []

    async def test_pinned_first(self, db_session, community):
        institution, author, _, post = community
        newer = await post_service.create_post(db_session, author, "Mais recente")
        await post_service.toggle_pin(db_session, post.id, institution)

        rows = await post_service.list_posts(db_session, author)
        assert [p.id for p, _ in rows] == [post.id, newer.id]


class TestVoting:
    async def test_upvote_twice_removes_vote(self, db_session, community):
        _, _, voter, post = community

        post, current = await post_service.vote(db_session, post.id, voter, VoteType.UPVOTE)
        assert (post.upvotes, post.downvotes, current) == (1, 0, VoteType.UPVOTE)

        post, current = await post_service.vote(db_session, post.id, voter, VoteType.UPVOTE)
        assert (post.upvotes, post.downvotes, current) == (0, 0, None)
        assert await post_service.get_user_vote(db_session, post.id, voter.id) is None

    async def test_switching_moves_the_vote(self, db_session, community):
        _, _, voter, post = community

        await post_service.vote(db_session, post.id, voter, VoteType.UPVOTE)
        post, current = await post_service.vote(db_session, post.id, voter, VoteType.DOWNVOTE)
        assert (post.upvotes, post.downvotes, current) == (0, 1, VoteType.DOWNVOTE)

    async def test_upvote_upvote_downvote(self, db_session, community):
        _, _, voter, post = community

        for vote_type in (VoteType.UPVOTE, VoteType.UPVOTE, VoteType.DOWNVOTE):
            post, current = await post_service.vote(db_session, post.id, voter, vote_type)
        assert (post.upvotes, post.downvotes, current) == (0, 1, VoteType.DOWNVOTE)

    async def test_author_notified_except_on_removal(self, db_session, community):
        _, author, voter, post = community

        await post_service.vote(db_session, post.id, voter, VoteType.UPVOTE)
        await post_service.vote(db_session, post.id, voter, VoteType.UPVOTE)

        result = await db_session.execute(
            select(Notification).where(Notification.user_id == author.id)
        )
        notes = result.scalars().all()
        assert len(notes) == 1
        assert notes[0].type is NotificationType.VOTE
        assert notes[0].post_id == post.id

    async def test_own_vote_not_notified(self, db_session, community):
        _, author, _, post = community
        await post_service.vote(db_session, post.id, author, VoteType.UPVOTE)

        result = await db_session.execute(
            select(Notification).where(Notification.user_id == author.id)
        )
        assert result.scalars().all() == []

    async def test_outsider_cannot_vote(self, db_session, community, make_user):
        _, _, _, post = community
        outsider = await make_user(UserRole.PARENT)
        with pytest.raises(Forbidden):
            await post_service.vote(db_session, post.id, outsider, VoteType.UPVOTE)


class TestModeration:
    async def test_flag_notifies_author(self, db_session, community):
        institution, author, _, post = community

        flagged = await post_service.toggle_flag(db_session, post.id, institution)
        assert flagged.flagged is True
        unflagged = await post_service.toggle_flag(db_session, post.id, institution)
        assert unflagged.flagged is False

        result = await db_session.execute(
            select(Notification).where(Notification.user_id == author.id)
        )
        assert [n.type for n in result.scalars().all()] == [NotificationType.POST_FLAGGED]

    async def test_members_cannot_moderate(self, db_session, community):
        _, _, voter, post = community
        with pytest.raises(Forbidden):
            await post_service.toggle_pin(db_session, post.id, voter)

    async def test_only_author_deletes(self, db_session, community):
        institution, author, voter, post = community
        await post_service.vote(db_session, post.id, voter, VoteType.UPVOTE)

        with pytest.raises(Forbidden):
            await post_service.delete_post(db_session, post.id, institution)

        await post_service.delete_post(db_session, post.id, author)
        assert await post_service.list_posts(db_session, author) == []
