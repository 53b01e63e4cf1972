"""Unit tests for message_service: who may message whom, and bulk target
groups."""

import pytest
import pytest_asyncio

from cuidoteca.core.errors import EmptyGroup, Forbidden, NotConnected
from cuidoteca.models.cuidoteca import CuidadorEnrollment, CuidotecaEnrollment, EnrollmentStatus
from cuidoteca.models.user import UserRole
from cuidoteca.services import connection_service, message_service
from cuidoteca.services.message_service import TargetGroup


@pytest_asyncio.fixture()
async def campus(db_session, make_user, make_cuidoteca, make_child):
    """An institution with two linked parents, a linked cuidador and one
    confirmed child enrollment (Ana's)."""
    uni = await make_user(UserRole.INSTITUTION, "Reitoria", institution_name="UFX")
    ana = await make_user(UserRole.PARENT, "Ana")
    bia = await make_user(UserRole.PARENT, "Bia")
    bruno = await make_user(UserRole.CUIDADOR, "Bruno")
    for user in (ana, bia, bruno):
        await connection_service.connect_institution(db_session, user, uni.id)

    cuidoteca = await make_cuidoteca(uni)
    lia = await make_child(ana, "Lia", 4)
    db_session.add(CuidotecaEnrollment(
        cuidoteca_id=cuidoteca.id,
        child_id=lia.id,
        status=EnrollmentStatus.CONFIRMED,
        requested_days=["monday"],
        requested_hours="08:00-12:00",
    ))
    await db_session.flush()
    return {"uni": uni, "ana": ana, "bia": bia, "bruno": bruno, "cuidoteca": cuidoteca}


class TestCanMessage:
    async def test_peers_need_accepted_connection(self, db_session, campus):
        ana, bia = campus["ana"], campus["bia"]
        assert not await message_service.can_message(db_session, ana, bia)

        conn = await connection_service.request_connection(db_session, ana, bia.id)
        assert not await message_service.can_message(db_session, ana, bia)

        await connection_service.accept_connection(db_session, conn.id, bia)
        assert await message_service.can_message(db_session, ana, bia)
        assert await message_service.can_message(db_session, bia, ana)

    async def test_institution_link_both_directions(self, db_session, campus, make_user):
        uni, ana = campus["uni"], campus["ana"]
        stranger = await make_user(UserRole.PARENT)

        assert await message_service.can_message(db_session, ana, uni)
        assert await message_service.can_message(db_session, uni, ana)
        assert not await message_service.can_message(db_session, stranger, uni)
        assert not await message_service.can_message(db_session, uni, stranger)

    async def test_institutions_never_message_each_other(self, db_session, campus, make_user):
        other = await make_user(UserRole.INSTITUTION)
        assert not await message_service.can_message(db_session, campus["uni"], other)

    async def test_send_without_connection(self, db_session, campus):
        with pytest.raises(NotConnected):
            await message_service.send_message(
                db_session, campus["ana"], campus["bia"].id, "Oi"
            )


class TestConversations:
    async def test_thread_and_unread(self, db_session, campus):
        uni, ana = campus["uni"], campus["ana"]
        await message_service.send_message(db_session, ana, uni.id, "Bom dia")
        await message_service.send_message(db_session, uni, ana.id, "Bom dia, Ana")
        await message_service.send_message(db_session, uni, ana.id, "Tudo certo?")

        thread = await message_service.get_thread(db_session, ana, uni.id)
        assert [m.content for m in thread] == ["Bom dia", "Bom dia, Ana", "Tudo certo?"]

        entries = await message_service.conversations(db_session, ana)
        assert len(entries) == 1
        assert entries[0]["user"].id == uni.id
        assert entries[0]["last_message"] == "Tudo certo?"
        assert entries[0]["unread_count"] == 2

    async def test_only_receiver_marks_read(self, db_session, campus):
        uni, ana = campus["uni"], campus["ana"]
        message = await message_service.send_message(db_session, ana, uni.id, "Oi")

        with pytest.raises(Forbidden):
            await message_service.mark_message_read(db_session, message.id, ana)
        read = await message_service.mark_message_read(db_session, message.id, uni)
        assert read.read is True

    async def test_contacts(self, db_session, campus):
        contacts = await message_service.messageable_users(db_session, campus["ana"])
        assert [u.id for u in contacts] == [campus["uni"].id]

        members = await message_service.messageable_users(db_session, campus["uni"])
        assert {u.id for u in members} == {
            campus["ana"].id, campus["bia"].id, campus["bruno"].id,
        }


class TestBulk:
    @pytest.mark.parametrize("group, expected", [
        (TargetGroup.PARENTS, {"ana", "bia"}),
        (TargetGroup.CUIDADORES, {"bruno"}),
        (TargetGroup.ALL, {"ana", "bia", "bruno"}),
        (TargetGroup.APPROVED_PARENTS, {"ana"}),
    ])
    async def test_target_groups(self, db_session, campus, group, expected):
        recipients = await message_service.resolve_target_group(db_session, campus["uni"], group)
        assert recipients == {campus[name].id for name in expected}

    async def test_approved_cuidadores(self, db_session, campus):
        db_session.add(CuidadorEnrollment(
            cuidoteca_id=campus["cuidoteca"].id,
            cuidador_id=campus["bruno"].id,
            status=EnrollmentStatus.CONFIRMED,
            requested_days=["monday"],
            requested_hours="08:00-12:00",
        ))
        await db_session.flush()

        recipients = await message_service.resolve_target_group(
            db_session, campus["uni"], TargetGroup.APPROVED_ALL
        )
        assert recipients == {campus["ana"].id, campus["bruno"].id}

    async def test_bulk_approved_parents(self, db_session, campus):
        messages = await message_service.send_bulk_message(
            db_session, campus["uni"], TargetGroup.APPROVED_PARENTS, "Reunião sexta"
        )
        assert [m.receiver_id for m in messages] == [campus["ana"].id]
        assert messages[0].sender_id == campus["uni"].id

    async def test_empty_group(self, db_session, campus):
        with pytest.raises(EmptyGroup):
            await message_service.send_bulk_message(
                db_session, campus["uni"], TargetGroup.APPROVED_CUIDADORES, "Oi"
            )

    async def test_only_institutions(self, db_session, campus):
        with pytest.raises(Forbidden):
            await message_service.send_bulk_message(
                db_session, campus["ana"], TargetGroup.ALL, "Oi"
            )
