"""Unit tests for notification_service.

Notification inserts are best effort: a failing insert is logged and the
surrounding workflow carries on.
"""

import logging
import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from cuidoteca.core.errors import NotFound
from cuidoteca.models.connection import ConnectionStatus, UserConnection
from cuidoteca.models.notification import NotificationType
from cuidoteca.models.user import UserRole
from cuidoteca.services import connection_service, notification_service


class TestNotify:
    async def test_insert_and_count(self, db_session, make_user):
        ana = await make_user(UserRole.PARENT)

        note = await notification_service.notify(db_session, ana.id, "Olá")
        assert note is not None
        assert note.type is NotificationType.GENERAL
        assert note.read is False
        assert await notification_service.unread_count(db_session, ana.id) == 1

    async def test_notify_many_counts_created(self, db_session, make_user):
        users = [await make_user(UserRole.PARENT) for _ in range(3)]
        sent = await notification_service.notify_many(
            db_session, [u.id for u in users], "Novo evento", NotificationType.EVENT_CREATED
        )
        assert sent == 3

    async def test_mark_all_as_read(self, db_session, make_user):
        ana = await make_user(UserRole.PARENT)
        for text in ("um", "dois"):
            await notification_service.notify(db_session, ana.id, text)

        assert await notification_service.mark_all_as_read(db_session, ana.id) == 2
        assert await notification_service.unread_count(db_session, ana.id) == 0
        assert await notification_service.mark_all_as_read(db_session, ana.id) == 0

    async def test_mark_as_read_ignores_owner(self, db_session, make_user):
        ana = await make_user(UserRole.PARENT)
        note = await notification_service.notify(db_session, ana.id, "Olá")

        updated = await notification_service.mark_as_read(db_session, note.id)
        assert updated.read is True

    async def test_mark_as_read_unknown_id(self, db_session):
        with pytest.raises(NotFound):
            await notification_service.mark_as_read(db_session, uuid.uuid4())


class TestBestEffort:
    async def test_failed_insert_returns_none(self, db_session, make_user, monkeypatch, caplog):
        ana = await make_user(UserRole.PARENT)

        def _broken(**kwargs):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(notification_service, "Notification", _broken)
        with caplog.at_level(logging.ERROR, logger="cuidoteca.services.notification_service"):
            assert await notification_service.notify(db_session, ana.id, "Olá") is None
        assert "Failed to create general notification" in caplog.text

    async def test_workflow_survives_failed_notification(
        self, db_session, make_user, monkeypatch
    ):
        ana = await make_user(UserRole.PARENT)
        bia = await make_user(UserRole.PARENT)

        def _broken(**kwargs):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(notification_service, "Notification", _broken)
        conn = await connection_service.request_connection(db_session, ana, bia.id)

        assert conn.status is ConnectionStatus.PENDING
        monkeypatch.undo()
        assert await notification_service.unread_count(db_session, bia.id) == 0

    async def test_rejected_row_rolls_back_savepoint_only(self, db_session, make_user, caplog):
        ana = await make_user(UserRole.PARENT)
        bia = await make_user(UserRole.PARENT)
        conn = await connection_service.request_connection(db_session, ana, bia.id)

        # message is NOT NULL, so the database refuses the row
        with caplog.at_level(logging.ERROR, logger="cuidoteca.services.notification_service"):
            assert await notification_service.notify(db_session, bia.id, None) is None
        assert "Failed to create general notification" in caplog.text

        stored = (await db_session.execute(
            select(UserConnection).where(UserConnection.id == conn.id)
        )).scalar_one()
        assert stored.status is ConnectionStatus.PENDING
        assert await notification_service.unread_count(db_session, bia.id) == 1
