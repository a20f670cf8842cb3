# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the notification repository and in-app channel."""

from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from academy.infrastructure.database.connection import DatabaseError
from academy.infrastructure.database.models.notification import Notification
from academy.infrastructure.notifications.channels import (
    DeliveryStatus,
    InAppChannel,
    NotificationPayload,
)
from academy.infrastructure.notifications.events import RenderedMessage
from academy.infrastructure.notifications.recipients import (
    Broadcast,
    ByIds,
    ByRole,
    Guest,
    Recipient,
)
from academy.infrastructure.notifications.repository import NotificationRepository


def user_row(id: int, name: str, role: str = "Student") -> SimpleNamespace:
    return SimpleNamespace(id=id, name=name, email=f"{name.lower()}@example.com", role=role)


@pytest.fixture
def session() -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    db.flush = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest.fixture
def database(session) -> MagicMock:
    @asynccontextmanager
    async def scope():
        yield session

    db = MagicMock()
    db.session = scope
    return db


class TestResolveRecipients:
    """Tests for selector resolution."""

    @pytest.mark.asyncio
    async def test_guest_needs_no_query(self, database, session) -> None:
        repository = NotificationRepository(database)

        recipients = await repository.resolve_recipients([Guest("Visitor", "v@example.com")])

        assert recipients == [Recipient(id=None, name="Visitor", email="v@example.com")]
        session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_id_list_needs_no_query(self, database, session) -> None:
        recipients = await NotificationRepository(database).resolve_recipients([ByIds(())])

        assert recipients == []
        session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_results_deduped_across_selectors(self, database, session) -> None:
        first = MagicMock()
        first.all.return_value = [user_row(4, "Asha")]
        second = MagicMock()
        second.all.return_value = [user_row(1, "Admin", "Admin"), user_row(4, "Asha")]
        session.execute.side_effect = [first, second]

        recipients = await NotificationRepository(database).resolve_recipients(
            [ByIds((4,)), ByRole("Admin")]
        )

        assert [r.id for r in recipients] == [4, 1]

    @pytest.mark.asyncio
    async def test_broadcast_excludes_admins_and_deleted(self, database, session) -> None:
        rows = MagicMock()
        rows.all.return_value = []
        session.execute.return_value = rows

        await NotificationRepository(database).resolve_recipients([Broadcast()])

        sql = str(session.execute.call_args.args[0])
        assert "users.is_deleted IS false" in sql
        assert "users.role !=" in sql
        assert "users.status =" in sql


class TestInsertNotification:
    """Tests for in-app rows."""

    @pytest.mark.asyncio
    async def test_type_is_coerced(self, database, session) -> None:
        async def assign_id():
            session.add.call_args.args[0].id = 77

        session.flush.side_effect = assign_id

        notification_id = await NotificationRepository(database).insert_notification(
            user_id=4, title="Hi", message="Body", notification_type="success"
        )

        row = session.add.call_args.args[0]
        assert isinstance(row, Notification)
        assert row.type == "Success"
        assert row.is_read is False
        assert notification_id == 77

    @pytest.mark.asyncio
    async def test_unknown_type_becomes_info(self, database, session) -> None:
        await NotificationRepository(database).insert_notification(
            user_id=4, title="Hi", message="Body", notification_type="celebration"
        )

        assert session.add.call_args.args[0].type == "Info"


class TestInAppChannel:
    """Tests for InAppChannel."""

    @pytest.fixture
    def message(self) -> RenderedMessage:
        return RenderedMessage(subject="Title", body="Body", push_title="T", push_body="B")

    @pytest.mark.asyncio
    async def test_creates_row(self, message) -> None:
        repository = AsyncMock()
        repository.insert_notification = AsyncMock(return_value=12)
        channel = InAppChannel(repository)

        result = await channel.send(
            NotificationPayload(recipient=Recipient(4, "Asha", "asha@example.com"), message=message)
        )

        assert result.ok is True
        assert result.message_id == "12"
        repository.insert_notification.assert_awaited_once_with(
            user_id=4, title="Title", message="Body", notification_type=message.type
        )

    @pytest.mark.asyncio
    async def test_guest_skipped(self, message) -> None:
        repository = AsyncMock()
        channel = InAppChannel(repository)

        result = await channel.send(
            NotificationPayload(recipient=Recipient(None, "V", "v@example.com"), message=message)
        )

        assert result.status == DeliveryStatus.SKIPPED
        repository.insert_notification.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_database_error_is_a_failure(self, message) -> None:
        repository = AsyncMock()
        repository.insert_notification = AsyncMock(side_effect=DatabaseError("insert failed"))
        channel = InAppChannel(repository)

        result = await channel.send(
            NotificationPayload(recipient=Recipient(4, "Asha", "asha@example.com"), message=message)
        )

        assert result.status == DeliveryStatus.FAILED
