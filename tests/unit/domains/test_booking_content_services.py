# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for demo booking, content and notification services."""

from datetime import date
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from academy.domains.content.service import ContentService
from academy.domains.demo_booking.service import (
    DemoBookingNotFoundError,
    DemoBookingService,
)
from academy.domains.notification.service import (
    NotificationNotFoundError,
    NotificationService,
)
from academy.infrastructure.database.models import DemoBooking, NotificationType
from academy.infrastructure.notifications import events
from academy.models.content import NoticeCreateRequest
from academy.models.demo_booking import (
    ContactRequest,
    DemoBookingCreateRequest,
    DemoBookingUpdateRequest,
)
from academy.models.notification import AdminNotificationRequest, FCMTokenRequest


def booking(status: str = "pending") -> DemoBooking:
    return DemoBooking(
        id=5,
        student_name="Visitor",
        email="visitor@fineart.io",
        course="Sketching",
        preferred_date=date(2025, 5, 3),
        status=status,
    )


def rowcount(count: int) -> MagicMock:
    result = MagicMock()
    result.rowcount = count
    return result


class TestDemoBookingService:
    """Tests for DemoBookingService."""

    @pytest.fixture
    def service(self, mock_db, notifier) -> DemoBookingService:
        return DemoBookingService(mock_db, notifier)

    @pytest.mark.asyncio
    async def test_create_is_pending_and_announced(self, service, mock_db, notified) -> None:
        response = await service.create_booking(
            DemoBookingCreateRequest(
                student_name="Visitor", email="Visitor@FineArt.io", course="Sketching"
            )
        )

        assert response.status == "pending"
        assert response.email == "visitor@fineart.io"
        received = notified(events.DemoBookingReceived)
        assert len(received) == 1
        assert received[0].email == "visitor@fineart.io"

    @pytest.mark.asyncio
    async def test_status_change_notifies_guest(self, service, mock_db, notified) -> None:
        mock_db.get.return_value = booking("pending")

        await service.update_booking(5, DemoBookingUpdateRequest(status="confirmed"))

        changes = notified(events.DemoStatusChanged)
        assert [c.status for c in changes] == ["confirmed"]

    @pytest.mark.asyncio
    async def test_same_status_is_silent(self, service, mock_db, notifier) -> None:
        mock_db.get.return_value = booking("confirmed")

        await service.update_booking(5, DemoBookingUpdateRequest(status="confirmed"))

        notifier.notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_back_to_pending_is_silent(self, service, mock_db, notifier) -> None:
        mock_db.get.return_value = booking("confirmed")

        await service.update_booking(5, DemoBookingUpdateRequest(status="pending"))

        notifier.notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_notes_only_update_keeps_status(self, service, mock_db, notifier) -> None:
        row = booking("confirmed")
        mock_db.get.return_value = row

        await service.update_booking(5, DemoBookingUpdateRequest(notes="Called back"))

        assert row.status == "confirmed"
        assert row.notes == "Called back"
        notifier.notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_booking(self, service) -> None:
        with pytest.raises(DemoBookingNotFoundError):
            await service.update_booking(5, DemoBookingUpdateRequest(status="completed"))

    @pytest.mark.asyncio
    async def test_contact_is_stored_without_notification(
        self, service, mock_db, notifier
    ) -> None:
        response = await service.submit_contact(
            ContactRequest(name="Parent", email="Parent@FineArt.io", message="Fees?")
        )

        assert response.email == "parent@fineart.io"
        mock_db.add.assert_called_once()
        notifier.notify.assert_not_called()


class TestContentService:
    """Tests for ContentService."""

    @pytest.mark.asyncio
    async def test_notice_targets_recipients(self, mock_db, notifier, notified) -> None:
        service = ContentService(mock_db, notifier)

        await service.create_notice(
            NoticeCreateRequest(
                title="Exhibition", content="Bring canvases", priority="high", recipient_ids=[4, 5]
            )
        )

        notices = notified(events.Notice)
        assert len(notices) == 1
        assert notices[0].recipient_ids == (4, 5)
        assert notices[0].priority == "high"
        mock_db.commit.assert_awaited_once()


class TestNotificationService:
    """Tests for NotificationService."""

    @pytest.fixture
    def service(self, mock_db, notifier) -> NotificationService:
        return NotificationService(mock_db, notifier)

    @pytest.mark.asyncio
    async def test_mark_read_of_foreign_notification(self, service, mock_db) -> None:
        mock_db.execute.return_value = rowcount(0)

        with pytest.raises(NotificationNotFoundError):
            await service.mark_read(user_id=4, notification_id=77)

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mark_all_read_returns_count(self, service, mock_db) -> None:
        mock_db.execute.return_value = rowcount(3)

        assert await service.mark_all_read(4) == 3

    @pytest.mark.asyncio
    async def test_register_token_upserts(self, service, mock_db) -> None:
        await service.register_token(4, FCMTokenRequest(fcm_token="tok-1", device_type="android"))

        statement = mock_db.execute.call_args.args[0]
        sql = str(statement.compile(dialect=postgresql.dialect()))
        assert "ON CONFLICT ON CONSTRAINT fcm_tokens_user_id_fcm_token_key DO UPDATE" in sql
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_deactivate_unknown_token(self, service, mock_db) -> None:
        mock_db.execute.return_value = rowcount(0)

        assert await service.deactivate_token(4, "missing") is False

    def test_admin_message_dedupes_users(self, service, notified) -> None:
        count = service.send_admin_message(
            AdminNotificationRequest(
                user_ids=[3, 3, 8], title="Closed", message="Studio closed", type="Warning"
            )
        )

        assert count == 2
        messages = notified(events.AdminMessage)
        assert messages[0].user_ids == (3, 8)
        assert messages[0].type == NotificationType.WARNING
