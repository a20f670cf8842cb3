# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification feed and device token service.

This module provides the NotificationService class for:
- Reading and marking a user's in-app notifications
- Registering and deactivating push device tokens
- Admin messages to selected users
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from academy.infrastructure.database.models import FCMToken, Notification
from academy.infrastructure.notifications.events import AdminMessage
from academy.infrastructure.notifications.fanout import NotificationFanout
from academy.models.notification import (
    AdminNotificationRequest,
    FCMTokenRequest,
    NotificationListResponse,
    NotificationResponse,
)

logger = logging.getLogger(__name__)


class NotificationServiceError(Exception):
    """Base exception for notification service errors."""


class NotificationNotFoundError(NotificationServiceError):
    """Raised when a notification does not exist or belongs to someone else."""


class NotificationService:
    """Service for in-app notifications and device tokens.

    Attributes:
        db: Async database session.
        notifier: Notification fan-out.
    """

    def __init__(self, db: AsyncSession, notifier: NotificationFanout) -> None:
        self.db = db
        self.notifier = notifier

    async def list_notifications(
        self,
        user_id: int,
        unread_only: bool = False,
        limit: int = 50,
    ) -> NotificationListResponse:
        """List a user's notifications, newest first."""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))

        total_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        unread_result = await self.db.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        )

        result = await self.db.execute(
            query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        )
        return NotificationListResponse(
            items=[NotificationResponse.model_validate(n) for n in result.scalars().all()],
            total=total_result.scalar() or 0,
            unread_count=unread_result.scalar() or 0,
        )

    async def mark_read(self, user_id: int, notification_id: int) -> None:
        """Mark one of the user's notifications as read.

        Raises:
            NotificationNotFoundError: If it does not exist for this user.
        """
        result = await self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(is_read=True)
        )
        if result.rowcount == 0:
            raise NotificationNotFoundError(f"Notification {notification_id} not found")
        await self.db.commit()

    async def mark_all_read(self, user_id: int) -> int:
        """Mark all of the user's notifications as read.

        Returns:
            Number of notifications changed.
        """
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def register_token(self, user_id: int, request: FCMTokenRequest) -> None:
        """Store a device token, reactivating it if it was seen before."""
        statement = insert(FCMToken).values(
            user_id=user_id,
            fcm_token=request.fcm_token,
            device_type=request.device_type,
            is_active=True,
        )
        statement = statement.on_conflict_do_update(
            constraint="fcm_tokens_user_id_fcm_token_key",
            set_={
                "is_active": True,
                "device_type": statement.excluded.device_type,
                "updated_at": func.now(),
            },
        )
        await self.db.execute(statement)
        await self.db.commit()
        logger.info("Registered %s push token for user %s", request.device_type or "unknown", user_id)

    async def deactivate_token(self, user_id: int, fcm_token: str) -> bool:
        """Soft-deactivate a device token.

        Returns:
            True if a token was deactivated.
        """
        result = await self.db.execute(
            update(FCMToken)
            .where(FCMToken.user_id == user_id, FCMToken.fcm_token == fcm_token)
            .values(is_active=False)
        )
        await self.db.commit()
        return bool(result.rowcount)

    def send_admin_message(self, request: AdminNotificationRequest) -> int:
        """Queue an admin message to the selected users.

        Returns:
            Number of distinct users addressed.
        """
        event = AdminMessage(
            user_ids=tuple(dict.fromkeys(request.user_ids)),
            subject=request.title,
            message=request.message,
            type=request.type,
        )
        self.notifier.notify(event)
        logger.info("Queued admin message %r to %d users", request.title, len(event.user_ids))
        return len(event.user_ids)
