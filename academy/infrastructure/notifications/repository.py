# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database access for the notification fan-out.

Every statement runs in its own short session from the shared pool and is
committed on its own; no transaction spans a fan-out.
"""

import logging

from sqlalchemy import select, update

from academy.infrastructure.database.connection import Database
from academy.infrastructure.database.models.notification import (
    FCMToken,
    Notification,
    NotificationType,
)
from academy.infrastructure.database.models.user import User, UserRole, UserStatus
from academy.infrastructure.notifications.recipients import (
    Broadcast,
    ByIds,
    ByRole,
    Guest,
    Recipient,
    RecipientSelector,
    dedupe,
)

logger = logging.getLogger(__name__)


class NotificationRepository:
    """Recipient lookup, in-app rows and push tokens.

    Args:
        database: Shared database handle.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    async def resolve_recipients(
        self, selectors: list[RecipientSelector]
    ) -> list[Recipient]:
        """Resolve selectors into unique recipients.

        Args:
            selectors: Audience description of an event.

        Returns:
            Recipients in selector order, de-duplicated.

        Raises:
            DatabaseError: If a lookup fails.
        """
        recipients: list[Recipient] = []
        for selector in selectors:
            if isinstance(selector, Guest):
                recipients.append(selector.to_recipient())
                continue
            recipients.extend(await self._select_users(selector))
        return dedupe(recipients)

    async def _select_users(self, selector: RecipientSelector) -> list[Recipient]:
        stmt = select(User.id, User.name, User.email, User.role).where(
            User.is_deleted.is_(False)
        )
        if isinstance(selector, ByIds):
            if not selector.ids:
                return []
            stmt = stmt.where(User.id.in_(selector.ids))
        elif isinstance(selector, ByRole):
            stmt = stmt.where(
                User.status == UserStatus.ACTIVE.value,
                User.role == selector.role,
            )
        elif isinstance(selector, Broadcast):
            stmt = stmt.where(
                User.status == UserStatus.ACTIVE.value,
                User.role != UserRole.ADMIN.value,
            )
        else:
            raise TypeError(f"Unsupported recipient selector: {selector!r}")

        async with self._database.session() as session:
            result = await session.execute(stmt.order_by(User.id))
            rows = result.all()

        return [
            Recipient(id=row.id, name=row.name, email=row.email, role=row.role)
            for row in rows
        ]

    async def insert_notification(
        self,
        user_id: int,
        title: str,
        message: str,
        notification_type: str | NotificationType | None,
    ) -> int:
        """Insert an in-app notification row.

        The type is coerced onto Info, Warning, Success or Error.

        Returns:
            The new notification id.

        Raises:
            DatabaseError: If the insert fails.
        """
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=NotificationType.coerce(notification_type).value,
            is_read=False,
        )
        async with self._database.session() as session:
            session.add(notification)
            await session.flush()
            return notification.id

    async def active_tokens(self, user_id: int) -> list[FCMToken]:
        """Get a user's active push tokens.

        Raises:
            DatabaseError: If the lookup fails.
        """
        async with self._database.session() as session:
            result = await session.execute(
                select(FCMToken)
                .where(FCMToken.user_id == user_id, FCMToken.is_active.is_(True))
                .order_by(FCMToken.id)
            )
            return list(result.scalars().all())

    async def deactivate_token(self, user_id: int, token: str) -> None:
        """Soft-deactivate one push token.

        Raises:
            DatabaseError: If the update fails.
        """
        async with self._database.session() as session:
            await session.execute(
                update(FCMToken)
                .where(FCMToken.user_id == user_id, FCMToken.fcm_token == token)
                .values(is_active=False)
            )
        logger.info("Deactivated push token for user %s", user_id)
