# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification channel.

This channel creates notification rows that the application shows in the
user's notification feed. Push delivery is chained off a successful row,
so a push never exists without its in-app record.
"""

from academy.infrastructure.database.connection import DatabaseError
from academy.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)
from academy.infrastructure.notifications.repository import NotificationRepository


class InAppChannel(BaseChannel):
    """In-app notification channel.

    Args:
        repository: Repository used to insert notification rows.
    """

    def __init__(self, repository: NotificationRepository) -> None:
        super().__init__()
        self._repository = repository

    @property
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        return ChannelType.IN_APP

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Create an in-app notification row.

        Args:
            payload: The notification payload.

        Returns:
            ChannelResult with the new row id as message_id.
        """
        recipient = payload.recipient
        if recipient.is_guest:
            return self.create_skipped_result("Guest recipients have no in-app feed")

        try:
            notification_id = await self._repository.insert_notification(
                user_id=recipient.id,
                title=payload.message.subject,
                message=payload.message.body,
                notification_type=payload.message.type,
            )
        except DatabaseError as e:
            self.logger.error(
                "Failed to create in-app notification for user %s (%s): %s",
                recipient.id,
                payload.message.subject,
                e,
            )
            return self.create_failure_result(f"Database error: {e}")

        self.logger.debug(
            "Created in-app notification %s for user %s", notification_id, recipient.id
        )
        return self.create_success_result(message_id=str(notification_id))
