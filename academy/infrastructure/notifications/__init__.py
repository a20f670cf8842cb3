# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification fan-out to email, in-app rows and mobile push.

Usage:
    from academy.infrastructure.notifications import build_fanout

    fanout = build_fanout(settings, database)
    await fanout.start()
    fanout.notify(event)
"""

from typing import TYPE_CHECKING

from academy.infrastructure.notifications.channels import (
    EmailChannel,
    InAppChannel,
    PushChannel,
)
from academy.infrastructure.notifications.events import NotificationEvent, RenderedMessage
from academy.infrastructure.notifications.fanout import (
    FanoutResult,
    FanoutStats,
    NotificationFanout,
    RecipientDelivery,
)
from academy.infrastructure.notifications.recipients import Recipient
from academy.infrastructure.notifications.repository import NotificationRepository

if TYPE_CHECKING:
    from academy.core.config.settings import Settings
    from academy.infrastructure.database.connection import Database


def build_fanout(settings: "Settings", database: "Database") -> NotificationFanout:
    """Wire the repository and channels into a fan-out.

    Args:
        settings: Application settings.
        database: Shared database handle.

    Returns:
        A fan-out that still has to be started.
    """
    repository = NotificationRepository(database)
    return NotificationFanout(
        repository=repository,
        email=EmailChannel(settings.smtp, academy=settings.app_name),
        in_app=InAppChannel(repository),
        push=PushChannel(settings.firebase),
        academy=settings.app_name,
        settings=settings.notifications,
    )


__all__ = [
    "build_fanout",
    "NotificationFanout",
    "FanoutResult",
    "FanoutStats",
    "RecipientDelivery",
    "NotificationEvent",
    "RenderedMessage",
    "NotificationRepository",
    "Recipient",
]
