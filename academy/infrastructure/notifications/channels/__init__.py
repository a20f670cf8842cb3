# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification channels for delivering notifications.

- EmailChannel: Sends branded HTML email via SMTP
- InAppChannel: Creates notification rows in the database
- PushChannel: Sends push notifications via Firebase Cloud Messaging

Usage:
    from academy.infrastructure.notifications.channels import (
        EmailChannel,
        NotificationPayload,
    )

    email = EmailChannel(settings.smtp, academy=settings.app_name)
    result = await email.send(NotificationPayload(recipient=recipient, message=message))
"""

from academy.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    DeliveryStatus,
    NotificationPayload,
)
from academy.infrastructure.notifications.channels.email import EmailChannel
from academy.infrastructure.notifications.channels.in_app import InAppChannel
from academy.infrastructure.notifications.channels.push import (
    BatchResponse,
    PushChannel,
    SendResponse,
)

__all__ = [
    # Base types
    "BaseChannel",
    "ChannelResult",
    "ChannelType",
    "DeliveryStatus",
    "NotificationPayload",
    # Channels
    "EmailChannel",
    "InAppChannel",
    "PushChannel",
    "BatchResponse",
    "SendResponse",
]
