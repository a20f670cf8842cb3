# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base classes for notification channels.

This module defines the abstract base class and shared types for all
notification channels. Each channel handles delivery through one medium
(email, in-app, push) and reports the outcome as a ChannelResult instead
of raising.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from academy.infrastructure.notifications.events import RenderedMessage
from academy.infrastructure.notifications.recipients import Recipient
from academy.utils.datetime import utc_now


class ChannelType(str, Enum):
    """Available notification channel types."""

    EMAIL = "email"
    IN_APP = "in_app"
    PUSH = "push"


class DeliveryStatus(str, Enum):
    """Delivery status for a channel."""

    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class NotificationPayload:
    """Everything a channel needs to deliver one message.

    Attributes:
        recipient: Who receives the message.
        message: The rendered message.
        push_tokens: Device tokens, used by the push channel only.
    """

    recipient: Recipient
    message: RenderedMessage
    push_tokens: list[str] = field(default_factory=list)


@dataclass
class ChannelResult:
    """Result of a channel send operation.

    Attributes:
        channel: Which channel was used.
        status: Delivery status.
        message_id: External or database id, if available.
        error_message: Error or skip reason.
        sent_at: When the attempt finished.
        metadata: Additional result metadata.
    """

    channel: ChannelType
    status: DeliveryStatus
    message_id: str | None = None
    error_message: str | None = None
    sent_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True when the message was handed over."""
        return self.status == DeliveryStatus.SENT

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "channel": self.channel.value,
            "status": self.status.value,
            "message_id": self.message_id,
            "error_message": self.error_message,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }


class BaseChannel(ABC):
    """Abstract base class for notification channels."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        ...

    @property
    def is_configured(self) -> bool:
        """Whether the channel can deliver at all."""
        return True

    async def close(self) -> None:
        """Release resources held by the channel."""
        return None

    @abstractmethod
    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Send a notification through this channel.

        Args:
            payload: The notification payload to send.

        Returns:
            ChannelResult with delivery status.
        """
        ...

    def create_success_result(
        self,
        message_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ChannelResult:
        """Create a successful channel result."""
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.SENT,
            message_id=message_id,
            sent_at=utc_now(),
            metadata=metadata or {},
        )

    def create_failure_result(
        self,
        error_message: str,
        metadata: dict[str, Any] | None = None,
    ) -> ChannelResult:
        """Create a failed channel result."""
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.FAILED,
            error_message=error_message,
            sent_at=utc_now(),
            metadata=metadata or {},
        )

    def create_skipped_result(self, reason: str) -> ChannelResult:
        """Create a skipped channel result."""
        return ChannelResult(
            channel=self.channel_type,
            status=DeliveryStatus.SKIPPED,
            error_message=reason,
            sent_at=utc_now(),
        )
