# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification feed, device token and admin notification schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from academy.infrastructure.database.models.notification import NotificationType


class NotificationResponse(BaseModel):
    """One in-app notification."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    message: str
    type: str
    is_read: bool
    created_at: datetime | None = None


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    total: int
    unread_count: int


class FCMTokenRequest(BaseModel):
    """Register a device token for push notifications."""

    fcm_token: str = Field(min_length=1)
    device_type: Literal["android", "ios", "web"] | None = None


class FCMTokenDeleteRequest(BaseModel):
    """Deactivate a device token, e.g. on logout."""

    fcm_token: str = Field(min_length=1)


class AdminNotificationRequest(BaseModel):
    """Admin message to selected users."""

    user_ids: list[int] = Field(min_length=1)
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    type: NotificationType = NotificationType.INFO


class NotificationQueuedResponse(BaseModel):
    """Acknowledgement that a notification was handed to the fan-out."""

    queued: bool
    recipients: int


class NotificationStatsResponse(BaseModel):
    """Fan-out counters and queue state."""

    running: bool
    queue_depth: int
    email_configured: bool
    push_configured: bool
    stats: dict[str, int]


class SchemaStatusResponse(BaseModel):
    """Schema ledger status."""

    applied: list[dict[str, Any]]
    pending: list[str]
    all_steps: list[str]
    is_up_to_date: bool
    last_run: dict[str, Any] | None = None
