# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-app notification and push token models."""

from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from academy.infrastructure.database.models.base import Base, CreatedAtMixin, TimestampMixin


class NotificationType(str, Enum):
    """Allowed values of notifications.type."""

    INFO = "Info"
    WARNING = "Warning"
    SUCCESS = "Success"
    ERROR = "Error"

    @classmethod
    def coerce(cls, value: "str | NotificationType | None") -> "NotificationType":
        """Map any value onto an allowed type, defaulting to Info.

        Matching is case-insensitive, so "success" becomes Success.
        """
        if isinstance(value, cls):
            return value
        if value:
            for member in cls:
                if member.value.lower() == str(value).strip().lower():
                    return member
        return cls.INFO


class Notification(Base, CreatedAtMixin):
    """A row in a user's in-app notification feed."""

    __tablename__ = "notifications"
    __table_args__ = (
        CheckConstraint(
            "type IN ('Info', 'Warning', 'Success', 'Error')",
            name="notifications_type_check",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(50), default=NotificationType.INFO.value)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class FCMToken(Base, TimestampMixin):
    """A device registration token for push delivery.

    Tokens are soft-deactivated, never deleted, when the provider reports
    them invalid or the device unregisters.
    """

    __tablename__ = "fcm_tokens"
    __table_args__ = (
        UniqueConstraint("user_id", "fcm_token", name="fcm_tokens_user_id_fcm_token_key"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    fcm_token: Mapped[str] = mapped_column(Text, nullable=False)
    device_type: Mapped[str | None] = mapped_column(String(20))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
