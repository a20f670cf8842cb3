# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models for the academy database."""

from academy.infrastructure.database.models.base import (
    Base,
    CreatedAtMixin,
    TimestampMixin,
    drop_required_nulls,
)
from academy.infrastructure.database.models.content import (
    BookMaterial,
    Event,
    GradeExam,
    Notice,
)
from academy.infrastructure.database.models.course import Batch, Course
from academy.infrastructure.database.models.demo_booking import (
    Contact,
    DemoBooking,
    DemoBookingStatus,
)
from academy.infrastructure.database.models.invoice import Invoice, InvoiceStatus
from academy.infrastructure.database.models.notification import (
    FCMToken,
    Notification,
    NotificationType,
)
from academy.infrastructure.database.models.user import (
    ClassPreference,
    User,
    UserRole,
    UserStatus,
)

__all__ = [
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    "drop_required_nulls",
    "User",
    "UserRole",
    "UserStatus",
    "ClassPreference",
    "Course",
    "Batch",
    "Invoice",
    "InvoiceStatus",
    "Event",
    "GradeExam",
    "BookMaterial",
    "Notice",
    "DemoBooking",
    "DemoBookingStatus",
    "Contact",
    "Notification",
    "NotificationType",
    "FCMToken",
]
