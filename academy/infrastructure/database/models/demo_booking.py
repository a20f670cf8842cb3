# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Demo booking and contact form models."""

from datetime import date, time
from enum import Enum

from sqlalchemy import Date, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from academy.infrastructure.database.models.base import Base, CreatedAtMixin, TimestampMixin


class DemoBookingStatus(str, Enum):
    """Demo booking lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class DemoBooking(Base, TimestampMixin):
    """A trial class requested from the public site."""

    __tablename__ = "demo_bookings"

    id: Mapped[int] = mapped_column(primary_key=True)
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20))
    course: Mapped[str | None] = mapped_column(String(255))
    preferred_date: Mapped[date | None] = mapped_column(Date)
    preferred_time: Mapped[time | None] = mapped_column(Time)
    location: Mapped[str | None] = mapped_column(String(255))
    notes: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(50), default=DemoBookingStatus.PENDING.value)


class Contact(Base, CreatedAtMixin):
    """A message submitted through the public contact form."""

    __tablename__ = "contacts"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
