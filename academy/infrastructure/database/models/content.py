# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academy content models: events, grade exams, book materials, notices.

Each content item optionally targets explicit recipients through
recipient_ids; an empty list means a broadcast to all active non-admin users.
"""

from datetime import date, time

from sqlalchemy import Boolean, Date, Integer, String, Text, Time
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from academy.infrastructure.database.models.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    """A public or private academy event."""

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    event_date: Mapped[date | None] = mapped_column(Date)
    event_time: Mapped[time | None] = mapped_column(Time)
    location: Mapped[str | None] = mapped_column(String(255))
    is_public: Mapped[bool] = mapped_column(Boolean, default=False)
    recipient_ids: Mapped[list[int] | None] = mapped_column(ARRAY(Integer))
    image_url: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class GradeExam(Base, TimestampMixin):
    """A graded examination sitting."""

    __tablename__ = "grade_exams"

    id: Mapped[int] = mapped_column(primary_key=True)
    exam_name: Mapped[str] = mapped_column(String(255), nullable=False)
    course: Mapped[str | None] = mapped_column(String(255))
    exam_date: Mapped[date | None] = mapped_column(Date)
    exam_time: Mapped[time | None] = mapped_column(Time)
    location: Mapped[str | None] = mapped_column(String(255))
    syllabus: Mapped[str | None] = mapped_column(Text)
    recipient_ids: Mapped[list[int] | None] = mapped_column(ARRAY(Integer))


class BookMaterial(Base, TimestampMixin):
    """Study material shared with students."""

    __tablename__ = "book_materials"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    course: Mapped[str | None] = mapped_column(String(255))
    file_url: Mapped[str | None] = mapped_column(Text)
    file_type: Mapped[str | None] = mapped_column(String(50))
    recipient_ids: Mapped[list[int] | None] = mapped_column(ARRAY(Integer))


class Notice(Base, TimestampMixin):
    """A notice board announcement."""

    __tablename__ = "notices"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(50), default="normal")
    expiry_date: Mapped[date | None] = mapped_column(Date)
    recipient_ids: Mapped[list[int] | None] = mapped_column(ARRAY(Integer))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
