# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course and batch models."""

from datetime import date

from sqlalchemy import Date, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from academy.infrastructure.database.models.base import Base, TimestampMixin


class Course(Base, TimestampMixin):
    """A course offered by the academy (e.g. Vocal, Drawing)."""

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    icon: Mapped[str | None] = mapped_column(String(100))
    image: Mapped[str | None] = mapped_column(Text)


class Batch(Base, TimestampMixin):
    """A scheduled group of students taking one course.

    Attributes:
        student_ids: Ids of allocated students. Allocation notifications
            are sent only for ids not present before an update.
    """

    __tablename__ = "batches"

    id: Mapped[int] = mapped_column(primary_key=True)
    batch_name: Mapped[str] = mapped_column(String(255), nullable=False)
    course_id: Mapped[int | None] = mapped_column(
        ForeignKey("courses.id", ondelete="SET NULL")
    )
    teacher_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )
    schedule: Mapped[str | None] = mapped_column(Text)
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    max_students: Mapped[int | None] = mapped_column(Integer)
    student_ids: Mapped[list[int]] = mapped_column(ARRAY(Integer), default=list)
    mode: Mapped[str | None] = mapped_column(String(50), default="Hybrid")
