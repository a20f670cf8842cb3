# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User model.

Students, teachers and administrators share one table, distinguished by
role. Users are soft-deleted through is_deleted.
"""

from enum import Enum

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from academy.infrastructure.database.models.base import Base, TimestampMixin


class UserRole(str, Enum):
    """Roles a user can hold."""

    STUDENT = "Student"
    TEACHER = "Teacher"
    ADMIN = "Admin"


class UserStatus(str, Enum):
    """Account status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class ClassPreference(str, Enum):
    """Preferred class mode."""

    ONLINE = "Online"
    OFFLINE = "Offline"
    HYBRID = "Hybrid"


class User(Base, TimestampMixin):
    """Academy user.

    Attributes:
        id: Serial primary key.
        user_code: Human-readable code, PREFIX-YEAR-NNNN.
        name: Display name.
        email: Unique login email.
        password: bcrypt hash.
        role: Student, Teacher or Admin.
        status: active or inactive.
        class_preference: Online, Offline or Hybrid.
        contact_number: Phone number.
        address: Postal address.
        is_deleted: Soft-delete flag.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_code: Mapped[str | None] = mapped_column(String(50), unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), default=UserRole.STUDENT.value)
    status: Mapped[str] = mapped_column(String(50), default=UserStatus.ACTIVE.value)
    class_preference: Mapped[str | None] = mapped_column(
        String(20), default=ClassPreference.HYBRID.value
    )
    contact_number: Mapped[str | None] = mapped_column(String(20))
    address: Mapped[str | None] = mapped_column(Text)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def is_admin(self) -> bool:
        """Check whether the user holds the Admin role."""
        return self.role == UserRole.ADMIN.value
