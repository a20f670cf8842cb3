# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative base and shared column mixins."""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all academy tables."""


class CreatedAtMixin:
    """Adds a server-defaulted created_at column."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class TimestampMixin(CreatedAtMixin):
    """Adds created_at and updated_at columns."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


def drop_required_nulls(model: type[Base], changes: dict[str, Any]) -> dict[str, Any]:
    """Remove explicit nulls aimed at NOT NULL columns of a model.

    Partial update requests mark every field optional, so a client may send
    ``null`` for a required column. Such fields are treated as unset.

    Args:
        model: Mapped class the changes will be applied to.
        changes: Field values from ``model_dump(exclude_unset=True)``.

    Returns:
        The changes without those fields.
    """
    columns = model.__table__.columns
    return {
        field: value
        for field, value in changes.items()
        if value is not None or field not in columns or columns[field].nullable
    }
