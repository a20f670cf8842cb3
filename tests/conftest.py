# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (mocked sessions, recording notifiers)
- Integration tests (real PostgreSQL, only with TEST_DATABASE_URL)
"""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from academy.core.config.settings import (
    FirebaseSettings,
    JWTSettings,
    NotificationSettings,
    SchemaSettings,
    Settings,
    SMTPSettings,
)


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings with every external service unconfigured."""
    return Settings(
        environment="development",
        debug=True,
        log_level="DEBUG",
        smtp=SMTPSettings(host=None, user=None, password=None),
        firebase=FirebaseSettings(service_account_json=None, credentials_path=None),
        jwt=JWTSettings(secret_key=SecretStr("test-secret-key-for-testing-only")),
        notifications=NotificationSettings(queue_size=10, workers=1, drain_timeout=1.0),
        schema_=SchemaSettings(user_code_prefix="ACD", invoice_prefix="INV"),
    )


@pytest.fixture
def jwt_settings() -> JWTSettings:
    return JWTSettings(secret_key=SecretStr("test-secret-key-for-testing-only"))


# =============================================================================
# Database Fixtures
# =============================================================================


async def _stamp(obj: Any) -> None:
    """Fill the columns the database would generate on insert."""
    if getattr(obj, "id", None) is None:
        obj.id = 1
    if getattr(obj, "created_at", None) is None:
        obj.created_at = datetime(2025, 1, 15, tzinfo=timezone.utc)

    table = getattr(obj, "__table__", None)
    if table is None:
        return
    for column in table.columns:
        default = column.default
        if default is not None and default.is_scalar and getattr(obj, column.key, None) is None:
            setattr(obj, column.key, default.arg)


@pytest.fixture
def mock_db():
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.delete = AsyncMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock(side_effect=_stamp)
    db.execute = AsyncMock()
    db.get = AsyncMock(return_value=None)
    return db


@pytest.fixture
def scalar_result():
    """Build execute() results answering scalar(), scalar_one() and scalar_one_or_none()."""

    def build(value: Any) -> MagicMock:
        result = MagicMock()
        result.scalar.return_value = value
        result.scalar_one.return_value = value
        result.scalar_one_or_none.return_value = value
        result.scalars.return_value.all.return_value = value if isinstance(value, list) else []
        return result

    return build


# =============================================================================
# Notification Fixtures
# =============================================================================


@pytest.fixture
def notifier() -> MagicMock:
    """Stand-in for the fan-out that records notify() calls."""
    fanout = MagicMock()
    fanout.notify = MagicMock()
    return fanout


@pytest.fixture
def notified(notifier: MagicMock):
    """Events of one type handed to the recording notifier."""

    def collect(event_type: type) -> list:
        return [
            call.args[0]
            for call in notifier.notify.call_args_list
            if isinstance(call.args[0], event_type)
        ]

    return collect
