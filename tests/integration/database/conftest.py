# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Every test gets an empty public schema on the database named by
TEST_DATABASE_URL. Without that variable the tests are skipped.
"""

import os

import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from academy.core.config.settings import SchemaSettings
from academy.infrastructure.database.migrations import SchemaEvolver, build_steps


@pytest.fixture(scope="session")
def database_url() -> str:
    """Get the test database URL."""
    url = os.environ.get("TEST_DATABASE_URL")
    if not url:
        pytest.skip("TEST_DATABASE_URL is not set")
    return url


@pytest_asyncio.fixture(scope="function")
async def engine(database_url: str):
    """Engine over a freshly emptied public schema."""
    engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.execute(text("DROP SCHEMA IF EXISTS public CASCADE"))
        await conn.execute(text("CREATE SCHEMA public"))

    yield engine

    await engine.dispose()


@pytest.fixture
def schema_settings() -> SchemaSettings:
    return SchemaSettings(user_code_prefix="ACD", invoice_prefix="INV")


@pytest.fixture
def evolver(engine, schema_settings) -> SchemaEvolver:
    """Evolver with the production step list."""
    return SchemaEvolver(engine, build_steps(schema_settings))
