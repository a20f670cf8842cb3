# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Recording connection doubles for schema evolution tests."""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

APPLIED_AT = datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)


class FakeConnection:
    """Stands in for an AsyncConnection and records every statement.

    Args:
        ledger: Step names already in schema_migrations.
        existing_columns: (table, column) pairs reported by information_schema.
        fail_on: Substrings; a statement containing one raises ProgrammingError.
        highest: Largest numeric code suffix already present.
        missing_ids: Row ids that lack a code.
        sequence_start: First value handed out by nextval.
    """

    def __init__(
        self,
        ledger: tuple[str, ...] = (),
        existing_columns: set[tuple[str, str]] | None = None,
        fail_on: tuple[str, ...] = (),
        highest: int = 0,
        missing_ids: tuple[int, ...] = (),
        sequence_start: int = 1,
    ) -> None:
        self.ledger = list(ledger)
        self.existing_columns = existing_columns or set()
        self.fail_on = fail_on
        self.highest = highest
        self.missing_ids = missing_ids
        self.next_value = sequence_start
        self.statements: list[tuple[str, dict[str, Any] | None]] = []
        self.options: dict[str, Any] = {}
        self.closed = False
        self.run_sync_calls = 0

    @property
    def sql(self) -> list[str]:
        return [statement for statement, _ in self.statements]

    async def execution_options(self, **options: Any) -> "FakeConnection":
        self.options.update(options)
        return self

    async def close(self) -> None:
        self.closed = True

    async def run_sync(self, fn: Any, **kwargs: Any) -> None:
        self.run_sync_calls += 1

    async def execute(self, statement: Any, params: dict[str, Any] | None = None) -> MagicMock:
        sql = " ".join(str(statement).split())
        self.statements.append((sql, params))

        for marker in self.fail_on:
            if marker in sql:
                raise ProgrammingError(sql, params, Exception(f"{marker} rejected"))

        result = MagicMock()
        result.fetchall.return_value = []
        result.first.return_value = None

        if sql.startswith("SELECT name FROM schema_migrations"):
            result.scalars.return_value.all.return_value = list(self.ledger)
        elif sql.startswith("SELECT name, applied_at"):
            result.fetchall.return_value = [
                (name, APPLIED_AT, 3, 0) for name in sorted(self.ledger)
            ]
        elif sql.startswith("INSERT INTO schema_migrations"):
            if params["name"] not in self.ledger:
                self.ledger.append(params["name"])
        elif "AND table_name = :table" in sql:
            if (params["table"], params["column"]) in self.existing_columns:
                result.first.return_value = (1,)
        elif "COALESCE(MAX" in sql:
            result.scalar.return_value = self.highest
        elif sql.startswith("SELECT id FROM"):
            result.fetchall.return_value = [(row_id,) for row_id in self.missing_ids]
        elif "nextval" in sql:
            result.scalar_one.return_value = self.next_value
            self.next_value += 1
        return result


class FakeEngine:
    """Hands out one FakeConnection, or fails to connect."""

    def __init__(self, conn: FakeConnection | None = None, refuse: bool = False) -> None:
        self.conn = conn or FakeConnection()
        self.refuse = refuse
        self.connect_calls = 0

    async def connect(self) -> FakeConnection:
        self.connect_calls += 1
        if self.refuse:
            raise OperationalError("connect", {}, Exception("connection refused"))
        return self.conn


@pytest.fixture
def fake_conn() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def fake_engine(fake_conn: FakeConnection) -> FakeEngine:
    return FakeEngine(fake_conn)


@pytest.fixture
def make_conn():
    """Factory for FakeConnection with custom database state."""
    return FakeConnection


@pytest.fixture
def make_engine():
    """Factory for FakeEngine."""
    return FakeEngine
