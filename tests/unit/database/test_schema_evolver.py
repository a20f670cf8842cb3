# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for SchemaEvolver.

Tests ledger handling, failure isolation and connection setup against a
recording connection.
"""

import pytest
from sqlalchemy import text

from academy.core.config.settings import SchemaSettings
from academy.infrastructure.database.migrations import (
    CodeBackfill,
    MigrationStep,
    SchemaEvolutionError,
    SchemaEvolver,
    SchemaOperation,
    build_steps,
)


class StatementOperation(SchemaOperation):
    """Operation that issues one literal statement."""

    def __init__(self, sql: str) -> None:
        self.sql = sql

    @property
    def description(self) -> str:
        return self.sql

    async def apply(self, conn) -> None:
        await conn.execute(text(self.sql))


def step(name: str, *statements: str, repeatable: bool = False) -> MigrationStep:
    return MigrationStep(
        name,
        tuple(StatementOperation(sql) for sql in statements),
        repeatable=repeatable,
    )


@pytest.fixture
def steps() -> list[MigrationStep]:
    return [
        step("0001_first", "ALTER TABLE a ADD COLUMN IF NOT EXISTS x INTEGER"),
        step("0002_second", "ALTER TABLE b ADD COLUMN IF NOT EXISTS y INTEGER"),
        step("0003_backfill", "UPDATE c SET code = 'X'", repeatable=True),
    ]


class TestSchemaEvolverConnection:
    """Tests for the dedicated connection."""

    @pytest.mark.asyncio
    async def test_uses_autocommit_connection(self, fake_engine, fake_conn, steps) -> None:
        await SchemaEvolver(fake_engine, steps).run()

        assert fake_conn.options == {"isolation_level": "AUTOCOMMIT"}
        assert fake_engine.connect_calls == 1
        assert fake_conn.closed is True

    @pytest.mark.asyncio
    async def test_creates_ledger_before_anything_else(self, fake_engine, fake_conn, steps) -> None:
        await SchemaEvolver(fake_engine, steps).run()

        assert fake_conn.sql[0].startswith("CREATE TABLE IF NOT EXISTS schema_migrations")

    @pytest.mark.asyncio
    async def test_unreachable_database_raises(self, make_engine, steps) -> None:
        engine = make_engine(refuse=True)

        with pytest.raises(SchemaEvolutionError, match="Could not acquire a connection"):
            await SchemaEvolver(engine, steps).run()

    @pytest.mark.asyncio
    async def test_ledger_failure_raises_and_closes(self, make_conn, make_engine, steps) -> None:
        conn = make_conn(fail_on=("CREATE TABLE IF NOT EXISTS schema_migrations",))

        with pytest.raises(SchemaEvolutionError, match="migration ledger"):
            await SchemaEvolver(make_engine(conn), steps).run()

        assert conn.closed is True
        assert not any("ALTER TABLE" in sql for sql in conn.sql)

    def test_duplicate_step_names_rejected(self, fake_engine) -> None:
        with pytest.raises(ValueError):
            SchemaEvolver(fake_engine, [step("0001_a"), step("0001_a")])


class TestSchemaEvolverLedger:
    """Tests for ledger-driven skipping."""

    @pytest.mark.asyncio
    async def test_first_run_applies_and_records_all_steps(
        self, fake_engine, fake_conn, steps
    ) -> None:
        result = await SchemaEvolver(fake_engine, steps).run()

        assert result.applied_steps == ["0001_first", "0002_second", "0003_backfill"]
        assert result.success_count == 3
        assert result.fail_count == 0
        assert result.completed_cleanly is True
        assert fake_conn.ledger == ["0001_first", "0002_second", "0003_backfill"]

    @pytest.mark.asyncio
    async def test_second_run_skips_recorded_steps(self, fake_engine, fake_conn, steps) -> None:
        evolver = SchemaEvolver(fake_engine, steps)
        await evolver.run()
        fake_conn.statements.clear()

        result = await evolver.run()

        assert result.skipped_steps == ["0001_first", "0002_second"]
        assert result.applied_steps == ["0003_backfill"]
        assert not any("ALTER TABLE" in sql for sql in fake_conn.sql)
        assert any(sql.startswith("UPDATE c") for sql in fake_conn.sql)

    @pytest.mark.asyncio
    async def test_force_reapplies_every_step(self, make_conn, make_engine, steps) -> None:
        conn = make_conn(ledger=("0001_first", "0002_second", "0003_backfill"))

        result = await SchemaEvolver(make_engine(conn), steps).run(force=True)

        assert result.skipped_steps == []
        assert len(result.applied_steps) == 3

    @pytest.mark.asyncio
    async def test_ledger_write_records_tallies(self, fake_engine, fake_conn) -> None:
        steps = [step("0001_pair", "SELECT 1", "SELECT 2")]

        await SchemaEvolver(fake_engine, steps).run()

        inserts = [p for sql, p in fake_conn.statements if sql.startswith("INSERT INTO schema_migrations")]
        assert inserts == [{"name": "0001_pair", "success_count": 2, "fail_count": 0}]


class TestSchemaEvolverFailures:
    """Tests for per-statement failure isolation."""

    @pytest.mark.asyncio
    async def test_failed_statement_does_not_stop_the_step(self, make_conn, make_engine) -> None:
        conn = make_conn(fail_on=("broken",))
        steps = [
            step(
                "0001_mixed",
                "ALTER TABLE a ADD COLUMN IF NOT EXISTS ok1 INTEGER",
                "ALTER TABLE broken ADD COLUMN IF NOT EXISTS z INTEGER",
                "ALTER TABLE a ADD COLUMN IF NOT EXISTS ok2 INTEGER",
            ),
            step("0002_after", "ALTER TABLE b ADD COLUMN IF NOT EXISTS y INTEGER"),
        ]

        result = await SchemaEvolver(make_engine(conn), steps).run()

        assert result.success_count == 3
        assert result.fail_count == 1
        assert result.failed_steps == ["0001_mixed"]
        assert result.applied_steps == ["0002_after"]
        assert result.completed_cleanly is False
        assert any("ok2" in sql for sql in conn.sql)

    @pytest.mark.asyncio
    async def test_failed_step_stays_pending(self, make_conn, make_engine) -> None:
        conn = make_conn(fail_on=("broken",))
        steps = [step("0001_broken", "ALTER TABLE broken ADD COLUMN IF NOT EXISTS z INTEGER")]

        await SchemaEvolver(make_engine(conn), steps).run()

        assert conn.ledger == []

    @pytest.mark.asyncio
    async def test_failed_step_retried_next_run(self, make_conn, make_engine) -> None:
        conn = make_conn(fail_on=("broken",))
        steps = [step("0001_broken", "ALTER TABLE broken ADD COLUMN IF NOT EXISTS z INTEGER")]
        evolver = SchemaEvolver(make_engine(conn), steps)

        await evolver.run()
        conn.fail_on = ()
        result = await evolver.run()

        assert result.applied_steps == ["0001_broken"]
        assert conn.ledger == ["0001_broken"]

    @pytest.mark.asyncio
    async def test_ledger_write_failure_is_not_fatal(self, make_conn, make_engine, steps) -> None:
        conn = make_conn(fail_on=("INSERT INTO schema_migrations",))

        result = await SchemaEvolver(make_engine(conn), steps).run()

        assert result.fail_count == 0
        assert len(result.applied_steps) == 3
        assert conn.closed is True


class TestSchemaEvolverStatus:
    """Tests for get_status."""

    @pytest.mark.asyncio
    async def test_status_lists_applied_and_pending(self, make_conn, make_engine, steps) -> None:
        conn = make_conn(ledger=("0001_first",))

        status = await SchemaEvolver(make_engine(conn), steps).get_status()

        assert [entry["name"] for entry in status["applied"]] == ["0001_first"]
        assert status["applied"][0]["applied_at"] == "2025-01-15T09:30:00+00:00"
        assert status["pending"] == ["0002_second", "0003_backfill"]
        assert status["all_steps"] == ["0001_first", "0002_second", "0003_backfill"]
        assert status["is_up_to_date"] is False
        assert conn.closed is True

    @pytest.mark.asyncio
    async def test_status_up_to_date(self, make_conn, make_engine, steps) -> None:
        conn = make_conn(ledger=("0001_first", "0002_second", "0003_backfill"))

        status = await SchemaEvolver(make_engine(conn), steps).get_status()

        assert status["pending"] == []
        assert status["is_up_to_date"] is True


class TestBuildSteps:
    """Tests for the shipped migration steps."""

    def test_step_order(self) -> None:
        names = [s.name for s in build_steps(SchemaSettings())]

        assert names == sorted(names)
        assert names[0] == "0001_base_tables"
        assert names[-2:] == ["0007_user_codes", "0008_invoice_numbers"]

    def test_structural_steps_are_repeatable(self) -> None:
        gated = [s.name for s in build_steps(SchemaSettings()) if not s.repeatable]

        assert gated == ["0006_foreign_keys"]

    def test_backfills_use_configured_prefixes(self) -> None:
        steps = build_steps(SchemaSettings(user_code_prefix="FAA", invoice_prefix="BIL"))
        backfills = [
            op for s in steps for op in s.operations if isinstance(op, CodeBackfill)
        ]

        assert [(op.table, op.prefix) for op in backfills] == [
            ("users", "FAA"),
            ("invoices", "BIL"),
        ]

    @pytest.mark.asyncio
    async def test_shipped_steps_on_empty_database(self, fake_engine, fake_conn) -> None:
        """Foreign keys are skipped when information_schema reports no columns."""
        evolver = SchemaEvolver(fake_engine, build_steps(SchemaSettings()))

        result = await evolver.run()

        assert len(evolver.steps) == 8
        assert result.fail_count == 0
        assert fake_conn.run_sync_calls == 1
        assert not any("ADD CONSTRAINT" in sql for sql in fake_conn.sql)
        assert sum("DROP CONSTRAINT IF EXISTS" in sql for sql in fake_conn.sql) == 5

    @pytest.mark.asyncio
    async def test_recorded_database_still_recreates_dropped_column(
        self, make_conn, make_engine
    ) -> None:
        names = tuple(s.name for s in build_steps(SchemaSettings()))
        conn = make_conn(ledger=names)
        evolver = SchemaEvolver(make_engine(conn), build_steps(SchemaSettings()))

        result = await evolver.run()

        assert result.skipped_steps == ["0006_foreign_keys"]
        assert "ALTER TABLE users ADD COLUMN IF NOT EXISTS status VARCHAR(50) DEFAULT 'active'" in conn.sql
        assert conn.run_sync_calls == 1
        assert not any("DROP CONSTRAINT" in sql for sql in conn.sql)
