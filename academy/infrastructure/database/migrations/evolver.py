# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Boot-time schema evolution.

The SchemaEvolver brings any prior state of the database up to the schema
the application expects. It runs an ordered list of named migration steps
on one dedicated connection held for the whole run. The connection is put
in AUTOCOMMIT, so a failing statement is isolated: it is logged and tallied
and never rolls back what came before it.

Steps that complete without failures are written to the schema_migrations
ledger and skipped on later boots unless they are repeatable. Steps with
failures stay pending and are retried on the next boot.

Example:
    from academy.infrastructure.database.migrations import SchemaEvolver, build_steps

    evolver = SchemaEvolver(database.engine, build_steps(settings.schema_))
    result = await evolver.run()
    logger.info("Schema evolution: %s", result.to_dict())
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from academy.infrastructure.database.migrations.steps import MigrationStep

logger = logging.getLogger(__name__)

LEDGER_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    name VARCHAR(128) PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    success_count INTEGER NOT NULL DEFAULT 0,
    fail_count INTEGER NOT NULL DEFAULT 0
)
"""


class SchemaEvolutionError(Exception):
    """Raised when schema evolution cannot start at all.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying exception.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


@dataclass
class EvolutionResult:
    """Outcome of one evolver run.

    Attributes:
        success_count: Operations applied without error.
        fail_count: Operations that raised.
        applied_steps: Steps run with zero failures.
        skipped_steps: Steps already in the ledger.
        failed_steps: Steps with at least one failed operation.
    """

    success_count: int = 0
    fail_count: int = 0
    applied_steps: list[str] = field(default_factory=list)
    skipped_steps: list[str] = field(default_factory=list)
    failed_steps: list[str] = field(default_factory=list)

    @property
    def completed_cleanly(self) -> bool:
        """True when no operation failed."""
        return self.fail_count == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for logging and API responses."""
        return {
            "success_count": self.success_count,
            "fail_count": self.fail_count,
            "applied_steps": list(self.applied_steps),
            "skipped_steps": list(self.skipped_steps),
            "failed_steps": list(self.failed_steps),
        }


class SchemaEvolver:
    """Applies migration steps idempotently.

    Args:
        engine: Engine used to check out the dedicated connection.
        steps: Ordered migration steps.
    """

    def __init__(self, engine: AsyncEngine, steps: Sequence[MigrationStep]) -> None:
        names = [step.name for step in steps]
        if len(names) != len(set(names)):
            raise ValueError("Migration step names must be unique")
        self._engine = engine
        self._steps = list(steps)

    @property
    def steps(self) -> list[MigrationStep]:
        """The ordered steps this evolver applies."""
        return list(self._steps)

    async def run(self, force: bool = False) -> EvolutionResult:
        """Run all pending steps.

        Args:
            force: Re-apply every step, ignoring the ledger.

        Returns:
            EvolutionResult with tallies and per-step outcome.

        Raises:
            SchemaEvolutionError: If the connection cannot be acquired or
                the ledger table cannot be created.
        """
        conn = await self._connect()
        result = EvolutionResult()

        try:
            before = await self._list_columns(conn)
            applied = await self._applied_names(conn)

            for step in self._steps:
                if step.name in applied and not (force or step.repeatable):
                    result.skipped_steps.append(step.name)
                    continue
                await self._run_step(conn, step, result)

            after = await self._list_columns(conn)
            self._log_column_diff(before, after)
        finally:
            await conn.close()

        logger.info(
            "Schema evolution finished: %d succeeded, %d failed "
            "(applied=%s, skipped=%d, failed=%s)",
            result.success_count,
            result.fail_count,
            result.applied_steps,
            len(result.skipped_steps),
            result.failed_steps,
        )
        return result

    async def get_status(self) -> dict[str, Any]:
        """Describe which steps are applied and which are pending.

        Returns:
            Dict with applied steps (with timestamps and tallies), pending
            step names and whether the schema is up to date.

        Raises:
            SchemaEvolutionError: If the database cannot be reached.
        """
        conn = await self._connect()
        try:
            result = await conn.execute(
                text(
                    "SELECT name, applied_at, success_count, fail_count "
                    "FROM schema_migrations ORDER BY name"
                )
            )
            rows = result.fetchall()
        except SQLAlchemyError as e:
            raise SchemaEvolutionError("Failed to read the migration ledger", e) from e
        finally:
            await conn.close()

        ledger = {row[0]: row for row in rows}
        applied = [
            {
                "name": step.name,
                "applied_at": ledger[step.name][1].isoformat() if ledger[step.name][1] else None,
                "success_count": ledger[step.name][2],
                "fail_count": ledger[step.name][3],
            }
            for step in self._steps
            if step.name in ledger
        ]
        pending = [step.name for step in self._steps if step.name not in ledger]

        return {
            "applied": applied,
            "pending": pending,
            "all_steps": [step.name for step in self._steps],
            "is_up_to_date": not pending,
        }

    async def _connect(self) -> AsyncConnection:
        try:
            conn = await self._engine.connect()
        except (SQLAlchemyError, OSError) as e:
            raise SchemaEvolutionError(
                "Could not acquire a connection for schema evolution", e
            ) from e

        try:
            await conn.execution_options(isolation_level="AUTOCOMMIT")
            await conn.execute(text(LEDGER_DDL))
        except SQLAlchemyError as e:
            await conn.close()
            raise SchemaEvolutionError("Failed to prepare the migration ledger", e) from e
        return conn

    async def _run_step(
        self,
        conn: AsyncConnection,
        step: MigrationStep,
        result: EvolutionResult,
    ) -> None:
        failures = 0
        successes = 0

        for operation in step.operations:
            try:
                await operation.apply(conn)
            except SQLAlchemyError as e:
                failures += 1
                logger.warning(
                    "Step %s: %s failed: %s", step.name, operation.description, e
                )
            else:
                successes += 1
                logger.debug("Step %s: %s applied", step.name, operation.description)

        result.success_count += successes
        result.fail_count += failures

        if failures:
            result.failed_steps.append(step.name)
            logger.warning(
                "Step %s finished with %d failures; it will be retried next boot",
                step.name,
                failures,
            )
            return

        try:
            await conn.execute(
                text(
                    "INSERT INTO schema_migrations (name, success_count, fail_count) "
                    "VALUES (:name, :success_count, :fail_count) "
                    "ON CONFLICT (name) DO UPDATE SET applied_at = NOW(), "
                    "success_count = EXCLUDED.success_count, "
                    "fail_count = EXCLUDED.fail_count"
                ),
                {"name": step.name, "success_count": successes, "fail_count": 0},
            )
        except SQLAlchemyError as e:
            logger.error("Failed to record step %s in the ledger: %s", step.name, e)
        result.applied_steps.append(step.name)
        logger.info("Applied migration step: %s", step.name)

    async def _applied_names(self, conn: AsyncConnection) -> set[str]:
        result = await conn.execute(text("SELECT name FROM schema_migrations"))
        return set(result.scalars().all())

    async def _list_columns(self, conn: AsyncConnection) -> dict[str, list[str]]:
        """Snapshot table columns in the current schema, for diagnostics only."""
        try:
            result = await conn.execute(
                text(
                    "SELECT table_name, column_name FROM information_schema.columns "
                    "WHERE table_schema = current_schema() "
                    "ORDER BY table_name, ordinal_position"
                )
            )
            rows = result.fetchall()
        except SQLAlchemyError as e:
            logger.debug("Column listing unavailable: %s", e)
            return {}

        columns: dict[str, list[str]] = {}
        for table_name, column_name in rows:
            columns.setdefault(table_name, []).append(column_name)
        return columns

    def _log_column_diff(
        self,
        before: dict[str, list[str]],
        after: dict[str, list[str]],
    ) -> None:
        for table_name, columns in sorted(after.items()):
            added = [c for c in columns if c not in before.get(table_name, [])]
            if table_name not in before:
                logger.info("Created table %s (%d columns)", table_name, len(columns))
            elif added:
                logger.info("Added columns to %s: %s", table_name, ", ".join(added))
        logger.debug(
            "Schema now has %d tables, %d columns",
            len(after),
            sum(len(c) for c in after.values()),
        )
