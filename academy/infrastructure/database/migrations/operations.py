# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Idempotent schema operations.

Every operation can be applied any number of times against any prior state
of the schema. Operations run on the evolver's dedicated AUTOCOMMIT
connection, so each statement stands on its own: a failure never undoes
earlier statements.

Table, column, constraint and sequence names are code constants, not user
input. They are still checked against a plain identifier pattern because
DDL cannot take bind parameters.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from academy.infrastructure.database.codes import format_code
from academy.infrastructure.database.models import Base

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

OnDeleteAction = Literal["CASCADE", "SET NULL", "RESTRICT", "NO ACTION"]


def _check_identifier(*names: str) -> None:
    for name in names:
        if not _IDENTIFIER.match(name):
            raise ValueError(f"Invalid SQL identifier: {name!r}")


class SchemaOperation(ABC):
    """One independently idempotent schema change."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Short label used in logs."""
        ...

    @abstractmethod
    async def apply(self, conn: AsyncConnection) -> None:
        """Apply the operation.

        Args:
            conn: The evolver's dedicated connection.

        Raises:
            SQLAlchemyError: If a statement fails. The evolver isolates it.
        """
        ...


class ModelTables(SchemaOperation):
    """Create any ORM-mapped table that does not exist yet."""

    @property
    def description(self) -> str:
        return "create mapped tables"

    async def apply(self, conn: AsyncConnection) -> None:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)


@dataclass(frozen=True)
class ColumnDescriptor(SchemaOperation):
    """Ensure a column exists.

    Attributes:
        table: Table name.
        column: Column name.
        definition: Type and default, e.g. ``BOOLEAN DEFAULT false``.
    """

    table: str
    column: str
    definition: str

    def __post_init__(self) -> None:
        _check_identifier(self.table, self.column)

    @property
    def description(self) -> str:
        return f"column {self.table}.{self.column}"

    async def apply(self, conn: AsyncConnection) -> None:
        await conn.execute(
            text(
                f"ALTER TABLE {self.table} "
                f"ADD COLUMN IF NOT EXISTS {self.column} {self.definition}"
            )
        )


@dataclass(frozen=True)
class TableDDL(SchemaOperation):
    """Ensure an auxiliary table exists.

    Attributes:
        table: Table name, for logging.
        ddl: A ``CREATE TABLE IF NOT EXISTS`` statement.
    """

    table: str
    ddl: str

    def __post_init__(self) -> None:
        _check_identifier(self.table)
        if "IF NOT EXISTS" not in self.ddl.upper():
            raise ValueError(f"DDL for {self.table} must use CREATE TABLE IF NOT EXISTS")

    @property
    def description(self) -> str:
        return f"table {self.table}"

    async def apply(self, conn: AsyncConnection) -> None:
        await conn.execute(text(self.ddl))


@dataclass(frozen=True)
class ForeignKeyFix(SchemaOperation):
    """Recreate a named foreign key with the desired ON DELETE action.

    The constraint is dropped if present and re-added only when both the
    referencing and the referenced column still exist. A restore from an
    older backup may have removed either one.
    """

    table: str
    constraint: str
    column: str
    ref_table: str
    ref_column: str = "id"
    on_delete: OnDeleteAction = "SET NULL"

    def __post_init__(self) -> None:
        _check_identifier(
            self.table, self.constraint, self.column, self.ref_table, self.ref_column
        )

    @property
    def description(self) -> str:
        return f"foreign key {self.table}.{self.constraint}"

    async def apply(self, conn: AsyncConnection) -> None:
        await conn.execute(
            text(
                f"ALTER TABLE IF EXISTS {self.table} "
                f"DROP CONSTRAINT IF EXISTS {self.constraint}"
            )
        )

        if not await _column_exists(conn, self.table, self.column):
            logger.warning(
                "Skipping %s: column %s.%s is missing",
                self.constraint,
                self.table,
                self.column,
            )
            return
        if not await _column_exists(conn, self.ref_table, self.ref_column):
            logger.warning(
                "Skipping %s: referenced column %s.%s is missing",
                self.constraint,
                self.ref_table,
                self.ref_column,
            )
            return

        await conn.execute(
            text(
                f"ALTER TABLE {self.table} ADD CONSTRAINT {self.constraint} "
                f"FOREIGN KEY ({self.column}) "
                f"REFERENCES {self.ref_table}({self.ref_column}) "
                f"ON DELETE {self.on_delete}"
            )
        )


@dataclass(frozen=True)
class CodeBackfill(SchemaOperation):
    """Assign PREFIX-YEAR-NNNN codes to rows that lack one.

    The sequence is the only source of the numeric suffix. It is first
    advanced past any suffix already present in the column, then rows are
    numbered in id order, one UPDATE per row.

    Attributes:
        table: Table holding the code column.
        column: Code column.
        prefix: Code prefix such as ACD or INV.
        sequence: Sequence name.
    """

    table: str
    column: str
    prefix: str
    sequence: str

    def __post_init__(self) -> None:
        _check_identifier(self.table, self.column, self.sequence)

    @property
    def description(self) -> str:
        return f"backfill {self.table}.{self.column}"

    async def apply(self, conn: AsyncConnection) -> None:
        await conn.execute(text(f"CREATE SEQUENCE IF NOT EXISTS {self.sequence} START 1"))

        result = await conn.execute(
            text(
                f"SELECT COALESCE(MAX(CAST(SUBSTRING({self.column} FROM '([0-9]+)$') AS INTEGER)), 0) "
                f"FROM {self.table} WHERE {self.column} LIKE :pattern"
            ),
            {"pattern": f"{self.prefix}-%"},
        )
        highest = int(result.scalar() or 0)
        if highest > 0:
            await conn.execute(
                text(
                    f"SELECT setval('{self.sequence}', "
                    f"GREATEST(:highest, (SELECT last_value FROM {self.sequence})))"
                ),
                {"highest": highest},
            )

        result = await conn.execute(
            text(
                f"SELECT id FROM {self.table} "
                f"WHERE {self.column} IS NULL OR {self.column} = '' ORDER BY id"
            )
        )
        row_ids = [row[0] for row in result.fetchall()]
        if not row_ids:
            return

        for row_id in row_ids:
            number = await conn.execute(text(f"SELECT nextval('{self.sequence}')"))
            await conn.execute(
                text(f"UPDATE {self.table} SET {self.column} = :code WHERE id = :id"),
                {"code": format_code(self.prefix, int(number.scalar_one())), "id": row_id},
            )

        logger.info(
            "Backfilled %d %s.%s values", len(row_ids), self.table, self.column
        )


async def _column_exists(conn: AsyncConnection, table: str, column: str) -> bool:
    result = await conn.execute(
        text(
            "SELECT 1 FROM information_schema.columns "
            "WHERE table_schema = current_schema() "
            "AND table_name = :table AND column_name = :column"
        ),
        {"table": table, "column": column},
    )
    return result.first() is not None
