# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schema evolution for the academy database.

Example:
    from academy.infrastructure.database.migrations import SchemaEvolver, build_steps

    result = await SchemaEvolver(engine, build_steps(settings.schema_)).run()
"""

from academy.infrastructure.database.migrations.evolver import (
    EvolutionResult,
    SchemaEvolutionError,
    SchemaEvolver,
)
from academy.infrastructure.database.migrations.operations import (
    CodeBackfill,
    ColumnDescriptor,
    ForeignKeyFix,
    ModelTables,
    SchemaOperation,
    TableDDL,
)
from academy.infrastructure.database.migrations.steps import MigrationStep, build_steps

__all__ = [
    "SchemaEvolver",
    "EvolutionResult",
    "SchemaEvolutionError",
    "MigrationStep",
    "build_steps",
    "SchemaOperation",
    "ModelTables",
    "ColumnDescriptor",
    "TableDDL",
    "ForeignKeyFix",
    "CodeBackfill",
]
