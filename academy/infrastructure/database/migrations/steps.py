# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Ordered migration steps.

Steps are additive only: a later release appends a new step, it never
adds descriptors to a shipped step and never drops or renames a column
through this mechanism. Step names are recorded in the schema_migrations
ledger once they apply without a single failure (must be maintained
manually, in order).

Table, column and backfill steps are repeatable: they run on every boot,
so a table or column removed by a restore is recreated and restored rows
still receive codes. Only the foreign key rebuild is gated by the ledger.
"""

from dataclasses import dataclass, field

from academy.core.config.settings import SchemaSettings
from academy.infrastructure.database.codes import INVOICE_NUMBER_SEQUENCE, USER_CODE_SEQUENCE
from academy.infrastructure.database.migrations.operations import (
    CodeBackfill,
    ColumnDescriptor,
    ForeignKeyFix,
    ModelTables,
    SchemaOperation,
    TableDDL,
)


@dataclass(frozen=True)
class MigrationStep:
    """A named group of idempotent operations.

    Attributes:
        name: Ledger key, e.g. ``0003_user_columns``.
        operations: Operations applied in order.
        repeatable: Run on every boot even when already in the ledger.
    """

    name: str
    operations: tuple[SchemaOperation, ...] = field(default_factory=tuple)
    repeatable: bool = False


FCM_TOKENS_DDL = """
CREATE TABLE IF NOT EXISTS fcm_tokens (
    id SERIAL PRIMARY KEY,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    fcm_token TEXT NOT NULL,
    device_type VARCHAR(20),
    is_active BOOLEAN NOT NULL DEFAULT true,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CONSTRAINT fcm_tokens_user_id_fcm_token_key UNIQUE (user_id, fcm_token)
)
"""

SALARIES_DDL = """
CREATE TABLE IF NOT EXISTS salaries (
    id SERIAL PRIMARY KEY,
    teacher_id INTEGER REFERENCES users(id) ON DELETE CASCADE,
    base_salary DECIMAL(10,2) NOT NULL DEFAULT 0,
    payment_frequency VARCHAR(20) DEFAULT 'monthly',
    effective_date DATE,
    is_active BOOLEAN DEFAULT true,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    updated_at TIMESTAMPTZ DEFAULT NOW()
)
"""

SALARY_PAYMENTS_DDL = """
CREATE TABLE IF NOT EXISTS salary_payments (
    id SERIAL PRIMARY KEY,
    salary_id INTEGER REFERENCES salaries(id) ON DELETE CASCADE,
    teacher_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
    amount DECIMAL(10,2) NOT NULL,
    payment_date DATE,
    payment_period VARCHAR(100),
    payment_method VARCHAR(50),
    status VARCHAR(50) DEFAULT 'paid',
    notes TEXT,
    created_at TIMESTAMPTZ DEFAULT NOW()
)
"""

NOTIFICATIONS_DDL = """
CREATE TABLE IF NOT EXISTS notifications (
    id SERIAL PRIMARY KEY,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title VARCHAR(255) NOT NULL,
    message TEXT NOT NULL,
    type VARCHAR(50) DEFAULT 'Info'
        CONSTRAINT notifications_type_check
        CHECK (type IN ('Info', 'Warning', 'Success', 'Error')),
    is_read BOOLEAN NOT NULL DEFAULT false,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""

EVENT_NOTIFICATIONS_DDL = """
CREATE TABLE IF NOT EXISTS event_notifications (
    id SERIAL PRIMARY KEY,
    event_id INTEGER REFERENCES events(id) ON DELETE CASCADE,
    user_id INTEGER REFERENCES users(id) ON DELETE CASCADE,
    is_read BOOLEAN DEFAULT false,
    created_at TIMESTAMPTZ DEFAULT NOW(),
    CONSTRAINT event_notifications_event_user_key UNIQUE (event_id, user_id)
)
"""

TIMESTAMP_DEFAULT = "TIMESTAMPTZ DEFAULT NOW()"


def _timestamps(table: str) -> list[ColumnDescriptor]:
    return [
        ColumnDescriptor(table, "created_at", TIMESTAMP_DEFAULT),
        ColumnDescriptor(table, "updated_at", TIMESTAMP_DEFAULT),
    ]


def build_steps(settings: SchemaSettings) -> list[MigrationStep]:
    """Build the ordered migration steps.

    Args:
        settings: Schema settings carrying the code prefixes.

    Returns:
        Steps in application order.
    """
    return [
        MigrationStep("0001_base_tables", (ModelTables(),), repeatable=True),
        MigrationStep(
            "0002_auxiliary_tables",
            (
                TableDDL("fcm_tokens", FCM_TOKENS_DDL),
                TableDDL("salaries", SALARIES_DDL),
                TableDDL("salary_payments", SALARY_PAYMENTS_DDL),
                TableDDL("notifications", NOTIFICATIONS_DDL),
                TableDDL("event_notifications", EVENT_NOTIFICATIONS_DDL),
            ),
            repeatable=True,
        ),
        MigrationStep(
            "0003_user_columns",
            (
                ColumnDescriptor("users", "user_code", "VARCHAR(50)"),
                ColumnDescriptor("users", "status", "VARCHAR(50) DEFAULT 'active'"),
                ColumnDescriptor("users", "is_deleted", "BOOLEAN DEFAULT false"),
                ColumnDescriptor("users", "class_preference", "VARCHAR(20) DEFAULT 'Hybrid'"),
                ColumnDescriptor("users", "contact_number", "VARCHAR(20)"),
                ColumnDescriptor("users", "address", "TEXT"),
                *_timestamps("users"),
            ),
            repeatable=True,
        ),
        MigrationStep(
            "0004_content_columns",
            (
                ColumnDescriptor("courses", "image", "TEXT"),
                *_timestamps("courses"),
                ColumnDescriptor("batches", "student_ids", "INTEGER[] DEFAULT '{}'"),
                ColumnDescriptor("batches", "max_students", "INTEGER"),
                ColumnDescriptor("batches", "mode", "VARCHAR(50) DEFAULT 'Hybrid'"),
                *_timestamps("batches"),
                ColumnDescriptor("events", "is_active", "BOOLEAN DEFAULT true"),
                ColumnDescriptor("events", "is_public", "BOOLEAN DEFAULT false"),
                ColumnDescriptor("events", "recipient_ids", "INTEGER[]"),
                ColumnDescriptor("events", "image_url", "TEXT"),
                *_timestamps("events"),
                ColumnDescriptor("grade_exams", "exam_date", "DATE"),
                ColumnDescriptor("grade_exams", "exam_time", "TIME"),
                ColumnDescriptor("grade_exams", "recipient_ids", "INTEGER[]"),
                *_timestamps("grade_exams"),
                ColumnDescriptor("book_materials", "file_type", "VARCHAR(50)"),
                ColumnDescriptor("book_materials", "recipient_ids", "INTEGER[]"),
                *_timestamps("book_materials"),
                ColumnDescriptor("notices", "expiry_date", "DATE"),
                ColumnDescriptor("notices", "recipient_ids", "INTEGER[]"),
                ColumnDescriptor("notices", "is_active", "BOOLEAN DEFAULT true"),
                *_timestamps("notices"),
                ColumnDescriptor("demo_bookings", "status", "VARCHAR(50) DEFAULT 'pending'"),
                *_timestamps("demo_bookings"),
                ColumnDescriptor("notifications", "type", "VARCHAR(50) DEFAULT 'Info'"),
                ColumnDescriptor("notifications", "is_read", "BOOLEAN DEFAULT false"),
            ),
            repeatable=True,
        ),
        MigrationStep(
            "0005_invoice_columns",
            (
                ColumnDescriptor("invoices", "invoice_number", "VARCHAR(50)"),
                ColumnDescriptor("invoices", "currency", "VARCHAR(10) DEFAULT 'INR'"),
                ColumnDescriptor("invoices", "payment_details", "JSONB"),
                ColumnDescriptor("invoices", "paid_at", "TIMESTAMPTZ"),
                *_timestamps("invoices"),
            ),
            repeatable=True,
        ),
        MigrationStep(
            "0006_foreign_keys",
            (
                ForeignKeyFix("batches", "batches_teacher_id_fkey", "teacher_id", "users"),
                ForeignKeyFix("batches", "batches_course_id_fkey", "course_id", "courses"),
                ForeignKeyFix("invoices", "invoices_student_id_fkey", "student_id", "users"),
                ForeignKeyFix(
                    "notifications",
                    "notifications_user_id_fkey",
                    "user_id",
                    "users",
                    on_delete="CASCADE",
                ),
                ForeignKeyFix(
                    "fcm_tokens",
                    "fcm_tokens_user_id_fkey",
                    "user_id",
                    "users",
                    on_delete="CASCADE",
                ),
            ),
        ),
        MigrationStep(
            "0007_user_codes",
            (
                CodeBackfill(
                    "users", "user_code", settings.user_code_prefix, USER_CODE_SEQUENCE
                ),
            ),
            repeatable=True,
        ),
        MigrationStep(
            "0008_invoice_numbers",
            (
                CodeBackfill(
                    "invoices",
                    "invoice_number",
                    settings.invoice_prefix,
                    INVOICE_NUMBER_SEQUENCE,
                ),
            ),
            repeatable=True,
        ),
    ]
