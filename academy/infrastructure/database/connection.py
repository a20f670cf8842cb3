# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

A single Database object owns the engine and session factory. It is created
once at application startup and shared by request handlers, the schema
evolver and the notification fan-out.

Uses SQLAlchemy 2.0 async API with asyncpg driver.

Example:
    from academy.infrastructure.database.connection import Database

    database = Database.from_settings(settings)

    async with database.session() as session:
        result = await session.execute(select(User))
        users = result.scalars().all()

    await database.close()
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from academy.core.config.settings import Settings


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class Database:
    """Engine plus session factory for the academy database.

    Attributes:
        engine: The SQLAlchemy async engine.
        sessionmaker: Factory for AsyncSession objects bound to the engine.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Database":
        """Create the connection pool from application settings.

        Args:
            settings: Application settings containing database configuration.

        Returns:
            A ready Database instance.

        Raises:
            DatabaseError: If connection pool creation fails.
        """
        try:
            engine = create_async_engine(
                settings.db.url,
                pool_size=settings.db.pool_size,
                max_overflow=settings.db.max_overflow,
                pool_pre_ping=True,
                pool_recycle=1800,
                echo=False,
            )
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to initialize database connection", e) from e
        return cls(engine)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Get an async session.

        The session is committed on success and rolled back on exception.

        Yields:
            AsyncSession for database operations.

        Raises:
            DatabaseError: If a database operation fails.
        """
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError("Database operation failed", e) from e
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        """Check if the database is reachable.

        Returns:
            True if a trivial query succeeds, False otherwise.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    async def close(self) -> None:
        """Dispose of all pooled connections."""
        await self.engine.dispose()
