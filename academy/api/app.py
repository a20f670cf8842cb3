# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI application factory.

This module provides the main application factory for the academy API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from academy import __version__
from academy.api.middleware.auth import AuthMiddleware
from academy.api.middleware.rate_limit import limiter, rate_limit_exceeded_handler
from academy.api.routes import health
from academy.api.routes import router as api_router
from academy.core.config import get_settings
from academy.core.config.settings import Settings
from academy.domains.auth.jwt import JWTManager
from academy.domains.auth.password import PasswordHasher
from academy.infrastructure.database.connection import Database, DatabaseError
from academy.infrastructure.database.migrations import (
    SchemaEvolutionError,
    SchemaEvolver,
    build_steps,
)
from academy.infrastructure.notifications import build_fanout
from academy.utils.logging import setup_logging

logger = logging.getLogger(__name__)


async def evolve_schema(app: FastAPI, database: Database, settings: Settings) -> None:
    """Bring the schema up to date and keep the result for diagnostics.

    Statement failures are tallied by the evolver. A database that cannot
    be reached is logged and retried on the next boot.
    """
    evolver = SchemaEvolver(database.engine, build_steps(settings.schema_))
    app.state.schema_evolver = evolver

    try:
        result = await evolver.run()
    except SchemaEvolutionError as e:
        logger.error("Schema evolution could not run: %s", e)
        return

    app.state.schema_result = result
    if result.completed_cleanly:
        logger.info("Schema up to date: %s", result.to_dict())
    else:
        logger.warning("Schema evolution finished with failures: %s", result.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup builds the database handle, evolves the schema and starts the
    notification workers. Shutdown drains the notification queue and
    closes the connection pool.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    setup_logging(settings)
    logger.info(
        "Starting %s API (environment=%s, debug=%s)",
        settings.app_name,
        settings.environment,
        settings.debug,
    )

    # =========================================================================
    # Startup
    # =========================================================================

    database = Database.from_settings(settings)
    app.state.database = database

    if settings.schema_.run_on_startup:
        await evolve_schema(app, database, settings)
    else:
        app.state.schema_evolver = SchemaEvolver(database.engine, build_steps(settings.schema_))
        logger.info("Schema evolution disabled on startup")

    fanout = build_fanout(settings, database)
    await fanout.start()
    app.state.fanout = fanout

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    await fanout.stop()
    await database.close()
    logger.info("Shut down %s API", settings.app_name)


async def database_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Turn unhandled database failures of a primary write into a 500."""
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "A database error occurred."},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; defaults to the cached environment settings.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Back office and notification backend for a fine-arts academy",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.settings = settings
    app.state.limiter = limiter
    app.state.jwt_manager = JWTManager(settings.jwt)
    app.state.password_hasher = PasswordHasher()

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    # =========================================================================
    # Middleware (last added is first executed)
    # =========================================================================
    app.add_middleware(AuthMiddleware, settings=settings.jwt)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(api_router)

    return app
