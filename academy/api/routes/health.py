# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Health check endpoints.

This module provides health and liveness endpoints for the API.
"""

import logging
import time
from datetime import datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from academy import __version__
from academy.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


class ComponentHealth(BaseModel):
    """Individual component health status."""

    status: str = Field(description="Component status")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    message: str | None = Field(None, description="Additional status message")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(description="Current server timestamp")
    version: str = Field(description="API version")
    environment: str = Field(description="Deployment environment")
    uptime_seconds: int = Field(description="Server uptime in seconds")
    components: dict[str, ComponentHealth] = Field(default_factory=dict)


async def check_database(request: Request) -> ComponentHealth:
    """Check PostgreSQL connectivity."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        return ComponentHealth(status="unhealthy", message="Database not initialized")

    start = time.time()
    if not await database.check_connection():
        return ComponentHealth(status="unhealthy", message="Database unreachable")
    latency = (time.time() - start) * 1000
    return ComponentHealth(status="healthy", latency_ms=round(latency, 2))


def check_notifications(request: Request) -> ComponentHealth:
    """Report the fan-out workers and degraded channels."""
    fanout = getattr(request.app.state, "fanout", None)
    if fanout is None:
        return ComponentHealth(status="unhealthy", message="Notifications not initialized")

    degraded = []
    if not fanout.email_configured:
        degraded.append("email in test mode")
    if not fanout.push_configured:
        degraded.append("push disabled")
    if not fanout.is_running:
        return ComponentHealth(status="unhealthy", message="Workers not running")
    if degraded:
        return ComponentHealth(status="degraded", message=", ".join(degraded))
    return ComponentHealth(status="healthy")


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Overall health with database and notification components.

    Degraded notification channels do not make the service unhealthy.
    """
    settings = request.app.state.settings
    components = {
        "database": await check_database(request),
        "notifications": check_notifications(request),
    }
    overall = "healthy"
    if any(c.status == "unhealthy" for c in components.values()):
        overall = "unhealthy"

    return HealthResponse(
        status=overall,
        timestamp=utc_now(),
        version=__version__,
        environment=settings.environment,
        uptime_seconds=int(time.time() - _server_start_time),
        components=components,
    )


@router.get("/health/live")
async def liveness() -> dict[str, str]:
    return {"status": "alive"}
