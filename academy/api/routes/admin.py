# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Admin operations endpoints.

This module provides endpoints for:
- POST /admin/notifications - Send a message to selected users
- GET /admin/notifications/stats - Fan-out counters and channel state
- GET /admin/schema/status - Schema ledger status
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from academy.api.dependencies import get_fanout, get_notification_service, require_admin
from academy.api.middleware.auth import CurrentUser
from academy.domains.notification.service import NotificationService
from academy.infrastructure.database.migrations import SchemaEvolutionError, SchemaEvolver
from academy.infrastructure.notifications.fanout import NotificationFanout
from academy.models.notification import (
    AdminNotificationRequest,
    NotificationQueuedResponse,
    NotificationStatsResponse,
    SchemaStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/admin/notifications",
    response_model=NotificationQueuedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Send notification",
)
async def send_notification(
    data: AdminNotificationRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationQueuedResponse:
    recipients = service.send_admin_message(data)
    return NotificationQueuedResponse(queued=True, recipients=recipients)


@router.get(
    "/admin/notifications/stats",
    response_model=NotificationStatsResponse,
    summary="Notification fan-out statistics",
)
async def notification_stats(
    current_user: CurrentUser = Depends(require_admin),
    fanout: NotificationFanout = Depends(get_fanout),
) -> NotificationStatsResponse:
    return NotificationStatsResponse(
        running=fanout.is_running,
        queue_depth=fanout.queue_depth,
        email_configured=fanout.email_configured,
        push_configured=fanout.push_configured,
        stats=fanout.stats.to_dict(),
    )


@router.get(
    "/admin/schema/status",
    response_model=SchemaStatusResponse,
    summary="Schema migration status",
)
async def schema_status(
    request: Request,
    current_user: CurrentUser = Depends(require_admin),
) -> SchemaStatusResponse:
    evolver: SchemaEvolver | None = getattr(request.app.state, "schema_evolver", None)
    if evolver is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Schema evolver not initialized",
        )

    try:
        ledger = await evolver.get_status()
    except SchemaEvolutionError as e:
        logger.error("Schema status unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Schema status unavailable",
        )

    last_run = getattr(request.app.state, "schema_result", None)
    return SchemaStatusResponse(
        **ledger,
        last_run=last_run.to_dict() if last_run else None,
    )
