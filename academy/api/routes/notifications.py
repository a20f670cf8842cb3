# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification feed and device token endpoints.

This module provides endpoints for:
- GET /notifications - Own notifications
- PUT /notifications/read-all - Mark all own notifications read
- PUT /notifications/{notification_id}/read - Mark one read
- POST /fcm-tokens - Register a push device token
- DELETE /fcm-tokens - Deactivate a push device token
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from academy.api.dependencies import get_notification_service, require_auth
from academy.api.middleware.auth import CurrentUser
from academy.domains.notification.service import (
    NotificationNotFoundError,
    NotificationService,
)
from academy.models.common import MessageResponse
from academy.models.notification import (
    FCMTokenDeleteRequest,
    FCMTokenRequest,
    NotificationListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/notifications", response_model=NotificationListResponse, summary="My notifications")
async def list_notifications(
    unread_only: Annotated[bool, Query(description="Only unread notifications")] = False,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    return await service.list_notifications(
        current_user.id, unread_only=unread_only, limit=limit
    )


@router.put("/notifications/read-all", response_model=MessageResponse, summary="Mark all read")
async def mark_all_read(
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    count = await service.mark_all_read(current_user.id)
    return MessageResponse(message=f"{count} notifications marked as read")


@router.put(
    "/notifications/{notification_id}/read",
    response_model=MessageResponse,
    summary="Mark read",
)
async def mark_read(
    notification_id: int,
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    try:
        await service.mark_read(current_user.id, notification_id)
    except NotificationNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MessageResponse(message="Notification marked as read")


@router.post("/fcm-tokens", response_model=MessageResponse, summary="Register push token")
async def register_fcm_token(
    data: FCMTokenRequest,
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    await service.register_token(current_user.id, data)
    return MessageResponse(message="Push token registered")


@router.delete("/fcm-tokens", response_model=MessageResponse, summary="Deactivate push token")
async def deactivate_fcm_token(
    data: Annotated[FCMTokenDeleteRequest, Body()],
    current_user: CurrentUser = Depends(require_auth),
    service: NotificationService = Depends(get_notification_service),
) -> MessageResponse:
    deactivated = await service.deactivate_token(current_user.id, data.fcm_token)
    if not deactivated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Push token not found")
    return MessageResponse(message="Push token deactivated")
