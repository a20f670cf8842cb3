# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Demo booking and contact endpoints.

This module provides endpoints for:
- POST /contact - Public contact form
- POST /demo-bookings - Public demo class booking
- GET /demo-bookings - List bookings (admin)
- PUT /demo-bookings/{booking_id} - Update a booking (admin)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from academy.api.dependencies import get_demo_booking_service, require_admin
from academy.api.middleware.auth import CurrentUser
from academy.api.middleware.rate_limit import FORM_LIMIT, limiter
from academy.domains.demo_booking.service import (
    DemoBookingNotFoundError,
    DemoBookingService,
)
from academy.infrastructure.database.models.demo_booking import DemoBookingStatus
from academy.models.common import MessageResponse
from academy.models.demo_booking import (
    ContactRequest,
    DemoBookingCreateRequest,
    DemoBookingListResponse,
    DemoBookingResponse,
    DemoBookingUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/contact", response_model=MessageResponse, summary="Contact form")
@limiter.limit(FORM_LIMIT)
async def submit_contact(
    request: Request,
    data: ContactRequest,
    service: DemoBookingService = Depends(get_demo_booking_service),
) -> MessageResponse:
    await service.submit_contact(data)
    return MessageResponse(message="Message received")


@router.post(
    "/demo-bookings",
    response_model=DemoBookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a demo class",
)
@limiter.limit(FORM_LIMIT)
async def create_demo_booking(
    request: Request,
    data: DemoBookingCreateRequest,
    service: DemoBookingService = Depends(get_demo_booking_service),
) -> DemoBookingResponse:
    return await service.create_booking(data)


@router.get("/demo-bookings", response_model=DemoBookingListResponse, summary="List bookings")
async def list_demo_bookings(
    booking_status: Annotated[DemoBookingStatus | None, Query(alias="status")] = None,
    current_user: CurrentUser = Depends(require_admin),
    service: DemoBookingService = Depends(get_demo_booking_service),
) -> DemoBookingListResponse:
    items, total = await service.list_bookings(status=booking_status)
    return DemoBookingListResponse(items=items, total=total)


@router.put(
    "/demo-bookings/{booking_id}",
    response_model=DemoBookingResponse,
    summary="Update booking",
    description="Update a booking. A new confirmed, cancelled or completed status emails the guest.",
)
async def update_demo_booking(
    booking_id: int,
    data: DemoBookingUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: DemoBookingService = Depends(get_demo_booking_service),
) -> DemoBookingResponse:
    try:
        return await service.update_booking(booking_id, data)
    except DemoBookingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
