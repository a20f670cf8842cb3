# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Demo booking service for trial class requests and the contact form.

This module provides the DemoBookingService class for:
- Public demo bookings, acknowledged to the guest and announced to admins
- Admin status changes, each with its own message to the guest
- Contact form submissions
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.infrastructure.database.models import Contact, DemoBooking, DemoBookingStatus
from academy.infrastructure.notifications.events import (
    DemoBookingReceived,
    DemoStatusChanged,
)
from academy.infrastructure.notifications.fanout import NotificationFanout
from academy.models.demo_booking import (
    ContactRequest,
    ContactResponse,
    DemoBookingCreateRequest,
    DemoBookingResponse,
    DemoBookingUpdateRequest,
)

logger = logging.getLogger(__name__)


class DemoBookingServiceError(Exception):
    """Base exception for demo booking service errors."""


class DemoBookingNotFoundError(DemoBookingServiceError):
    """Raised when a booking does not exist."""


class DemoBookingService:
    """Service for demo bookings and contact messages.

    Attributes:
        db: Async database session.
        notifier: Notification fan-out.
    """

    def __init__(self, db: AsyncSession, notifier: NotificationFanout) -> None:
        self.db = db
        self.notifier = notifier

    async def create_booking(self, request: DemoBookingCreateRequest) -> DemoBookingResponse:
        """Record a public demo booking."""
        booking = DemoBooking(
            **request.model_dump(exclude={"email"}),
            email=request.email.lower(),
            status=DemoBookingStatus.PENDING.value,
        )
        self.db.add(booking)
        await self.db.commit()
        await self.db.refresh(booking)

        logger.info("Demo booking %s for %s (%s)", booking.id, booking.student_name, booking.course)

        self.notifier.notify(
            DemoBookingReceived(
                booking_id=booking.id,
                student_name=booking.student_name,
                email=booking.email,
                phone=booking.phone,
                course=booking.course,
                preferred_date=booking.preferred_date,
            )
        )
        return DemoBookingResponse.model_validate(booking)

    async def list_bookings(
        self, status: DemoBookingStatus | None = None
    ) -> tuple[list[DemoBookingResponse], int]:
        query = select(DemoBooking)
        if status is not None:
            query = query.where(DemoBooking.status == status.value)

        total_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(query.order_by(DemoBooking.id.desc()))
        bookings = result.scalars().all()
        return [DemoBookingResponse.model_validate(b) for b in bookings], total

    async def update_booking(
        self, booking_id: int, request: DemoBookingUpdateRequest
    ) -> DemoBookingResponse:
        """Update a booking.

        A change into confirmed, cancelled or completed sends the matching
        message to the guest. Re-saving the same status sends nothing.

        Raises:
            DemoBookingNotFoundError: If the booking does not exist.
        """
        booking = await self.db.get(DemoBooking, booking_id)
        if booking is None:
            raise DemoBookingNotFoundError(f"Demo booking {booking_id} not found")

        previous_status = booking.status
        changes = request.model_dump(exclude_unset=True)
        if changes.get("status") is not None:
            changes["status"] = changes["status"].value
        else:
            changes.pop("status", None)
        for field, value in changes.items():
            setattr(booking, field, value)

        await self.db.commit()
        await self.db.refresh(booking)
        logger.info("Updated demo booking %s: %s", booking.id, sorted(changes))

        if booking.status != previous_status and DemoStatusChanged.notifies(booking.status):
            self.notifier.notify(
                DemoStatusChanged(
                    booking_id=booking.id,
                    student_name=booking.student_name,
                    email=booking.email,
                    status=booking.status,
                    course=booking.course,
                    preferred_date=booking.preferred_date,
                )
            )
        return DemoBookingResponse.model_validate(booking)

    async def submit_contact(self, request: ContactRequest) -> ContactResponse:
        contact = Contact(name=request.name, email=request.email.lower(), message=request.message)
        self.db.add(contact)
        await self.db.commit()
        await self.db.refresh(contact)

        logger.info("Contact message %s from %s", contact.id, contact.email)
        return ContactResponse.model_validate(contact)
