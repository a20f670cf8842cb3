# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Invoice service for student billing.

This module provides the InvoiceService class for:
- Issuing invoices with a sequence-allocated invoice number
- Updating invoices, including recording payment
- Payment confirmation on the transition into ``paid``

A payment confirmation is sent once per transition: updating an invoice
that is already paid does not send another.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.infrastructure.database.codes import INVOICE_NUMBER_SEQUENCE, next_code
from academy.infrastructure.database.models import (
    Invoice,
    InvoiceStatus,
    User,
    drop_required_nulls,
)
from academy.infrastructure.notifications.events import InvoiceIssued, InvoicePaid
from academy.infrastructure.notifications.fanout import NotificationFanout
from academy.models.invoice import (
    InvoiceCreateRequest,
    InvoiceResponse,
    InvoiceUpdateRequest,
)
from academy.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class InvoiceServiceError(Exception):
    """Base exception for invoice service errors."""


class InvoiceNotFoundError(InvoiceServiceError):
    """Raised when an invoice does not exist."""


class InvoiceStudentNotFoundError(InvoiceServiceError):
    """Raised when the billed student does not exist."""


class InvoiceService:
    """Service for managing invoices.

    Attributes:
        db: Async database session.
        notifier: Notification fan-out.
        number_prefix: Prefix of allocated invoice numbers.
    """

    def __init__(
        self,
        db: AsyncSession,
        notifier: NotificationFanout,
        number_prefix: str = "INV",
    ) -> None:
        self.db = db
        self.notifier = notifier
        self.number_prefix = number_prefix

    async def list_invoices(
        self,
        student_id: int | None = None,
        status: InvoiceStatus | None = None,
    ) -> tuple[list[InvoiceResponse], int]:
        query = select(Invoice)
        if student_id is not None:
            query = query.where(Invoice.student_id == student_id)
        if status is not None:
            query = query.where(Invoice.status == status.value)

        total_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(query.order_by(Invoice.id.desc()))
        invoices = result.scalars().all()
        return [InvoiceResponse.model_validate(invoice) for invoice in invoices], total

    async def get_invoice(self, invoice_id: int) -> Invoice:
        """Get an invoice.

        Raises:
            InvoiceNotFoundError: If the invoice does not exist.
        """
        invoice = await self.db.get(Invoice, invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    async def create_invoice(self, request: InvoiceCreateRequest) -> InvoiceResponse:
        """Issue an invoice.

        The student is told about the invoice. An invoice created as paid
        also gets its payment confirmation.

        Raises:
            InvoiceStudentNotFoundError: If the student does not exist.
        """
        student = await self.db.get(User, request.student_id)
        if student is None or student.is_deleted:
            raise InvoiceStudentNotFoundError(f"Student {request.student_id} not found")

        invoice = Invoice(
            **request.model_dump(exclude={"status"}),
            status=request.status.value,
            invoice_number=await next_code(self.db, self.number_prefix, INVOICE_NUMBER_SEQUENCE),
        )
        if invoice.issue_date is None:
            invoice.issue_date = utc_now().date()
        if request.status == InvoiceStatus.PAID:
            invoice.paid_at = utc_now()

        self.db.add(invoice)
        await self.db.commit()
        await self.db.refresh(invoice)

        logger.info(
            "Issued invoice %s (%s) to student %s: %s %s",
            invoice.invoice_number,
            invoice.id,
            invoice.student_id,
            invoice.currency,
            invoice.amount,
        )

        self.notifier.notify(
            InvoiceIssued(
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                student_id=invoice.student_id,
                amount=invoice.amount,
                currency=invoice.currency,
                due_date=invoice.due_date,
                course_name=invoice.course_name,
            )
        )
        if invoice.status == InvoiceStatus.PAID.value:
            self._confirm_payment(invoice)
        return InvoiceResponse.model_validate(invoice)

    async def update_invoice(
        self, invoice_id: int, request: InvoiceUpdateRequest
    ) -> InvoiceResponse:
        """Update an invoice.

        Moving the status to paid stamps ``paid_at`` and sends one payment
        confirmation to the student.

        Raises:
            InvoiceNotFoundError: If the invoice does not exist.
        """
        invoice = await self.get_invoice(invoice_id)
        was_paid = invoice.status == InvoiceStatus.PAID.value

        changes = drop_required_nulls(Invoice, request.model_dump(exclude_unset=True))
        if "status" in changes:
            changes["status"] = changes["status"].value
        for field, value in changes.items():
            setattr(invoice, field, value)

        became_paid = not was_paid and invoice.status == InvoiceStatus.PAID.value
        if became_paid:
            invoice.paid_at = utc_now()
        elif was_paid and invoice.status != InvoiceStatus.PAID.value:
            invoice.paid_at = None

        await self.db.commit()
        await self.db.refresh(invoice)
        logger.info("Updated invoice %s: %s", invoice.id, sorted(changes))

        if became_paid:
            self._confirm_payment(invoice)
        return InvoiceResponse.model_validate(invoice)

    def _confirm_payment(self, invoice: Invoice) -> None:
        if invoice.student_id is None:
            logger.warning("Paid invoice %s has no student, no confirmation sent", invoice.id)
            return
        self.notifier.notify(
            InvoicePaid(
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                student_id=invoice.student_id,
                amount=invoice.amount,
                currency=invoice.currency,
            )
        )
