# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from academy.infrastructure.database.models.invoice import InvoiceStatus


class InvoiceCreateRequest(BaseModel):
    """Request to issue an invoice to a student.

    The invoice number is always assigned by the server.
    """

    student_id: int
    course_name: str | None = Field(default=None, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="INR", min_length=3, max_length=10)
    issue_date: date | None = None
    due_date: date | None = None
    billing_period: str | None = Field(default=None, max_length=100)
    status: InvoiceStatus = InvoiceStatus.PENDING
    payment_details: dict[str, Any] | None = None


class InvoiceUpdateRequest(BaseModel):
    """Request to update an invoice. Only set fields are applied."""

    course_name: str | None = Field(default=None, max_length=255)
    amount: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    currency: str | None = Field(default=None, min_length=3, max_length=10)
    issue_date: date | None = None
    due_date: date | None = None
    billing_period: str | None = Field(default=None, max_length=100)
    status: InvoiceStatus | None = None
    payment_details: dict[str, Any] | None = None


class InvoiceResponse(BaseModel):
    """An invoice."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: str | None = None
    student_id: int | None = None
    course_name: str | None = None
    amount: Decimal
    currency: str
    issue_date: date | None = None
    due_date: date | None = None
    billing_period: str | None = None
    status: str
    payment_details: dict[str, Any] | None = None
    paid_at: datetime | None = None
    created_at: datetime | None = None


class InvoiceListResponse(BaseModel):
    """Response for invoice list endpoint."""

    items: list[InvoiceResponse]
    total: int
