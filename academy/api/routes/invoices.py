# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Invoice API endpoints.

This module provides endpoints for:
- GET /invoices - Admins see all invoices, other users their own
- POST /invoices - Issue an invoice (admin)
- PUT /invoices/{invoice_id} - Update or record payment (admin)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from academy.api.dependencies import get_invoice_service, require_admin, require_auth
from academy.api.middleware.auth import CurrentUser
from academy.domains.invoice.service import (
    InvoiceNotFoundError,
    InvoiceService,
    InvoiceStudentNotFoundError,
)
from academy.infrastructure.database.models.invoice import InvoiceStatus
from academy.models.invoice import (
    InvoiceCreateRequest,
    InvoiceListResponse,
    InvoiceResponse,
    InvoiceUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/invoices", response_model=InvoiceListResponse, summary="List invoices")
async def list_invoices(
    student_id: Annotated[int | None, Query(description="Filter by student (admin)")] = None,
    invoice_status: Annotated[InvoiceStatus | None, Query(alias="status")] = None,
    current_user: CurrentUser = Depends(require_auth),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceListResponse:
    if not current_user.is_admin:
        student_id = current_user.id
    items, total = await service.list_invoices(student_id=student_id, status=invoice_status)
    return InvoiceListResponse(items=items, total=total)


@router.post(
    "/invoices",
    response_model=InvoiceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue invoice",
)
async def create_invoice(
    data: InvoiceCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    try:
        return await service.create_invoice(data)
    except InvoiceStudentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put(
    "/invoices/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Update invoice",
    description="Update an invoice. Moving it to paid sends one payment confirmation.",
)
async def update_invoice(
    invoice_id: int,
    data: InvoiceUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceResponse:
    try:
        return await service.update_invoice(invoice_id, data)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
