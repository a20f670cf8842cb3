# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content publishing endpoints.

Admins publish events, grade exams, study materials and notices. Each
publish is announced to its recipients after the row is stored.
"""

from fastapi import APIRouter, Depends, status

from academy.api.dependencies import get_content_service, require_admin
from academy.api.middleware.auth import CurrentUser
from academy.domains.content.service import ContentService
from academy.models.content import (
    BookMaterialCreateRequest,
    BookMaterialResponse,
    EventCreateRequest,
    EventResponse,
    GradeExamCreateRequest,
    GradeExamResponse,
    NoticeCreateRequest,
    NoticeResponse,
)

router = APIRouter()


@router.post(
    "/events",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish event",
)
async def create_event(
    data: EventCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service),
) -> EventResponse:
    return await service.create_event(data)


@router.post(
    "/grade-exams",
    response_model=GradeExamResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule grade exam",
)
async def create_grade_exam(
    data: GradeExamCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service),
) -> GradeExamResponse:
    return await service.create_grade_exam(data)


@router.post(
    "/book-materials",
    response_model=BookMaterialResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Share study material",
)
async def create_book_material(
    data: BookMaterialCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service),
) -> BookMaterialResponse:
    return await service.create_book_material(data)


@router.post(
    "/notices",
    response_model=NoticeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post notice",
)
async def create_notice(
    data: NoticeCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: ContentService = Depends(get_content_service),
) -> NoticeResponse:
    return await service.create_notice(data)
