# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course and batch API endpoints.

Listing courses is public; every other operation requires an admin.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from academy.api.dependencies import get_batch_service, get_course_service, require_admin
from academy.api.middleware.auth import CurrentUser
from academy.domains.batch.service import (
    BatchCapacityError,
    BatchNotFoundError,
    BatchService,
)
from academy.domains.course.service import CourseNotFoundError, CourseService
from academy.models.common import MessageResponse
from academy.models.course import (
    BatchCreateRequest,
    BatchResponse,
    BatchUpdateRequest,
    CourseCreateRequest,
    CourseResponse,
    CourseUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/courses", response_model=list[CourseResponse], summary="List courses")
async def list_courses(
    service: CourseService = Depends(get_course_service),
) -> list[CourseResponse]:
    return await service.list_courses()


@router.post(
    "/courses",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(
    data: CourseCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: CourseService = Depends(get_course_service),
) -> CourseResponse:
    return await service.create_course(data)


@router.put("/courses/{course_id}", response_model=CourseResponse, summary="Update course")
async def update_course(
    course_id: int,
    data: CourseUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: CourseService = Depends(get_course_service),
) -> CourseResponse:
    try:
        return await service.update_course(course_id, data)
    except CourseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.delete("/courses/{course_id}", response_model=MessageResponse, summary="Delete course")
async def delete_course(
    course_id: int,
    current_user: CurrentUser = Depends(require_admin),
    service: CourseService = Depends(get_course_service),
) -> MessageResponse:
    try:
        await service.delete_course(course_id)
    except CourseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MessageResponse(message="Course deleted")


# =========================================================================
# Batches
# =========================================================================


@router.get("/batches", response_model=list[BatchResponse], summary="List batches")
async def list_batches(
    course_id: Annotated[int | None, Query(description="Filter by course")] = None,
    current_user: CurrentUser = Depends(require_admin),
    service: BatchService = Depends(get_batch_service),
) -> list[BatchResponse]:
    return await service.list_batches(course_id=course_id)


@router.post(
    "/batches",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create batch",
    description="Create a batch. Every initial student is notified of the allocation.",
)
async def create_batch(
    data: BatchCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: BatchService = Depends(get_batch_service),
) -> BatchResponse:
    try:
        return await service.create_batch(data)
    except BatchCapacityError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.put(
    "/batches/{batch_id}",
    response_model=BatchResponse,
    summary="Update batch",
    description="Update a batch. Only students new to the roster are notified.",
)
async def update_batch(
    batch_id: int,
    data: BatchUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: BatchService = Depends(get_batch_service),
) -> BatchResponse:
    try:
        return await service.update_batch(batch_id, data)
    except BatchNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BatchCapacityError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/batches/{batch_id}", response_model=MessageResponse, summary="Delete batch")
async def delete_batch(
    batch_id: int,
    current_user: CurrentUser = Depends(require_admin),
    service: BatchService = Depends(get_batch_service),
) -> MessageResponse:
    try:
        await service.delete_batch(batch_id)
    except BatchNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MessageResponse(message="Batch deleted")
