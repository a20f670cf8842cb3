# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course service for the course catalogue."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.infrastructure.database.models import Course, drop_required_nulls
from academy.models.course import CourseCreateRequest, CourseResponse, CourseUpdateRequest

logger = logging.getLogger(__name__)


class CourseServiceError(Exception):
    """Base exception for course service errors."""


class CourseNotFoundError(CourseServiceError):
    """Raised when a course does not exist."""


class CourseService:
    """Service for managing courses.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_courses(self) -> list[CourseResponse]:
        """List all courses ordered by name."""
        result = await self.db.execute(select(Course).order_by(Course.name))
        return [CourseResponse.model_validate(course) for course in result.scalars().all()]

    async def get_course(self, course_id: int) -> Course:
        """Get a course.

        Raises:
            CourseNotFoundError: If the course does not exist.
        """
        course = await self.db.get(Course, course_id)
        if course is None:
            raise CourseNotFoundError(f"Course {course_id} not found")
        return course

    async def create_course(self, request: CourseCreateRequest) -> CourseResponse:
        course = Course(**request.model_dump())
        self.db.add(course)
        await self.db.commit()
        await self.db.refresh(course)

        logger.info("Created course: %s (%s)", course.name, course.id)
        return CourseResponse.model_validate(course)

    async def update_course(self, course_id: int, request: CourseUpdateRequest) -> CourseResponse:
        course = await self.get_course(course_id)
        changes = drop_required_nulls(Course, request.model_dump(exclude_unset=True))
        for field, value in changes.items():
            setattr(course, field, value)
        await self.db.commit()
        await self.db.refresh(course)

        logger.info("Updated course: %s (%s)", course.name, course.id)
        return CourseResponse.model_validate(course)

    async def delete_course(self, course_id: int) -> None:
        """Delete a course. Batches keep existing with no course."""
        course = await self.get_course(course_id)
        await self.db.delete(course)
        await self.db.commit()
        logger.info("Deleted course %s", course_id)
