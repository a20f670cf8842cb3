# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch service for class groups and their student rosters.

This module provides the BatchService class for:
- Batch CRUD operations
- Roster diffing: only students added by a write are told about it
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.infrastructure.database.models import Batch, Course, User, drop_required_nulls
from academy.infrastructure.notifications.events import BatchAllocation
from academy.infrastructure.notifications.fanout import NotificationFanout
from academy.models.course import BatchCreateRequest, BatchResponse, BatchUpdateRequest

logger = logging.getLogger(__name__)


class BatchServiceError(Exception):
    """Base exception for batch service errors."""


class BatchNotFoundError(BatchServiceError):
    """Raised when a batch does not exist."""


class BatchCapacityError(BatchServiceError):
    """Raised when a roster exceeds the batch's max_students."""


def added_students(before: Iterable[int] | None, after: Iterable[int] | None) -> list[int]:
    """Students present after a write but not before, in roster order.

    Example:
        >>> added_students([1, 2], [1, 2, 3])
        [3]
    """
    previous = set(before or [])
    return [student_id for student_id in dict.fromkeys(after or []) if student_id not in previous]


class BatchService:
    """Service for managing batches.

    Attributes:
        db: Async database session.
        notifier: Notification fan-out.
    """

    def __init__(self, db: AsyncSession, notifier: NotificationFanout) -> None:
        self.db = db
        self.notifier = notifier

    async def list_batches(self, course_id: int | None = None) -> list[BatchResponse]:
        query = select(Batch)
        if course_id is not None:
            query = query.where(Batch.course_id == course_id)
        result = await self.db.execute(query.order_by(Batch.id))
        return [BatchResponse.model_validate(batch) for batch in result.scalars().all()]

    async def get_batch(self, batch_id: int) -> Batch:
        """Get a batch.

        Raises:
            BatchNotFoundError: If the batch does not exist.
        """
        batch = await self.db.get(Batch, batch_id)
        if batch is None:
            raise BatchNotFoundError(f"Batch {batch_id} not found")
        return batch

    async def create_batch(self, request: BatchCreateRequest) -> BatchResponse:
        """Create a batch; every initial student is notified."""
        self._check_capacity(request.student_ids, request.max_students)

        batch = Batch(**request.model_dump())
        self.db.add(batch)
        await self.db.commit()
        await self.db.refresh(batch)

        logger.info(
            "Created batch: %s (%s) with %d students",
            batch.batch_name,
            batch.id,
            len(batch.student_ids or []),
        )
        await self._announce(batch, list(batch.student_ids or []))
        return BatchResponse.model_validate(batch)

    async def update_batch(self, batch_id: int, request: BatchUpdateRequest) -> BatchResponse:
        """Update a batch; only students new to the roster are notified.

        Raises:
            BatchNotFoundError: If the batch does not exist.
            BatchCapacityError: If the new roster is larger than max_students.
        """
        batch = await self.get_batch(batch_id)
        before = list(batch.student_ids or [])
        changes = drop_required_nulls(Batch, request.model_dump(exclude_unset=True))
        self._check_capacity(
            changes.get("student_ids", before),
            changes.get("max_students", batch.max_students),
        )

        for field, value in changes.items():
            setattr(batch, field, value)
        await self.db.commit()
        await self.db.refresh(batch)

        new_students = added_students(before, batch.student_ids)
        logger.info(
            "Updated batch %s: %d students, %d new",
            batch.id,
            len(batch.student_ids or []),
            len(new_students),
        )
        await self._announce(batch, new_students)
        return BatchResponse.model_validate(batch)

    async def delete_batch(self, batch_id: int) -> None:
        batch = await self.get_batch(batch_id)
        await self.db.delete(batch)
        await self.db.commit()
        logger.info("Deleted batch %s", batch_id)

    def _check_capacity(self, student_ids: list[int], max_students: int | None) -> None:
        if max_students is not None and len(student_ids) > max_students:
            raise BatchCapacityError(
                f"Batch allows {max_students} students, {len(student_ids)} given"
            )

    async def _announce(self, batch: Batch, student_ids: list[int]) -> None:
        if not student_ids:
            return

        course_name = None
        if batch.course_id is not None:
            course = await self.db.get(Course, batch.course_id)
            course_name = course.name if course else None
        teacher_name = None
        if batch.teacher_id is not None:
            teacher = await self.db.get(User, batch.teacher_id)
            teacher_name = teacher.name if teacher else None

        self.notifier.notify(
            BatchAllocation(
                batch_id=batch.id,
                batch_name=batch.batch_name,
                student_ids=tuple(student_ids),
                course_name=course_name,
                teacher_name=teacher_name,
                schedule=batch.schedule,
            )
        )
