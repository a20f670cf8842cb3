# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Content service for events, grade exams, study materials and notices.

Each publish writes the row and then announces it to the listed
recipients, or to every active non-admin user when none are listed.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from academy.infrastructure.database.models import BookMaterial, Event, GradeExam, Notice
from academy.infrastructure.notifications import events
from academy.infrastructure.notifications.fanout import NotificationFanout
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

logger = logging.getLogger(__name__)


class ContentServiceError(Exception):
    """Base exception for content service errors."""


class ContentService:
    """Service for publishing academy content.

    Attributes:
        db: Async database session.
        notifier: Notification fan-out.
    """

    def __init__(self, db: AsyncSession, notifier: NotificationFanout) -> None:
        self.db = db
        self.notifier = notifier

    async def create_event(self, request: EventCreateRequest) -> EventResponse:
        event = Event(**request.model_dump())
        await self._save(event)
        logger.info("Created event: %s (%s)", event.title, event.id)

        self.notifier.notify(
            events.Event(
                event_id=event.id,
                title=event.title,
                description=event.description,
                event_date=event.event_date,
                location=event.location,
                recipient_ids=tuple(event.recipient_ids or ()),
            )
        )
        return EventResponse.model_validate(event)

    async def create_grade_exam(self, request: GradeExamCreateRequest) -> GradeExamResponse:
        exam = GradeExam(**request.model_dump())
        await self._save(exam)
        logger.info("Created grade exam: %s (%s)", exam.exam_name, exam.id)

        self.notifier.notify(
            events.GradeExam(
                exam_id=exam.id,
                exam_name=exam.exam_name,
                course=exam.course,
                exam_date=exam.exam_date,
                location=exam.location,
                recipient_ids=tuple(exam.recipient_ids or ()),
            )
        )
        return GradeExamResponse.model_validate(exam)

    async def create_book_material(
        self, request: BookMaterialCreateRequest
    ) -> BookMaterialResponse:
        material = BookMaterial(**request.model_dump())
        await self._save(material)
        logger.info("Created study material: %s (%s)", material.title, material.id)

        self.notifier.notify(
            events.MaterialShared(
                material_id=material.id,
                title=material.title,
                course=material.course,
                recipient_ids=tuple(material.recipient_ids or ()),
            )
        )
        return BookMaterialResponse.model_validate(material)

    async def create_notice(self, request: NoticeCreateRequest) -> NoticeResponse:
        notice = Notice(**request.model_dump())
        await self._save(notice)
        logger.info("Created notice: %s (%s, %s)", notice.title, notice.id, notice.priority)

        self.notifier.notify(
            events.Notice(
                notice_id=notice.id,
                title=notice.title,
                content=notice.content,
                priority=notice.priority,
                recipient_ids=tuple(notice.recipient_ids or ()),
            )
        )
        return NoticeResponse.model_validate(notice)

    async def _save(self, row: Event | GradeExam | BookMaterial | Notice) -> None:
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)
