# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schemas for events, grade exams, study materials and notices.

Every content item carries an optional ``recipient_ids`` list. An empty or
missing list addresses every active non-admin user.
"""

from datetime import date, datetime, time
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class EventCreateRequest(BaseModel):
    """Request to publish an event."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    event_date: date | None = None
    event_time: time | None = None
    location: str | None = Field(default=None, max_length=255)
    is_public: bool = False
    recipient_ids: list[int] = Field(default_factory=list)
    image_url: str | None = None


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None = None
    event_date: date | None = None
    event_time: time | None = None
    location: str | None = None
    is_public: bool
    recipient_ids: list[int] | None = None
    image_url: str | None = None
    is_active: bool
    created_at: datetime | None = None


class GradeExamCreateRequest(BaseModel):
    """Request to schedule a grade exam."""

    exam_name: str = Field(min_length=1, max_length=255)
    course: str | None = Field(default=None, max_length=255)
    exam_date: date | None = None
    exam_time: time | None = None
    location: str | None = Field(default=None, max_length=255)
    syllabus: str | None = None
    recipient_ids: list[int] = Field(default_factory=list)


class GradeExamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    exam_name: str
    course: str | None = None
    exam_date: date | None = None
    exam_time: time | None = None
    location: str | None = None
    syllabus: str | None = None
    recipient_ids: list[int] | None = None
    created_at: datetime | None = None


class BookMaterialCreateRequest(BaseModel):
    """Request to share a study material."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    course: str | None = Field(default=None, max_length=255)
    file_url: str | None = None
    file_type: str | None = Field(default=None, max_length=50)
    recipient_ids: list[int] = Field(default_factory=list)


class BookMaterialResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None = None
    course: str | None = None
    file_url: str | None = None
    file_type: str | None = None
    recipient_ids: list[int] | None = None
    created_at: datetime | None = None


class NoticeCreateRequest(BaseModel):
    """Request to post a notice."""

    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    priority: Literal["low", "normal", "high", "urgent"] = "normal"
    expiry_date: date | None = None
    recipient_ids: list[int] = Field(default_factory=list)


class NoticeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    priority: str
    expiry_date: date | None = None
    recipient_ids: list[int] | None = None
    is_active: bool
    created_at: datetime | None = None
