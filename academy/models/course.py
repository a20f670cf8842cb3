# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course and batch schemas."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CourseCreateRequest(BaseModel):
    """Request to create a course."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    icon: str | None = Field(default=None, max_length=100)
    image: str | None = None


class CourseUpdateRequest(BaseModel):
    """Request to update a course. Only set fields are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    icon: str | None = Field(default=None, max_length=100)
    image: str | None = None


class CourseResponse(BaseModel):
    """A course."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    icon: str | None = None
    image: str | None = None
    created_at: datetime | None = None


class BatchCreateRequest(BaseModel):
    """Request to create a batch with its initial students."""

    batch_name: str = Field(min_length=1, max_length=255)
    course_id: int | None = None
    teacher_id: int | None = None
    schedule: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    max_students: int | None = Field(default=None, ge=1)
    student_ids: list[int] = Field(default_factory=list)
    mode: str | None = "Hybrid"

    @field_validator("student_ids")
    @classmethod
    def unique_student_ids(cls, value: list[int]) -> list[int]:
        return list(dict.fromkeys(value))


class BatchUpdateRequest(BaseModel):
    """Request to update a batch.

    When student_ids is set it replaces the whole roster.
    """

    batch_name: str | None = Field(default=None, min_length=1, max_length=255)
    course_id: int | None = None
    teacher_id: int | None = None
    schedule: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    max_students: int | None = Field(default=None, ge=1)
    student_ids: list[int] | None = None
    mode: str | None = None

    @field_validator("student_ids")
    @classmethod
    def unique_student_ids(cls, value: list[int] | None) -> list[int] | None:
        if value is None:
            return None
        return list(dict.fromkeys(value))


class BatchResponse(BaseModel):
    """A batch."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    batch_name: str
    course_id: int | None = None
    teacher_id: int | None = None
    schedule: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    max_students: int | None = None
    student_ids: list[int] = Field(default_factory=list)
    mode: str | None = None
    created_at: datetime | None = None

    @field_validator("student_ids", mode="before")
    @classmethod
    def none_as_empty(cls, value: list[int] | None) -> list[int]:
        return list(value or [])
