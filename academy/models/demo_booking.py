# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Demo booking and contact form schemas."""

from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from academy.infrastructure.database.models.demo_booking import DemoBookingStatus


class DemoBookingCreateRequest(BaseModel):
    """Public request to book a demo class."""

    student_name: str = Field(min_length=1, max_length=255)
    parent_name: str | None = Field(default=None, max_length=255)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=20)
    course: str | None = Field(default=None, max_length=255)
    preferred_date: date | None = None
    preferred_time: time | None = None
    location: str | None = Field(default=None, max_length=255)
    notes: str | None = None


class DemoBookingUpdateRequest(BaseModel):
    """Admin update of a booking."""

    status: DemoBookingStatus | None = None
    preferred_date: date | None = None
    preferred_time: time | None = None
    location: str | None = Field(default=None, max_length=255)
    notes: str | None = None


class DemoBookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_name: str
    parent_name: str | None = None
    email: str
    phone: str | None = None
    course: str | None = None
    preferred_date: date | None = None
    preferred_time: time | None = None
    location: str | None = None
    notes: str | None = None
    status: str
    created_at: datetime | None = None


class DemoBookingListResponse(BaseModel):
    items: list[DemoBookingResponse]
    total: int


class ContactRequest(BaseModel):
    """Public contact form submission."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    message: str = Field(min_length=1, max_length=5000)


class ContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    message: str
    created_at: datetime | None = None
