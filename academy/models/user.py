# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User and authentication schemas.

This module defines request/response schemas for registration, login,
session lookup, profile updates and admin user management.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from academy.infrastructure.database.models.user import (
    ClassPreference,
    UserRole,
    UserStatus,
)


class RegisterRequest(BaseModel):
    """Self-service registration.

    The role is always Student except for the configured admin address,
    which is promoted to Admin.
    """

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    contact_number: str | None = Field(default=None, max_length=20)
    address: str | None = None
    class_preference: ClassPreference | None = None


class LoginRequest(BaseModel):
    """Email and password login."""

    email: EmailStr
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    """A user as returned by the API. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_code: str | None = None
    name: str
    email: str
    role: str
    status: str
    class_preference: str | None = None
    contact_number: str | None = None
    address: str | None = None
    created_at: datetime | None = None


class AuthResponse(BaseModel):
    """Token and user returned by login and registration."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserResponse


class UserCreateRequest(BaseModel):
    """Admin request to create a user of any role."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: UserRole = UserRole.STUDENT
    status: UserStatus = UserStatus.ACTIVE
    contact_number: str | None = Field(default=None, max_length=20)
    address: str | None = None
    class_preference: ClassPreference | None = None


class UserUpdateRequest(BaseModel):
    """Admin request to update a user. Only set fields are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6, max_length=128)
    role: UserRole | None = None
    status: UserStatus | None = None
    contact_number: str | None = Field(default=None, max_length=20)
    address: str | None = None
    class_preference: ClassPreference | None = None


class ProfileUpdateRequest(BaseModel):
    """A user's update of their own profile."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    contact_number: str | None = Field(default=None, max_length=20)
    address: str | None = None
    class_preference: ClassPreference | None = None
    password: str | None = Field(default=None, min_length=6, max_length=128)


class UserListResponse(BaseModel):
    """Response for user list endpoint."""

    items: list[UserResponse]
    total: int
    limit: int
    offset: int
