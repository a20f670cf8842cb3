# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User API endpoints.

This module provides endpoints for:
- PUT /profile - Update own profile
- GET /admin/users - List users
- POST /admin/users - Create a user
- GET /admin/users/{user_id} - Get a user
- PUT /admin/users/{user_id} - Update a user
- DELETE /admin/users/{user_id} - Soft-delete a user
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from academy.api.dependencies import get_user_service, require_admin, require_auth
from academy.api.middleware.auth import CurrentUser
from academy.domains.user.service import (
    EmailAlreadyRegisteredError,
    UserNotFoundError,
    UserService,
)
from academy.infrastructure.database.models.user import UserRole, UserStatus
from academy.models.common import MessageResponse
from academy.models.user import (
    ProfileUpdateRequest,
    UserCreateRequest,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.put("/profile", response_model=UserResponse, summary="Update own profile")
async def update_profile(
    data: ProfileUpdateRequest,
    current_user: CurrentUser = Depends(require_auth),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = await service.update_profile(current_user.id, data)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return UserResponse.model_validate(user)


@router.get("/admin/users", response_model=UserListResponse, summary="List users")
async def list_users(
    role: Annotated[UserRole | None, Query(description="Filter by role")] = None,
    user_status: Annotated[
        UserStatus | None, Query(alias="status", description="Filter by status")
    ] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> UserListResponse:
    items, total = await service.list_users(
        role=role, status=user_status, limit=limit, offset=offset
    )
    return UserListResponse(items=items, total=total, limit=limit, offset=offset)


@router.post(
    "/admin/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(
    data: UserCreateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    logger.info("Admin %s creating %s %s", current_user.id, data.role.value, data.email)
    try:
        user = await service.create_user(data)
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return UserResponse.model_validate(user)


@router.get("/admin/users/{user_id}", response_model=UserResponse, summary="Get user")
async def get_user(
    user_id: int,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = await service.get_user(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return UserResponse.model_validate(user)


@router.put("/admin/users/{user_id}", response_model=UserResponse, summary="Update user")
async def update_user(
    user_id: int,
    data: UserUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    try:
        user = await service.update_user(user_id, data)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return UserResponse.model_validate(user)


@router.delete("/admin/users/{user_id}", response_model=MessageResponse, summary="Delete user")
async def delete_user(
    user_id: int,
    current_user: CurrentUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Admins cannot delete their own account",
        )
    try:
        await service.delete_user(user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return MessageResponse(message="User deleted")
