# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication API endpoints.

This module provides endpoints for:
- POST /register - Self-service registration
- POST /login - Email and password login
- GET /session - Current user
- POST /logout - Log out

Tokens are stateless bearer JWTs, so logout only acknowledges; the client
drops its token and should deactivate its push token.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from academy.api.dependencies import get_auth_service, require_auth
from academy.api.middleware.auth import CurrentUser
from academy.api.middleware.rate_limit import FORM_LIMIT, LOGIN_LIMIT, limiter
from academy.domains.auth.service import (
    AccountInactiveError,
    AuthService,
    InvalidCredentialsError,
)
from academy.domains.user.service import EmailAlreadyRegisteredError
from academy.models.common import MessageResponse
from academy.models.user import AuthResponse, LoginRequest, RegisterRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
)
@limiter.limit(FORM_LIMIT)
async def register(
    request: Request,
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a new account and return a token for it.

    Raises:
        HTTPException: 409 if the email is already registered.
    """
    try:
        return await service.register(data)
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/login", response_model=AuthResponse, summary="Log in")
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    try:
        return await service.login(data)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except AccountInactiveError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get("/session", response_model=UserResponse, summary="Current session")
async def get_session(
    current_user: CurrentUser = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    try:
        return await service.get_session(current_user.id)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


@router.post("/logout", response_model=MessageResponse, summary="Log out")
async def logout() -> MessageResponse:
    return MessageResponse(message="Logout successful")
