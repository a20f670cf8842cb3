# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication service.

This module provides the AuthService class for:
- Self-service registration (Student, or Admin for the configured address)
- Email and password login returning a bearer token
- Session lookup for the authenticated user
"""

from __future__ import annotations

import logging

from academy.domains.auth.jwt import JWTManager
from academy.domains.auth.password import PasswordHasher
from academy.domains.user.service import UserNotFoundError, UserService
from academy.infrastructure.database.models import User, UserRole, UserStatus
from academy.models.user import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserCreateRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)


class AuthServiceError(Exception):
    """Base exception for authentication errors."""


class InvalidCredentialsError(AuthServiceError):
    """Raised when email or password do not match."""


class AccountInactiveError(AuthServiceError):
    """Raised when an inactive account tries to log in."""


class AuthService:
    """Service for registration, login and sessions.

    Attributes:
        users: User service used for lookups and creation.
        jwt_manager: Token issuer.
        hasher: Password hasher.
        admin_email: Address promoted to Admin on registration.
    """

    def __init__(
        self,
        users: UserService,
        jwt_manager: JWTManager,
        hasher: PasswordHasher,
        admin_email: str,
    ) -> None:
        self.users = users
        self.jwt_manager = jwt_manager
        self.hasher = hasher
        self.admin_email = admin_email.lower()

    async def register(self, request: RegisterRequest) -> AuthResponse:
        """Register a new user and log them in.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken.
        """
        role = UserRole.ADMIN if request.email.lower() == self.admin_email else UserRole.STUDENT
        user = await self.users.create_user(
            UserCreateRequest(
                name=request.name,
                email=request.email,
                password=request.password,
                role=role,
                contact_number=request.contact_number,
                address=request.address,
                class_preference=request.class_preference,
            )
        )
        logger.info("Registered %s %s", role.value, user.id)
        return self._issue(user)

    async def login(self, request: LoginRequest) -> AuthResponse:
        """Check credentials and issue a token.

        Raises:
            InvalidCredentialsError: If the user is unknown or the password is wrong.
            AccountInactiveError: If the account is deactivated.
        """
        user = await self.users.get_by_email(request.email)
        if user is None or not self.hasher.verify(request.password, user.password):
            logger.info("Failed login for %s", request.email)
            raise InvalidCredentialsError("Invalid email or password.")

        if user.status == UserStatus.INACTIVE.value:
            raise AccountInactiveError("This account is inactive.")

        logger.info("User %s logged in", user.id)
        return self._issue(user)

    async def get_session(self, user_id: int) -> UserResponse:
        """Return the current state of the authenticated user.

        Raises:
            InvalidCredentialsError: If the user was deleted since the token was issued.
        """
        try:
            user = await self.users.get_user(user_id)
        except UserNotFoundError as e:
            raise InvalidCredentialsError("Session user no longer exists.") from e
        return UserResponse.model_validate(user)

    def _issue(self, user: User) -> AuthResponse:
        token = self.jwt_manager.create_access_token(
            user_id=user.id,
            role=user.role,
            email=user.email,
            name=user.name,
        )
        return AuthResponse(
            access_token=token,
            expires_in=self.jwt_manager.expires_in,
            user=UserResponse.model_validate(user),
        )
