# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User service for registration, profiles and admin user management.

This module provides the UserService class for:
- Creating users with a sequence-allocated user code
- Profile updates by the user themself
- Admin listing, updating and soft-deleting users

Every new user triggers a registration notification once the row is
committed.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academy.domains.auth.password import PasswordHasher
from academy.infrastructure.database.codes import USER_CODE_SEQUENCE, next_code
from academy.infrastructure.database.models import (
    User,
    UserRole,
    UserStatus,
    drop_required_nulls,
)
from academy.infrastructure.notifications.events import Registration
from academy.infrastructure.notifications.fanout import NotificationFanout
from academy.models.user import (
    ProfileUpdateRequest,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)


class UserServiceError(Exception):
    """Base exception for user service errors."""


class UserNotFoundError(UserServiceError):
    """Raised when a user does not exist or was deleted."""


class EmailAlreadyRegisteredError(UserServiceError):
    """Raised when an email address is already taken."""


class UserService:
    """Service for managing users.

    Attributes:
        db: Async database session.
        notifier: Notification fan-out.
        hasher: Password hasher.
        code_prefix: Prefix of allocated user codes.
    """

    def __init__(
        self,
        db: AsyncSession,
        notifier: NotificationFanout,
        hasher: PasswordHasher,
        code_prefix: str = "ACD",
    ) -> None:
        self.db = db
        self.notifier = notifier
        self.hasher = hasher
        self.code_prefix = code_prefix

    async def create_user(self, request: UserCreateRequest) -> User:
        """Create a user, allocate its code and announce the registration.

        Args:
            request: User data. The email is stored lower-cased.

        Returns:
            The committed User row.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken.
        """
        email = request.email.lower()
        if await self._find_by_email(email, include_deleted=True) is not None:
            raise EmailAlreadyRegisteredError("This email is already registered.")

        user = User(
            name=request.name,
            email=email,
            password=self.hasher.hash(request.password),
            role=request.role.value,
            status=request.status.value,
            class_preference=request.class_preference.value if request.class_preference else None,
            contact_number=request.contact_number,
            address=request.address,
            user_code=await next_code(self.db, self.code_prefix, USER_CODE_SEQUENCE),
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise EmailAlreadyRegisteredError("This email is already registered.") from e
        await self.db.refresh(user)

        logger.info("Created user %s (%s, %s)", user.id, user.user_code, user.role)

        self.notifier.notify(
            Registration(
                user_id=user.id,
                name=user.name,
                email=user.email,
                role=user.role,
                user_code=user.user_code,
            )
        )
        return user

    async def get_user(self, user_id: int) -> User:
        """Get a non-deleted user.

        Raises:
            UserNotFoundError: If the user does not exist or was deleted.
        """
        user = await self.db.get(User, user_id)
        if user is None or user.is_deleted:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def get_by_email(self, email: str) -> User | None:
        """Find a non-deleted user by email, case-insensitively."""
        return await self._find_by_email(email.lower())

    async def list_users(
        self,
        role: UserRole | None = None,
        status: UserStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[UserResponse], int]:
        """List non-deleted users.

        Args:
            role: Optional role filter.
            status: Optional status filter.
            limit: Page size.
            offset: Page offset.

        Returns:
            Tuple of (users, total count before paging).
        """
        query = select(User).where(User.is_deleted.is_(False))
        if role is not None:
            query = query.where(User.role == role.value)
        if status is not None:
            query = query.where(User.status == status.value)

        total_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(query.order_by(User.id).limit(limit).offset(offset))
        users = result.scalars().all()
        return [UserResponse.model_validate(user) for user in users], total

    async def update_user(self, user_id: int, request: UserUpdateRequest) -> User:
        """Apply an admin update.

        Raises:
            UserNotFoundError: If the user does not exist.
            EmailAlreadyRegisteredError: If the new email is taken.
        """
        user = await self.get_user(user_id)
        changes = drop_required_nulls(User, request.model_dump(exclude_unset=True))

        if "email" in changes:
            email = changes.pop("email").lower()
            if email != user.email:
                existing = await self._find_by_email(email, include_deleted=True)
                if existing is not None and existing.id != user.id:
                    raise EmailAlreadyRegisteredError("This email is already registered.")
                user.email = email

        self._apply(user, changes)
        await self._commit_user(user)
        logger.info("Updated user %s: %s", user.id, sorted(changes))
        return user

    async def update_profile(self, user_id: int, request: ProfileUpdateRequest) -> User:
        """Apply a user's update of their own profile."""
        user = await self.get_user(user_id)
        changes = drop_required_nulls(User, request.model_dump(exclude_unset=True))
        self._apply(user, changes)
        await self._commit_user(user)
        logger.info("User %s updated profile: %s", user.id, sorted(changes))
        return user

    async def delete_user(self, user_id: int) -> None:
        """Soft-delete a user.

        Deleted users keep their rows but no longer log in or receive
        notifications.
        """
        user = await self.get_user(user_id)
        user.is_deleted = True
        user.status = UserStatus.INACTIVE.value
        await self.db.commit()
        logger.info("Soft-deleted user %s", user_id)

    def _apply(self, user: User, changes: dict) -> None:
        password = changes.pop("password", None)
        if password:
            user.password = self.hasher.hash(password)
        for field, value in changes.items():
            if hasattr(value, "value"):
                value = value.value
            setattr(user, field, value)

    async def _commit_user(self, user: User) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise EmailAlreadyRegisteredError("This email is already registered.") from e
        await self.db.refresh(user)

    async def _find_by_email(self, email: str, include_deleted: bool = False) -> User | None:
        query = select(User).where(func.lower(User.email) == email)
        if not include_deleted:
            query = query.where(User.is_deleted.is_(False))
        result = await self.db.execute(query.limit(1))
        return result.scalar_one_or_none()
