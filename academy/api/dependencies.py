# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

Long-lived objects (database, notification fan-out, token manager,
password hasher) are built once by the application lifespan and kept on
``app.state``. The dependencies here hand them, or services built from
them, to endpoints.

Example:
    @router.post("/batches")
    async def create_batch(
        data: BatchCreateRequest,
        current_user: CurrentUser = Depends(require_admin),
        service: BatchService = Depends(get_batch_service),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from academy.api.middleware.auth import CurrentUser, get_current_user
from academy.core.config.settings import Settings
from academy.domains.auth.jwt import JWTManager
from academy.domains.auth.password import PasswordHasher
from academy.domains.auth.service import AuthService
from academy.domains.batch.service import BatchService
from academy.domains.content.service import ContentService
from academy.domains.course.service import CourseService
from academy.domains.demo_booking.service import DemoBookingService
from academy.domains.invoice.service import InvoiceService
from academy.domains.notification.service import NotificationService
from academy.domains.user.service import UserService
from academy.infrastructure.database.connection import Database
from academy.infrastructure.notifications.fanout import NotificationFanout

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    """Get the shared database handle.

    Raises:
        HTTPException: If the database was not initialized.
    """
    database = getattr(request.app.state, "database", None)
    if database is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not initialized",
        )
    return database


def get_fanout(request: Request) -> NotificationFanout:
    """Get the notification fan-out.

    Raises:
        HTTPException: If the fan-out was not initialized.
    """
    fanout = getattr(request.app.state, "fanout", None)
    if fanout is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notifications not initialized",
        )
    return fanout


def get_jwt_manager(request: Request) -> JWTManager:
    return request.app.state.jwt_manager


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


async def get_db(
    database: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for one request.

    Yields:
        AsyncSession, committed on success and rolled back on error.
    """
    async with database.session() as session:
        yield session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require an authenticated user.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(request: Request) -> CurrentUser:
    """Require an admin user.

    Raises:
        HTTPException: If not authenticated or not an admin.
    """
    user = require_auth(request)
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


# =========================================================================
# Service Dependencies
# =========================================================================


def get_user_service(
    db: AsyncSession = Depends(get_db),
    fanout: NotificationFanout = Depends(get_fanout),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_app_settings),
) -> UserService:
    return UserService(
        db=db,
        notifier=fanout,
        hasher=hasher,
        code_prefix=settings.schema_.user_code_prefix,
    )


def get_auth_service(
    users: UserService = Depends(get_user_service),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    hasher: PasswordHasher = Depends(get_password_hasher),
    settings: Settings = Depends(get_app_settings),
) -> AuthService:
    return AuthService(
        users=users,
        jwt_manager=jwt_manager,
        hasher=hasher,
        admin_email=settings.admin_email,
    )


def get_course_service(db: AsyncSession = Depends(get_db)) -> CourseService:
    return CourseService(db=db)


def get_batch_service(
    db: AsyncSession = Depends(get_db),
    fanout: NotificationFanout = Depends(get_fanout),
) -> BatchService:
    return BatchService(db=db, notifier=fanout)


def get_invoice_service(
    db: AsyncSession = Depends(get_db),
    fanout: NotificationFanout = Depends(get_fanout),
    settings: Settings = Depends(get_app_settings),
) -> InvoiceService:
    return InvoiceService(
        db=db,
        notifier=fanout,
        number_prefix=settings.schema_.invoice_prefix,
    )


def get_content_service(
    db: AsyncSession = Depends(get_db),
    fanout: NotificationFanout = Depends(get_fanout),
) -> ContentService:
    return ContentService(db=db, notifier=fanout)


def get_demo_booking_service(
    db: AsyncSession = Depends(get_db),
    fanout: NotificationFanout = Depends(get_fanout),
) -> DemoBookingService:
    return DemoBookingService(db=db, notifier=fanout)


def get_notification_service(
    db: AsyncSession = Depends(get_db),
    fanout: NotificationFanout = Depends(get_fanout),
) -> NotificationService:
    return NotificationService(db=db, notifier=fanout)
