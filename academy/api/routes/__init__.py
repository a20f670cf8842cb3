# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API routes package.

Each module provides a FastAPI router for one area. All of them except
health live under ``/api``.

Modules:
    auth: Registration, login, session, logout.
    users: Own profile and admin user management.
    courses: Courses (public listing) and batches.
    invoices: Invoices and payment recording.
    content: Events, grade exams, study materials, notices.
    demo_bookings: Demo bookings and the contact form.
    notifications: Notification feed and push device tokens.
    admin: Admin messages, fan-out statistics, schema status.
    health: Health and liveness checks.
"""

from fastapi import APIRouter

from academy.api.routes import (
    admin,
    auth,
    content,
    courses,
    demo_bookings,
    invoices,
    notifications,
    users,
)

router = APIRouter(prefix="/api")

router.include_router(auth.router, tags=["Authentication"])
router.include_router(users.router, tags=["Users"])
router.include_router(courses.router, tags=["Courses"])
router.include_router(invoices.router, tags=["Invoices"])
router.include_router(content.router, tags=["Content"])
router.include_router(demo_bookings.router, tags=["Demo Bookings"])
router.include_router(notifications.router, tags=["Notifications"])
router.include_router(admin.router, tags=["Admin"])
