# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

The public form endpoints (registration, login, contact, demo booking)
are limited per client. Limits live in process memory.

Example:
    @router.post("/contact")
    @limiter.limit(FORM_LIMIT)
    async def submit_contact(request: Request, ...):
        ...
"""

import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from academy.core.config import get_settings

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """Identify the client by user id when authenticated, else by IP."""
    user = getattr(request.state, "user", None)
    if user:
        return f"user:{user.id}"
    return f"ip:{get_remote_address(request)}"


settings = get_settings()
limiter = Limiter(
    key_func=get_client_identifier,
    enabled=settings.rate_limit.enabled,
    storage_uri="memory://",
)

FORM_LIMIT = settings.rate_limit.form_limit
LOGIN_LIMIT = settings.rate_limit.login_limit


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Return 429 with a Retry-After header."""
    logger.warning(
        "Rate limit exceeded: %s for %s",
        exc.detail,
        get_client_identifier(request),
    )
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please try again later."},
        headers={"Retry-After": "60"},
    )
