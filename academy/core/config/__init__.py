# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package.

Example:
    >>> from academy.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from academy.core.config.settings import (
    CORSSettings,
    DatabaseSettings,
    FirebaseSettings,
    JWTSettings,
    NotificationSettings,
    RateLimitSettings,
    SchemaSettings,
    Settings,
    SMTPSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "SMTPSettings",
    "FirebaseSettings",
    "JWTSettings",
    "RateLimitSettings",
    "CORSSettings",
    "NotificationSettings",
    "SchemaSettings",
]
