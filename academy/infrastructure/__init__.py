# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer for external service integrations.

This package contains:
- Database connections and ORM models (PostgreSQL)
- Boot-time schema evolution
- Notification fan-out (email, in-app, push)
"""
