# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-cutting utilities.

- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from academy.utils.datetime import current_year, utc_now
from academy.utils.logging import bind_context, clear_context, setup_logging

__all__ = [
    "utc_now",
    "current_year",
    "setup_logging",
    "bind_context",
    "clear_context",
]
