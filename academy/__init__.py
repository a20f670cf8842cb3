# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fine-arts academy backend.

Back-office API for courses, batches, invoices and content, with
boot-time schema evolution and best-effort notification fan-out.
"""

__version__ = "1.0.0"
