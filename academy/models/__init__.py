# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request and response schemas for the HTTP API.

One module per domain. Response models read straight from ORM rows
(``from_attributes``), request models validate incoming JSON.
"""
