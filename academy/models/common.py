# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schemas shared by several endpoints."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
    success: bool = True
