# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services.

Each subpackage holds one service class and its exception hierarchy.
Services own their transaction: they commit the primary write and only
then hand notification events to the fan-out.
"""
