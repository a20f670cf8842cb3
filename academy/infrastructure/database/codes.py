# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Human-readable codes drawn from database sequences.

Users and invoices carry codes of the form PREFIX-YEAR-NNNN. The numeric
suffix always comes from a PostgreSQL sequence, so codes are never reused
and increase with allocation order. Both the boot-time backfill and the
request handlers allocate from the same sequences.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from academy.utils.datetime import current_year

USER_CODE_SEQUENCE = "user_code_seq"
INVOICE_NUMBER_SEQUENCE = "invoice_number_seq"

SUFFIX_WIDTH = 4


def code_prefix(prefix: str, year: int | None = None) -> str:
    """Build the fixed part of a code, e.g. ``ACD-2025-``."""
    return f"{prefix}-{year or current_year()}-"


def format_code(prefix: str, number: int, year: int | None = None) -> str:
    """Format a complete code.

    Example:
        >>> format_code("INV", 7, year=2025)
        'INV-2025-0007'
    """
    return f"{code_prefix(prefix, year)}{number:0{SUFFIX_WIDTH}d}"


async def next_code(session: AsyncSession, prefix: str, sequence: str) -> str:
    """Allocate the next code from a sequence.

    Args:
        session: Active database session.
        prefix: Code prefix such as ACD or INV.
        sequence: Sequence name (one of the module constants).

    Returns:
        The formatted code.
    """
    result = await session.execute(text(f"SELECT nextval('{sequence}')"))
    return format_code(prefix, int(result.scalar_one()))
