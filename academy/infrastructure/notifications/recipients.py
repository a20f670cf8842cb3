# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Recipients and recipient selectors.

A selector describes who should receive an event. Selectors are resolved
once per event into a read-only list of Recipient snapshots. Guest
recipients (id None) are email-only: they get neither an in-app row nor
push.
"""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class Recipient:
    """A resolved notification recipient.

    Attributes:
        id: User id, or None for a guest address.
        name: Display name used in greetings.
        email: Delivery address.
        role: User role, None for guests.
    """

    id: int | None
    name: str
    email: str
    role: str | None = None

    @property
    def is_guest(self) -> bool:
        """Guests have an email address but no user account."""
        return self.id is None


@dataclass(frozen=True)
class ByIds:
    """Explicit users; soft-deleted users are excluded."""

    ids: tuple[int, ...]

    @classmethod
    def of(cls, ids: Iterable[int]) -> "ByIds":
        return cls(tuple(dict.fromkeys(int(i) for i in ids)))


@dataclass(frozen=True)
class ByRole:
    """All active, non-deleted users with a role."""

    role: str


@dataclass(frozen=True)
class Broadcast:
    """All active, non-deleted, non-admin users."""


@dataclass(frozen=True)
class Guest:
    """A literal email-only recipient."""

    name: str
    email: str

    def to_recipient(self) -> Recipient:
        return Recipient(id=None, name=self.name, email=self.email)


RecipientSelector = ByIds | ByRole | Broadcast | Guest


def dedupe(recipients: Iterable[Recipient]) -> list[Recipient]:
    """Drop repeated recipients, keeping first occurrence order.

    Users are keyed by id, guests by lower-cased email.
    """
    seen: set[object] = set()
    unique: list[Recipient] = []
    for recipient in recipients:
        key: object = recipient.id if recipient.id is not None else recipient.email.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(recipient)
    return unique


def targeted_or_broadcast(recipient_ids: Iterable[int] | None) -> RecipientSelector:
    """Select listed users, or everyone when the list is empty."""
    ids = list(recipient_ids or [])
    if ids:
        return ByIds.of(ids)
    return Broadcast()
