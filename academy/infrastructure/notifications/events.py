# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed notification events.

Each domain event that reaches users is one of a closed set of variants.
A variant carries a typed payload, names its audience through recipient
selectors, and renders one message per recipient for every channel. The
fan-out is generic over the variant: it never builds message text itself.

Example:
    event = InvoiceIssued(
        invoice_id=12,
        invoice_number="INV-2025-0012",
        student_id=4,
        amount=Decimal("1500.00"),
        currency="INR",
        due_date=date(2025, 7, 1),
    )
    fanout.notify(event)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import ClassVar

from academy.infrastructure.database.models.notification import NotificationType
from academy.infrastructure.notifications.recipients import (
    ByIds,
    ByRole,
    Guest,
    Recipient,
    RecipientSelector,
    targeted_or_broadcast,
)

ADMIN_ROLE = "Admin"


@dataclass(frozen=True)
class RenderedMessage:
    """One recipient's view of an event.

    Attributes:
        subject: Email subject and in-app title.
        body: Plain-text body for email and the in-app row.
        push_title: Push notification title.
        push_body: Push notification body (short form).
        type: In-app notification type.
        data: String key/values attached to push messages.
    """

    subject: str
    body: str
    push_title: str
    push_body: str
    type: NotificationType = NotificationType.INFO
    data: dict[str, str] = field(default_factory=dict)


def _fmt_date(value: date | None) -> str:
    return value.strftime("%d %b %Y") if value else "TBD"


def _fmt_amount(amount: Decimal, currency: str) -> str:
    return f"{currency} {amount:,.2f}"


class NotificationEvent(ABC):
    """Base class for all notification variants."""

    kind: ClassVar[str]

    @abstractmethod
    def selectors(self) -> list[RecipientSelector]:
        """Describe the audience of this event."""
        ...

    @abstractmethod
    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        """Render the message a recipient receives.

        Args:
            recipient: The resolved recipient.
            academy: Academy display name used in branding.

        Returns:
            The rendered message.
        """
        ...

    def _data(self, **extra: object) -> dict[str, str]:
        data = {"kind": self.kind}
        data.update({key: str(value) for key, value in extra.items() if value is not None})
        return data


@dataclass(frozen=True)
class Registration(NotificationEvent):
    """A user registered, or an admin created a user.

    The new user receives a welcome; every admin receives an alert.
    """

    kind: ClassVar[str] = "registration"

    user_id: int
    name: str
    email: str
    role: str
    user_code: str | None = None

    def selectors(self) -> list[RecipientSelector]:
        return [ByIds.of([self.user_id]), ByRole(ADMIN_ROLE)]

    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        if recipient.id == self.user_id:
            code = f" Your user code is {self.user_code}." if self.user_code else ""
            body = (
                f"Registration successful for {self.name}.{code}\n"
                "Your application is being reviewed by our admin team."
            )
            return RenderedMessage(
                subject=f"Welcome to {academy}!",
                body=body,
                push_title=f"Welcome to {academy}!",
                push_body=f"Registration successful for {self.name}.",
                type=NotificationType.SUCCESS,
                data=self._data(user_id=self.user_id),
            )

        return RenderedMessage(
            subject=f"New {self.role} Registration",
            body=(
                f"New {self.role.lower()} {self.name} ({self.email}) has registered. "
                "Please review their application."
            ),
            push_title=f"New {self.role} Registration",
            push_body=f"{self.name} has registered.",
            type=NotificationType.INFO,
            data=self._data(user_id=self.user_id),
        )


@dataclass(frozen=True)
class BatchAllocation(NotificationEvent):
    """Students were newly added to a batch.

    Only students absent from the batch before the write are listed.
    """

    kind: ClassVar[str] = "batch_allocation"

    batch_id: int
    batch_name: str
    student_ids: tuple[int, ...]
    course_name: str | None = None
    teacher_name: str | None = None
    schedule: str | None = None

    def selectors(self) -> list[RecipientSelector]:
        return [ByIds.of(self.student_ids)]

    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        lines = [f'{recipient.name} has been allocated to batch "{self.batch_name}".']
        if self.course_name:
            lines.append(f"Course: {self.course_name}")
        if self.teacher_name:
            lines.append(f"Teacher: {self.teacher_name}")
        if self.schedule:
            lines.append(f"Schedule: {self.schedule}")
        return RenderedMessage(
            subject="Batch Allocation Confirmed",
            body="\n".join(lines),
            push_title="Batch Allocation Confirmed",
            push_body=f"You have been added to {self.batch_name}.",
            type=NotificationType.SUCCESS,
            data=self._data(batch_id=self.batch_id),
        )


@dataclass(frozen=True)
class InvoiceIssued(NotificationEvent):
    """A new invoice was issued to a student."""

    kind: ClassVar[str] = "invoice_issued"

    invoice_id: int
    invoice_number: str | None
    student_id: int
    amount: Decimal
    currency: str = "INR"
    due_date: date | None = None
    course_name: str | None = None

    def selectors(self) -> list[RecipientSelector]:
        return [ByIds.of([self.student_id])]

    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        number = self.invoice_number or f"#{self.invoice_id}"
        amount = _fmt_amount(self.amount, self.currency)
        lines = [f"A new invoice {number} for {amount} has been issued."]
        if self.course_name:
            lines.append(f"Course: {self.course_name}")
        lines.append(f"Due date: {_fmt_date(self.due_date)}")
        return RenderedMessage(
            subject=f"New Invoice {number}",
            body="\n".join(lines),
            push_title="New Invoice",
            push_body=f"Invoice {number} for {amount} is due {_fmt_date(self.due_date)}.",
            type=NotificationType.INFO,
            data=self._data(invoice_id=self.invoice_id),
        )


@dataclass(frozen=True)
class InvoicePaid(NotificationEvent):
    """An invoice was recorded as paid."""

    kind: ClassVar[str] = "invoice_paid"

    invoice_id: int
    invoice_number: str | None
    student_id: int
    amount: Decimal
    currency: str = "INR"

    def selectors(self) -> list[RecipientSelector]:
        return [ByIds.of([self.student_id])]

    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        number = self.invoice_number or f"#{self.invoice_id}"
        amount = _fmt_amount(self.amount, self.currency)
        return RenderedMessage(
            subject=f"Payment Received for Invoice {number}",
            body=f"We have received your payment of {amount} for invoice {number}.\nThank you!",
            push_title="Payment Received",
            push_body=f"Payment of {amount} received for {number}.",
            type=NotificationType.SUCCESS,
            data=self._data(invoice_id=self.invoice_id),
        )


@dataclass(frozen=True)
class Notice(NotificationEvent):
    """A notice was posted."""

    kind: ClassVar[str] = "notice"

    notice_id: int
    title: str
    content: str
    priority: str = "normal"
    recipient_ids: tuple[int, ...] = ()

    def selectors(self) -> list[RecipientSelector]:
        return [targeted_or_broadcast(self.recipient_ids)]

    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        urgent = self.priority.lower() in ("high", "urgent")
        return RenderedMessage(
            subject=f"Notice: {self.title}",
            body=self.content,
            push_title=f"Notice: {self.title}",
            push_body=self.content[:140],
            type=NotificationType.WARNING if urgent else NotificationType.INFO,
            data=self._data(notice_id=self.notice_id),
        )


@dataclass(frozen=True)
class Event(NotificationEvent):
    """An academy event was announced."""

    kind: ClassVar[str] = "event"

    event_id: int
    title: str
    description: str | None = None
    event_date: date | None = None
    location: str | None = None
    recipient_ids: tuple[int, ...] = ()

    def selectors(self) -> list[RecipientSelector]:
        return [targeted_or_broadcast(self.recipient_ids)]

    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        lines = [self.description] if self.description else []
        lines.append(f"Date: {_fmt_date(self.event_date)}")
        lines.append(f"Location: {self.location or 'TBD'}")
        return RenderedMessage(
            subject=f"New Event: {self.title}",
            body="\n".join(lines),
            push_title=f"New Event: {self.title}",
            push_body=f"{_fmt_date(self.event_date)} at {self.location or 'TBD'}",
            type=NotificationType.INFO,
            data=self._data(event_id=self.event_id),
        )


@dataclass(frozen=True)
class GradeExam(NotificationEvent):
    """A grade exam was scheduled."""

    kind: ClassVar[str] = "grade_exam"

    exam_id: int
    exam_name: str
    course: str | None = None
    exam_date: date | None = None
    location: str | None = None
    recipient_ids: tuple[int, ...] = ()

    def selectors(self) -> list[RecipientSelector]:
        return [targeted_or_broadcast(self.recipient_ids)]

    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        lines = [f"{self.exam_name} has been scheduled."]
        if self.course:
            lines.append(f"Course: {self.course}")
        lines.append(f"Date: {_fmt_date(self.exam_date)}")
        lines.append(f"Location: {self.location or 'TBD'}")
        return RenderedMessage(
            subject=f"Grade Exam: {self.exam_name}",
            body="\n".join(lines),
            push_title=f"Grade Exam: {self.exam_name}",
            push_body=f"Scheduled for {_fmt_date(self.exam_date)}.",
            type=NotificationType.INFO,
            data=self._data(exam_id=self.exam_id),
        )


@dataclass(frozen=True)
class MaterialShared(NotificationEvent):
    """Study material was shared."""

    kind: ClassVar[str] = "material"

    material_id: int
    title: str
    course: str | None = None
    recipient_ids: tuple[int, ...] = ()

    def selectors(self) -> list[RecipientSelector]:
        return [targeted_or_broadcast(self.recipient_ids)]

    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        subject_line = f" Subject: {self.course}" if self.course else ""
        return RenderedMessage(
            subject=f"New Study Material: {self.title}",
            body=f'New study material "{self.title}" has been shared with you.{subject_line}',
            push_title=f"New Study Material: {self.title}",
            push_body=f'"{self.title}" has been shared with you.',
            type=NotificationType.INFO,
            data=self._data(material_id=self.material_id),
        )


@dataclass(frozen=True)
class DemoBookingReceived(NotificationEvent):
    """A demo class was requested from the public site.

    Admins receive an alert; the requester receives a confirmation by email.
    """

    kind: ClassVar[str] = "demo_booking"

    booking_id: int
    student_name: str
    email: str
    phone: str | None = None
    course: str | None = None
    preferred_date: date | None = None

    def selectors(self) -> list[RecipientSelector]:
        return [ByRole(ADMIN_ROLE), Guest(self.student_name, self.email)]

    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        course = self.course or "a course"
        if recipient.is_guest:
            body = (
                f"Thank you for your interest in {academy}!\n\n"
                f"We have received your demo class booking request for {course}.\n"
                f"Preferred date: {_fmt_date(self.preferred_date)}\n\n"
                "Our team will contact you within 24 hours to schedule your demo class."
            )
            return RenderedMessage(
                subject=f"Demo Class Booking Confirmation - {academy}",
                body=body,
                push_title="Demo Class Booking Confirmation",
                push_body=f"We received your demo request for {course}.",
                type=NotificationType.SUCCESS,
                data=self._data(booking_id=self.booking_id),
            )

        return RenderedMessage(
            subject="New Demo Class Booking",
            body=(
                f"{self.student_name} has requested a demo class for {course}.\n"
                f"Email: {self.email}\nPhone: {self.phone or 'N/A'}\n"
                f"Preferred date: {_fmt_date(self.preferred_date)}"
            ),
            push_title="New Demo Class Booking",
            push_body=f"{self.student_name} requested a demo for {course}.",
            type=NotificationType.INFO,
            data=self._data(booking_id=self.booking_id),
        )


DEMO_STATUS_MESSAGES: dict[str, tuple[str, str, NotificationType]] = {
    "confirmed": (
        "Demo Class Confirmed",
        "Your demo class for {course} has been confirmed for {date}. We look forward to seeing you!",
        NotificationType.SUCCESS,
    ),
    "cancelled": (
        "Demo Class Cancelled",
        "Your demo class for {course} has been cancelled. Please contact us to reschedule.",
        NotificationType.WARNING,
    ),
    "completed": (
        "Thank You for Attending",
        "Thank you for attending the demo class for {course}. We hope to welcome you as a student soon!",
        NotificationType.INFO,
    ),
}


@dataclass(frozen=True)
class DemoStatusChanged(NotificationEvent):
    """A demo booking moved to confirmed, cancelled or completed."""

    kind: ClassVar[str] = "demo_status"

    booking_id: int
    student_name: str
    email: str
    status: str
    course: str | None = None
    preferred_date: date | None = None

    def __post_init__(self) -> None:
        if self.status not in DEMO_STATUS_MESSAGES:
            raise ValueError(f"No message for demo booking status {self.status!r}")

    @classmethod
    def notifies(cls, status: str | None) -> bool:
        """Check whether a status change produces a message."""
        return status in DEMO_STATUS_MESSAGES

    def selectors(self) -> list[RecipientSelector]:
        return [Guest(self.student_name, self.email)]

    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        title, template, notification_type = DEMO_STATUS_MESSAGES[self.status]
        body = template.format(
            course=self.course or "your selected course",
            date=_fmt_date(self.preferred_date),
        )
        return RenderedMessage(
            subject=f"{title} - {academy}",
            body=body,
            push_title=title,
            push_body=body[:140],
            type=notification_type,
            data=self._data(booking_id=self.booking_id, status=self.status),
        )


@dataclass(frozen=True)
class AdminMessage(NotificationEvent):
    """A free-form message an admin sent to selected users."""

    kind: ClassVar[str] = "admin_message"

    user_ids: tuple[int, ...]
    subject: str
    message: str
    type: NotificationType = NotificationType.INFO

    def selectors(self) -> list[RecipientSelector]:
        return [ByIds.of(self.user_ids)]

    def render(self, recipient: Recipient, academy: str) -> RenderedMessage:
        return RenderedMessage(
            subject=self.subject,
            body=self.message,
            push_title=self.subject,
            push_body=self.message[:140],
            type=self.type,
            data=self._data(),
        )
