# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification fan-out.

Request handlers hand a typed event to ``notify`` after their primary write
commits. ``notify`` only enqueues and returns; a small pool of background
worker tasks drains the queue and delivers each event.

Delivery per recipient:
1. Email, rendered into the branding template.
2. In-app row, and only once it is written,
3. Push to every active token of the recipient.

Email runs independently of the in-app/push chain. Channel failures are
logged and never raised. Tokens the provider reports invalid are
soft-deactivated.

No deduplication is done: an event handed over twice is delivered twice.

Example:
    fanout = NotificationFanout(repository, email, in_app, push, academy="Fine Art Academy")
    await fanout.start()
    fanout.notify(InvoicePaid(...))
    await fanout.stop()
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from academy.core.config.settings import NotificationSettings
from academy.infrastructure.database.connection import DatabaseError
from academy.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    NotificationPayload,
)
from academy.infrastructure.notifications.events import NotificationEvent
from academy.infrastructure.notifications.recipients import Recipient
from academy.infrastructure.notifications.repository import NotificationRepository
from academy.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)


@dataclass
class FanoutStats:
    """Running counters of the fan-out.

    Attributes:
        enqueued: Events accepted by notify().
        delivered: Events whose delivery ran to the end.
        dropped: Events rejected because the queue was full.
        failed: Events whose delivery ended early on an error.
        emails_sent: Emails handed to the SMTP server.
        in_app_created: In-app rows written.
        push_sent: Push messages accepted by the provider.
        tokens_deactivated: Tokens soft-deactivated after provider errors.
    """

    enqueued: int = 0
    delivered: int = 0
    dropped: int = 0
    failed: int = 0
    emails_sent: int = 0
    in_app_created: int = 0
    push_sent: int = 0
    tokens_deactivated: int = 0

    def to_dict(self) -> dict[str, int]:
        return dict(self.__dict__)


@dataclass
class RecipientDelivery:
    """Channel outcomes for one recipient.

    A None push result means no push was attempted (guest, no in-app row,
    no active tokens, or push disabled).
    """

    recipient: Recipient
    email: ChannelResult | None = None
    in_app: ChannelResult | None = None
    push: ChannelResult | None = None
    deactivated_tokens: list[str] = field(default_factory=list)


@dataclass
class FanoutResult:
    """Outcome of delivering one event."""

    kind: str
    deliveries: list[RecipientDelivery] = field(default_factory=list)
    error: str | None = None

    @property
    def recipient_count(self) -> int:
        return len(self.deliveries)


class NotificationFanout:
    """Queue-backed, best-effort delivery of notification events.

    Args:
        repository: Recipient, in-app and token storage.
        email: Email channel.
        in_app: In-app channel.
        push: Push channel.
        academy: Academy display name for message rendering.
        settings: Queue size, worker count and drain timeout.
    """

    def __init__(
        self,
        repository: NotificationRepository,
        email: BaseChannel,
        in_app: BaseChannel,
        push: BaseChannel,
        academy: str,
        settings: NotificationSettings | None = None,
    ) -> None:
        self._repository = repository
        self._email = email
        self._in_app = in_app
        self._push = push
        self._academy = academy
        self._settings = settings or NotificationSettings()
        self._queue: asyncio.Queue[NotificationEvent] = asyncio.Queue(
            maxsize=self._settings.queue_size
        )
        self._workers: list[asyncio.Task[None]] = []
        self.stats = FanoutStats()

        logger.info(
            "NotificationFanout ready (email=%s, push=%s)",
            "on" if email.is_configured else "test mode",
            "on" if push.is_configured else "disabled",
        )

    @property
    def is_running(self) -> bool:
        return any(not worker.done() for worker in self._workers)

    @property
    def queue_depth(self) -> int:
        return self._queue.qsize()

    @property
    def email_configured(self) -> bool:
        return self._email.is_configured

    @property
    def push_configured(self) -> bool:
        return self._push.is_configured

    def notify(self, event: NotificationEvent) -> None:
        """Hand an event over for delivery and return immediately.

        A full queue drops the event with a warning.

        Args:
            event: The notification event.
        """
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.stats.dropped += 1
            logger.warning(
                "Notification queue full (%d), dropping %s event",
                self._queue.maxsize,
                event.kind,
            )
            return
        self.stats.enqueued += 1

    async def start(self) -> None:
        """Start the delivery workers."""
        if self.is_running:
            return
        self._workers = [
            asyncio.create_task(self._worker(index), name=f"notification-worker-{index}")
            for index in range(max(1, self._settings.workers))
        ]
        logger.info("Started %d notification workers", len(self._workers))

    async def stop(self) -> None:
        """Drain the queue within the drain timeout, stop the workers, close the channels."""
        if self._workers:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=self._settings.drain_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Notification queue not drained within %.1fs, %d events left",
                    self._settings.drain_timeout,
                    self._queue.qsize(),
                )

        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        for channel in (self._email, self._in_app, self._push):
            await channel.close()
        logger.info("Notification workers stopped: %s", self.stats.to_dict())

    async def _worker(self, index: int) -> None:
        while True:
            event = await self._queue.get()
            bind_context(event_kind=event.kind, worker=index)
            try:
                await self.deliver(event)
            except Exception:
                self.stats.failed += 1
                logger.exception("Worker %d failed to deliver %s event", index, event.kind)
            finally:
                clear_context()
                self._queue.task_done()

    async def deliver(self, event: NotificationEvent) -> FanoutResult:
        """Deliver one event to all of its recipients.

        Args:
            event: The notification event.

        Returns:
            FanoutResult with per-recipient channel outcomes.
        """
        try:
            recipients = await self._repository.resolve_recipients(event.selectors())
        except DatabaseError as e:
            self.stats.failed += 1
            logger.error("Could not resolve recipients for %s event: %s", event.kind, e)
            return FanoutResult(kind=event.kind, error=str(e))

        if not recipients:
            logger.info("No recipients for %s event", event.kind)
            self.stats.delivered += 1
            return FanoutResult(kind=event.kind)

        outcomes = await asyncio.gather(
            *(self._deliver_to(event, recipient) for recipient in recipients),
            return_exceptions=True,
        )

        result = FanoutResult(kind=event.kind)
        for recipient, outcome in zip(recipients, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Delivery of %s event to %s failed: %s",
                    event.kind,
                    recipient.email,
                    outcome,
                )
                result.deliveries.append(RecipientDelivery(recipient=recipient))
                continue
            result.deliveries.append(outcome)

        self.stats.delivered += 1
        logger.info("Delivered %s event to %d recipients", event.kind, result.recipient_count)
        return result

    async def _deliver_to(
        self, event: NotificationEvent, recipient: Recipient
    ) -> RecipientDelivery:
        payload = NotificationPayload(
            recipient=recipient,
            message=event.render(recipient, self._academy),
        )
        delivery = RecipientDelivery(recipient=recipient)

        email_result, chain_result = await asyncio.gather(
            self._email.send(payload),
            self._in_app_then_push(payload, delivery),
            return_exceptions=True,
        )

        if isinstance(email_result, BaseException):
            logger.error(
                "Email to %s (%s) raised: %s",
                recipient.email,
                payload.message.subject,
                email_result,
            )
        else:
            delivery.email = email_result
            if email_result.ok:
                self.stats.emails_sent += 1

        if isinstance(chain_result, BaseException):
            logger.error(
                "In-app/push for user %s (%s) raised: %s",
                recipient.id,
                payload.message.subject,
                chain_result,
            )
        return delivery

    async def _in_app_then_push(
        self, payload: NotificationPayload, delivery: RecipientDelivery
    ) -> None:
        recipient = payload.recipient
        if recipient.is_guest:
            return

        delivery.in_app = await self._in_app.send(payload)
        if not delivery.in_app.ok:
            return
        self.stats.in_app_created += 1

        if not self._push.is_configured:
            return

        try:
            tokens = await self._repository.active_tokens(recipient.id)
        except DatabaseError as e:
            logger.error("Could not load push tokens for user %s: %s", recipient.id, e)
            return
        if not tokens:
            return

        push_payload = NotificationPayload(
            recipient=recipient,
            message=payload.message,
            push_tokens=[token.fcm_token for token in tokens],
        )
        delivery.push = await self._push.send(push_payload)
        self.stats.push_sent += int(delivery.push.metadata.get("success_count", 0))

        invalid = delivery.push.metadata.get("invalid_tokens", [])
        if invalid:
            delivery.deactivated_tokens = await self._deactivate_tokens(recipient.id, invalid)

    async def _deactivate_tokens(self, user_id: int, tokens: list[str]) -> list[str]:
        outcomes: list[Any] = await asyncio.gather(
            *(self._repository.deactivate_token(user_id, token) for token in tokens),
            return_exceptions=True,
        )
        deactivated = []
        for token, outcome in zip(tokens, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(
                    "Could not deactivate push token %s... for user %s: %s",
                    token[:12],
                    user_id,
                    outcome,
                )
                continue
            deactivated.append(token)
        self.stats.tokens_deactivated += len(deactivated)
        return deactivated

