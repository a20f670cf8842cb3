# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Email notification channel using async SMTP.

This channel sends email notifications using aiosmtplib. Messages carry a
plain-text part and an HTML part wrapped in the academy's branding.

Configuration (via environment variables):
- SMTP_HOST: SMTP server hostname
- SMTP_PORT: SMTP server port (default: 587)
- SMTP_USER: SMTP authentication username
- SMTP_PASS: SMTP authentication password
- SMTP_USE_TLS: Use STARTTLS (default: true)
- SMTP_FROM_EMAIL: Sender email address
- SMTP_FROM_NAME: Sender display name

Without host, user and password the channel runs in test mode: every send
is logged as skipped and nothing touches the network.
"""

import html
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid

import aiosmtplib

from academy.core.config.settings import SMTPSettings
from academy.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)
from academy.utils.datetime import current_year

TEST_MODE_REASON = "SMTP not configured (test mode)"


class EmailChannel(BaseChannel):
    """Email notification channel using async SMTP.

    Args:
        settings: SMTP settings.
        academy: Academy display name used in the branding chrome.
    """

    def __init__(self, settings: SMTPSettings, academy: str) -> None:
        super().__init__()
        self._settings = settings
        self._academy = academy

        if settings.is_configured:
            self.logger.info(
                "Email channel configured with host %s:%s", settings.host, settings.port
            )
        else:
            self.logger.warning(
                "Email notifications in test mode: SMTP_HOST, SMTP_USER or "
                "SMTP_PASS not set, emails will be logged and not sent"
            )

    @property
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        return ChannelType.EMAIL

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Send an email via SMTP.

        Args:
            payload: The notification payload.

        Returns:
            ChannelResult with delivery status. Test mode yields SKIPPED.
        """
        recipient = payload.recipient
        subject = payload.message.subject

        if not recipient.email:
            return self.create_skipped_result("No recipient email address")

        if not self.is_configured:
            self.logger.info(
                "Email skipped (test mode) to %s: %s", recipient.email, subject
            )
            return self.create_skipped_result(TEST_MODE_REASON)

        message = self.build_message(payload)
        settings = self._settings

        try:
            await aiosmtplib.send(
                message,
                hostname=settings.host,
                port=settings.port,
                username=settings.user,
                password=settings.password.get_secret_value() if settings.password else None,
                start_tls=settings.use_tls,
                timeout=settings.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            self.logger.error(
                "Failed to send email to %s (%s): %s", recipient.email, subject, e
            )
            return self.create_failure_result(
                f"SMTP error: {e}", metadata={"recipient": recipient.email}
            )

        self.logger.info("Email sent to %s: %s", recipient.email, subject)
        return self.create_success_result(
            message_id=message["Message-ID"],
            metadata={"recipient": recipient.email},
        )

    def build_message(self, payload: NotificationPayload) -> MIMEMultipart:
        """Build the MIME message with plain-text and HTML parts."""
        message = MIMEMultipart("alternative")
        message["From"] = formataddr((self._settings.from_name, self._settings.from_email))
        message["To"] = payload.recipient.email
        message["Subject"] = payload.message.subject
        message["Message-ID"] = make_msgid()

        message.attach(MIMEText(self.build_plain_text(payload), "plain", "utf-8"))
        message.attach(MIMEText(self.build_html(payload), "html", "utf-8"))
        return message

    def build_plain_text(self, payload: NotificationPayload) -> str:
        """Build the plain-text body."""
        return "\n".join(
            [
                f"Dear {payload.recipient.name},",
                "",
                payload.message.body,
                "",
                "Sincerely,",
                f"The {self._academy} Team",
            ]
        )

    def build_html(self, payload: NotificationPayload) -> str:
        """Build the branded HTML body.

        The message body is HTML-escaped and newlines become ``<br>``.
        """
        academy = html.escape(self._academy)
        name = html.escape(payload.recipient.name)
        title = html.escape(payload.message.subject)
        body = html.escape(payload.message.body).replace("\n", "<br>")
        year = current_year()

        page = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
</head>
<body style="font-family: Georgia, 'Times New Roman', serif; line-height: 1.6;
             color: #1F2937; margin: 0; padding: 0; background-color: #F7F3EE;">
    <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <div style="background-color: #7B2D26; color: #FFFFFF; text-align: center;
                    padding: 24px; border-radius: 8px 8px 0 0;">
            <h1 style="margin: 0; font-size: 24px; letter-spacing: 1px;">{academy}</h1>
        </div>
        <div style="background-color: #FFFFFF; padding: 32px;
                    border-radius: 0 0 8px 8px;">
            <p style="margin: 0 0 16px 0;">Dear {name},</p>
            <p style="margin: 0 0 16px 0;">{body}</p>
            <p style="margin: 24px 0 0 0;">Sincerely,<br>The {academy} Team</p>
        </div>
        <div style="text-align: center; font-size: 12px; color: #9CA3AF; padding: 16px;">
            &copy; {year} {academy}. All rights reserved.
        </div>
    </div>
</body>
</html>
        """
        return page.strip()
