# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Push notification channel using Firebase Cloud Messaging.

This channel sends push notifications to mobile devices using the FCM
HTTP v1 API. A multicast sends the same notification to every token of a
recipient and reports one response per token, in token order.

Configuration (via environment variables):
- FIREBASE_SERVICE_ACCOUNT_JSON: Inline service account JSON
- GOOGLE_APPLICATION_CREDENTIALS: Path to a service account JSON file
- FIREBASE_PROJECT_ID: Optional project id override
- FIREBASE_ANDROID_CHANNEL: Android notification channel id

Without credentials push is disabled for the life of the process.
"""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from academy.core.config.settings import FirebaseSettings
from academy.infrastructure.notifications.channels.base import (
    BaseChannel,
    ChannelResult,
    ChannelType,
    NotificationPayload,
)

# FCM HTTP v1 API endpoint template
FCM_API_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
FCM_SCOPE = "https://www.googleapis.com/auth/firebase.messaging"

TOKEN_NOT_REGISTERED = "messaging/registration-token-not-registered"
INVALID_REGISTRATION_TOKEN = "messaging/invalid-registration-token"
INVALID_ARGUMENT = "messaging/invalid-argument"
AUTHENTICATION_ERROR = "messaging/authentication-error"
UNKNOWN_ERROR = "messaging/unknown-error"

# Error codes after which a token must not be used again
INVALID_TOKEN_CODES = frozenset(
    {TOKEN_NOT_REGISTERED, INVALID_REGISTRATION_TOKEN, INVALID_ARGUMENT}
)

# FCM v1 errorCode / status -> messaging/* code
FCM_ERROR_CODES = {
    "UNREGISTERED": TOKEN_NOT_REGISTERED,
    "NOT_FOUND": TOKEN_NOT_REGISTERED,
    "INVALID_ARGUMENT": INVALID_ARGUMENT,
    "SENDER_ID_MISMATCH": "messaging/mismatched-credential",
    "QUOTA_EXCEEDED": "messaging/message-rate-exceeded",
    "RESOURCE_EXHAUSTED": "messaging/message-rate-exceeded",
    "UNAVAILABLE": "messaging/server-unavailable",
    "INTERNAL": "messaging/internal-error",
    "THIRD_PARTY_AUTH_ERROR": "messaging/third-party-auth-error",
    "UNAUTHENTICATED": AUTHENTICATION_ERROR,
    "PERMISSION_DENIED": AUTHENTICATION_ERROR,
}


@dataclass
class SendResponse:
    """Outcome for one token of a multicast.

    Attributes:
        success: Whether FCM accepted the message.
        message_id: FCM message id on success.
        error_code: messaging/* code on failure.
        error_message: Provider error text on failure.
    """

    success: bool
    message_id: str | None = None
    error_code: str | None = None
    error_message: str | None = None


@dataclass
class BatchResponse:
    """Outcome of a multicast, one response per token in token order."""

    responses: list[SendResponse] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.responses if r.success)

    @property
    def failure_count(self) -> int:
        return len(self.responses) - self.success_count


def map_fcm_error(status_code: int, body: Any) -> tuple[str, str]:
    """Map an FCM v1 error response onto a messaging/* code.

    Args:
        status_code: HTTP status of the response.
        body: Decoded JSON body, or anything else when it was not JSON.

    Returns:
        Tuple of (messaging code, provider message).
    """
    error = body.get("error", {}) if isinstance(body, dict) else {}
    message = str(error.get("message", "")) or f"HTTP {status_code}"
    status = str(error.get("status", ""))

    fcm_code = ""
    for detail in error.get("details", []) or []:
        if isinstance(detail, dict) and detail.get("errorCode"):
            fcm_code = str(detail["errorCode"])
            break

    code = FCM_ERROR_CODES.get(fcm_code) or FCM_ERROR_CODES.get(status)
    if code == INVALID_ARGUMENT and "registration token" in message.lower():
        code = INVALID_REGISTRATION_TOKEN
    if code is None:
        code = TOKEN_NOT_REGISTERED if status_code == 404 else UNKNOWN_ERROR
    return code, message


class PushChannel(BaseChannel):
    """Push notification channel using Firebase Cloud Messaging.

    Args:
        settings: Firebase settings.
        client: Optional HTTP client; one is created on first use otherwise.
        credentials: Optional pre-built google-auth credentials.
    """

    def __init__(
        self,
        settings: FirebaseSettings,
        client: httpx.AsyncClient | None = None,
        credentials: Any | None = None,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._client = client
        self._owns_client = client is None
        self._credentials = credentials
        self._project_id: str | None = settings.project_id
        self._init_error: str | None = None
        self._refresh_lock = asyncio.Lock()

        if self._credentials is None:
            self._load_credentials()
        elif self._project_id is None:
            self._project_id = getattr(credentials, "project_id", None)

        if self._credentials is not None and not self._project_id:
            self._credentials = None
            self._init_error = "Firebase project id unknown"

        if self.is_configured:
            self.logger.info("FCM push channel initialized for project %s", self._project_id)
        else:
            self.logger.warning("Push notifications disabled: %s", self._init_error)

    @property
    def channel_type(self) -> ChannelType:
        """Return the channel type."""
        return ChannelType.PUSH

    @property
    def is_configured(self) -> bool:
        return self._credentials is not None

    def _load_credentials(self) -> None:
        settings = self._settings
        try:
            if settings.service_account_json:
                info = json.loads(settings.service_account_json.get_secret_value())
                self._credentials = service_account.Credentials.from_service_account_info(
                    info, scopes=[FCM_SCOPE]
                )
            elif settings.credentials_path:
                self._credentials = service_account.Credentials.from_service_account_file(
                    settings.credentials_path, scopes=[FCM_SCOPE]
                )
            else:
                self._init_error = (
                    "FIREBASE_SERVICE_ACCOUNT_JSON or GOOGLE_APPLICATION_CREDENTIALS not set"
                )
                return
        except (ValueError, OSError, GoogleAuthError) as e:
            self._init_error = f"Failed to load Firebase credentials: {e}"
            return

        if self._project_id is None:
            self._project_id = getattr(self._credentials, "project_id", None)

    async def _get_access_token(self) -> str | None:
        """Get an OAuth2 access token, refreshing it when needed.

        Concurrent callers share one refresh.
        """
        if self._credentials is None:
            return None

        async with self._refresh_lock:
            if not getattr(self._credentials, "valid", False):
                try:
                    await asyncio.to_thread(self._credentials.refresh, Request())
                except (GoogleAuthError, OSError) as e:
                    self.logger.error("Failed to get FCM access token: %s", e)
                    return None
            return self._credentials.token

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this channel created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def send(self, payload: NotificationPayload) -> ChannelResult:
        """Send one push notification to all of a recipient's tokens.

        Args:
            payload: The notification payload; push_tokens must be set.

        Returns:
            ChannelResult whose metadata carries the BatchResponse and the
            tokens the provider reported invalid.
        """
        if not self.is_configured:
            return self.create_skipped_result(self._init_error or "Push channel not configured")

        if not payload.push_tokens:
            return self.create_skipped_result("No push tokens available")

        message = payload.message
        batch = await self.send_multicast(
            payload.push_tokens,
            title=message.push_title,
            body=message.push_body,
            data=message.data,
        )

        invalid_tokens = [
            token
            for token, response in zip(payload.push_tokens, batch.responses)
            if not response.success and response.error_code in INVALID_TOKEN_CODES
        ]
        metadata = {
            "batch": batch,
            "success_count": batch.success_count,
            "failure_count": batch.failure_count,
            "invalid_tokens": invalid_tokens,
        }

        if batch.success_count == 0:
            self.logger.warning(
                "All %d push notifications failed for user %s (%s)",
                batch.failure_count,
                payload.recipient.id,
                message.push_title,
            )
            return self.create_failure_result(
                f"All {batch.failure_count} push notifications failed", metadata=metadata
            )

        return self.create_success_result(
            message_id=next(r.message_id for r in batch.responses if r.success),
            metadata=metadata,
        )

    async def send_multicast(
        self,
        tokens: list[str],
        title: str,
        body: str,
        data: dict[str, str] | None = None,
    ) -> BatchResponse:
        """Send the same notification to several device tokens.

        Args:
            tokens: Device registration tokens.
            title: Notification title.
            body: Notification body.
            data: String key/value data payload.

        Returns:
            BatchResponse with one SendResponse per token, in order.
        """
        access_token = await self._get_access_token()
        if not access_token:
            return BatchResponse(
                responses=[
                    SendResponse(
                        success=False,
                        error_code=AUTHENTICATION_ERROR,
                        error_message="Failed to obtain access token",
                    )
                    for _ in tokens
                ]
            )

        responses = await asyncio.gather(
            *(
                self._send_to_token(token, title, body, data or {}, access_token)
                for token in tokens
            )
        )
        return BatchResponse(responses=list(responses))

    async def _send_to_token(
        self,
        token: str,
        title: str,
        body: str,
        data: dict[str, str],
        access_token: str,
    ) -> SendResponse:
        url = FCM_API_URL.format(project_id=self._project_id)
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._get_client().post(
                url,
                headers=headers,
                json={"message": self.build_message(token, title, body, data)},
            )
        except httpx.HTTPError as e:
            self.logger.error("Failed to send push to token %s...: %s", token[:12], e)
            return SendResponse(success=False, error_code=UNKNOWN_ERROR, error_message=str(e))

        if response.status_code == 200:
            try:
                sent: Any = response.json()
            except ValueError:
                sent = None
            name = sent.get("name", "") if isinstance(sent, dict) else ""
            message_id = str(name).split("/")[-1]
            return SendResponse(success=True, message_id=message_id)

        try:
            error_body: Any = response.json()
        except ValueError:
            error_body = None
        code, error_message = map_fcm_error(response.status_code, error_body)
        self.logger.warning(
            "FCM request failed (%d, %s) for token %s...: %s",
            response.status_code,
            code,
            token[:12],
            error_message,
        )
        return SendResponse(success=False, error_code=code, error_message=error_message)

    def build_message(
        self,
        token: str,
        title: str,
        body: str,
        data: dict[str, str],
    ) -> dict[str, Any]:
        """Build an FCM v1 message with Android and iOS shaping."""
        return {
            "token": token,
            "notification": {"title": title, "body": body},
            "data": {key: str(value) for key, value in data.items()},
            "android": {
                "priority": "high",
                "notification": {
                    "sound": "default",
                    "channel_id": self._settings.android_channel,
                },
            },
            "apns": {
                "payload": {
                    "aps": {
                        "sound": "default",
                        "badge": 1,
                    },
                },
            },
        }
