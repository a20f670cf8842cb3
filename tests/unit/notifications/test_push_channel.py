# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the FCM push channel."""

import asyncio
import json
import time
from unittest.mock import MagicMock

import httpx
import pytest

from academy.core.config.settings import FirebaseSettings
from academy.infrastructure.notifications.channels import (
    DeliveryStatus,
    NotificationPayload,
    PushChannel,
)
from academy.infrastructure.notifications.channels.push import (
    AUTHENTICATION_ERROR,
    INVALID_ARGUMENT,
    INVALID_REGISTRATION_TOKEN,
    TOKEN_NOT_REGISTERED,
    UNKNOWN_ERROR,
    map_fcm_error,
)
from academy.infrastructure.notifications.events import RenderedMessage
from academy.infrastructure.notifications.recipients import Recipient


def unregistered() -> httpx.Response:
    return httpx.Response(
        404,
        json={
            "error": {
                "code": 404,
                "message": "Requested entity was not found.",
                "status": "NOT_FOUND",
                "details": [
                    {
                        "@type": "type.googleapis.com/google.firebase.fcm.v1.FcmError",
                        "errorCode": "UNREGISTERED",
                    }
                ],
            }
        },
    )


class FakeFCM:
    """Answers FCM v1 requests per token."""

    def __init__(self, failures: dict[str, httpx.Response] | None = None) -> None:
        self.failures = failures or {}
        self.requests: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append({"headers": dict(request.headers), "url": str(request.url), **body})
        token = body["message"]["token"]
        if token in self.failures:
            return self.failures[token]
        return httpx.Response(200, json={"name": f"projects/academy-test/messages/{token}-id"})


@pytest.fixture
def firebase_settings() -> FirebaseSettings:
    return FirebaseSettings(project_id="academy-test", service_account_json=None)


@pytest.fixture
def credentials() -> MagicMock:
    return MagicMock(valid=True, token="access-token")


def make_channel(settings, credentials, fcm: FakeFCM) -> PushChannel:
    client = httpx.AsyncClient(transport=httpx.MockTransport(fcm))
    return PushChannel(settings, client=client, credentials=credentials)


def payload(tokens: list[str]) -> NotificationPayload:
    return NotificationPayload(
        recipient=Recipient(id=4, name="Asha", email="asha@example.com"),
        message=RenderedMessage(
            subject="New Invoice",
            body="An invoice was issued.",
            push_title="New Invoice",
            push_body="Invoice INV-2025-0001 issued.",
            data={"kind": "invoice_issued", "invoice_id": "1"},
        ),
        push_tokens=tokens,
    )


class TestMapFcmError:
    """Tests for FCM error mapping."""

    def test_unregistered_detail(self) -> None:
        response = unregistered()

        code, message = map_fcm_error(404, response.json())

        assert code == TOKEN_NOT_REGISTERED
        assert message == "Requested entity was not found."

    def test_invalid_registration_token(self) -> None:
        body = {
            "error": {
                "status": "INVALID_ARGUMENT",
                "message": "The registration token is not a valid FCM registration token",
            }
        }

        assert map_fcm_error(400, body)[0] == INVALID_REGISTRATION_TOKEN

    def test_invalid_argument(self) -> None:
        body = {"error": {"status": "INVALID_ARGUMENT", "message": "Invalid JSON payload"}}

        assert map_fcm_error(400, body)[0] == INVALID_ARGUMENT

    def test_unauthenticated(self) -> None:
        body = {"error": {"status": "UNAUTHENTICATED", "message": "Bad credentials"}}

        assert map_fcm_error(401, body)[0] == AUTHENTICATION_ERROR

    def test_non_json_body(self) -> None:
        assert map_fcm_error(502, None) == (UNKNOWN_ERROR, "HTTP 502")

    def test_bare_404(self) -> None:
        assert map_fcm_error(404, "Not Found")[0] == TOKEN_NOT_REGISTERED


class TestPushChannelConfiguration:
    """Tests for credential handling."""

    def test_disabled_without_credentials(self) -> None:
        channel = PushChannel(FirebaseSettings(service_account_json=None, credentials_path=None))

        assert channel.is_configured is False

    @pytest.mark.asyncio
    async def test_disabled_channel_skips(self) -> None:
        channel = PushChannel(FirebaseSettings(service_account_json=None, credentials_path=None))

        result = await channel.send(payload(["t1"]))

        assert result.status == DeliveryStatus.SKIPPED

    def test_malformed_inline_json_disables_push(self) -> None:
        settings = FirebaseSettings(service_account_json="{not json", credentials_path=None)

        channel = PushChannel(settings)

        assert channel.is_configured is False

    def test_credentials_without_project_id_disable_push(self) -> None:
        credentials = MagicMock(valid=True, token="t", project_id=None)

        channel = PushChannel(FirebaseSettings(project_id=None), credentials=credentials)

        assert channel.is_configured is False


class TestPushChannelSend:
    """Tests for multicast sends."""

    @pytest.mark.asyncio
    async def test_sends_one_request_per_token(self, firebase_settings, credentials) -> None:
        fcm = FakeFCM()
        channel = make_channel(firebase_settings, credentials, fcm)

        result = await channel.send(payload(["tok-a", "tok-b"]))

        assert result.ok is True
        assert result.metadata["success_count"] == 2
        assert result.metadata["invalid_tokens"] == []
        assert sorted(r["message"]["token"] for r in fcm.requests) == ["tok-a", "tok-b"]
        request = fcm.requests[0]
        assert request["url"] == (
            "https://fcm.googleapis.com/v1/projects/academy-test/messages:send"
        )
        assert request["headers"]["authorization"] == "Bearer access-token"
        assert request["message"]["notification"] == {
            "title": "New Invoice",
            "body": "Invoice INV-2025-0001 issued.",
        }
        assert request["message"]["data"] == {"kind": "invoice_issued", "invoice_id": "1"}
        assert request["message"]["android"]["priority"] == "high"

    @pytest.mark.asyncio
    async def test_responses_follow_token_order(self, firebase_settings, credentials) -> None:
        fcm = FakeFCM(failures={"stale": unregistered()})
        channel = make_channel(firebase_settings, credentials, fcm)

        batch = await channel.send_multicast(["good", "stale", "other"], "t", "b")

        assert [r.success for r in batch.responses] == [True, False, True]
        assert batch.responses[1].error_code == TOKEN_NOT_REGISTERED
        assert batch.success_count == 2
        assert batch.failure_count == 1

    @pytest.mark.asyncio
    async def test_invalid_tokens_reported(self, firebase_settings, credentials) -> None:
        fcm = FakeFCM(failures={"stale": unregistered()})
        channel = make_channel(firebase_settings, credentials, fcm)

        result = await channel.send(payload(["good", "stale"]))

        assert result.ok is True
        assert result.metadata["invalid_tokens"] == ["stale"]

    @pytest.mark.asyncio
    async def test_transient_errors_do_not_invalidate(self, firebase_settings, credentials) -> None:
        busy = httpx.Response(503, json={"error": {"status": "UNAVAILABLE", "message": "busy"}})
        fcm = FakeFCM(failures={"tok": busy})
        channel = make_channel(firebase_settings, credentials, fcm)

        result = await channel.send(payload(["tok"]))

        assert result.status == DeliveryStatus.FAILED
        assert result.metadata["invalid_tokens"] == []

    @pytest.mark.asyncio
    async def test_no_tokens_skips(self, firebase_settings, credentials) -> None:
        channel = make_channel(firebase_settings, credentials, FakeFCM())

        result = await channel.send(payload([]))

        assert result.status == DeliveryStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_network_error_is_unknown(self, firebase_settings, credentials) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        channel = PushChannel(firebase_settings, client=client, credentials=credentials)

        batch = await channel.send_multicast(["tok"], "t", "b")

        assert batch.responses[0].error_code == UNKNOWN_ERROR

    @pytest.mark.asyncio
    async def test_refresh_failure_fails_every_token(self, firebase_settings) -> None:
        from google.auth.exceptions import RefreshError

        credentials = MagicMock(valid=False, token=None)
        credentials.refresh.side_effect = RefreshError("expired key")
        channel = make_channel(firebase_settings, credentials, FakeFCM())

        batch = await channel.send_multicast(["a", "b"], "t", "b")

        assert [r.error_code for r in batch.responses] == [AUTHENTICATION_ERROR] * 2

    @pytest.mark.asyncio
    async def test_accepted_send_with_unreadable_body(self, firebase_settings, credentials) -> None:
        fcm = FakeFCM(failures={"tok": httpx.Response(200, text="<html>OK</html>")})
        channel = make_channel(firebase_settings, credentials, fcm)

        result = await channel.send(payload(["tok", "other"]))

        batch = result.metadata["batch"]
        assert [r.success for r in batch.responses] == [True, True]
        assert batch.responses[0].message_id == ""
        assert batch.responses[1].message_id == "other-id"

    @pytest.mark.asyncio
    async def test_concurrent_sends_share_one_refresh(self, firebase_settings) -> None:
        credentials = MagicMock(valid=False, token=None)

        def refresh(request) -> None:
            time.sleep(0.05)
            credentials.valid = True
            credentials.token = "fresh-token"

        credentials.refresh.side_effect = refresh
        fcm = FakeFCM()
        channel = make_channel(firebase_settings, credentials, fcm)

        results = await asyncio.gather(
            *(channel.send(payload([f"tok-{n}"])) for n in range(3))
        )

        assert all(result.ok for result in results)
        assert credentials.refresh.call_count == 1
        assert {r["headers"]["authorization"] for r in fcm.requests} == {"Bearer fresh-token"}

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self, firebase_settings, credentials) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(FakeFCM()))
        channel = PushChannel(firebase_settings, client=client, credentials=credentials)

        await channel.close()

        assert client.is_closed is False
        await client.aclose()
