# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the HTTP surface.

The application is built without running its lifespan, so no database or
notification workers exist unless a test places stand-ins on app.state.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from academy.api.app import create_app
from academy.api.dependencies import get_batch_service, get_notification_service
from academy.domains.batch.service import BatchCapacityError, BatchNotFoundError
from academy.infrastructure.database.connection import DatabaseError
from academy.infrastructure.database.migrations import SchemaEvolutionError


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def admin_headers(app) -> dict[str, str]:
    token = app.state.jwt_manager.create_access_token(
        user_id=1, role="Admin", email="director@fineart.io", name="Director"
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers(app) -> dict[str, str]:
    token = app.state.jwt_manager.create_access_token(
        user_id=4, role="Student", email="asha@fineart.io", name="Asha"
    )
    return {"Authorization": f"Bearer {token}"}


class TestHealth:
    """Tests for health endpoints."""

    def test_liveness(self, client) -> None:
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_uninitialized_components_are_unhealthy(self, client) -> None:
        body = client.get("/health").json()

        assert body["status"] == "unhealthy"
        assert body["components"]["database"]["status"] == "unhealthy"
        assert body["components"]["notifications"]["status"] == "unhealthy"

    def test_degraded_channels_keep_service_healthy(self, app, client) -> None:
        app.state.database = MagicMock(check_connection=AsyncMock(return_value=True))
        app.state.fanout = MagicMock(
            email_configured=False, push_configured=False, is_running=True
        )

        body = client.get("/health").json()

        assert body["status"] == "healthy"
        notifications = body["components"]["notifications"]
        assert notifications["status"] == "degraded"
        assert "email in test mode" in notifications["message"]


class TestAccessControl:
    """Tests for the authentication and role checks."""

    def test_anonymous_is_rejected(self, client) -> None:
        response = client.get("/api/admin/schema/status")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_garbage_token_is_anonymous(self, client) -> None:
        response = client.get(
            "/api/admin/schema/status", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401

    def test_student_is_forbidden(self, client, student_headers) -> None:
        response = client.get("/api/admin/schema/status", headers=student_headers)

        assert response.status_code == 403


class TestSchemaStatus:
    """Tests for GET /api/admin/schema/status."""

    def test_without_evolver(self, client, admin_headers) -> None:
        response = client.get("/api/admin/schema/status", headers=admin_headers)

        assert response.status_code == 503

    def test_unreachable_ledger(self, app, client, admin_headers) -> None:
        app.state.schema_evolver = MagicMock(
            get_status=AsyncMock(side_effect=SchemaEvolutionError("no database"))
        )

        response = client.get("/api/admin/schema/status", headers=admin_headers)

        assert response.status_code == 503

    def test_reports_ledger_and_last_run(self, app, client, admin_headers) -> None:
        app.state.schema_evolver = MagicMock(
            get_status=AsyncMock(
                return_value={
                    "applied": [{"name": "0001_base_tables"}],
                    "pending": ["0002_auxiliary_tables"],
                    "all_steps": ["0001_base_tables", "0002_auxiliary_tables"],
                    "is_up_to_date": False,
                }
            )
        )
        app.state.schema_result = MagicMock(to_dict=MagicMock(return_value={"fail_count": 1}))

        body = client.get("/api/admin/schema/status", headers=admin_headers).json()

        assert body["pending"] == ["0002_auxiliary_tables"]
        assert body["is_up_to_date"] is False
        assert body["last_run"] == {"fail_count": 1}


class TestBatchRoutes:
    """Tests for error mapping on batch endpoints."""

    @pytest.fixture
    def batch_service(self, app) -> AsyncMock:
        service = AsyncMock()
        app.dependency_overrides[get_batch_service] = lambda: service
        return service

    def test_capacity_is_bad_request(self, client, admin_headers, batch_service) -> None:
        batch_service.create_batch.side_effect = BatchCapacityError("Batch holds at most 2")

        response = client.post(
            "/api/batches",
            json={"batch_name": "Small", "student_ids": [1, 2, 3]},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Batch holds at most 2"

    def test_missing_batch_is_not_found(self, client, admin_headers, batch_service) -> None:
        batch_service.update_batch.side_effect = BatchNotFoundError("Batch 9 not found")

        response = client.put("/api/batches/9", json={"batch_name": "X"}, headers=admin_headers)

        assert response.status_code == 404

    def test_database_failure_is_500(self, client, admin_headers, batch_service) -> None:
        batch_service.list_batches.side_effect = DatabaseError("Database operation failed")

        response = client.get("/api/batches", headers=admin_headers)

        assert response.status_code == 500
        assert response.json() == {"detail": "A database error occurred."}


class TestAdminNotifications:
    """Tests for POST /api/admin/notifications."""

    def test_message_is_queued(self, app, client, admin_headers) -> None:
        service = MagicMock()
        service.send_admin_message.return_value = 2
        app.dependency_overrides[get_notification_service] = lambda: service

        response = client.post(
            "/api/admin/notifications",
            json={"user_ids": [3, 8], "title": "Closed", "message": "Studio closed"},
            headers=admin_headers,
        )

        assert response.status_code == 202
        assert response.json() == {"queued": True, "recipients": 2}

    def test_requires_admin(self, client, student_headers) -> None:
        response = client.post(
            "/api/admin/notifications",
            json={"user_ids": [3], "title": "Hi", "message": "Hello"},
            headers=student_headers,
        )

        assert response.status_code == 403
