"""
Tests for the HTTP middlewares.
Each middleware runs on a small app so its behaviour is isolated.
"""

import asyncio
import threading
import time
from unittest.mock import patch

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from tablebook_api.core.middlewares import (
    ContentTypeValidationMiddleware,
    RequestDeadlineMiddleware,
    SecurityHeadersMiddleware,
)
from tablebook_api.models import Restaurant
from tablebook_shared.infrastructure.correlation import (
    CorrelationIdFilter,
    CorrelationIdMiddleware,
    get_request_id,
)
from tablebook_shared.infrastructure.db import safe_commit
from tablebook_shared.utils.exceptions import TransientError


# =============================================================================
# RequestDeadlineMiddleware Tests
# =============================================================================

class TestRequestDeadlineMiddleware:
    """A request past its deadline is answered 503 with Retry-After."""

    @pytest.fixture
    def deadline_app(self):
        app = FastAPI()
        app.add_middleware(RequestDeadlineMiddleware, timeout_seconds=0.05)

        @app.get("/slow")
        async def slow_endpoint():
            await asyncio.sleep(1)
            return {"message": "late"}

        @app.get("/fast")
        async def fast_endpoint():
            return {"message": "ok"}

        return app

    def test_slow_request_gets_503(self, deadline_app):
        response = TestClient(deadline_app).get("/slow")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "2"
        assert "retry" in response.json()["detail"].lower()

    def test_fast_request_passes(self, deadline_app):
        response = TestClient(deadline_app).get("/fast")

        assert response.status_code == 200
        assert response.json() == {"message": "ok"}

    def test_late_sync_handler_commits_nothing(self, db_session):
        app = FastAPI()
        app.add_middleware(RequestDeadlineMiddleware, timeout_seconds=0.05)
        finished = threading.Event()
        commit_errors = []

        @app.post("/restaurants")
        def slow_insert():
            try:
                time.sleep(0.3)
                db_session.add(Restaurant(name="Late Bistro"))
                safe_commit(db_session)
            except TransientError as exc:
                commit_errors.append(exc)
                raise
            finally:
                finished.set()
            return {"message": "created"}

        response = TestClient(app).post("/restaurants")

        assert response.status_code == 503
        assert finished.wait(timeout=5)
        assert len(commit_errors) == 1
        assert db_session.scalar(select(func.count(Restaurant.id))) == 0


# =============================================================================
# SecurityHeadersMiddleware Tests
# =============================================================================

class TestSecurityHeadersMiddleware:
    """Tests for security headers middleware."""

    @pytest.fixture
    def app_with_security_headers(self):
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)

        @app.get("/test")
        def test_endpoint():
            return {"message": "ok"}

        return app

    def test_adds_hardening_headers(self, app_with_security_headers):
        response = TestClient(app_with_security_headers).get("/test")

        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"
        assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"
        assert "geolocation=()" in response.headers.get("Permissions-Policy", "")
        assert "default-src 'none'" in response.headers.get("Content-Security-Policy", "")

    def test_docs_have_no_csp(self, app_with_security_headers):
        response = TestClient(app_with_security_headers).get("/openapi.json")

        assert "Content-Security-Policy" not in response.headers

    def test_hsts_only_in_production(self, app_with_security_headers):
        client = TestClient(app_with_security_headers)

        assert "Strict-Transport-Security" not in client.get("/test").headers

        with patch("tablebook_api.core.middlewares.settings") as mock_settings:
            mock_settings.environment = "production"
            response = client.get("/test")

        assert "max-age=31536000" in response.headers.get("Strict-Transport-Security", "")


# =============================================================================
# ContentTypeValidationMiddleware Tests
# =============================================================================

class TestContentTypeValidationMiddleware:
    """Bodies must be JSON, except on the gateway callback."""

    @pytest.fixture
    def app_with_content_type_check(self):
        app = FastAPI()
        app.add_middleware(ContentTypeValidationMiddleware)

        @app.post("/api/things")
        async def create_thing(request: Request):
            return {"size": len(await request.body())}

        @app.post("/api/payments/hitpay/callback")
        async def callback(request: Request):
            return {"size": len(await request.body())}

        return app

    def test_json_accepted(self, app_with_content_type_check):
        response = TestClient(app_with_content_type_check).post("/api/things", json={"a": 1})
        assert response.status_code == 200

    def test_form_rejected(self, app_with_content_type_check):
        response = TestClient(app_with_content_type_check).post(
            "/api/things",
            content="a=1",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 415

    def test_callback_accepts_form(self, app_with_content_type_check):
        response = TestClient(app_with_content_type_check).post(
            "/api/payments/hitpay/callback",
            content="payment_request_id=pr-1&status=completed",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

        assert response.status_code == 200


# =============================================================================
# CorrelationIdMiddleware Tests
# =============================================================================

class TestCorrelationIdMiddleware:
    """X-Request-ID is echoed or generated."""

    @pytest.fixture
    def app_with_correlation(self):
        app = FastAPI()
        app.add_middleware(CorrelationIdMiddleware)

        @app.get("/test")
        def test_endpoint():
            return {"request_id": get_request_id()}

        return app

    def test_echoes_incoming_id(self, app_with_correlation):
        response = TestClient(app_with_correlation).get("/test", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"

    def test_generates_id_when_missing(self, app_with_correlation):
        response = TestClient(app_with_correlation).get("/test")

        assert len(response.headers["X-Request-ID"]) == 36

    def test_replaces_malformed_id(self, app_with_correlation):
        response = TestClient(app_with_correlation).get(
            "/test", headers={"X-Request-ID": "bad id<script>"}
        )

        assert response.headers["X-Request-ID"] != "bad id<script>"
        assert response.json()["request_id"] == response.headers["X-Request-ID"]

    def test_filter_defaults_to_dash(self):
        class Record:
            pass

        record = Record()
        assert CorrelationIdFilter().filter(record) is True
        assert record.request_id == "-"


class TestRegisteredStack:
    """The real application carries every middleware."""

    def test_api_response_has_headers(self, client):
        response = client.get("/api/health")

        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert "X-Request-ID" in response.headers

    def test_api_rejects_non_json_body(self, client):
        response = client.post(
            "/api/auth/login",
            content="email=a",
            headers={"Content-Type": "text/plain"},
        )

        assert response.status_code == 415
