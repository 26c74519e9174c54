"""
Tests for middleware and infrastructure components.
"""

import pytest
from unittest.mock import MagicMock
from fastapi import FastAPI, Response
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from rest_api.core.middlewares import (
    SecurityHeadersMiddleware,
    ContentTypeValidationMiddleware,
    register_middlewares,
)
from shared.infrastructure.correlation import (
    CorrelationIdMiddleware,
    CorrelationIdFilter,
    get_request_id,
    request_id_var,
)
from shared.infrastructure.db import atomic, safe_commit
from shared.utils.exceptions import ConflictError


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

        @app.get("/branded")
        def branded_endpoint():
            return Response(content="ok", headers={"Server": "uvicorn"})

        return app

    def test_adds_security_headers(self, app_with_security_headers):
        client = TestClient(app_with_security_headers)
        response = client.get("/test")

        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"
        assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"

    def test_strips_server_header(self, app_with_security_headers):
        client = TestClient(app_with_security_headers)
        response = client.get("/branded")

        assert response.status_code == 200
        assert "server" not in response.headers

    def test_no_hsts_outside_production(self, app_with_security_headers):
        client = TestClient(app_with_security_headers)
        response = client.get("/test")

        assert "Strict-Transport-Security" not in response.headers


# =============================================================================
# ContentTypeValidationMiddleware Tests
# =============================================================================

class TestContentTypeValidationMiddleware:
    """Tests for content type validation middleware."""

    @pytest.fixture
    def app_with_content_validation(self):
        app = FastAPI()
        app.add_middleware(ContentTypeValidationMiddleware)

        @app.post("/test")
        def test_endpoint():
            return {"message": "ok"}

        @app.get("/test")
        def test_get():
            return {"message": "ok"}

        return app

    def test_allows_json_content_type(self, app_with_content_validation):
        client = TestClient(app_with_content_validation)
        response = client.post("/test", json={"data": "test"})

        assert response.status_code == 200

    def test_allows_empty_body(self, app_with_content_validation):
        """Action endpoints such as table release are posted without a body."""
        client = TestClient(app_with_content_validation)
        response = client.post("/test")

        assert response.status_code == 200

    def test_rejects_unsupported_content_type(self, app_with_content_validation):
        client = TestClient(app_with_content_validation)
        response = client.post(
            "/test",
            content="<xml>data</xml>",
            headers={"Content-Type": "application/xml"},
        )

        assert response.status_code == 415
        assert response.json()["code"] == "unsupported_media_type"

    def test_allows_get_without_content_type(self, app_with_content_validation):
        client = TestClient(app_with_content_validation)
        response = client.get("/test")

        assert response.status_code == 200


# =============================================================================
# CorrelationIdMiddleware Tests
# =============================================================================

class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    @pytest.fixture
    def app_with_correlation(self):
        app = FastAPI()
        app.add_middleware(CorrelationIdMiddleware)

        @app.get("/test")
        def test_endpoint():
            return {"request_id": get_request_id()}

        return app

    def test_generates_request_id_when_not_provided(self, app_with_correlation):
        client = TestClient(app_with_correlation)
        response = client.get("/test")

        request_id = response.headers.get("X-Request-ID")
        assert request_id is not None
        assert len(request_id) == 36  # UUID v4 length

    def test_uses_provided_request_id(self, app_with_correlation):
        client = TestClient(app_with_correlation)
        custom_id = "till-3-request-0001"
        response = client.get("/test", headers={"X-Request-ID": custom_id})

        assert response.headers.get("X-Request-ID") == custom_id
        assert response.json()["request_id"] == custom_id


class TestCorrelationIdFilter:
    """Tests for correlation ID logging filter."""

    def test_adds_request_id_to_log_record(self):
        filter_obj = CorrelationIdFilter()
        token = request_id_var.set("test-request-123")

        try:
            record = MagicMock()
            result = filter_obj.filter(record)

            assert result is True
            assert record.request_id == "test-request-123"
        finally:
            request_id_var.reset(token)

    def test_uses_dash_when_no_request_id(self):
        filter_obj = CorrelationIdFilter()
        token = request_id_var.set("")

        try:
            record = MagicMock()
            filter_obj.filter(record)

            assert record.request_id == "-"
        finally:
            request_id_var.reset(token)


# =============================================================================
# Transaction helpers
# =============================================================================

class TestSafeCommit:
    """Tests for safe_commit utility."""

    def test_commits_successfully(self):
        mock_db = MagicMock()

        safe_commit(mock_db)

        mock_db.commit.assert_called_once()
        mock_db.rollback.assert_not_called()

    def test_rollbacks_on_error(self):
        mock_db = MagicMock()
        mock_db.commit.side_effect = Exception("Database error")

        with pytest.raises(Exception, match="Database error"):
            safe_commit(mock_db)

        mock_db.rollback.assert_called_once()


class TestAtomic:
    """Tests for the atomic() transaction block."""

    def test_commits_on_success(self):
        mock_db = MagicMock()

        with atomic(mock_db):
            pass

        mock_db.commit.assert_called_once()
        mock_db.rollback.assert_not_called()

    def test_rolls_back_and_reraises(self):
        mock_db = MagicMock()

        with pytest.raises(KeyError):
            with atomic(mock_db):
                raise KeyError("boom")

        mock_db.commit.assert_not_called()
        mock_db.rollback.assert_called_once()

    def test_integrity_error_becomes_conflict(self):
        mock_db = MagicMock()
        mock_db.commit.side_effect = IntegrityError("UPDATE", {}, Exception("unique"))

        with pytest.raises(ConflictError):
            with atomic(mock_db):
                pass

        mock_db.rollback.assert_called_once()


# =============================================================================
# register_middlewares Tests
# =============================================================================

class TestRegisterMiddlewares:
    """Tests for middleware registration."""

    def test_registers_all_middlewares(self):
        app = FastAPI()

        register_middlewares(app)

        middleware_classes = [m.cls for m in app.user_middleware]
        assert SecurityHeadersMiddleware in middleware_classes
        assert ContentTypeValidationMiddleware in middleware_classes
        assert CorrelationIdMiddleware in middleware_classes
