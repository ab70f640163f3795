# app/tests/test_correlation.py
"""
Tests for request IDs and access logging.

These tests verify:
1. Client-provided X-Request-Id is echoed in response
2. Missing or unsafe X-Request-Id is replaced by a new one
3. Each request produces one access log line without form data
"""
import logging
import uuid
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.config import AppConfig
from app.correlation import get_request_id, resolve_request_id
from app.main import create_app
from auth.exceptions import StoreUnavailableError
from auth.memory import InMemoryUserRepository, MemorySessionStore


class TestResolveRequestId:
    """Tests for choosing the request ID."""

    def test_safe_client_id_kept(self):
        request_id = "550e8400-e29b-41d4-a716-446655440000"
        assert resolve_request_id(request_id) == request_id

    def test_length_limit(self):
        assert resolve_request_id("a" * 64) == "a" * 64
        assert resolve_request_id("a" * 65) != "a" * 65

    @pytest.mark.parametrize("candidate", [None, "", "abc@123", "abc 123", "abc/123", "a\nb"])
    def test_unsafe_or_missing_replaced_with_uuid4(self, candidate):
        generated = resolve_request_id(candidate)
        assert generated != candidate
        assert uuid.UUID(generated).version == 4

    def test_generated_ids_unique(self):
        ids = {resolve_request_id(None) for _ in range(100)}
        assert len(ids) == 100


class TestGetRequestId:
    """Tests for getting request ID from request state."""

    def test_returns_request_id_from_state(self):
        request = MagicMock()
        request.state.request_id = "test-id-123"
        assert get_request_id(request) == "test-id-123"

    def test_returns_none_if_not_set(self):
        request = MagicMock(spec=[])
        request.state = MagicMock(spec=[])
        assert get_request_id(request) is None


class TestCorrelationIdIntegration:
    """Integration tests for correlation ID with the app."""

    def test_client_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-Id": "my-request-123"})
        assert response.headers.get("X-Request-Id") == "my-request-123"

    def test_missing_request_id_generated(self, client):
        response = client.get("/health")
        assert len(response.headers["X-Request-Id"].split("-")) == 5

    def test_invalid_request_id_replaced(self, client):
        response = client.get("/health", headers={"X-Request-Id": "bad@id!"})
        assert response.headers["X-Request-Id"] != "bad@id!"

    def test_redirects_get_request_id(self, client):
        response = client.get("/dashboard")
        assert response.status_code == 303
        assert "X-Request-Id" in response.headers


class TestAccessLog:
    """Tests for the per-request access log line."""

    def test_access_line_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="app.access"):
            client.get("/health", headers={"X-Request-Id": "log-test-id"})

        lines = [r.getMessage() for r in caplog.records if r.name == "app.access"]
        assert len(lines) == 1
        assert "request_id=log-test-id" in lines[0]
        assert "path=/health" in lines[0]
        assert "status=200" in lines[0]

    def test_password_never_logged(self, client, caplog):
        with caplog.at_level(logging.DEBUG):
            client.post(
                "/register",
                data={
                    "email": "alice@example.com",
                    "password": "SUPER_SECRET_PW_123",
                    "confirm_password": "SUPER_SECRET_PW_123",
                },
            )
            client.post(
                "/login",
                data={"email": "alice@example.com", "password": "SUPER_SECRET_PW_123"},
            )

        assert "SUPER_SECRET_PW_123" not in caplog.text

    def test_server_error_logged_with_request_id(self, caplog):
        class BrokenRepository(InMemoryUserRepository):
            def get_by_email(self, email):
                raise StoreUnavailableError("database is locked")

        app = create_app(
            AppConfig(bcrypt_rounds=4),
            user_repository=BrokenRepository(),
            session_store=MemorySessionStore(),
        )
        client = TestClient(app, follow_redirects=False)

        with caplog.at_level(logging.INFO):
            response = client.post(
                "/login",
                data={"email": "alice@example.com", "password": "Secret123!"},
                headers={"X-Request-Id": "failing-request"},
            )

        assert response.status_code == 500
        error_lines = [r for r in caplog.records if r.name == "app.main"]
        assert "request_id=failing-request" in error_lines[0].getMessage()
        access_lines = [r for r in caplog.records if r.name == "app.access"]
        assert access_lines[0].levelno == logging.WARNING
        assert "status=500" in access_lines[0].getMessage()
