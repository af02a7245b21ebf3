"""Tests for X-Request-ID middleware.

Tests cover:
- Request ID generation when missing
- Request ID preservation when valid
- Request ID normalization (UUID lowercase)
- Request ID replacement when invalid
- Request ID presence on auth failures
- Request ID in error response body
"""

from uuid import UUID

import pytest

from clipshare.middleware.request_id import resolve_request_id
from tests.helpers import auth_headers


class TestRequestIdMiddleware:
    """Tests for X-Request-ID middleware."""

    def test_request_id_generated_when_missing(self, client, user):
        response = client.get("/me", headers=auth_headers(user.id))

        assert response.status_code == 200
        UUID(response.headers["X-Request-ID"])  # Raises if invalid

    def test_request_id_preserved_when_valid(self, client, user):
        response = client.get(
            "/me",
            headers={**auth_headers(user.id), "X-Request-ID": "abc_def-123"},
        )

        assert response.headers["X-Request-ID"] == "abc_def-123"

    def test_request_id_uuid_normalized_to_lowercase(self, client, user):
        response = client.get(
            "/me",
            headers={
                **auth_headers(user.id),
                "X-Request-ID": "550E8400-E29B-41D4-A716-446655440000",
            },
        )

        assert response.headers["X-Request-ID"] == "550e8400-e29b-41d4-a716-446655440000"

    def test_request_id_replaced_when_invalid(self, client, user):
        response = client.get(
            "/me",
            headers={**auth_headers(user.id), "X-Request-ID": "bad id with spaces"},
        )

        new_id = response.headers["X-Request-ID"]
        assert new_id != "bad id with spaces"
        UUID(new_id)

    def test_request_id_present_on_auth_failure(self, client):
        response = client.get("/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert "X-Request-ID" in response.headers
        assert response.json()["error"]["request_id"] == response.headers["X-Request-ID"]

    def test_error_response_includes_request_id_in_body(self, client):
        """Error responses raised in routes include request_id in the body."""
        response = client.get(f"/clips/{'0' * 32}", headers={"X-Request-ID": "trace-404"})

        assert response.status_code == 404
        assert response.json()["error"]["request_id"] == "trace-404"
        assert response.headers["X-Request-ID"] == "trace-404"


class TestResolveRequestId:
    """Tests for request ID validation edge cases."""

    @pytest.mark.parametrize(
        "incoming",
        ["request.id.with.dots", "request_id_with_underscores", "request-id", "a" * 128],
    )
    def test_valid_ids_kept(self, incoming):
        assert resolve_request_id(incoming) == incoming

    @pytest.mark.parametrize("incoming", [None, "", "a" * 129, "semi;colon", "new\nline"])
    def test_invalid_ids_replaced(self, incoming):
        resolved = resolve_request_id(incoming)

        assert resolved != incoming
        UUID(resolved)
