"""Tests for the health check endpoint."""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.unit


class TestHealthEndpoint:
    """Tests for GET /health."""

    async def test_health_returns_200(self, client: AsyncClient):
        """GET /health returns 200 with healthy status."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "service": "certificate-renderer",
        }

    async def test_health_has_security_headers(self, client: AsyncClient):
        """Responses carry the API security headers."""
        response = await client.get("/health")

        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "DENY"
        assert "default-src 'none'" in response.headers["content-security-policy"]

    async def test_health_rejects_post(self, client: AsyncClient):
        response = await client.post("/health")
        assert response.status_code == 405
