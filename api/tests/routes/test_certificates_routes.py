"""Tests for certificate render and preview routes.

The service layer is mocked; these tests cover status codes, headers and
request parsing.
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from rendering.errors import (
    CanvasTaintedError,
    CertificateRenderError,
    TemplateImageUnavailableError,
)
from schemas import PreviewResponse
from services.certificates_service import RenderedCertificate

pytestmark = pytest.mark.unit

PDF = RenderedCertificate(
    content=b"%PDF-1.7 test",
    media_type="application/pdf",
    filename="certificate-TSP-2024-001.pdf",
)


class TestRenderEndpoint:
    """Tests for POST /api/certificates/render."""

    @patch(
        "routes.certificates_routes.render_certificate_file",
        new_callable=AsyncMock,
        return_value=PDF,
    )
    async def test_returns_pdf_attachment(self, mock_render, client: AsyncClient):
        """Rendered bytes come back as a download."""
        response = await client.post(
            "/api/certificates/render",
            json={"name": "John Doe", "certificateNumber": "TSP-2024-001"},
        )

        assert response.status_code == 200
        assert response.content == b"%PDF-1.7 test"
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == (
            'attachment; filename="certificate-TSP-2024-001.pdf"'
        )
        assert response.headers["cache-control"] == "no-store"

        body = mock_render.await_args.args[0]
        assert body.recipient_name == "John Doe"
        assert body.certificate_number == "TSP-2024-001"
        assert body.format == "pdf"

    @patch(
        "routes.certificates_routes.render_certificate_file",
        new_callable=AsyncMock,
        return_value=RenderedCertificate(
            content=b"\xff\xd8\xff",
            media_type="image/jpeg",
            filename="certificate.jpg",
        ),
    )
    async def test_returns_jpeg(self, mock_render, client: AsyncClient):
        response = await client.post(
            "/api/certificates/render",
            json={"format": "jpeg", "template_url": "https://cdn.example.com/t.png"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        body = mock_render.await_args.args[0]
        assert body.format == "jpeg"
        assert body.template_url == "https://cdn.example.com/t.png"

    @patch(
        "routes.certificates_routes.render_certificate_file",
        new_callable=AsyncMock,
        return_value=PDF,
    )
    async def test_production_cache_control(
        self, mock_render, client: AsyncClient, settings_env
    ):
        settings_env(environment="production")

        response = await client.post("/api/certificates/render", json={})

        assert response.headers["cache-control"] == "private, max-age=300"

    async def test_unknown_format_returns_422(self, client: AsyncClient):
        """Formats other than pdf/jpeg are rejected before rendering."""
        response = await client.post(
            "/api/certificates/render", json={"name": "A", "format": "gif"}
        )

        assert response.status_code == 422
        errors = response.json()["detail"]
        assert errors[0]["loc"][-1] == "format"
        assert "input" not in errors[0]

    @patch(
        "routes.certificates_routes.render_certificate_file",
        new_callable=AsyncMock,
        side_effect=CertificateRenderError("Chromium failed to launch"),
    )
    async def test_render_error_returns_500(self, mock_render, client: AsyncClient):
        """Browser failures surface as 500 with the error message."""
        response = await client.post("/api/certificates/render", json={"name": "A"})

        assert response.status_code == 500
        assert response.json() == {"detail": "Chromium failed to launch"}


class TestPreviewEndpoint:
    """Tests for POST /api/certificates/preview."""

    @patch(
        "routes.certificates_routes.generate_certificate_preview",
        new_callable=AsyncMock,
        return_value=PreviewResponse(
            data_url="data:image/png;base64,iVBORw0KGgo=",
            filename="Certificate_TSP-2024-001.png",
        ),
    )
    async def test_returns_data_url(self, mock_preview, client: AsyncClient):
        response = await client.post(
            "/api/certificates/preview",
            json={
                "recipientName": "John Doe",
                "certificate_number": "TSP-2024-001",
                "templateUrl": "https://cdn.example.com/t.png",
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "data_url": "data:image/png;base64,iVBORw0KGgo=",
            "filename": "Certificate_TSP-2024-001.png",
        }
        body = mock_preview.await_args.args[0]
        assert body.recipient_name == "John Doe"
        assert body.template_url == "https://cdn.example.com/t.png"

    @patch(
        "routes.certificates_routes.generate_certificate_preview",
        new_callable=AsyncMock,
        side_effect=CanvasTaintedError("https://cdn.example.com/t.png"),
    )
    async def test_tainted_canvas_returns_422(self, mock_preview, client: AsyncClient):
        """A tainted canvas is reported, never silently replaced."""
        response = await client.post(
            "/api/certificates/preview",
            json={"templateUrl": "https://cdn.example.com/t.png"},
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert "https://cdn.example.com/t.png" in detail
        assert "CORS" in detail

    @patch(
        "routes.certificates_routes.generate_certificate_preview",
        new_callable=AsyncMock,
        side_effect=TemplateImageUnavailableError("Template image could not be loaded"),
    )
    async def test_unavailable_template_returns_422(
        self, mock_preview, client: AsyncClient
    ):
        response = await client.post("/api/certificates/preview", json={})

        assert response.status_code == 422
        assert response.json() == {"detail": "Template image could not be loaded"}

    async def test_oversized_template_url_returns_422(self, client: AsyncClient):
        response = await client.post(
            "/api/certificates/preview",
            json={"template_url": "https://cdn.example.com/" + "a" * 5000},
        )

        assert response.status_code == 422


class TestRateLimiting:
    """The render endpoints share a per-client limit."""

    @patch(
        "routes.certificates_routes.render_certificate_file",
        new_callable=AsyncMock,
        return_value=PDF,
    )
    async def test_render_is_rate_limited(self, mock_render, client: AsyncClient):
        from core.ratelimit import RENDER_LIMIT, limiter

        allowed = int(RENDER_LIMIT.split("/")[0])
        limiter.reset()
        with patch("core.ratelimit.limiter.enabled", True):
            statuses = [
                (await client.post("/api/certificates/render", json={})).status_code
                for _ in range(allowed + 1)
            ]
        limiter.reset()

        assert statuses[:allowed] == [200] * allowed
        assert statuses[-1] == 429
