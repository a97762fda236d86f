"""Unit tests for core.middleware module.

Tests ASGI middleware:
- SecurityHeadersMiddleware adds security headers to HTTP responses
- SecurityHeadersMiddleware skips non-HTTP scopes
- SecurityHeadersMiddleware relaxes the CSP for the API docs
"""

import pytest

from core.middleware import SecurityHeadersMiddleware


async def _noop_receive():
    return {"type": "http.request", "body": b""}


async def _make_app_that_sends_response(scope, receive, send):
    """Simulate an ASGI app that sends a response."""
    await send({"type": "http.response.start", "status": 200, "headers": []})
    await send({"type": "http.response.body", "body": b"OK"})


async def _collect_start_headers(middleware, path: str) -> dict[bytes, bytes]:
    sent_messages = []

    async def mock_send(message):
        sent_messages.append(message)

    await middleware({"type": "http", "path": path}, _noop_receive, mock_send)
    return dict(sent_messages[0]["headers"])


@pytest.mark.unit
class TestSecurityHeadersMiddleware:
    """Test SecurityHeadersMiddleware adds expected headers."""

    async def test_adds_security_headers(self):
        middleware = SecurityHeadersMiddleware(_make_app_that_sends_response)

        headers = await _collect_start_headers(middleware, "/api/certificates/render")

        assert headers[b"x-content-type-options"] == b"nosniff"
        assert headers[b"x-frame-options"] == b"DENY"
        assert b"referrer-policy" in headers
        assert b"strict-transport-security" in headers
        assert b"permissions-policy" in headers
        assert headers[b"content-security-policy"] == (
            b"default-src 'none'; frame-ancestors 'none'"
        )

    async def test_docs_have_no_api_csp(self):
        middleware = SecurityHeadersMiddleware(_make_app_that_sends_response)

        headers = await _collect_start_headers(middleware, "/docs")

        assert b"content-security-policy" not in headers
        assert b"x-content-type-options" in headers

    async def test_skips_non_http_scopes(self):
        called = False

        async def inner_app(scope, receive, send):
            nonlocal called
            called = True

        middleware = SecurityHeadersMiddleware(inner_app)
        scope = {"type": "lifespan"}

        await middleware(scope, _noop_receive, lambda msg: None)
        assert called

    async def test_preserves_existing_headers(self):
        async def app_with_headers(scope, receive, send):
            await send(
                {
                    "type": "http.response.start",
                    "status": 200,
                    "headers": [(b"content-disposition", b"attachment")],
                }
            )

        middleware = SecurityHeadersMiddleware(app_with_headers)

        headers = await _collect_start_headers(middleware, "/api/certificates/render")

        assert headers[b"content-disposition"] == b"attachment"
        assert b"x-content-type-options" in headers

    async def test_body_messages_pass_through(self):
        middleware = SecurityHeadersMiddleware(_make_app_that_sends_response)
        sent_messages = []

        async def mock_send(message):
            sent_messages.append(message)

        await middleware({"type": "http", "path": "/health"}, _noop_receive, mock_send)

        assert sent_messages[1] == {"type": "http.response.body", "body": b"OK"}
