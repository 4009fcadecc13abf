"""Tests for security headers middleware."""

from wren.app import App
from wren.middleware.security_headers import (
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
)
from wren.testing import TestClient


def _app(config: SecurityHeadersConfig | None = None) -> App:
    app = App()
    app.add_middleware(SecurityHeadersMiddleware(config))

    @app.get("/")
    async def index(ctx):
        await ctx.ok({"ok": True})

    @app.get("/framed")
    async def framed(ctx):
        await ctx.header("X-Frame-Options", "SAMEORIGIN").ok({})

    return app


class TestSecurityHeaders:
    async def test_defaults(self) -> None:
        async with TestClient(_app()) as client:
            response = await client.get("/")
            assert response.header("x-frame-options") == "DENY"
            assert response.header("x-content-type-options") == "nosniff"
            assert response.header("referrer-policy") == "strict-origin-when-cross-origin"
            assert response.header("content-security-policy") is None
            assert response.header("strict-transport-security") is None

    async def test_custom_config(self) -> None:
        config = SecurityHeadersConfig(
            x_frame_options=None,
            content_security_policy="default-src 'self'",
            strict_transport_security="max-age=63072000",
        )
        async with TestClient(_app(config)) as client:
            response = await client.get("/")
            assert response.header("x-frame-options") is None
            assert response.header("content-security-policy") == "default-src 'self'"
            assert response.header("strict-transport-security") == "max-age=63072000"

    async def test_handler_can_override(self) -> None:
        async with TestClient(_app()) as client:
            response = await client.get("/framed")
            assert response.header_list("x-frame-options") == ["SAMEORIGIN"]

    async def test_applied_to_errors(self) -> None:
        async with TestClient(_app()) as client:
            response = await client.get("/missing")
            assert response.status == 404
            assert response.header("x-content-type-options") == "nosniff"
