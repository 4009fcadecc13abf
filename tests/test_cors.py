"""Tests for CORS middleware."""

from wren.app import App
from wren.middleware.builtin import CORSConfig, CORSMiddleware
from wren.testing import TestClient


def _make_cors_app(config: CORSConfig | None = None) -> App:
    """Helper: create an app with CORS middleware and a simple route."""
    app = App()
    app.add_middleware(CORSMiddleware(config))

    @app.get("/api/data")
    async def data(ctx):
        await ctx.ok({"message": "hello"})

    @app.post("/api/data")
    async def create_data(ctx):
        await ctx.created({"id": 1})

    return app


class TestCORSNonCorsRequests:
    """Requests without an Origin header should pass through unaffected."""

    async def test_no_origin_header(self) -> None:
        app = _make_cors_app(CORSConfig(allow_origins=("*",)))
        async with TestClient(app) as client:
            response = await client.get("/api/data")
            assert response.status == 200
            header_names = {name for name, _ in response.headers}
            assert "access-control-allow-origin" not in header_names


class TestCORSSimpleRequests:
    """Simple requests (GET, HEAD, POST with simple headers)."""

    async def test_allowed_origin_gets_cors_headers(self) -> None:
        app = _make_cors_app(CORSConfig(allow_origins=("https://example.com",)))
        async with TestClient(app) as client:
            response = await client.get(
                "/api/data",
                headers={"Origin": "https://example.com"},
            )
            assert response.status == 200
            assert ("access-control-allow-origin", "https://example.com") in response.headers
            assert ("vary", "Origin") in response.headers

    async def test_disallowed_origin_no_cors_headers(self) -> None:
        app = _make_cors_app(CORSConfig(allow_origins=("https://example.com",)))
        async with TestClient(app) as client:
            response = await client.get(
                "/api/data",
                headers={"Origin": "https://evil.com"},
            )
            assert response.status == 200
            header_names = {name for name, _ in response.headers}
            assert "access-control-allow-origin" not in header_names

    async def test_wildcard_origin(self) -> None:
        app = _make_cors_app(CORSConfig(allow_origins=("*",)))
        async with TestClient(app) as client:
            response = await client.get(
                "/api/data",
                headers={"Origin": "https://anything.com"},
            )
            assert ("access-control-allow-origin", "*") in response.headers
            # Wildcard should NOT include Vary header
            assert response.header("vary") is None

    async def test_credentials_echo_origin(self) -> None:
        app = _make_cors_app(
            CORSConfig(allow_origins=("*",), allow_credentials=True)
        )
        async with TestClient(app) as client:
            response = await client.get(
                "/api/data",
                headers={"Origin": "https://app.example.com"},
            )
            assert response.header("access-control-allow-origin") == "https://app.example.com"
            assert response.header("access-control-allow-credentials") == "true"

    async def test_expose_headers(self) -> None:
        app = _make_cors_app(
            CORSConfig(allow_origins=("*",), expose_headers=("X-Total", "X-Page"))
        )
        async with TestClient(app) as client:
            response = await client.post(
                "/api/data",
                headers={"Origin": "https://example.com"},
            )
            assert response.status == 201
            assert response.header("access-control-expose-headers") == "X-Total, X-Page"

    async def test_headers_survive_error_response(self) -> None:
        app = _make_cors_app(CORSConfig(allow_origins=("*",)))
        async with TestClient(app) as client:
            response = await client.get(
                "/missing",
                headers={"Origin": "https://example.com"},
            )
            assert response.status == 404
            assert response.header("access-control-allow-origin") == "*"


class TestCORSPreflight:
    async def test_preflight_short_circuits_with_204(self) -> None:
        app = _make_cors_app(
            CORSConfig(
                allow_origins=("https://example.com",),
                allow_methods=("GET", "POST"),
                allow_headers=("Content-Type",),
                max_age=3600,
            )
        )
        async with TestClient(app) as client:
            response = await client.options(
                "/api/data",
                headers={
                    "Origin": "https://example.com",
                    "Access-Control-Request-Method": "POST",
                },
            )
            assert response.status == 204
            assert response.body == b""
            assert response.header("access-control-allow-methods") == "GET, POST"
            assert response.header("access-control-allow-headers") == "Content-Type"
            assert response.header("access-control-max-age") == "3600"
            # Synthesized OPTIONS still advertises the path's methods
            assert response.header("allow") == "GET, OPTIONS, POST"

    async def test_preflight_without_request_method(self) -> None:
        app = _make_cors_app(CORSConfig(allow_origins=("*",)))
        async with TestClient(app) as client:
            response = await client.options(
                "/api/data",
                headers={"Origin": "https://example.com"},
            )
            assert response.status == 204
            assert response.header("access-control-allow-methods") is None

    async def test_preflight_from_disallowed_origin_falls_through(self) -> None:
        app = _make_cors_app(CORSConfig(allow_origins=("https://example.com",)))
        async with TestClient(app) as client:
            response = await client.options(
                "/api/data",
                headers={
                    "Origin": "https://evil.com",
                    "Access-Control-Request-Method": "POST",
                },
            )
            assert response.status == 200
            assert response.header("access-control-allow-origin") is None

    async def test_route_level_cors(self) -> None:
        cors = CORSMiddleware(CORSConfig(allow_origins=("*",)))
        app = App()

        @app.put("/things/:id", middleware=[cors])
        async def update(ctx):
            await ctx.ok({})

        async with TestClient(app) as client:
            response = await client.options(
                "/things/1",
                headers={"Origin": "https://example.com"},
            )
            assert response.status == 204
            assert response.header("allow") == "OPTIONS, PUT"
