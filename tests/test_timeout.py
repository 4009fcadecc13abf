"""Tests for the request timeout middleware."""

import anyio
import pytest

from wren.app import App
from wren.errors import ConfigurationError
from wren.middleware.timeout import Timeout
from wren.testing import TestClient


class TestTimeout:
    async def test_fast_handler_unaffected(self) -> None:
        app = App()
        app.add_middleware(Timeout(1.0))

        @app.get("/fast")
        async def fast(ctx):
            await ctx.ok({"fast": True})

        async with TestClient(app) as client:
            response = await client.get("/fast")
            assert response.status == 200
            assert response.json() == {"fast": True}
            assert response.header("connection") is None

    async def test_slow_handler_gets_408(self) -> None:
        app = App()
        app.add_middleware(Timeout(0.05))
        finished: list[bool] = []

        @app.get("/slow")
        async def slow(ctx):
            await anyio.sleep(0.2)
            finished.append(True)
            await ctx.ok({"late": True})

        async with TestClient(app) as client:
            response = await client.get("/slow")

        assert response.status == 408
        assert response.header("connection") == "close"
        body = response.json()
        assert body["code"] == "REQUEST_TIMEOUT"
        assert body["meta"] == {"timeoutMs": 50}
        # Downstream ran to completion; its write was dropped
        assert finished == [True]

    async def test_on_timeout_hook_can_respond(self) -> None:
        async def custom(ctx):
            await ctx.status(503).send("try later")

        app = App()
        app.add_middleware(Timeout(0.05, on_timeout=custom))

        @app.get("/slow")
        async def slow(ctx):
            await anyio.sleep(0.2)

        async with TestClient(app) as client:
            response = await client.get("/slow")
            assert response.status == 503
            assert response.text == "try later"

    async def test_errors_still_reach_boundary(self) -> None:
        app = App()
        app.add_middleware(Timeout(1.0))

        @app.get("/boom")
        async def boom(ctx):
            raise RuntimeError("boom")

        async with TestClient(app) as client:
            response = await client.get("/boom")
            assert response.status == 500

    async def test_from_config(self) -> None:
        from wren.config import AppConfig

        app = App(AppConfig(request_timeout=0.05))

        @app.get("/slow")
        async def slow(ctx):
            await anyio.sleep(0.2)

        async with TestClient(app) as client:
            response = await client.get("/slow")
            assert response.status == 408

    def test_rejects_non_positive(self) -> None:
        with pytest.raises(ConfigurationError):
            Timeout(0)
