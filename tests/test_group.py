"""Tests for route groups and prefix joining."""

import pytest

from wren.app import App
from wren.errors import ConfigurationError
from wren.routing.group import RouteGroup, join_paths
from wren.testing import TestClient


async def _handler(ctx) -> None:
    pass


def _mw(tag: str):
    async def mw(ctx, next):
        await next()

    mw.__name__ = tag
    return mw


class TestJoinPaths:
    @pytest.mark.parametrize(
        ("prefix", "path", "expected"),
        [
            ("/api", "/users", "/api/users"),
            ("/api/", "users", "/api/users"),
            ("/api", "/", "/api"),
            ("", "/users", "/users"),
            ("", "", "/"),
            ("/", "/", "/"),
        ],
    )
    def test_join(self, prefix: str, path: str, expected: str) -> None:
        assert join_paths(prefix, path) == expected


class TestRouteGroup:
    def test_decorators_collect_pending_routes(self) -> None:
        api = RouteGroup("/api")
        api.get("/users")(_handler)
        api.route("/users/:id", methods=["get", "delete"])(_handler)

        assert [(p.method, p.path) for p in api.pending] == [
            ("GET", "/api/users"),
            ("GET", "/api/users/:id"),
            ("DELETE", "/api/users/:id"),
        ]

    def test_group_middleware_leads(self) -> None:
        auth, audit = _mw("auth"), _mw("audit")
        api = RouteGroup("/api", middleware=[auth])
        api.post("/items", middleware=[audit])(_handler)
        assert api.pending[0].middleware == (auth, audit)

    def test_nested_include(self) -> None:
        outer_mw, inner_mw = _mw("outer"), _mw("inner")
        v1 = RouteGroup("/v1", middleware=[inner_mw])
        v1.get("/ping")(_handler)

        api = RouteGroup("/api", middleware=[outer_mw])
        api.include(v1)

        (pending,) = api.pending
        assert pending.path == "/api/v1/ping"
        assert pending.middleware == (outer_mw, inner_mw)


class _Users:
    """Controller with every action except patch."""

    async def index(self, ctx) -> None:
        await ctx.ok({"users": []})

    async def show(self, ctx) -> None:
        await ctx.ok({"user": {"id": ctx.params["id"]}})

    async def create(self, ctx) -> None:
        await ctx.created({"user": {"id": "1"}})

    async def update(self, ctx) -> None:
        await ctx.ok({"updated": ctx.params["id"]})

    async def destroy(self, ctx) -> None:
        await ctx.no_content()


class TestResource:
    def test_registers_available_actions(self) -> None:
        group = RouteGroup()
        group.resource("users", _Users())
        assert [(p.method, p.path, p.name) for p in group.pending] == [
            ("GET", "/users", "users.index"),
            ("GET", "/users/:id", "users.show"),
            ("POST", "/users", "users.create"),
            ("PUT", "/users/:id", "users.update"),
            ("DELETE", "/users/:id", "users.destroy"),
        ]

    def test_only(self) -> None:
        group = RouteGroup()
        group.resource("users", _Users(), only=["index", "show"])
        assert [p.name for p in group.pending] == ["users.index", "users.show"]

    def test_exclude(self) -> None:
        group = RouteGroup()
        group.resource("users", _Users(), exclude=["destroy", "create"])
        assert [p.name for p in group.pending] == ["users.index", "users.show", "users.update"]

    def test_only_wins_over_exclude(self) -> None:
        group = RouteGroup()
        group.resource("users", _Users(), only=["show"], exclude=["show"])
        assert [p.name for p in group.pending] == ["users.show"]

    def test_mapping_handlers_and_prefix(self) -> None:
        group = RouteGroup("/api", middleware=[_mw("auth")])
        audit = _mw("audit")
        group.resource("posts", {"index": _handler}, prefix="/v1", middleware=[audit])
        (pending,) = group.pending
        assert pending.path == "/api/v1/posts"
        assert pending.middleware[-1] is audit
        assert len(pending.middleware) == 2

    def test_unknown_action_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="archive"):
            RouteGroup().resource("users", _Users(), only=["archive"])

    def test_missing_requested_handler_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="patch"):
            RouteGroup().resource("users", _Users(), only=["patch"])

    async def test_dispatch_binds_id(self) -> None:
        app = App()
        app.resource("users", _Users())

        async with TestClient(app) as client:
            response = await client.get("/users/42")
            assert response.status == 200
            assert response.json() == {"user": {"id": "42"}}

            assert (await client.get("/users")).json() == {"users": []}
            assert (await client.post("/users")).status == 201
            assert (await client.put("/users/7")).json() == {"updated": "7"}
            assert (await client.delete("/users/7")).status == 204

            missing = await client.patch("/users/7")
            assert missing.status == 404
