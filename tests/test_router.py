"""Tests for wren.routing.router: compiled trie-based router."""

import logging

import pytest

from wren.errors import ConfigurationError
from wren.routing.route import Route, SegmentKind
from wren.routing.router import Router, parse_path, split_path


def _handler(ctx) -> None:
    return None


def _other(ctx) -> None:
    return None


def _route(path: str, method: str = "GET", handler=_handler, middleware=()) -> Route:
    return Route(method=method, path=path, handler=handler, middleware=tuple(middleware))


def _router(*routes: Route, strict_params: bool = False) -> Router:
    r = Router(strict_params=strict_params)
    for route in routes:
        r.add(route)
    r.compile()
    return r


class TestParsePath:
    def test_static(self) -> None:
        segments = parse_path("/users")
        assert len(segments) == 1
        assert segments[0].value == "users"
        assert segments[0].kind is SegmentKind.LITERAL
        assert segments[0].is_param is False

    def test_multi_static(self) -> None:
        segments = parse_path("/api/v2/users")
        assert [s.value for s in segments] == ["api", "v2", "users"]

    def test_param(self) -> None:
        segments = parse_path("/users/:id")
        assert len(segments) == 2
        assert segments[1].is_param is True
        assert segments[1].param_name == "id"

    def test_wildcard_stops_parsing(self) -> None:
        segments = parse_path("/files/*/ignored/:x")
        assert len(segments) == 2
        assert segments[1].is_wildcard is True

    def test_root(self) -> None:
        assert parse_path("/") == []

    def test_empty_segments_dropped(self) -> None:
        assert [s.value for s in parse_path("//a///b/")] == ["a", "b"]

    def test_rejects_unnamed_param(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            parse_path("/users/:")
        assert "/users/:" in str(exc_info.value)

    def test_split_path(self) -> None:
        assert split_path("/a//b/") == ["a", "b"]
        assert split_path("") == []


class TestRouterStaticRoutes:
    def test_root(self) -> None:
        r = _router(_route("/"))
        match = r.find("GET", "/")
        assert match.route is not None
        assert match.path_params == {}

    def test_nested_path(self) -> None:
        r = _router(_route("/api/v2/users"))
        match = r.find("GET", "/api/v2/users")
        assert match.route.path == "/api/v2/users"

    def test_trailing_and_duplicate_slashes_collapse(self) -> None:
        r = _router(_route("/a/b"))
        assert r.find("GET", "/a//b/").route is not None
        assert r.find("GET", "a/b").route is not None

    def test_unknown_path(self) -> None:
        r = _router(_route("/users"))
        match = r.find("GET", "/nope")
        assert match.route is None
        assert not match
        assert match.routes_on_path == ()


class TestRouterParams:
    def test_binds_segment(self) -> None:
        r = _router(_route("/a/:x"))
        match = r.find("GET", "/a/42")
        assert match.route is not None
        assert match.path_params == {"x": "42"}

    def test_multiple_params(self) -> None:
        r = _router(_route("/orgs/:org/repos/:repo"))
        match = r.find("GET", "/orgs/acme/repos/wren")
        assert match.path_params == {"org": "acme", "repo": "wren"}

    def test_param_needs_a_segment(self) -> None:
        r = _router(_route("/a/:x"))
        assert r.find("GET", "/a").route is None

    def test_wrong_method_is_no_match(self) -> None:
        r = _router(_route("/a/:x"))
        match = r.find("DELETE", "/a/42")
        assert match.route is None
        assert match.allowed_methods == frozenset({"GET"})


class TestPrecedence:
    def test_literal_beats_param(self) -> None:
        literal = _route("/users/active", handler=_other)
        r = _router(_route("/users/:id"), literal)
        match = r.find("GET", "/users/active")
        assert match.route is literal
        assert match.path_params == {}

    def test_param_beats_wildcard(self) -> None:
        param = _route("/files/:name", handler=_other)
        r = _router(_route("/files/*"), param)
        match = r.find("GET", "/files/readme")
        assert match.route is param
        assert match.path_params == {"name": "readme"}

    def test_backtracks_from_literal_without_method(self) -> None:
        post_literal = _route("/users/active", method="POST")
        get_param = _route("/users/:id", handler=_other)
        r = _router(post_literal, get_param)

        match = r.find("GET", "/users/active")
        assert match.route is get_param
        assert match.path_params == {"id": "active"}

    def test_backtracking_discards_param_binding(self) -> None:
        # /a/:x/b has no GET; the wildcard under /a must bind nothing
        wildcard = _route("/a/*")
        r = _router(_route("/a/:x/b", method="POST"), wildcard)

        match = r.find("GET", "/a/1/b")
        assert match.route is wildcard
        assert match.path_params == {}

    def test_backtracks_to_wildcard_higher_up(self) -> None:
        wildcard = _route("/*")
        r = _router(_route("/a/b", method="POST"), wildcard)
        assert r.find("GET", "/a/b").route is wildcard


class TestWildcard:
    def test_matches_remaining_segments(self) -> None:
        r = _router(_route("/files/*"))
        match = r.find("GET", "/files/a/b/c")
        assert match.route is not None
        assert match.path_params == {}

    def test_needs_at_least_one_segment(self) -> None:
        r = _router(_route("/files/*"))
        assert r.find("GET", "/files").route is None

    def test_keeps_earlier_params(self) -> None:
        r = _router(_route("/users/:id/files/*"))
        match = r.find("GET", "/users/7/files/x/y")
        assert match.path_params == {"id": "7"}


class TestRegistration:
    def test_reregistration_replaces(self) -> None:
        first = _route("/a")
        second = _route("/a", handler=_other)
        r = _router(first, second)
        assert r.find("GET", "/a").route is second
        assert len(r.routes) == 1

    def test_add_after_compile_raises(self) -> None:
        r = _router(_route("/a"))
        with pytest.raises(RuntimeError):
            r.add(_route("/b"))

    def test_routes_lists_every_route(self) -> None:
        r = _router(_route("/a"), _route("/a", method="POST"), _route("/b/:id"), _route("/c/*"))
        assert {(route.method, route.path) for route in r.routes} == {
            ("GET", "/a"),
            ("POST", "/a"),
            ("GET", "/b/:id"),
            ("GET", "/c/*"),
        }

    def test_param_rename_last_registration_wins(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="wren.routing"):
            r = _router(_route("/users/:id"), _route("/users/:name", method="POST"))

        assert r.find("GET", "/users/42").path_params == {"name": "42"}
        assert r.find("POST", "/users/42").path_params == {"name": "42"}
        assert "renamed" in caplog.text

    def test_strict_params_rejects_rename(self) -> None:
        r = Router(strict_params=True)
        r.add(_route("/users/:id"))
        with pytest.raises(ConfigurationError):
            r.add(_route("/users/:name", method="POST"))

    def test_strict_params_allows_same_name(self) -> None:
        r = _router(_route("/users/:id"), _route("/users/:id", method="POST"), strict_params=True)
        assert r.find("POST", "/users/1").path_params == {"id": "1"}


class TestRoutesOnPath:
    def test_collects_every_method(self) -> None:
        r = _router(_route("/items"), _route("/items", method="POST"))
        match = r.find("OPTIONS", "/items")
        assert match.route is None
        assert match.allowed_methods == frozenset({"GET", "POST"})

    def test_collects_across_branches(self) -> None:
        r = _router(
            _route("/items/special"),
            _route("/items/:id", method="DELETE"),
            _route("/items/*", method="PUT"),
        )
        assert r.allowed_methods("/items/special") == frozenset({"GET", "DELETE", "PUT"})
        assert r.allowed_methods("/items/other") == frozenset({"DELETE", "PUT"})

    def test_discovery_order_wildcard_then_literal_then_param(self) -> None:
        wildcard = _route("/x/*", method="PUT")
        literal = _route("/x/y")
        param = _route("/x/:id", method="DELETE")
        r = _router(param, literal, wildcard)

        match = r.find("OPTIONS", "/x/y")
        assert match.routes_on_path == (wildcard, literal, param)

    def test_unknown_path_has_no_methods(self) -> None:
        r = _router(_route("/items"))
        assert r.allowed_methods("/other") == frozenset()
