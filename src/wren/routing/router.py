"""Compiled router with trie-based path matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes.

Pattern syntax::

    /users           literal
    /users/:id       named single-segment parameter
    /files/*         trailing catch-all (segments after ``*`` are ignored)

Empty segments are dropped on both sides, so ``/a//b/`` and ``/a/b`` are
the same routing key. No redirects are issued.
"""

import logging
from dataclasses import dataclass

from wren.errors import ConfigurationError
from wren.routing.route import PathSegment, Route, RouteMatch, SegmentKind

logger = logging.getLogger("wren.routing")


def split_path(path: str) -> list[str]:
    """Split a request path or pattern into its non-empty segments."""
    return [part for part in path.split("/") if part]


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route pattern into segments.

    Examples::

        "/users"       -> [PathSegment("users")]
        "/users/:id"   -> [PathSegment("users"), PathSegment(":id", PARAM, "id")]
        "/files/*/x"   -> [PathSegment("files"), PathSegment("*", WILDCARD)]
    """
    segments: list[PathSegment] = []
    for part in split_path(path):
        if part == "*":
            segments.append(PathSegment(value=part, kind=SegmentKind.WILDCARD))
            break
        if part.startswith(":"):
            name = part[1:]
            if not name:
                msg = f"Route {path!r} has a parameter segment without a name."
                raise ConfigurationError(msg)
            segments.append(PathSegment(value=part, kind=SegmentKind.PARAM, param_name=name))
        else:
            segments.append(PathSegment(value=part))
    return segments


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("children", "param_child", "routes_by_method", "wildcard_child")

    def __init__(self) -> None:
        # Literal segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (only one param slot per level)
        self.param_child: _ParamEdge | None = None
        # Single catch-all child
        self.wildcard_child: _TrieNode | None = None
        # Routes at this node, keyed by HTTP method
        self.routes_by_method: dict[str, Route] = {}


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie. The bound name follows the last registration."""

    param_name: str
    node: _TrieNode


class Router:
    """Compiled router with trie-based path matching.

    Usage::

        router = Router()
        router.add(Route("GET", "/users/:id", handler))
        router.compile()
        match = router.find("GET", "/users/42")
        match.route, match.path_params   # Route(...), {"id": "42"}

    With ``strict_params=True``, registering a different parameter name
    at an already-named trie position raises ``ConfigurationError``
    instead of renaming the position.
    """

    __slots__ = ("_compiled", "_root", "strict_params")

    def __init__(self, *, strict_params: bool = False) -> None:
        self._root = _TrieNode()
        self._compiled = False
        self.strict_params = strict_params

    def add(self, route: Route) -> None:
        """Add a route. Re-adding the same (method, pattern) replaces it.

        Must be called before compile().
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        node = self._root
        for seg in parse_path(route.path):
            if seg.kind is SegmentKind.WILDCARD:
                if node.wildcard_child is None:
                    node.wildcard_child = _TrieNode()
                node = node.wildcard_child
                break

            if seg.kind is SegmentKind.PARAM:
                name = seg.param_name or ""
                if node.param_child is None:
                    node.param_child = _ParamEdge(param_name=name, node=_TrieNode())
                elif node.param_child.param_name != name:
                    self._rename_param(node.param_child, name, route)
                node = node.param_child.node
            else:
                if seg.value not in node.children:
                    node.children[seg.value] = _TrieNode()
                node = node.children[seg.value]

        previous = node.routes_by_method.get(route.method)
        if previous is not None:
            logger.debug("%s %s replaces %s", route.method, route.path, previous.path)
        node.routes_by_method[route.method] = route

    def _rename_param(self, edge: _ParamEdge, name: str, route: Route) -> None:
        if self.strict_params:
            msg = (
                f"Route {route.method} {route.path!r} names parameter {name!r} where an "
                f"earlier route named it {edge.param_name!r}."
            )
            raise ConfigurationError(msg)
        logger.warning(
            "Parameter :%s renamed to :%s by %s %s; earlier routes now bind :%s",
            edge.param_name,
            name,
            route.method,
            route.path,
            name,
        )
        edge.param_name = name

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    @property
    def routes(self) -> list[Route]:
        """Return every registered route (trie order)."""
        seen: set[int] = set()
        result: list[Route] = []
        self._collect_routes(self._root, seen, result)
        return result

    def _collect_routes(self, node: _TrieNode, seen: set[int], result: list[Route]) -> None:
        for route in node.routes_by_method.values():
            if id(route) not in seen:
                seen.add(id(route))
                result.append(route)
        for child in node.children.values():
            self._collect_routes(child, seen, result)
        if node.param_child is not None:
            self._collect_routes(node.param_child.node, seen, result)
        if node.wildcard_child is not None:
            self._collect_routes(node.wildcard_child, seen, result)

    # -- Lookup --

    def find(self, method: str, path: str) -> RouteMatch:
        """Resolve (method, path).

        Returns a ``RouteMatch`` whose ``route`` is None when no branch
        answers *method*. ``routes_on_path`` is filled regardless of
        method so callers can tell "wrong method" from "no such path".
        """
        parts = split_path(path)
        routes_on_path: list[Route] = []
        self._collect_on_path(self._root, parts, 0, routes_on_path)

        found = self._match_node(self._root, parts, 0, method, {})
        if found is None:
            return RouteMatch(route=None, path_params={}, routes_on_path=tuple(routes_on_path))
        route, params = found
        return RouteMatch(route=route, path_params=params, routes_on_path=tuple(routes_on_path))

    def allowed_methods(self, path: str) -> frozenset[str]:
        """Every method with a route reachable for *path*."""
        return self.find("", path).allowed_methods

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        method: str,
        params: dict[str, str],
    ) -> tuple[Route, dict[str, str]] | None:
        """Depth-first match with literal > parameter > wildcard precedence.

        A branch only succeeds if its terminal node has a route for
        *method*; otherwise the next-lower precedence branch is tried.
        """
        if index == len(parts):
            route = node.routes_by_method.get(method)
            if route is None:
                return None
            return route, params

        part = parts[index]

        # 1. Literal child
        child = node.children.get(part)
        if child is not None:
            result = self._match_node(child, parts, index + 1, method, params)
            if result is not None:
                return result

        # 2. Parameter child (binding is discarded on backtrack)
        if node.param_child is not None:
            edge = node.param_child
            bound = {**params, edge.param_name: part}
            result = self._match_node(edge.node, parts, index + 1, method, bound)
            if result is not None:
                return result

        # 3. Wildcard child: consumes the rest, binds nothing
        if node.wildcard_child is not None:
            route = node.wildcard_child.routes_by_method.get(method)
            if route is not None:
                return route, params

        return None

    def _collect_on_path(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        found: list[Route],
    ) -> None:
        """Gather every route reachable for *parts*, ignoring method."""
        if index == len(parts):
            found.extend(node.routes_by_method.values())
            return

        if node.wildcard_child is not None:
            found.extend(node.wildcard_child.routes_by_method.values())

        child = node.children.get(parts[index])
        if child is not None:
            self._collect_on_path(child, parts, index + 1, found)

        if node.param_child is not None:
            self._collect_on_path(node.param_child.node, parts, index + 1, found)
