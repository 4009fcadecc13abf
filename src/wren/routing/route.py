"""Route, PathSegment, and RouteMatch frozen dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wren.middleware.protocol import Handler, Middleware


class SegmentKind(Enum):
    LITERAL = "literal"
    PARAM = "param"
    WILDCARD = "wildcard"


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Literal:  ``/users``  (kind=LITERAL)
    Param:    ``/:id``    (kind=PARAM, param_name="id")
    Wildcard: ``/*``      (kind=WILDCARD)
    """

    value: str
    kind: SegmentKind = SegmentKind.LITERAL
    param_name: str | None = None

    @property
    def is_param(self) -> bool:
        return self.kind is SegmentKind.PARAM

    @property
    def is_wildcard(self) -> bool:
        return self.kind is SegmentKind.WILDCARD


@dataclass(frozen=True, slots=True)
class Route:
    """A compiled route: one method, one pattern, its handler and middleware.

    Created during app setup, inserted into the router at freeze time.
    """

    method: str
    path: str
    handler: Handler
    middleware: tuple[Middleware, ...] = ()
    name: str | None = None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a router lookup.

    ``route`` is None when nothing answers *method* for the path.
    ``routes_on_path`` lists every route reachable for the path under
    any method, in discovery order.
    """

    route: Route | None
    path_params: dict[str, str]
    routes_on_path: tuple[Route, ...] = ()

    @property
    def allowed_methods(self) -> frozenset[str]:
        return frozenset(route.method for route in self.routes_on_path)

    def __bool__(self) -> bool:
        return self.route is not None

