"""Route registration decorators and prefix groups.

``Routes`` provides the decorator surface shared by ``App`` and
``RouteGroup``. A group collects routes under a path prefix with its own
middleware; ``App.include(group)`` copies them into the app with the
group middleware running ahead of each route's own.

``Routes.resource`` registers the conventional REST actions of a
resource (index, show, create, update, patch, destroy) in one call.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from wren.errors import ConfigurationError

if TYPE_CHECKING:
    from wren.middleware.protocol import Handler, Middleware


# Resource actions in registration order: (action, method, member route)
RESOURCE_ACTIONS: tuple[tuple[str, str, bool], ...] = (
    ("index", "GET", False),
    ("show", "GET", True),
    ("create", "POST", False),
    ("update", "PUT", True),
    ("patch", "PATCH", True),
    ("destroy", "DELETE", True),
)


def join_paths(prefix: str, path: str) -> str:
    """Join a group prefix and a route path with exactly one slash."""
    head = prefix.rstrip("/")
    tail = path.lstrip("/")
    if not tail:
        return head or "/"
    return f"{head}/{tail}"


@dataclass(slots=True)
class PendingRoute:
    """A route waiting to be compiled."""

    method: str
    path: str
    handler: Handler
    middleware: tuple[Middleware, ...] = ()
    name: str | None = None


class Routes:
    """Decorator surface for route registration.

    Subclasses implement ``add``.
    """

    __slots__ = ()

    def add(
        self,
        method: str,
        path: str,
        handler: Handler,
        middleware: Sequence[Middleware] = (),
        *,
        name: str | None = None,
    ) -> None:
        raise NotImplementedError

    def route(
        self,
        path: str,
        *,
        methods: Iterable[str] | None = None,
        middleware: Sequence[Middleware] = (),
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a handler via decorator.

        Args:
            path: URL pattern. ``:name`` captures a segment, ``*`` the rest.
            methods: HTTP methods. Defaults to ``["GET"]``.
            middleware: Route middleware, run after global middleware.
            name: Optional route name for introspection.
        """

        def decorator(func: Handler) -> Handler:
            for method in methods or ("GET",):
                self.add(method, path, func, middleware, name=name)
            return func

        return decorator

    def get(self, path: str, *, middleware: Sequence[Middleware] = ()) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("GET",), middleware=middleware)

    def post(self, path: str, *, middleware: Sequence[Middleware] = ()) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("POST",), middleware=middleware)

    def put(self, path: str, *, middleware: Sequence[Middleware] = ()) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("PUT",), middleware=middleware)

    def patch(self, path: str, *, middleware: Sequence[Middleware] = ()) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("PATCH",), middleware=middleware)

    def delete(self, path: str, *, middleware: Sequence[Middleware] = ()) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("DELETE",), middleware=middleware)

    def options(self, path: str, *, middleware: Sequence[Middleware] = ()) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("OPTIONS",), middleware=middleware)

    def head(self, path: str, *, middleware: Sequence[Middleware] = ()) -> Callable[[Handler], Handler]:
        return self.route(path, methods=("HEAD",), middleware=middleware)

    def resource(
        self,
        name: str,
        handlers: Mapping[str, Handler] | Any,
        *,
        only: Iterable[str] = (),
        exclude: Iterable[str] = (),
        middleware: Sequence[Middleware] = (),
        prefix: str = "",
    ) -> None:
        """Register the REST actions of resource *name*.

        ==========  ========  ===================
        action      method    path
        ==========  ========  ===================
        index       GET       ``/{name}``
        show        GET       ``/{name}/:id``
        create      POST      ``/{name}``
        update      PUT       ``/{name}/:id``
        patch       PATCH     ``/{name}/:id``
        destroy     DELETE    ``/{name}/:id``
        ==========  ========  ===================

        *handlers* is a mapping of action name to handler, or any object
        whose attributes are named after the actions (a controller
        instance). Actions without a handler are skipped, unless they
        were asked for by name in *only*.
        When *only* is given, *exclude* is ignored.

        Usage::

            class Users:
                async def index(self, ctx): ...
                async def show(self, ctx): ...

            app.resource("users", Users(), only=["index", "show"])

        Routes are named ``"{name}.{action}"``.
        """
        known = {action for action, _, _ in RESOURCE_ACTIONS}
        only = frozenset(only)
        exclude = frozenset(exclude)
        unknown = (only | exclude) - known
        if unknown:
            msg = f"Unknown resource action(s) for {name!r}: {', '.join(sorted(unknown))}"
            raise ConfigurationError(msg)

        collection = join_paths(prefix, name)
        member = join_paths(collection, ":id")

        for action, method, is_member in RESOURCE_ACTIONS:
            if only:
                if action not in only:
                    continue
            elif action in exclude:
                continue
            if isinstance(handlers, Mapping):
                handler = handlers.get(action)
            else:
                handler = getattr(handlers, action, None)
            if handler is None:
                if action in only:
                    msg = f"Resource {name!r} has no handler for {action!r}"
                    raise ConfigurationError(msg)
                continue
            self.add(
                method,
                member if is_member else collection,
                handler,
                middleware,
                name=f"{name}.{action}",
            )


class RouteGroup(Routes):
    """Routes sharing a path prefix and leading middleware.

    Usage::

        api = RouteGroup("/api", middleware=[require_token])

        @api.get("/users/:id")
        async def user(ctx): ...

        app.include(api)   # registers GET /api/users/:id
    """

    __slots__ = ("middleware", "pending", "prefix")

    def __init__(self, prefix: str = "", *, middleware: Sequence[Middleware] = ()) -> None:
        self.prefix = prefix
        self.middleware: tuple[Middleware, ...] = tuple(middleware)
        self.pending: list[PendingRoute] = []

    def add(
        self,
        method: str,
        path: str,
        handler: Handler,
        middleware: Sequence[Middleware] = (),
        *,
        name: str | None = None,
    ) -> None:
        self.pending.append(
            PendingRoute(
                method=method.upper(),
                path=join_paths(self.prefix, path),
                handler=handler,
                middleware=(*self.middleware, *middleware),
                name=name,
            )
        )

    def include(self, group: RouteGroup) -> None:
        """Nest *group* under this group's prefix and middleware."""
        for pending in group.pending:
            self.add(
                pending.method,
                pending.path,
                pending.handler,
                pending.middleware,
                name=pending.name,
            )
