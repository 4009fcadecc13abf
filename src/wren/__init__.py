"""Wren: an ASGI request router and middleware dispatch engine.

Routes resolve through a prefix trie with literal > parameter > wildcard
precedence; every request runs an ordered middleware chain around its
handler, with an error boundary turning raised errors into JSON.

Basic usage::

    from wren import App

    app = App()

    @app.get("/users/:id")
    async def user(ctx):
        await ctx.json({"id": ctx.params["id"]})

Serve it with any ASGI server::

    uvicorn myapp:app
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Context",
    "ErrorCode",
    "ErrorKind",
    "HTTPError",
    "Handler",
    "Middleware",
    "Next",
    "Request",
    "Response",
    "RouteGroup",
    "WrenError",
    "get_context",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "App":
        from wren.app import App

        return App

    if name == "AppConfig":
        from wren.config import AppConfig

        return AppConfig

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name == "Response":
        from wren.http.response import Response

        return Response

    if name == "RouteGroup":
        from wren.routing.group import RouteGroup

        return RouteGroup

    if name in ("Context", "get_context"):
        from wren import context as _ctx

        return getattr(_ctx, name)

    if name in ("Handler", "Middleware", "Next"):
        from wren.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("ConfigurationError", "ErrorCode", "ErrorKind", "HTTPError", "WrenError"):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
