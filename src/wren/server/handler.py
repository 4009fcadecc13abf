"""ASGI handler: translates ASGI scope/messages to wren types.

The only component that touches raw ASGI for HTTP requests. Builds the
Request, Context and ResponseWriter, resolves the route, and runs
global middleware ++ route middleware ++ handler through the chain.

Unmatched requests run global middleware only, ending in a terminal
that raises ``route_not_found``. An unmatched OPTIONS request on a path
that has routes for other methods gets a synthesized route instead: an
``Allow`` header, the middleware of every route on the path, and a
no-op handler.
"""

import logging
from collections.abc import Sequence

from wren._internal.asgi import Receive, Scope, Send
from wren.context import Context, context_var
from wren.errors import internal_error, route_not_found
from wren.http.query import parse_query
from wren.http.request import Request
from wren.http.response import ResponseWriter
from wren.middleware.chain import run_chain
from wren.middleware.protocol import Handler, Middleware
from wren.routing.route import RouteMatch
from wren.routing.router import Router

logger = logging.getLogger("wren.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: Sequence[Middleware],
) -> None:
    """Process a single HTTP request through the full pipeline."""
    request = Request.from_asgi(scope, receive)
    writer = ResponseWriter(send)
    match = router.find(request.method, request.path)
    ctx = Context(
        request,
        writer,
        params=dict(match.path_params),
        query=parse_query(request.query_string),
    )

    token = context_var.set(ctx)
    try:
        route_middleware, handler = _plan(ctx, match)
        await run_chain(ctx, (*middleware, *route_middleware), handler)
        if not writer.headers_sent:
            # Nothing finalized: answer with whatever status was set
            writer.status_code = ctx.status_code
            await writer.end(b"")
    except Exception:
        # Only reachable when the error boundary is missing or itself failed
        logger.exception("Unhandled error in %s %s", request.method, request.path)
        if not writer.headers_sent:
            ctx.status(500)
            await ctx.json(internal_error().to_dict())
    finally:
        context_var.reset(token)


def _plan(ctx: Context, match: RouteMatch) -> tuple[tuple[Middleware, ...], Handler]:
    """Pick route middleware and terminal handler for *match*."""
    if match.route is not None:
        return match.route.middleware, match.route.handler

    if ctx.method == "OPTIONS" and match.routes_on_path:
        allowed = sorted({*match.allowed_methods, "OPTIONS"})
        ctx.header("Allow", ", ".join(allowed))
        synthesized = tuple(mw for route in match.routes_on_path for mw in route.middleware)
        return synthesized, _options_handler

    return (), _not_found_handler


async def _options_handler(ctx: Context) -> None:
    """Terminal for synthesized OPTIONS; the dispatcher finalizes the 200."""


async def _not_found_handler(ctx: Context) -> None:
    raise route_not_found(ctx.path, ctx.method)
