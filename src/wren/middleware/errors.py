"""Error boundary middleware.

Converts exceptions raised anywhere downstream into structured JSON
responses. ``App`` installs one as the first global middleware so it
observes every failure in the chain.

Rendering rules:

- ``HTTPError`` instances render via ``to_dict()`` when exposed;
  unexposed errors (Internal/500 by default) render only the standard
  status phrase, never the original message, details or meta.
- Any other exception is normalized to Internal/500 first.
- ``include_stack`` adds a ``stack`` field with the formatted traceback.
- ``expose_internal`` reveals the original message of unexposed errors.
- Error headers (``Retry-After`` ...) are applied before the body.

An error raised after the response was finalized cannot become a
response; it is logged on ``wren.errors`` and dropped.
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from wren._internal.invoke import invoke
from wren.errors import HTTPError, normalize_error, status_phrase

if TYPE_CHECKING:
    from wren.context import Context
    from wren.middleware.protocol import Next

type ErrorHook = Callable[[BaseException, Context], Awaitable[None] | None]


class ErrorBoundary:
    """Catch, normalize and render downstream errors.

    Usage::

        app.add_middleware(ErrorBoundary(include_stack=True))

    ``App`` installs one automatically, configured from ``AppConfig``;
    adding another is only needed around a specific route group.
    """

    __slots__ = ("expose_internal", "include_stack", "logger", "on_error")

    def __init__(
        self,
        *,
        include_stack: bool = False,
        expose_internal: bool = False,
        on_error: ErrorHook | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.include_stack = include_stack
        self.expose_internal = expose_internal
        self.on_error = on_error
        self.logger = logger or logging.getLogger("wren.errors")

    async def __call__(self, ctx: Context, next: Next) -> None:
        try:
            await next()
        except Exception as exc:
            await self.handle(ctx, exc)

    async def handle(self, ctx: Context, exc: Exception) -> None:
        """Log *exc*, run the hook, and render it if still possible."""
        error = normalize_error(exc)

        if error.status >= 500:
            self.logger.error(
                "%d %s %s", error.status, ctx.method, ctx.path, exc_info=exc
            )
        else:
            self.logger.debug("%d %s %s: %s", error.status, ctx.method, ctx.path, error)

        if self.on_error is not None:
            await invoke(self.on_error, exc, ctx)

        if ctx.headers_sent:
            self.logger.warning(
                "Dropped %s raised after response was sent for %s %s",
                type(exc).__name__,
                ctx.method,
                ctx.path,
            )
            return

        for name, value in error.headers:
            ctx.header(name, value)
        ctx.status(error.status)
        await ctx.json(self.render(error, exc))

    def render(self, error: HTTPError, exc: BaseException) -> dict[str, Any]:
        """Build the JSON body for *error*."""
        if error.expose:
            body = error.to_dict()
        elif self.expose_internal:
            body = error.to_dict()
            if error.cause is not None:
                body["error"] = str(error.cause) or type(error.cause).__name__
        else:
            body = {
                "error": status_phrase(error.status),
                "status": error.status,
                "code": str(error.code),
                "timestamp": error.timestamp,
            }
        if self.include_stack:
            body["stack"] = "".join(traceback.format_exception(exc))
        return body
