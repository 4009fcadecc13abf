"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(ctx: Context, next: Next) -> None: ...

No base class required. The framework checks the shape, not the lineage.

Middleware communicates through the shared Context: it may read and
mutate ``ctx``, call ``await next()`` zero or one time, and finalize the
response itself to short-circuit everything downstream.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from wren.context import Context

# Advances to the next middleware, or the terminal handler
type Next = Callable[[], Awaitable[None]]

# Terminal request handler; def or async def
type Handler = Callable[[Context], Awaitable[None] | None]


class Middleware(Protocol):
    """Protocol for wren middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(ctx: Context, next: Next) -> None:
            start = time.monotonic()
            await next()
            log.info("%s took %.3fs", ctx.path, time.monotonic() - start)

        # Class middleware
        class RequireJSON:
            async def __call__(self, ctx: Context, next: Next) -> None:
                if not ctx.is_type("json"):
                    await ctx.bad_request("Expected JSON")
                    return
                await next()
    """

    async def __call__(self, ctx: Context, next: Next) -> None: ...
