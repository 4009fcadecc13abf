"""Middleware chain executor.

Runs an ordered middleware list followed by a terminal handler against
one Context. Each middleware receives a ``next`` callable that advances
a shared cursor; not calling it short-circuits the rest of the chain.

Once the response has been finalized, ``next`` returns immediately, so
nothing downstream of a finalized response runs. Exceptions propagate
out of ``run_chain`` unchanged, through every middleware that awaited
``next``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from wren._internal.invoke import invoke

if TYPE_CHECKING:
    from wren.context import Context
    from wren.middleware.protocol import Handler, Middleware


async def run_chain(
    ctx: Context,
    middleware: Sequence[Middleware],
    handler: Handler,
) -> None:
    """Execute *middleware* in order, then *handler*."""
    index = 0

    async def next() -> None:
        nonlocal index
        if ctx.response.headers_sent:
            return
        if index < len(middleware):
            current = middleware[index]
            index += 1
            await invoke(current, ctx, next)
            return
        if index == len(middleware):
            # The handler runs at most once, even if a middleware
            # calls next() twice.
            index += 1
            await invoke(handler, ctx)

    await next()
