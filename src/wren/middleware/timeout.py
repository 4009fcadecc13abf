"""Request timeout middleware.

Races the rest of the chain against a timer. When the timer fires first
and nothing has been written yet, the request is answered with a 408
JSON error and ``Connection: close``.

Downstream is not cancelled: it keeps running to completion, but its
writes become no-ops because the response is already finalized.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import anyio

from wren._internal.invoke import invoke
from wren.errors import ConfigurationError, request_timeout

if TYPE_CHECKING:
    from wren.context import Context
    from wren.middleware.protocol import Next

logger = logging.getLogger("wren.server")

type TimeoutHook = Callable[[Context], Awaitable[None] | None]


class Timeout:
    """Answer 408 when downstream takes longer than *seconds*.

    Usage::

        app.add_middleware(Timeout(5.0))

    ``on_timeout(ctx)`` runs when the timer fires; if it finalizes the
    response, the default 408 body is skipped.
    """

    __slots__ = ("on_timeout", "seconds")

    def __init__(self, seconds: float, *, on_timeout: TimeoutHook | None = None) -> None:
        if seconds <= 0:
            msg = f"Timeout must be positive, got {seconds!r}."
            raise ConfigurationError(msg)
        self.seconds = seconds
        self.on_timeout = on_timeout

    async def __call__(self, ctx: Context, next: Next) -> None:
        failure: Exception | None = None

        async def watchdog() -> None:
            await anyio.sleep(self.seconds)
            # The 408 must go out whole even if downstream finishes mid-send
            with anyio.CancelScope(shield=True):
                await self._expire(ctx)

        async with anyio.create_task_group() as tg:
            tg.start_soon(watchdog)
            try:
                await next()
            except Exception as exc:
                failure = exc
            finally:
                tg.cancel_scope.cancel()

        if failure is not None:
            raise failure

    async def _expire(self, ctx: Context) -> None:
        if ctx.headers_sent:
            return
        logger.warning("%s %s timed out after %gs", ctx.method, ctx.path, self.seconds)
        if self.on_timeout is not None:
            await invoke(self.on_timeout, ctx)
            if ctx.headers_sent:
                return
        error = request_timeout(int(self.seconds * 1000))
        ctx.header("Connection", "close")
        ctx.status(error.status)
        await ctx.json(error.to_dict())
