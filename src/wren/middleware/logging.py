"""Request id and access log middleware.

``RequestID`` tags each request with an id stored in
``ctx.state["request_id"]`` and echoed in a response header.

``AccessLog`` writes one line per request on ``wren.access``::

    [3f2a...] GET /users/42 -> 200 3.1ms

Failed requests are logged with the status the error maps to (500 for
anything that is not an ``HTTPError``) and the error is re-raised for
the boundary to render.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import TYPE_CHECKING

from wren.errors import HTTPError

if TYPE_CHECKING:
    from wren.context import Context
    from wren.middleware.protocol import Next


def generate_request_id() -> str:
    """32 hex characters from 16 random bytes."""
    return secrets.token_hex(16)


class RequestID:
    """Assign a request id and expose it as a response header.

    With ``trust_header=True`` an inbound header of the same name is
    reused instead of generating a fresh id (behind a trusted proxy).
    """

    __slots__ = ("header", "trust_header")

    def __init__(self, header: str = "X-Request-ID", *, trust_header: bool = False) -> None:
        self.header = header
        self.trust_header = trust_header

    async def __call__(self, ctx: Context, next: Next) -> None:
        request_id = None
        if self.trust_header:
            request_id = ctx.get(self.header)
        if not request_id:
            request_id = generate_request_id()
        ctx.state["request_id"] = request_id
        ctx.header(self.header, request_id)
        await next()


class AccessLog:
    """Log method, path, status and duration for every request."""

    __slots__ = ("logger",)

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("wren.access")

    async def __call__(self, ctx: Context, next: Next) -> None:
        start = time.perf_counter()
        try:
            await next()
        except Exception as exc:
            status = exc.status if isinstance(exc, HTTPError) else 500
            self._log(ctx, status, start, logging.ERROR if status >= 500 else logging.WARNING)
            raise
        self._log(ctx, ctx.response.status_code, start, logging.INFO)

    def _log(self, ctx: Context, status: int, start: float, level: int) -> None:
        elapsed_ms = (time.perf_counter() - start) * 1000
        request_id = ctx.state.get("request_id", "-")
        self.logger.log(
            level,
            "[%s] %s %s -> %d %.1fms",
            request_id,
            ctx.method,
            ctx.request.url,
            status,
            elapsed_ms,
        )
