"""Built-in middleware: CORS.

Handles preflight requests and adds the appropriate headers to every
cross-origin response. Preflights are answered directly with 204 and
never reach the handler; for other requests the headers are staged
before the rest of the chain runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wren.context import Context
    from wren.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS middleware configuration.

    All fields have secure defaults (nothing is allowed).
    Override what you need::

        CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST"),
        )
    """

    allow_origins: tuple[str, ...] = ()
    allow_methods: tuple[str, ...] = ("GET", "HEAD", "OPTIONS")
    allow_headers: tuple[str, ...] = ()
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 600  # 10 minutes


class CORSMiddleware:
    """Standards-compliant CORS middleware.

    Handles:
    - Preflight ``OPTIONS`` requests (204 with CORS headers, chain stops)
    - Simple and actual requests (CORS headers on the response)
    - Credential support (``Access-Control-Allow-Credentials``)
    - Wildcard origins (``"*"``) when credentials are disabled

    Requests without an ``Origin`` header, or from an origin not in the
    allow list, pass through untouched.

    Usage::

        app.add_middleware(CORSMiddleware(CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST", "PUT"),
            allow_headers=("Content-Type", "Authorization"),
        )))
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    def _is_allowed_origin(self, origin: str) -> bool:
        if "*" in self.config.allow_origins:
            return True
        return origin in self.config.allow_origins

    def _add_cors_headers(self, ctx: Context, origin: str) -> None:
        cfg = self.config

        if "*" in cfg.allow_origins and not cfg.allow_credentials:
            ctx.header("Access-Control-Allow-Origin", "*")
        else:
            ctx.header("Access-Control-Allow-Origin", origin)
            ctx.response.append_header("Vary", "Origin")

        if cfg.allow_credentials:
            ctx.header("Access-Control-Allow-Credentials", "true")

        if cfg.expose_headers:
            ctx.header("Access-Control-Expose-Headers", ", ".join(cfg.expose_headers))

    async def _preflight(self, ctx: Context, origin: str) -> None:
        cfg = self.config
        self._add_cors_headers(ctx, origin)

        if ctx.get("access-control-request-method"):
            ctx.header("Access-Control-Allow-Methods", ", ".join(cfg.allow_methods))

        if cfg.allow_headers:
            ctx.header("Access-Control-Allow-Headers", ", ".join(cfg.allow_headers))

        ctx.header("Access-Control-Max-Age", str(cfg.max_age))
        await ctx.no_content()

    async def __call__(self, ctx: Context, next: Next) -> None:
        origin = ctx.get("origin")

        # No Origin header: not a CORS request
        if origin is None or not self._is_allowed_origin(origin):
            await next()
            return

        if ctx.method == "OPTIONS":
            await self._preflight(ctx, origin)
            return

        self._add_cors_headers(ctx, origin)
        await next()
