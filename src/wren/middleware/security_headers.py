"""Security headers middleware: X-Frame-Options, X-Content-Type-Options, Referrer-Policy.

Headers are staged on the response before the rest of the chain runs,
so they go out with whatever response downstream writes. Downstream can
still override any of them with ``ctx.header()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wren.context import Context
    from wren.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class SecurityHeadersConfig:
    """Configuration for security headers.

    All values are applied as-is. ``None`` omits the header.
    """

    x_frame_options: str | None = "DENY"
    x_content_type_options: str | None = "nosniff"
    referrer_policy: str | None = "strict-origin-when-cross-origin"
    content_security_policy: str | None = None
    strict_transport_security: str | None = None

    def headers(self) -> tuple[tuple[str, str], ...]:
        pairs = (
            ("X-Frame-Options", self.x_frame_options),
            ("X-Content-Type-Options", self.x_content_type_options),
            ("Referrer-Policy", self.referrer_policy),
            ("Content-Security-Policy", self.content_security_policy),
            ("Strict-Transport-Security", self.strict_transport_security),
        )
        return tuple((name, value) for name, value in pairs if value)


class SecurityHeadersMiddleware:
    """Add security headers to every response.

    - X-Frame-Options prevents clickjacking
    - X-Content-Type-Options prevents MIME sniffing
    - Referrer-Policy controls referrer leakage

    Usage::

        from wren.middleware import SecurityHeadersMiddleware

        app.add_middleware(SecurityHeadersMiddleware())

    Or with custom config::

        app.add_middleware(SecurityHeadersMiddleware(SecurityHeadersConfig(
            x_frame_options="SAMEORIGIN",
            strict_transport_security="max-age=63072000; includeSubDomains",
        )))
    """

    __slots__ = ("_headers", "config")

    def __init__(self, config: SecurityHeadersConfig | None = None) -> None:
        self.config = config or SecurityHeadersConfig()
        self._headers = self.config.headers()

    async def __call__(self, ctx: Context, next: Next) -> None:
        for name, value in self._headers:
            ctx.header(name, value)
        await next()
