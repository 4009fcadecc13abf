"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(ctx: Context, next: Next) -> None

Built-in middleware:
    AccessLog -- One log line per request on ``wren.access``
    CORSMiddleware -- Cross-Origin Resource Sharing
    ErrorBoundary -- Render raised errors as structured JSON
    RequestID -- Tag requests with an id header
    SecurityHeadersMiddleware -- X-Frame-Options, X-Content-Type-Options, Referrer-Policy
    Timeout -- Answer 408 when downstream is too slow
"""

from wren.middleware.builtin import CORSConfig, CORSMiddleware
from wren.middleware.chain import run_chain
from wren.middleware.errors import ErrorBoundary
from wren.middleware.logging import AccessLog, RequestID
from wren.middleware.protocol import Handler, Middleware, Next
from wren.middleware.security_headers import (
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
)
from wren.middleware.timeout import Timeout

__all__ = [
    "AccessLog",
    "CORSConfig",
    "CORSMiddleware",
    "ErrorBoundary",
    "Handler",
    "Middleware",
    "Next",
    "RequestID",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "Timeout",
    "run_chain",
]
