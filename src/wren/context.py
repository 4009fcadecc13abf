"""Per-request Context.

One ``Context`` is created for each inbound request and owned by that
request's pipeline. It carries the transport handles (``request`` and
``response``), the bound path parameters, the decoded query and body, a
status mirror, and a free-form ``state`` dict for data shared between
middleware (request id, authenticated user, ...).

Response helpers come in two flavours:

- setters (``status``, ``type``, ``header``, ``cookie``, ``clear_cookie``)
  are synchronous and return the context for chaining;
- finalizers (``json``, ``send``, ``end``, ``redirect`` and the status
  helpers) are coroutines that write the response and return the context.

Every helper is a no-op once ``headers_sent`` is true: whoever writes
first wins.

``get_context()`` returns the Context of the request being dispatched
in the current task.
"""

from __future__ import annotations

import json as json_module
from contextvars import ContextVar
from typing import Any

from wren.http.cookies import EXPIRED, serialize_cookie
from wren.http.request import Request
from wren.http.response import ResponseWriter

context_var: ContextVar[Context] = ContextVar("wren_context")
"""The current request context. Set by the dispatcher before the pipeline runs."""


def get_context() -> Context:
    """Return the current request Context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()


# Short names accepted by ``is_type`` / ``accepts``
_MIME_ALIASES: dict[str, str] = {
    "json": "application/json",
    "html": "text/html",
    "text": "text/plain",
    "xml": "application/xml",
    "form": "application/x-www-form-urlencoded",
    "multipart": "multipart/form-data",
}


def _mime(kind: str) -> str:
    return _MIME_ALIASES.get(kind, kind)


def _quality(params: str) -> float:
    """The ``q`` weight of an Accept entry; malformed or missing means 1."""
    for param in params.split(";"):
        key, _, value = param.partition("=")
        if key.strip().lower() == "q":
            try:
                return float(value.strip())
            except ValueError:
                return 1.0
    return 1.0


def _json_bytes(data: Any) -> bytes:
    return json_module.dumps(data, separators=(",", ":"), default=str).encode("utf-8")


class Context:
    """Mutable per-request record. Not shared between requests."""

    __slots__ = ("body", "params", "query", "request", "response", "state", "status_code")

    def __init__(
        self,
        request: Request,
        response: ResponseWriter,
        params: dict[str, str] | None = None,
        query: dict[str, Any] | None = None,
        body: Any = None,
    ) -> None:
        self.request = request
        self.response = response
        self.params: dict[str, str] = params if params is not None else {}
        self.query: dict[str, Any] = query if query is not None else {}
        self.body: Any = body
        self.status_code: int = response.status_code
        self.state: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"<Context {self.request.method} {self.request.path} status={self.status_code}>"

    # -- Request side --

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def headers_sent(self) -> bool:
        return self.response.headers_sent

    def get(self, field: str) -> str | None:
        """Request header value (case-insensitive), or None."""
        return self.request.headers.get(field)

    def is_type(self, *types: str) -> bool:
        """True if the request Content-Type matches any of *types*.

        Accepts short names (``"json"``, ``"html"``) or full MIME types.
        """
        content_type = (self.request.content_type or "").split(";")[0].strip().lower()
        if not content_type:
            return False
        return any(_mime(kind) == content_type for kind in types)

    def accepts(self, *types: str) -> str | None:
        """First of *types* the client accepts, or None.

        A missing Accept header accepts anything.
        """
        accept = self.request.headers.get("accept")
        if not accept:
            return types[0] if types else None
        offered: list[str] = []
        for item in accept.split(","):
            mime, _, params = item.strip().partition(";")
            if _quality(params) == 0:
                continue
            offered.append(mime.strip().lower())
        for kind in types:
            mime = _mime(kind)
            family = mime.split("/")[0]
            if mime in offered or "*/*" in offered or f"{family}/*" in offered:
                return kind
        return None

    # -- Fluent setters --

    def status(self, code: int) -> Context:
        """Set the status code on both the context and the writer."""
        if not self.response.headers_sent:
            self.status_code = code
            self.response.status_code = code
        return self

    def type(self, content_type: str) -> Context:
        if not self.response.headers_sent:
            self.response.set_header("Content-Type", _mime(content_type))
        return self

    def header(self, name: str, value: str) -> Context:
        if not self.response.headers_sent:
            self.response.set_header(name, value)
        return self

    def cookie(
        self,
        name: str,
        value: str,
        *,
        max_age: int | None = None,
        expires: str | None = None,
        path: str | None = "/",
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = True,
        samesite: str | None = "lax",
    ) -> Context:
        """Append a ``Set-Cookie`` header."""
        if not self.response.headers_sent:
            cookie = serialize_cookie(
                name,
                value,
                max_age=max_age,
                expires=expires,
                path=path,
                domain=domain,
                secure=secure,
                httponly=httponly,
                samesite=samesite,
            )
            self.response.append_header("Set-Cookie", cookie)
        return self

    def clear_cookie(self, name: str, *, path: str | None = "/", domain: str | None = None) -> Context:
        """Expire cookie *name* on the client."""
        return self.cookie(
            name, "", max_age=0, expires=EXPIRED, path=path, domain=domain, samesite=None
        )

    # -- Finalizers --

    async def json(self, data: Any) -> Context:
        """Serialize *data* as JSON and finalize."""
        if not self.response.headers_sent:
            self.response.set_header("Content-Type", "application/json")
            await self.response.end(_json_bytes(data))
        return self

    async def send(self, data: Any = b"") -> Context:
        """Finalize with *data*: ``str`` as text, ``bytes`` as-is, anything else as JSON."""
        if self.response.headers_sent:
            return self
        if isinstance(data, str):
            if self.response.get_header("content-type") is None:
                self.response.set_header("Content-Type", "text/plain; charset=utf-8")
            await self.response.end(data.encode("utf-8"))
        elif isinstance(data, bytes | bytearray | memoryview):
            await self.response.end(bytes(data))
        else:
            await self.json(data)
        return self

    async def end(self) -> Context:
        """Finalize with an empty body."""
        await self.response.end(b"")
        return self

    async def redirect(self, url: str, status: int = 302) -> Context:
        if not self.response.headers_sent:
            self.status(status)
            self.response.set_header("Location", url)
            await self.response.end(b"")
        return self

    # -- Status helpers: success payloads serialize as-is --

    async def ok(self, data: Any = None) -> Context:
        return await self._success(200, data)

    async def created(self, data: Any = None) -> Context:
        return await self._success(201, data)

    async def no_content(self) -> Context:
        if not self.response.headers_sent:
            self.status(204)
            await self.response.end(b"")
        return self

    async def _success(self, code: int, data: Any) -> Context:
        if self.response.headers_sent:
            return self
        self.status(code)
        if data is None:
            return await self.end()
        return await self.send(data)

    # -- Status helpers: error payloads serialize as {error, status} --

    async def bad_request(self, message: str = "Bad Request") -> Context:
        return await self._error(400, message)

    async def unauthorized(self, message: str = "Unauthorized") -> Context:
        return await self._error(401, message)

    async def forbidden(self, message: str = "Forbidden") -> Context:
        return await self._error(403, message)

    async def not_found(self, message: str = "Not Found") -> Context:
        return await self._error(404, message)

    async def conflict(self, message: str = "Conflict") -> Context:
        return await self._error(409, message)

    async def unprocessable_entity(self, message: str = "Unprocessable Entity") -> Context:
        return await self._error(422, message)

    async def too_many_requests(self, message: str = "Too Many Requests") -> Context:
        return await self._error(429, message)

    async def internal_error(self, message: str = "Internal Server Error") -> Context:
        return await self._error(500, message)

    async def _error(self, code: int, message: str) -> Context:
        if self.response.headers_sent:
            return self
        self.status(code)
        return await self.json({"error": message, "status": code})
