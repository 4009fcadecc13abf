"""Inbound half of the transport.

``Request`` is what the dispatcher extracts from an ASGI scope: the
method and path the router matches on, the headers the Context helpers
and middleware read, and the raw query string. Route parameters and
the decoded query live on the Context, not here.
"""

from __future__ import annotations

import json as json_module
from dataclasses import dataclass, field
from typing import Any

from wren._internal.asgi import Receive, Scope
from wren.http.headers import Headers


@dataclass(frozen=True, slots=True)
class Request:
    """Frozen request metadata plus a lazily read body."""

    method: str
    path: str
    headers: Headers
    query_string: str
    _receive: Receive = field(repr=False, compare=False)
    # The body is read from ``receive`` at most once
    _cache: dict[str, bytes] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers(scope.get("headers", ())),
            query_string=scope.get("query_string", b"").decode("latin-1"),
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string, as logged by ``AccessLog``."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    async def body(self) -> bytes:
        """Read the whole body. A client disconnect ends it early."""
        if "body" not in self._cache:
            chunks: list[bytes] = []
            while True:
                message = await self._receive()
                if message["type"] == "http.disconnect":
                    break
                chunks.append(message.get("body", b""))
                if not message.get("more_body", False):
                    break
            self._cache["body"] = b"".join(chunks)
        return self._cache["body"]

    async def json(self) -> Any:
        return json_module.loads(await self.body())
