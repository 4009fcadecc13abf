"""Response writer and captured response.

``ResponseWriter`` is the raw transport handle behind every Context. It
collects status and headers until the first write, then emits exactly
one ASGI ``http.response.start`` / ``http.response.body`` pair. Once
``headers_sent`` flips, every further write is a no-op.

``Response`` is the frozen result the test client reconstructs from the
ASGI messages.
"""

from __future__ import annotations

import json as json_module
import logging
from dataclasses import dataclass
from typing import Any

from wren._internal.asgi import Send

logger = logging.getLogger("wren.server")


def body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _check_encodable(name: str, value: str) -> None:
    """Reject header text that cannot go on the wire as latin-1."""
    try:
        name.encode("latin-1")
        value.encode("latin-1")
    except UnicodeEncodeError as exc:
        msg = f"Header {name!r} is not latin-1 encodable; percent-encode non-ASCII values."
        raise ValueError(msg) from exc


class ResponseWriter:
    """Outbound half of the transport.

    Mutable until finalized. ``headers_sent`` is set *before* the first
    ``send()`` is awaited, so under cooperative scheduling the first
    writer wins and everyone after it sees a finalized response.
    """

    __slots__ = ("_headers", "_send", "headers_sent", "status_code")

    def __init__(self, send: Send) -> None:
        self._send = send
        self._headers: list[tuple[str, str]] = []
        self.status_code: int = 200
        self.headers_sent: bool = False

    # -- Headers --

    @property
    def headers(self) -> tuple[tuple[str, str], ...]:
        return tuple(self._headers)

    def get_header(self, name: str) -> str | None:
        key = name.lower()
        for header_name, value in self._headers:
            if header_name.lower() == key:
                return value
        return None

    def set_header(self, name: str, value: str) -> None:
        """Replace any existing values of *name* with *value*."""
        _check_encodable(name, value)
        self.remove_header(name)
        self._headers.append((name, value))

    def append_header(self, name: str, value: str) -> None:
        """Add *value* without replacing (``Set-Cookie``, ``Vary``)."""
        _check_encodable(name, value)
        self._headers.append((name, value))

    def remove_header(self, name: str) -> None:
        key = name.lower()
        self._headers = [(n, v) for n, v in self._headers if n.lower() != key]

    # -- Finalization --

    async def end(self, body: bytes = b"") -> bool:
        """Send status, headers and *body*. Returns False if already sent."""
        if self.headers_sent:
            logger.debug("response already sent; dropping %d-byte write", len(body))
            return False

        if not body_allowed(self.status_code):
            body = b""

        # Encode before flipping the flag: a header that is not latin-1
        # must leave the response unsent so the error can still render.
        raw_headers: list[tuple[bytes, bytes]] = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in self._headers
            if name.lower() != "content-length"
        ]
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

        self.headers_sent = True
        await self._send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": raw_headers,
            }
        )
        await self._send({"type": "http.response.body", "body": body})
        return True


@dataclass(frozen=True, slots=True)
class Response:
    """A response as seen by a client: status, headers, body bytes."""

    status: int
    headers: tuple[tuple[str, str], ...] = ()
    body: bytes = b""

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive)."""
        key = name.lower()
        for header_name, value in self.headers:
            if header_name == key:
                return value
        return None

    def header_list(self, name: str) -> list[str]:
        key = name.lower()
        return [value for header_name, value in self.headers if header_name == key]

    @property
    def content_type(self) -> str | None:
        return self.header("content-type")

    @property
    def text(self) -> str:
        """Body as string."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Body parsed as JSON."""
        return json_module.loads(self.body)
