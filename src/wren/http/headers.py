"""Read-only request headers.

The dispatcher builds one ``Headers`` per request from the ASGI header
pairs. Names are folded to lowercase once, up front, and repeated
fields are combined the way HTTP allows, so every lookup made by the
Context helpers and the middleware is a single dict hit.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping


def _separator(name: str) -> str:
    # Cookie pairs are joined with "; ", every other list field with ", "
    return "; " if name == "cookie" else ", "


class Headers(Mapping[str, str]):
    """Case-insensitive view of the request headers."""

    __slots__ = ("_fields",)

    def __init__(self, raw: Iterable[tuple[bytes, bytes]] = ()) -> None:
        fields: dict[str, str] = {}
        for raw_name, raw_value in raw:
            name = raw_name.decode("latin-1").lower()
            value = raw_value.decode("latin-1")
            if name in fields:
                fields[name] = f"{fields[name]}{_separator(name)}{value}"
            else:
                fields[name] = value
        self._fields = fields

    def __getitem__(self, name: str) -> str:
        return self._fields[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Headers({self._fields!r})"
