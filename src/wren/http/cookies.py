"""``Set-Cookie`` serialization for ``Context.cookie`` and ``clear_cookie``."""

# Sent alongside Max-Age=0 so clients that ignore Max-Age also drop the cookie
EXPIRED = "Thu, 01 Jan 1970 00:00:00 GMT"

_SAMESITE = {"lax": "Lax", "strict": "Strict", "none": "None"}


def serialize_cookie(
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
) -> str:
    """Build a ``Set-Cookie`` header value.

    ``samesite`` is one of ``"lax"``, ``"strict"`` or ``"none"`` (any
    case); browsers reject ``SameSite=None`` without ``Secure``, so that
    combination raises ``ValueError``.
    """
    if not name or any(ch in name for ch in "=;, \t"):
        msg = f"Invalid cookie name: {name!r}"
        raise ValueError(msg)

    parts = [f"{name}={value}"]
    if max_age is not None:
        parts.append(f"Max-Age={max_age}")
    if expires:
        parts.append(f"Expires={expires}")
    if path:
        parts.append(f"Path={path}")
    if domain:
        parts.append(f"Domain={domain}")
    if secure:
        parts.append("Secure")
    if httponly:
        parts.append("HttpOnly")
    if samesite:
        attribute = _SAMESITE.get(samesite.lower())
        if attribute is None:
            msg = f"Invalid SameSite value: {samesite!r}"
            raise ValueError(msg)
        if attribute == "None" and not secure:
            msg = f"Cookie {name!r} uses SameSite=None and must also be Secure"
            raise ValueError(msg)
        parts.append(f"SameSite={attribute}")
    return "; ".join(parts)
