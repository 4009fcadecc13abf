"""Wren exception hierarchy.

Shared across Router, App, handlers, and middleware so every module
raises and catches the same types.

HTTP failures are a single frozen ``HTTPError`` tagged with an
``ErrorKind``. The kind carries the default status, code, and exposure
for each row of the taxonomy; the factory functions at the bottom of the
module build the common variants.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum, StrEnum
from http import HTTPStatus
from typing import Any


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when app or route configuration is invalid.

    Typically raised while registering routes or during ``App._freeze()``.
    """


class ErrorCode(StrEnum):
    """Machine-readable error codes emitted in the ``code`` field."""

    UNKNOWN = "UNKNOWN"
    BAD_REQUEST = "BAD_REQUEST"
    INVALID_JSON = "INVALID_JSON"
    INVALID_CONTENT_TYPE = "INVALID_CONTENT_TYPE"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_FIELD_TYPE = "INVALID_FIELD_TYPE"
    INVALID_FIELD_FORMAT = "INVALID_FIELD_FORMAT"
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    MISSING_TOKEN = "MISSING_TOKEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    FORBIDDEN = "FORBIDDEN"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    NOT_FOUND = "NOT_FOUND"
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFLICT = "CONFLICT"
    RESOURCE_EXISTS = "RESOURCE_EXISTS"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL = "INTERNAL_ERROR"


class ErrorKind(Enum):
    """Error taxonomy: (default status, default code, default message, exposed)."""

    BAD_REQUEST = (400, ErrorCode.BAD_REQUEST, "Bad Request", True)
    VALIDATION = (400, ErrorCode.VALIDATION_FAILED, "Validation failed", True)
    AUTHENTICATION = (401, ErrorCode.UNAUTHORIZED, "Authentication required", True)
    AUTHORIZATION = (403, ErrorCode.FORBIDDEN, "Access denied", True)
    NOT_FOUND = (404, ErrorCode.NOT_FOUND, "Not Found", True)
    TIMEOUT = (408, ErrorCode.REQUEST_TIMEOUT, "Request timeout", True)
    CONFLICT = (409, ErrorCode.CONFLICT, "Resource conflict", True)
    PAYLOAD_TOO_LARGE = (413, ErrorCode.PAYLOAD_TOO_LARGE, "Payload too large", True)
    RATE_LIMIT = (429, ErrorCode.RATE_LIMIT_EXCEEDED, "Too many requests", True)
    INTERNAL = (500, ErrorCode.INTERNAL, "Internal Server Error", False)
    SERVICE_UNAVAILABLE = (503, ErrorCode.SERVICE_UNAVAILABLE, "Service unavailable", True)

    def __init__(self, status: int, code: ErrorCode, message: str, expose: bool) -> None:
        self.status = status
        self.code = code
        self.message = message
        self.expose = expose


@dataclass(frozen=True, slots=True)
class ErrorDetail:
    """A field-level detail attached to an error (usually validation)."""

    field: str
    message: str
    code: ErrorCode | None = None
    expected: str | None = None
    received: str | None = None
    meta: Mapping[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting unset fields."""
        data: dict[str, Any] = {"field": self.field, "message": self.message}
        if self.code is not None:
            data["code"] = str(self.code)
        if self.expected is not None:
            data["expected"] = self.expected
        if self.received is not None:
            data["received"] = self.received
        if self.meta:
            data["meta"] = dict(self.meta)
        return data


def status_phrase(status: int) -> str:
    """Standard reason phrase for *status* (``"Error"`` if non-standard)."""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Error"


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True, eq=False)  # hashed by identity; meta is a dict
class HTTPError(WrenError):
    """An error that maps directly to an HTTP status code.

    Raised by the dispatcher, middleware, or handlers. The error boundary
    catches these and renders them as JSON. ``expose`` controls whether
    ``message``, ``details`` and ``meta`` reach the client.
    """

    status: int
    message: str = ""
    code: ErrorCode = ErrorCode.UNKNOWN
    kind: ErrorKind | None = None
    expose: bool = True
    details: tuple[ErrorDetail, ...] = ()
    meta: Mapping[str, Any] = field(default_factory=dict)
    headers: tuple[tuple[str, str], ...] = ()
    timestamp: str = field(default_factory=utc_timestamp, compare=False)
    cause: BaseException | None = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        if self.message:
            return f"{self.status}: {self.message}"
        return str(self.status)

    @classmethod
    def of(
        cls,
        kind: ErrorKind,
        message: str | None = None,
        *,
        code: ErrorCode | None = None,
        details: Iterable[ErrorDetail] = (),
        meta: Mapping[str, Any] | None = None,
        headers: tuple[tuple[str, str], ...] = (),
        cause: BaseException | None = None,
    ) -> HTTPError:
        """Build an error from the defaults of *kind*."""
        return cls(
            status=kind.status,
            message=message if message is not None else kind.message,
            code=code or kind.code,
            kind=kind,
            expose=kind.expose,
            details=tuple(details),
            meta=dict(meta or {}),
            headers=headers,
            cause=cause,
        )

    def is_kind(self, kind: ErrorKind) -> bool:
        return self.kind is kind

    def with_details(self, *details: ErrorDetail) -> HTTPError:
        """Return a copy with additional details appended."""
        return replace(self, details=(*self.details, *details))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the structured error body.

        Shape: ``{error, status, code, timestamp, details?, meta?}``.
        """
        body: dict[str, Any] = {
            "error": self.message or status_phrase(self.status),
            "status": self.status,
            "code": str(self.code),
            "timestamp": self.timestamp,
        }
        if self.details:
            body["details"] = [d.to_dict() for d in self.details]
        if self.meta:
            body["meta"] = dict(self.meta)
        return body


def normalize_error(exc: BaseException) -> HTTPError:
    """Return *exc* as an ``HTTPError``; unknown exceptions become Internal/500."""
    if isinstance(exc, HTTPError):
        return exc
    return internal_error(cause=exc)


# -- Bad request / validation --


def bad_request(message: str | None = None, **meta: Any) -> HTTPError:
    return HTTPError.of(ErrorKind.BAD_REQUEST, message, meta=meta)


def invalid_json(parse_error: str | None = None) -> HTTPError:
    meta = {"parseError": parse_error} if parse_error else None
    return HTTPError.of(
        ErrorKind.BAD_REQUEST, "Invalid JSON in request body", code=ErrorCode.INVALID_JSON, meta=meta
    )


def invalid_content_type(expected: str, received: str | None) -> HTTPError:
    return HTTPError.of(
        ErrorKind.BAD_REQUEST,
        f"Expected content type {expected}",
        code=ErrorCode.INVALID_CONTENT_TYPE,
        meta={"expected": expected, "received": received},
    )


def validation_failed(
    message: str | None = None,
    details: Iterable[ErrorDetail] = (),
) -> HTTPError:
    return HTTPError.of(ErrorKind.VALIDATION, message, details=details)


def field_error(field_name: str, message: str) -> HTTPError:
    return validation_failed(message, [ErrorDetail(field=field_name, message=message)])


def required_field(field_name: str) -> HTTPError:
    message = f"{field_name} is required"
    detail = ErrorDetail(field=field_name, message=message, code=ErrorCode.MISSING_REQUIRED_FIELD)
    return validation_failed(message, [detail])


def invalid_type(field_name: str, expected: str, received: str) -> HTTPError:
    message = f"{field_name} must be of type {expected}"
    detail = ErrorDetail(
        field=field_name,
        message=message,
        code=ErrorCode.INVALID_FIELD_TYPE,
        expected=expected,
        received=received,
    )
    return validation_failed(message, [detail])


def invalid_format(field_name: str, message: str, pattern: str | None = None) -> HTTPError:
    detail = ErrorDetail(
        field=field_name,
        message=message,
        code=ErrorCode.INVALID_FIELD_FORMAT,
        meta={"pattern": pattern} if pattern else None,
    )
    return validation_failed(message, [detail])


# -- Authentication / authorization --


def unauthorized(message: str | None = None) -> HTTPError:
    return HTTPError.of(ErrorKind.AUTHENTICATION, message)


def invalid_token(message: str = "Invalid token") -> HTTPError:
    return HTTPError.of(ErrorKind.AUTHENTICATION, message, code=ErrorCode.INVALID_TOKEN)


def token_expired(message: str = "Token has expired") -> HTTPError:
    return HTTPError.of(ErrorKind.AUTHENTICATION, message, code=ErrorCode.TOKEN_EXPIRED)


def missing_token(message: str = "Authentication token is missing") -> HTTPError:
    return HTTPError.of(ErrorKind.AUTHENTICATION, message, code=ErrorCode.MISSING_TOKEN)


def invalid_credentials(message: str = "Invalid credentials") -> HTTPError:
    return HTTPError.of(ErrorKind.AUTHENTICATION, message, code=ErrorCode.INVALID_CREDENTIALS)


def forbidden(message: str | None = None, *, required_roles: Iterable[str] = ()) -> HTTPError:
    roles = list(required_roles)
    return HTTPError.of(
        ErrorKind.AUTHORIZATION, message, meta={"requiredRoles": roles} if roles else None
    )


def insufficient_permissions(required: Iterable[str]) -> HTTPError:
    return HTTPError.of(
        ErrorKind.AUTHORIZATION,
        "Insufficient permissions",
        code=ErrorCode.INSUFFICIENT_PERMISSIONS,
        meta={"requiredPermissions": list(required)},
    )


# -- Lookup / state --


def not_found(message: str | None = None) -> HTTPError:
    return HTTPError.of(ErrorKind.NOT_FOUND, message)


def route_not_found(path: str, method: str) -> HTTPError:
    """404: no route matched the request (any method, or this method)."""
    return HTTPError.of(
        ErrorKind.NOT_FOUND,
        code=ErrorCode.ROUTE_NOT_FOUND,
        meta={"path": path, "method": method},
    )


def resource_not_found(resource_type: str, identifier: str | None = None) -> HTTPError:
    message = f"{resource_type} not found"
    if identifier is not None:
        message = f"{resource_type} {identifier!r} not found"
    return HTTPError.of(
        ErrorKind.NOT_FOUND,
        message,
        code=ErrorCode.RESOURCE_NOT_FOUND,
        meta={"resourceType": resource_type, "identifier": identifier},
    )


def conflict(message: str | None = None) -> HTTPError:
    return HTTPError.of(ErrorKind.CONFLICT, message)


def resource_exists(resource_type: str, identifier: str) -> HTTPError:
    return HTTPError.of(
        ErrorKind.CONFLICT,
        f"{resource_type} already exists",
        code=ErrorCode.RESOURCE_EXISTS,
        meta={"resourceType": resource_type, "identifier": identifier},
    )


# -- Limits --


def payload_too_large(
    message: str | None = None,
    *,
    limit: int | None = None,
    received: int | None = None,
) -> HTTPError:
    meta = {k: v for k, v in (("limit", limit), ("received", received)) if v is not None}
    return HTTPError.of(ErrorKind.PAYLOAD_TOO_LARGE, message, meta=meta)


def request_timeout(timeout_ms: int, message: str | None = None) -> HTTPError:
    return HTTPError.of(ErrorKind.TIMEOUT, message, meta={"timeoutMs": timeout_ms})


def rate_limited(
    message: str | None = None,
    *,
    retry_after: int | None = None,
    limit: int | None = None,
    remaining: int | None = None,
) -> HTTPError:
    meta = {
        k: v
        for k, v in (("retryAfter", retry_after), ("limit", limit), ("remaining", remaining))
        if v is not None
    }
    headers = (("Retry-After", str(retry_after)),) if retry_after is not None else ()
    return HTTPError.of(ErrorKind.RATE_LIMIT, message, meta=meta, headers=headers)


def service_unavailable(message: str | None = None, retry_after: int | None = None) -> HTTPError:
    meta = {"retryAfter": retry_after} if retry_after is not None else None
    headers = (("Retry-After", str(retry_after)),) if retry_after is not None else ()
    return HTTPError.of(ErrorKind.SERVICE_UNAVAILABLE, message, meta=meta, headers=headers)


def internal_error(
    message: str | None = None,
    cause: BaseException | None = None,
) -> HTTPError:
    """500: never exposes *message* to clients unless the boundary is told to."""
    return HTTPError.of(ErrorKind.INTERNAL, message, cause=cause)
