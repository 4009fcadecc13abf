"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, request_timeout=10.0)
    """

    debug: bool = False

    # Error boundary
    include_stack_traces: bool = False  # Also implied by debug
    expose_internal_errors: bool = False  # Also implied by debug

    # Routing: reject a second name for an already-named parameter position
    strict_params: bool = False

    # Built-in middleware, installed right after the error boundary
    request_timeout: float | None = None  # Seconds; None disables the Timeout middleware
    request_id: bool = False
    request_id_header: str = "X-Request-ID"
    trust_request_id: bool = False
    access_log: bool = False

    @property
    def stack_traces(self) -> bool:
        """Whether error bodies carry a ``stack`` field."""
        return self.debug or self.include_stack_traces

    @property
    def expose_errors(self) -> bool:
        """Whether unexposed errors reveal their original message."""
        return self.debug or self.expose_internal_errors
