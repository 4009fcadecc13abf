"""Wren application class.

Mutable during setup (route registration, middleware, hooks).
Frozen at runtime when ``__call__()`` is first invoked.
"""

import threading
from collections.abc import Callable, Sequence
from typing import Any

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.invoke import invoke
from wren.config import AppConfig
from wren.middleware.errors import ErrorBoundary, ErrorHook
from wren.middleware.logging import AccessLog, RequestID
from wren.middleware.protocol import Handler, Middleware
from wren.middleware.timeout import Timeout
from wren.routing.group import PendingRoute, RouteGroup, Routes
from wren.routing.route import Route
from wren.routing.router import Router
from wren.server.handler import handle_request


class App(Routes):
    """The wren application.

    Mutable during setup (routes, groups, middleware, hooks).
    Frozen at runtime when ``__call__()`` is first invoked, either by
    the ASGI lifespan startup or by the first HTTP request.

    The global middleware chain is always::

        ErrorBoundary -> config-driven middleware -> add_middleware() order

    so the boundary observes every failure downstream of it.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread compiles the app, even when multiple ASGI workers call
        ``__call__()`` concurrently on first request.
    """

    __slots__ = (
        "_error_hook",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_pending_routes",
        # Compiled state (populated by _freeze)
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_routes: list[PendingRoute] = []
        self._middleware_list: list[Middleware] = []
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._error_hook: ErrorHook | None = None
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._router: Router | None = None
        self._middleware: tuple[Middleware, ...] = ()

    # -- Route registration --

    def add(
        self,
        method: str,
        path: str,
        handler: Handler,
        middleware: Sequence[Middleware] = (),
        *,
        name: str | None = None,
    ) -> None:
        """Register *handler* for (*method*, *path*).

        Registering the same method and exact pattern again replaces the
        earlier handler.
        """
        self._check_not_frozen()
        self._pending_routes.append(
            PendingRoute(
                method=method.upper(),
                path=path,
                handler=handler,
                middleware=tuple(middleware),
                name=name,
            )
        )

    def include(self, group: RouteGroup) -> None:
        """Register every route collected by *group*."""
        self._check_not_frozen()
        for pending in group.pending:
            self.add(
                pending.method,
                pending.path,
                pending.handler,
                pending.middleware,
                name=pending.name,
            )

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the global pipeline."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    def on_error(self, func: ErrorHook) -> ErrorHook:
        """Register a hook called with ``(exc, ctx)`` before an error renders.

        Usage::

            @app.on_error
            def report(exc, ctx):
                sentry_sdk.capture_exception(exc)
        """
        self._check_not_frozen()
        self._error_hook = func
        return func

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.

        Usage::

            @app.on_startup
            async def setup():
                await db.connect()
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown,
        after the server stops accepting new requests.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def router(self) -> Router:
        """The compiled router. Freezes the app."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        """The compiled global middleware chain. Freezes the app."""
        self._ensure_frozen()
        return self._middleware

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, then delegates HTTP scopes to
        the request handler pipeline. Other scope types are ignored.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        if scope["type"] != "http":
            return

        self._ensure_frozen()

        assert self._router is not None

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            middleware=self._middleware,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before first HTTP request), then
        runs registered startup/shutdown hooks and signals completion
        back to the server.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        await invoke(hook)
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await invoke(hook)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Compile route table
        router = Router(strict_params=self.config.strict_params)
        for pending in self._pending_routes:
            router.add(
                Route(
                    method=pending.method,
                    path=pending.path,
                    handler=pending.handler,
                    middleware=pending.middleware,
                    name=pending.name,
                )
            )
        router.compile()
        self._router = router

        # 2. Capture middleware as an immutable tuple. The boundary goes
        #    first so every failure downstream reaches it.
        config = self.config
        middleware_list: list[Middleware] = [
            ErrorBoundary(
                include_stack=config.stack_traces,
                expose_internal=config.expose_errors,
                on_error=self._error_hook,
            )
        ]
        if config.request_id:
            middleware_list.append(
                RequestID(config.request_id_header, trust_header=config.trust_request_id)
            )
        if config.access_log:
            middleware_list.append(AccessLog())
        if config.request_timeout is not None:
            middleware_list.append(Timeout(config.request_timeout))
        middleware_list.extend(self._middleware_list)
        self._middleware = tuple(middleware_list)

        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and hooks before the first request."
            )
            raise RuntimeError(msg)
