"""Perch application class.

Mutable during setup (route registration, guards, error handler).
Frozen at runtime when app.run() or __call__() is first invoked.
"""

import inspect
import logging
import threading
from collections.abc import Callable
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import ensure_async
from perch._internal.types import ErrorHandler, Guard, Handler
from perch.config import AppConfig
from perch.errors import ConfigurationError
from perch.routing.router import HTTP_METHODS, Router
from perch.server.dispatch import DispatchTable
from perch.server.handler import handle_request
from perch.server.runner import ServerHandle, run_server
from perch.server.static import StaticFiles
from perch.server.upgrade import WebSocketHooks, handle_websocket

logger = logging.getLogger("perch.server")


class App:
    """The perch application.

    Usage::

        app = App(AppConfig(port=3222))

        @app.get("/hello/:id")
        def hello(ctx, res):
            return res.send({"id": ctx.path_params["id"]})

        app.run()

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread compiles the app, even if the server calls ``__call__()``
        concurrently on the first requests.
    """

    __slots__ = (
        "_error_handler",
        "_freeze_lock",
        "_frozen",
        "_guards",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        # Compiled state (populated by _freeze)
        "_table",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._router = Router()
        self._guards: list[Guard] = []
        self._error_handler: ErrorHandler | None = None
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._table: DispatchTable | None = None

    # -- Route registration --

    def route(self, pattern: str, *, methods: list[str] | None = None) -> Callable[[Handler], Handler]:
        """Register a route handler for one or more methods via decorator.

        Args:
            pattern: URL pattern. ``:name`` declares a path parameter and a
                trailing ``*`` matches any remainder.
            methods: HTTP methods. Defaults to ``["GET"]``.
        """

        def decorator(func: Handler) -> Handler:
            for method in methods or ["GET"]:
                self.add_route(method, pattern, func)
            return func

        return decorator

    def add_route(self, method: str, pattern: str, handler: Handler) -> None:
        """Register *handler* for (*method*, *pattern*).

        Raises ``ConfigurationError`` if the pair is already registered.
        """
        self._check_not_frozen()
        self._router.add(method, pattern, ensure_async(handler))

    def get(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["GET"])

    def post(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["POST"])

    def put(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["PUT"])

    def patch(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["PATCH"])

    def delete(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["DELETE"])

    def options(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["OPTIONS"])

    def head(self, pattern: str) -> Callable[[Handler], Handler]:
        return self.route(pattern, methods=["HEAD"])

    @property
    def router(self) -> Router:
        return self._router

    # -- Error handler --

    def error(self, func: ErrorHandler) -> ErrorHandler:
        """Register the error handler via decorator. The last one registered wins.

        The handler receives an ``ErrorRecord`` and returns a ``Response``
        (or any payload ``ResponseBuilder.send`` accepts)::

            @app.error
            def on_error(record):
                return Response(f"error {record.status}", status=record.status)
        """
        self._check_not_frozen()
        if self._error_handler is not None:
            logger.debug("Replacing error handler %r", self._error_handler)
        self._error_handler = func
        return func

    # -- Guards --

    def guard(self, func: Guard) -> Guard:
        """Append a guard to the pipeline via decorator.

        Guards run in registration order before every handler.
        """
        self._check_not_frozen()
        self._guards.append(func)
        return func

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> ServerHandle:
        """Start serving with pounce.

        Compiles the app (freezing routes, guards, and hooks) and blocks
        until the server stops. Returns the handle of the stopped server,
        which records the address it was bound to.
        """
        self._ensure_frozen()
        return run_server(
            self,
            host=host or self.config.host,
            port=port or self.config.port,
            debug=self.config.debug,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan scopes directly, then delegates HTTP and
        WebSocket scopes to their handlers.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()
        assert self._table is not None

        if scope["type"] == "http":
            await handle_request(scope, receive, send, table=self._table)
        elif scope["type"] == "websocket":
            await handle_websocket(scope, receive, send, table=self._table)

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first request), then runs
        registered startup/shutdown hooks and signals completion back to
        the server.
        """
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self._run_hooks(self._startup_hooks)
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self._run_hooks(self._shutdown_hooks)
                await send({"type": "lifespan.shutdown.complete"})
                return

    @staticmethod
    async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
        for hook in hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

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
        cfg = self.config
        self._router.compile()

        static = StaticFiles(cfg.static_dirs, cfg.static_prefix) if cfg.static_dirs else None
        websocket = WebSocketHooks.from_config(cfg.websocket) if cfg.websocket else None

        if websocket is not None:
            shadowed = [m for m in HTTP_METHODS if m in self._router.allowed_methods(websocket.path)]
            if shadowed:
                logger.warning(
                    "Routes at %s (%s) are unreachable: the WebSocket bridge owns that path",
                    websocket.path,
                    ", ".join(shadowed),
                )

        self._table = DispatchTable(
            router=self._router,
            guards=tuple(ensure_async(g) for g in self._guards),
            error_handler=ensure_async(self._error_handler) if self._error_handler else None,
            global_headers=dict(cfg.global_headers),
            debug=cfg.debug,
            state=cfg.state,
            state_factory=cfg.state_factory,
            websocket=websocket,
            static=static,
        )
        self._frozen = True
        logger.debug("App frozen with %d routes", len(self._router.routes))

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, guards, and the error handler before calling app.run()."
            )
            raise RuntimeError(msg)

    def __repr__(self) -> str:
        return f"<App routes={len(self._router.routes)} frozen={self._frozen}>"


__all__ = ["App", "ConfigurationError"]
