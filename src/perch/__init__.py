"""Perch — a small ASGI web framework.

Pattern routing with ``:name`` parameters and trailing wildcards, a guard
pipeline in front of every handler, a write-once response builder, and a
WebSocket bridge with per-connection state.

Basic usage::

    from perch import App, AppConfig

    app = App(AppConfig(port=3222))

    @app.post("/items/:id")
    def create(ctx, res):
        res.set_status(201)
        return res.send({"id": ctx.path_params["id"], "body": ctx.body})

    app.run()

Serving requires the pounce server (``pip install perch[server]``); the
``App`` itself is a plain ASGI 3 callable.
"""

__version__ = "0.1.0.dev0"
__all__ = [
    "ALLOW",
    "App",
    "AppConfig",
    "BadRequest",
    "ConfigurationError",
    "ErrorRecord",
    "HTTPError",
    "MethodNotAllowed",
    "PerchError",
    "Reject",
    "Request",
    "RequestContext",
    "Response",
    "ResponseBuilder",
    "RouteNotFound",
    "ShortCircuit",
    "WebSocket",
    "WebSocketConfig",
    "get_context",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "App":
        from perch.app import App

        return App

    if name in ("AppConfig", "WebSocketConfig"):
        from perch import config as _config

        return getattr(_config, name)

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name in ("Response", "ResponseBuilder"):
        from perch.http import response as _resp

        return getattr(_resp, name)

    if name in ("RequestContext", "get_context"):
        from perch import context as _ctx

        return getattr(_ctx, name)

    if name in ("ALLOW", "Reject", "ShortCircuit"):
        from perch.guards import protocol as _guards

        return getattr(_guards, name)

    if name == "WebSocket":
        from perch.realtime.websocket import WebSocket

        return WebSocket

    if name in (
        "BadRequest",
        "ConfigurationError",
        "ErrorRecord",
        "HTTPError",
        "MethodNotAllowed",
        "PerchError",
        "RouteNotFound",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
