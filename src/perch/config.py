"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from perch.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class WebSocketConfig:
    """Upgrade path and lifecycle hooks for the WebSocket bridge.

    Every hook may be ``def`` or ``async def``::

        WebSocketConfig(
            path="/ws",
            on_upgrade=lambda request: {"user": request.cookies.get("user")},
            on_message=lambda ws, message: ws.send({"echo": message}),
        )

    ``on_upgrade`` receives the raw ``Request``. Returning ``False`` (or
    any falsy value) refuses the upgrade with a 400; any other value is
    attached to the connection as its state (``True`` attaches nothing).
    """

    path: str
    on_upgrade: Callable[..., Any] | None = None
    on_connected: Callable[..., Any] | None = None
    on_message: Callable[..., Any] | None = None
    on_close: Callable[..., Any] | None = None


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(port=3222, global_headers={"Access-Control-Allow-Origin": "*"})

    Shared state comes in exactly one of two modes:

    - ``state``: one value shared by every request. Dicts are exposed
      read-only to handlers.
    - ``state_factory``: a zero-argument callable invoked once per request,
      so nothing leaks between requests.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Headers applied to every response before handler headers
    global_headers: Mapping[str, str] = field(default_factory=dict)

    # Shared state (mutually exclusive)
    state: Any = None
    state_factory: Callable[[], Any] | None = None

    # WebSocket bridge
    websocket: WebSocketConfig | None = None

    # Static files (served for GET/HEAD before routing)
    static_dirs: tuple[str | Path, ...] = ()
    static_prefix: str = "/"

    def __post_init__(self) -> None:
        if self.state is not None and self.state_factory is not None:
            msg = "AppConfig accepts either 'state' or 'state_factory', not both."
            raise ConfigurationError(msg)
        if self.websocket is not None and not self.websocket.path.startswith("/"):
            msg = f"WebSocket path must start with '/': {self.websocket.path!r}"
            raise ConfigurationError(msg)
