"""Typed ASGI definitions and small scope helpers.

Users never see these; they interact with Request and RequestContext.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

# Raw ASGI 3.0 types
Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]

# ASGI extension that lets an app answer a refused WebSocket handshake
# with a real HTTP response instead of a bare close.
WS_DENIAL_EXTENSION = "websocket.http.response"


def supports_denial_response(scope: Scope) -> bool:
    """Whether the server accepts ``websocket.http.response.*`` messages."""
    extensions = scope.get("extensions") or {}
    return WS_DENIAL_EXTENSION in extensions
