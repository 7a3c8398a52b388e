"""WebSocket bridge — turns an ASGI websocket scope into a live session.

Steps for a handshake at the configured upgrade path:

1. routing and guards run exactly as for HTTP (``prepare``);
2. ``on_upgrade(request)`` decides: falsy refuses with 400, any other
   value is the state to attach (``True`` attaches nothing);
3. the upgrade primitive reads ``websocket.connect`` and sends
   ``websocket.accept``; anything else is a refused upgrade (400);
4. ``on_connected``, ``on_message``, and ``on_close`` fire for the life
   of the connection.

Refused handshakes get an HTTP response through the
``websocket.http.response`` extension when the server offers it, and a
plain ``websocket.close`` otherwise.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from perch._internal.asgi import Receive, Scope, Send, supports_denial_response
from perch._internal.invoke import ensure_async
from perch.config import WebSocketConfig
from perch.errors import RouteNotFound, UpgradeFailed
from perch.http.request import Request
from perch.http.response import Response
from perch.realtime.state import StateCell
from perch.realtime.websocket import WebSocket, decode_inbound
from perch.server.dispatch import DispatchTable, prepare
from perch.server.errors import handle_error
from perch.server.sender import send_denial_response

logger = logging.getLogger("perch.realtime")

# Policy violation: used when the server cannot carry an HTTP denial
CLOSE_POLICY_VIOLATION = 1008
CLOSE_INTERNAL_ERROR = 1011

Hook: TypeAlias = Callable[..., Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class WebSocketHooks:
    """``WebSocketConfig`` with every hook normalized to a coroutine function."""

    path: str
    on_upgrade: Hook | None = None
    on_connected: Hook | None = None
    on_message: Hook | None = None
    on_close: Hook | None = None

    @classmethod
    def from_config(cls, config: WebSocketConfig) -> "WebSocketHooks":
        def wrap(hook: Callable[..., Any] | None) -> Hook | None:
            return ensure_async(hook) if hook is not None else None

        return cls(
            path=config.path,
            on_upgrade=wrap(config.on_upgrade),
            on_connected=wrap(config.on_connected),
            on_message=wrap(config.on_message),
            on_close=wrap(config.on_close),
        )


async def decide_upgrade(hooks: WebSocketHooks, request: Request) -> Any:
    """Run the upgrade hook; return the state to attach (``None`` for none).

    Raises ``UpgradeFailed`` when the hook answers ``False`` or any falsy
    value.
    """
    if hooks.on_upgrade is None:
        return None
    decision = await hooks.on_upgrade(request)
    if not decision:
        msg = "WebSocket upgrade refused by on_upgrade"
        raise UpgradeFailed(msg)
    if decision is True:
        return None
    return decision


async def accept_upgrade(
    request: Request,
    receive: Receive,
    send: Send,
    cell: StateCell,
    state: Any = None,
) -> bool:
    """The upgrade primitive: complete the handshake and attach *state*.

    Returns ``False`` without accepting if the server did not deliver a
    ``websocket.connect`` event.
    """
    if not request.is_websocket:
        return False
    message = await receive()
    if message.get("type") != "websocket.connect":
        return False
    if state is not None:
        cell.set(state)
    await send({"type": "websocket.accept"})
    return True


async def deny(scope: Scope, send: Send, response: Response) -> None:
    """Reject the handshake with *response* (or a bare close)."""
    if supports_denial_response(scope):
        await send_denial_response(response, send)
    else:
        await send({"type": "websocket.close", "code": CLOSE_POLICY_VIOLATION})


async def handle_websocket(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    table: DispatchTable,
) -> None:
    """Process one WebSocket handshake and, if accepted, its session."""
    request = Request.from_asgi(scope, receive)
    logger.debug("WS %s", request.path)

    hooks = table.websocket
    cell = StateCell()

    try:
        if hooks is None or request.route_path != hooks.path:
            msg = f"No WebSocket endpoint at {request.route_path!r}"
            raise RouteNotFound(msg)

        prepared = await prepare(request, table)
        try:
            if prepared.short_circuit is not None:
                await deny(scope, send, prepared.short_circuit)
                return
            state = await decide_upgrade(hooks, request)
            if not await accept_upgrade(request, receive, send, cell, state):
                msg = "Server refused the WebSocket upgrade"
                raise UpgradeFailed(msg)
        finally:
            prepared.release()
    except Exception as exc:
        response = await handle_error(
            exc,
            request,
            table.error_handler,
            global_headers=dict(table.global_headers),
            debug=table.debug,
        )
        await deny(scope, send, response)
        return

    await run_session(WebSocket(request, send, cell), receive, hooks)


async def run_session(ws: WebSocket, receive: Receive, hooks: WebSocketHooks) -> None:
    """Drive an accepted connection until the peer disconnects.

    A hook that raises is logged, the connection is closed with 1011,
    and ``on_close`` still fires.
    """
    try:
        if hooks.on_connected is not None:
            await hooks.on_connected(ws)

        while True:
            message = await receive()
            msg_type = message.get("type")
            if msg_type == "websocket.receive":
                if hooks.on_message is not None:
                    await hooks.on_message(ws, decode_inbound(message))
            elif msg_type == "websocket.disconnect":
                ws.mark_closed()
                break
    except Exception:
        logger.exception("WebSocket hook failed on %s", ws.path)
        await ws.close(CLOSE_INTERNAL_ERROR)

    if hooks.on_close is not None:
        try:
            await hooks.on_close(ws)
        except Exception:
            logger.exception("WebSocket on_close failed on %s", ws.path)
