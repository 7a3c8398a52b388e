"""Live WebSocket connection wrapper.

Wraps the ASGI ``send`` callable so outbound messages are typed the same
way everywhere:

- ``str`` → text frame, unchanged
- ``bytes`` / ``bytearray`` / ``memoryview`` → binary frame (copied)
- anything else (dicts, lists, numbers, ...) → JSON text frame

Inbound frames are decoded opportunistically: text that parses as JSON
reaches ``on_message`` as the parsed value; anything else arrives raw.
"""

import json
import logging
from typing import Any

from perch._internal.asgi import Send
from perch.http.request import Request
from perch.realtime.state import StateCell

logger = logging.getLogger("perch.realtime")


def encode_outbound(data: Any) -> dict[str, Any]:
    """Build the ASGI ``websocket.send`` message for *data*."""
    if isinstance(data, str):
        return {"type": "websocket.send", "text": data}
    if isinstance(data, (bytes, bytearray, memoryview)):
        return {"type": "websocket.send", "bytes": bytes(data)}
    return {"type": "websocket.send", "text": json.dumps(data, default=str)}


def decode_inbound(message: dict[str, Any]) -> Any:
    """Extract the payload of an ASGI ``websocket.receive`` message.

    JSON text becomes a structured value; other text stays ``str``;
    binary frames stay ``bytes``.
    """
    text = message.get("text")
    if text is not None:
        try:
            return json.loads(text)
        except ValueError:
            return text
    return message.get("bytes") or b""


class WebSocket:
    """A live, accepted WebSocket connection.

    Hooks receive this object. ``state`` is whatever ``on_upgrade``
    attached (``None`` if nothing was), and never changes.
    """

    __slots__ = ("_cell", "_closed", "_send", "request")

    def __init__(self, request: Request, send: Send, cell: StateCell) -> None:
        self.request = request
        self._send = send
        self._cell = cell
        self._closed = False

    @property
    def state(self) -> Any:
        return self._cell.value

    @property
    def state_version(self) -> int:
        return self._cell.version

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def path(self) -> str:
        return self.request.path

    async def send(self, data: Any) -> None:
        """Send *data*, typed by its Python type (see module docstring)."""
        if self._closed:
            logger.warning("send() on closed WebSocket %s ignored", self.path)
            return
        await self._send(encode_outbound(data))

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self._closed:
            return
        self._closed = True
        await self._send({"type": "websocket.close", "code": code, "reason": reason})

    def mark_closed(self) -> None:
        """Record that the peer went away; later sends are dropped."""
        self._closed = True

    def __repr__(self) -> str:
        return f"<WebSocket {self.path} state={self.state!r}>"
