"""Chat Room — multi-user chat over the WebSocket bridge.

Clients connect to ``/ws?name=<username>``. The upgrade hook turns the
query string into per-connection state; every message is broadcast to
the room as JSON. Recent history is available over plain HTTP.

Demonstrates:
- on_upgrade refusing a handshake (missing name) with a 400
- per-connection state attached at upgrade time
- on_connected / on_message / on_close hooks
- a guard that applies to HTTP routes and the upgrade alike

Run:
    python app.py
"""

import time
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any

from perch import App, AppConfig, Reject, Request, WebSocket, WebSocketConfig

HISTORY_SIZE = 50


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """A single chat message — immutable, safe to broadcast."""

    username: str
    text: str
    timestamp: float


class Room:
    """Connected sockets plus a bounded message history."""

    def __init__(self) -> None:
        self.members: set[WebSocket] = set()
        self.history: deque[ChatMessage] = deque(maxlen=HISTORY_SIZE)

    async def broadcast(self, payload: dict[str, Any]) -> None:
        for member in list(self.members):
            await member.send(payload)


room = Room()


def on_upgrade(request: Request) -> dict[str, str] | bool:
    name = request.query.get("name", "").strip()
    if not name:
        return False
    return {"name": name}


async def on_connected(ws: WebSocket) -> None:
    room.members.add(ws)
    await room.broadcast({"event": "join", "username": ws.state["name"]})


async def on_message(ws: WebSocket, message: Any) -> None:
    text = message.get("text") if isinstance(message, dict) else str(message)
    chat = ChatMessage(username=ws.state["name"], text=text or "", timestamp=time.time())
    room.history.append(chat)
    await room.broadcast({"event": "message", **asdict(chat)})


async def on_close(ws: WebSocket) -> None:
    room.members.discard(ws)
    await room.broadcast({"event": "leave", "username": ws.state["name"]})


app = App(
    AppConfig(
        websocket=WebSocketConfig(
            path="/ws",
            on_upgrade=on_upgrade,
            on_connected=on_connected,
            on_message=on_message,
            on_close=on_close,
        )
    )
)


@app.guard
def no_anonymous_bots(ctx):
    if "bot" in ctx.header("user-agent", "").lower():
        return Reject("bots are not welcome")
    return None


@app.get("/history")
def history(ctx, res):
    return res.send([asdict(message) for message in room.history])


if __name__ == "__main__":
    app.run()
