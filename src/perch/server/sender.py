"""ASGI response sending — translates a perch Response to ASGI messages.

Handles plain HTTP responses and the WebSocket denial response (an HTTP
answer to a refused upgrade, via the ``websocket.http.response``
extension).
"""

import logging

from perch._internal.asgi import Send
from perch.http.response import Response

logger = logging.getLogger("perch.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def build_raw_headers(response: Response, body: bytes) -> list[tuple[bytes, bytes]]:
    """Header pairs in wire order: content type, headers, cookies, length."""
    raw_headers: list[tuple[bytes, bytes]] = []
    if response.content_type is not None:
        raw_headers.append((b"content-type", response.content_type.encode("latin-1")))
    for name, value in response.headers:
        if name.lower() == "content-length":
            continue
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    raw_headers.extend(
        (b"set-cookie", directive.encode("latin-1")) for directive in response.cookies
    )
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))
    return raw_headers


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Translate a perch Response into ASGI ``http.response.*`` calls.

    For ``HEAD`` requests the Content-Length reflects the full body but
    no body bytes are sent.
    """
    body = response.body_bytes if _body_allowed(response.status) else b""

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": build_raw_headers(response, body),
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b"" if head else body,
        }
    )


async def send_denial_response(response: Response, send: Send) -> None:
    """Answer a refused WebSocket handshake with an HTTP response."""
    body = response.body_bytes

    await send(
        {
            "type": "websocket.http.response.start",
            "status": response.status,
            "headers": build_raw_headers(response, body),
        }
    )
    await send(
        {
            "type": "websocket.http.response.body",
            "body": body,
        }
    )
