"""Immutable raw request handle.

Frozen metadata with async body access. The request is what the server
handed over; per-request derived data lives on ``RequestContext``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import Any

from perch._internal.asgi import Receive, Scope
from perch.http.cookies import parse_cookies
from perch.http.headers import Headers
from perch.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP or WebSocket-handshake request.

    Cookies are parsed once at creation time (in ``from_asgi``) and stored
    as a frozen field. The body is read lazily and cached.
    """

    method: str
    path: str
    query_string: bytes
    headers: Headers
    cookies: Mapping[str, str]
    http_version: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None
    scope_type: str = "http"
    raw_path: bytes = b""
    extensions: Mapping[str, Any] = field(default_factory=dict, repr=False)

    # Private: ASGI receive callable for body streaming
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: mutable cache for the body bytes
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def route_path(self) -> str:
        """The path as sent on the wire, still percent-encoded.

        Servers decode ``path`` but keep the original bytes in
        ``raw_path``. Routing matches against this so parameters come out
        verbatim. Falls back to ``path`` when the server omits ``raw_path``.
        """
        if self.raw_path:
            return self.raw_path.decode("latin-1")
        return self.path

    @property
    def url(self) -> str:
        """Request URL as sent on the wire (raw path + query string)."""
        if self.query_string:
            return f"{self.route_path}?{self.query_string.decode('latin-1')}"
        return self.route_path

    @property
    def query(self) -> QueryParams:
        """Parsed query string (last value wins)."""
        return QueryParams(self.query_string)

    @property
    def is_websocket(self) -> bool:
        """True when the server delivered this as a WebSocket handshake."""
        return self.scope_type == "websocket"

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached — the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls. WebSocket
        handshakes have no body.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        if self._receive is None or self.is_websocket:
            result = b""
        else:
            result = b"".join([chunk async for chunk in self.stream()])
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        assert self._receive is not None
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                break
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive | None = None) -> Request:
        """Create a Request from an ASGI ``http`` or ``websocket`` scope."""
        headers = Headers(tuple(scope.get("headers", ())))
        server = scope.get("server")
        client = scope.get("client")
        scope_type = scope.get("type", "http")
        return cls(
            # WebSocket handshakes are GET requests on the wire
            method=scope.get("method", "GET").upper(),
            path=scope.get("path", "/"),
            query_string=scope.get("query_string", b""),
            headers=headers,
            cookies=parse_cookies(headers.get("cookie", "")),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            scope_type=scope_type,
            raw_path=scope.get("raw_path") or b"",
            extensions=scope.get("extensions") or {},
            _receive=receive,
        )
