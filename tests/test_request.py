"""Tests for perch.http.request — frozen Request with async body access."""

import dataclasses

import pytest

from perch.http.request import Request


def _make_scope(**overrides: object) -> dict[str, object]:
    """Build a minimal valid ASGI HTTP scope."""
    base: dict[str, object] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/",
        "raw_path": b"/",
        "query_string": b"",
        "root_path": "",
        "headers": [],
        "server": ("localhost", 8000),
        "client": ("127.0.0.1", 54321),
    }
    base.update(overrides)
    return base


def _make_receive(*bodies: bytes):
    """Create an ASGI receive callable that yields bodies."""
    messages = []
    for i, body in enumerate(bodies):
        is_last = i == len(bodies) - 1
        messages.append({"type": "http.request", "body": body, "more_body": not is_last})
    if not messages:
        messages.append({"type": "http.request", "body": b"", "more_body": False})
    it = iter(messages)

    async def receive():
        return next(it)

    return receive


class TestRequestFromASGI:
    def test_basic_fields(self) -> None:
        req = Request.from_asgi(_make_scope(method="post", path="/users"), _make_receive())

        assert req.method == "POST"
        assert req.path == "/users"
        assert req.http_version == "1.1"
        assert req.server == ("localhost", 8000)
        assert req.client == ("127.0.0.1", 54321)
        assert req.is_websocket is False

    def test_headers_and_cookies(self) -> None:
        scope = _make_scope(
            headers=[(b"content-type", b"application/json"), (b"cookie", b"sid=1; theme=dark")],
        )
        req = Request.from_asgi(scope)
        assert req.content_type == "application/json"
        assert req.cookies == {"sid": "1", "theme": "dark"}

    def test_url_includes_query(self) -> None:
        req = Request.from_asgi(_make_scope(path="/search", raw_path=b"/search", query_string=b"q=perch"))
        assert req.url == "/search?q=perch"
        assert req.query["q"] == "perch"

    def test_url_without_query(self) -> None:
        assert Request.from_asgi(_make_scope(path="/a", raw_path=b"/a")).url == "/a"

    def test_route_path_keeps_encoding(self) -> None:
        scope = _make_scope(path="/files/a b.txt", raw_path=b"/files/a%20b.txt", query_string=b"v=1")
        req = Request.from_asgi(scope)
        assert req.path == "/files/a b.txt"
        assert req.route_path == "/files/a%20b.txt"
        assert req.url == "/files/a%20b.txt?v=1"

    def test_route_path_falls_back_to_path(self) -> None:
        scope = _make_scope(path="/plain")
        del scope["raw_path"]
        req = Request.from_asgi(scope)
        assert req.route_path == "/plain"
        assert req.url == "/plain"

    def test_websocket_scope(self) -> None:
        scope = _make_scope(type="websocket", path="/ws")
        del scope["method"]
        req = Request.from_asgi(scope)
        assert req.method == "GET"
        assert req.is_websocket is True

    def test_frozen(self) -> None:
        req = Request.from_asgi(_make_scope())
        with pytest.raises(dataclasses.FrozenInstanceError):
            req.path = "/other"  # type: ignore[misc]


class TestRequestBody:
    async def test_single_chunk(self) -> None:
        req = Request.from_asgi(_make_scope(method="POST"), _make_receive(b"hello"))
        assert await req.body() == b"hello"

    async def test_multiple_chunks(self) -> None:
        req = Request.from_asgi(_make_scope(method="POST"), _make_receive(b"hel", b"lo"))
        assert await req.body() == b"hello"

    async def test_body_cached(self) -> None:
        req = Request.from_asgi(_make_scope(method="POST"), _make_receive(b"once"))
        assert await req.body() == b"once"
        # The receive iterator is exhausted; a second read must hit the cache
        assert await req.body() == b"once"

    async def test_text(self) -> None:
        req = Request.from_asgi(_make_scope(method="POST"), _make_receive("héllo".encode()))
        assert await req.text() == "héllo"

    async def test_no_receive(self) -> None:
        assert await Request.from_asgi(_make_scope()).body() == b""

    async def test_websocket_has_no_body(self) -> None:
        req = Request.from_asgi(_make_scope(type="websocket"), _make_receive(b"ignored"))
        assert await req.body() == b""
