"""Tests for perch.realtime — StateCell and the WebSocket wrapper."""

from typing import Any

import pytest

from perch.http.request import Request
from perch.realtime import StateAlreadySet, StateCell, WebSocket, decode_inbound, encode_outbound


class TestStateCell:
    def test_initially_unset(self) -> None:
        cell = StateCell()
        assert cell.value is None
        assert cell.version == 0
        assert cell.is_set is False

    def test_set_once(self) -> None:
        cell = StateCell()
        cell.set("ada")
        assert cell.value == "ada"
        assert cell.version == 1
        assert cell.is_set is True

    def test_second_set_rejected(self) -> None:
        cell = StateCell()
        cell.set("first")
        with pytest.raises(StateAlreadySet):
            cell.set("second")
        assert cell.value == "first"
        assert cell.version == 1

    def test_dict_value_read_only(self) -> None:
        source = {"user": "ada"}
        cell = StateCell()
        cell.set(source)
        with pytest.raises(TypeError):
            cell.value["user"] = "eve"
        source["user"] = "eve"
        assert cell.value["user"] == "ada"


class TestEncodeOutbound:
    def test_text(self) -> None:
        assert encode_outbound("hi") == {"type": "websocket.send", "text": "hi"}

    def test_bytes_copied(self) -> None:
        data = bytearray(b"\x01\x02")
        message = encode_outbound(data)
        data[0] = 0
        assert message == {"type": "websocket.send", "bytes": b"\x01\x02"}

    def test_memoryview(self) -> None:
        assert encode_outbound(memoryview(b"ab"))["bytes"] == b"ab"

    def test_structured_is_json(self) -> None:
        assert encode_outbound({"n": 1}) == {"type": "websocket.send", "text": '{"n": 1}'}


class TestDecodeInbound:
    def test_json_text(self) -> None:
        assert decode_inbound({"type": "websocket.receive", "text": '{"a": [1]}'}) == {"a": [1]}

    def test_plain_text(self) -> None:
        assert decode_inbound({"type": "websocket.receive", "text": "hello"}) == "hello"

    def test_bytes(self) -> None:
        assert decode_inbound({"type": "websocket.receive", "bytes": b"\x00"}) == b"\x00"


class TestWebSocket:
    def _ws(self, sent: list[dict[str, Any]], cell: StateCell | None = None) -> WebSocket:
        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        request = Request.from_asgi({"type": "websocket", "path": "/ws", "headers": []})
        return WebSocket(request, send, cell or StateCell())

    async def test_send_typed(self) -> None:
        sent: list[dict[str, Any]] = []
        ws = self._ws(sent)
        await ws.send("text")
        await ws.send(b"raw")
        await ws.send([1, 2])
        assert sent == [
            {"type": "websocket.send", "text": "text"},
            {"type": "websocket.send", "bytes": b"raw"},
            {"type": "websocket.send", "text": "[1, 2]"},
        ]

    async def test_close_once(self) -> None:
        sent: list[dict[str, Any]] = []
        ws = self._ws(sent)
        await ws.close(1001, "bye")
        await ws.close()
        assert sent == [{"type": "websocket.close", "code": 1001, "reason": "bye"}]
        assert ws.closed is True

    async def test_send_after_close_dropped(self) -> None:
        sent: list[dict[str, Any]] = []
        ws = self._ws(sent)
        ws.mark_closed()
        await ws.send("late")
        assert sent == []

    def test_state_from_cell(self) -> None:
        cell = StateCell()
        cell.set({"room": "lobby"})
        ws = self._ws([], cell)
        assert ws.state["room"] == "lobby"
        assert ws.state_version == 1
        assert ws.path == "/ws"
