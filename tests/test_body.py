"""Tests for perch.http.body — content-type driven body decoding."""

import pytest

from perch.errors import BodyDecodeError
from perch.http.body import BinaryBody, UploadFile, decode_body, is_body_method
from perch.http.request import Request


def _request(body: bytes, content_type: str | None) -> Request:
    headers = [(b"content-type", content_type.encode("latin-1"))] if content_type else []
    sent = False

    async def receive():
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {"type": "http", "method": "POST", "path": "/", "headers": headers}
    return Request.from_asgi(scope, receive)


def _multipart(boundary: str, *parts: str) -> bytes:
    chunks = [f"--{boundary}\r\n{part}\r\n" for part in parts]
    return ("".join(chunks) + f"--{boundary}--\r\n").encode()


class TestBodyMethods:
    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "post"])
    def test_body_methods(self, method: str) -> None:
        assert is_body_method(method) is True

    @pytest.mark.parametrize("method", ["GET", "DELETE", "OPTIONS", "HEAD"])
    def test_bodiless_methods(self, method: str) -> None:
        assert is_body_method(method) is False


class TestJSON:
    async def test_object(self) -> None:
        assert await decode_body(_request(b'{"a": 1}', "application/json")) == {"a": 1}

    async def test_with_charset(self) -> None:
        body = await decode_body(_request(b"[1, 2]", "application/json; charset=utf-8"))
        assert body == [1, 2]

    async def test_vendor_suffix(self) -> None:
        body = await decode_body(_request(b'{"ok": true}', "application/problem+json"))
        assert body == {"ok": True}

    async def test_empty_body_is_empty_object(self) -> None:
        assert await decode_body(_request(b"", "application/json")) == {}

    async def test_malformed_raises(self) -> None:
        with pytest.raises(BodyDecodeError) as exc_info:
            await decode_body(_request(b"{nope", "application/json"))
        assert exc_info.value.status == 500


class TestURLEncoded:
    async def test_fields(self) -> None:
        body = await decode_body(
            _request(b"name=Ada&lang=en&empty=", "application/x-www-form-urlencoded")
        )
        assert body == {"name": "Ada", "lang": "en", "empty": ""}

    async def test_last_value_wins(self) -> None:
        body = await decode_body(_request(b"x=1&x=2", "application/x-www-form-urlencoded"))
        assert body == {"x": "2"}


class TestMultipart:
    async def test_fields_and_file(self) -> None:
        raw = _multipart(
            "XyZ",
            'Content-Disposition: form-data; name="title"\r\n\r\nHello',
            'Content-Disposition: form-data; name="doc"; filename="a.txt"\r\n'
            "Content-Type: text/plain\r\n\r\nfile body",
        )
        body = await decode_body(_request(raw, "multipart/form-data; boundary=XyZ"))

        assert body["title"] == "Hello"
        upload = body["doc"]
        assert isinstance(upload, UploadFile)
        assert upload.filename == "a.txt"
        assert upload.content_type == "text/plain"
        assert upload.data == b"file body"
        assert upload.size == 9

    async def test_missing_boundary(self) -> None:
        with pytest.raises(BodyDecodeError, match="boundary"):
            await decode_body(_request(b"whatever", "multipart/form-data"))


class TestBinary:
    @pytest.mark.parametrize(
        "content_type",
        ["application/octet-stream", "image/png", "video/mp4", "audio/ogg"],
    )
    async def test_binary_families(self, content_type: str) -> None:
        body = await decode_body(_request(b"\x00\x01\x02", content_type))
        assert isinstance(body, BinaryBody)
        assert body.data == b"\x00\x01\x02"
        assert body.content_type == content_type
        assert len(body) == 3


class TestFallback:
    async def test_plain_text(self) -> None:
        assert await decode_body(_request(b"hi there", "text/plain")) == {"text": "hi there"}

    async def test_no_content_type(self) -> None:
        assert await decode_body(_request(b"raw", None)) == {"text": "raw"}

    async def test_undecodable_text(self) -> None:
        with pytest.raises(BodyDecodeError):
            await decode_body(_request(b"\xff\xfe\xfa", "text/plain"))
