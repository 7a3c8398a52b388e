"""Request body decoding, driven by the declared content type.

Only body-bearing methods (``POST``, ``PUT``, ``PATCH``) are decoded.
The content type is checked in priority order:

1. JSON (``application/json``, ``application/*+json``) → structured value
2. ``application/x-www-form-urlencoded`` → flat ``dict[str, str]``
3. ``multipart/form-data`` → flat ``dict`` (files become ``UploadFile``)
4. ``application/octet-stream``, ``image/*``, ``video/*``, ``audio/*``
   → ``BinaryBody``
5. anything else → ``{"text": <decoded body>}``

Every parser failure is raised as ``BodyDecodeError``; nothing is
silently turned into an empty body. An empty JSON body decodes to ``{}``.

Multipart parsing uses ``python-multipart``; URL-encoded forms use
stdlib ``urllib.parse``.
"""

import json
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl

from python_multipart.multipart import MultipartParser, parse_options_header

from perch.errors import BodyDecodeError
from perch.http.request import Request

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

_BINARY_PREFIXES = ("application/octet-stream", "image/", "video/", "audio/")


@dataclass(frozen=True, slots=True)
class BinaryBody:
    """A raw byte payload tagged with the content type it arrived with."""

    data: bytes
    content_type: str

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file field from a multipart form submission.

    Content is held in memory as bytes (suitable for typical web uploads).
    """

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"UploadFile({self.filename!r}, {self.content_type!r}, {self.size} bytes)"


def is_body_method(method: str) -> bool:
    return method.upper() in BODY_METHODS


def _media_type(content_type: str) -> tuple[str, dict[bytes, bytes]]:
    media, options = parse_options_header(content_type.encode("latin-1"))
    return media.decode("latin-1").lower(), options


def _charset(options: dict[bytes, bytes]) -> str:
    charset = options.get(b"charset")
    return charset.decode("latin-1") if charset else "utf-8"


async def decode_body(request: Request) -> Any:
    """Decode *request*'s body according to its ``Content-Type``.

    Raises ``BodyDecodeError`` if the body cannot be parsed as the
    declared type.
    """
    content_type = request.content_type or ""
    raw = await request.body()
    try:
        return _decode(raw, content_type)
    except BodyDecodeError:
        raise
    except (ValueError, UnicodeDecodeError, LookupError) as exc:
        raise BodyDecodeError(content_type or "text/plain", str(exc)) from exc


def _decode(raw: bytes, content_type: str) -> Any:
    media, options = _media_type(content_type) if content_type else ("", {})

    if media == "application/json" or media.endswith("+json"):
        if not raw.strip():
            return {}
        return json.loads(raw.decode(_charset(options)))

    if media == "application/x-www-form-urlencoded":
        pairs = parse_qsl(raw.decode(_charset(options)), keep_blank_values=True)
        return dict(pairs)

    if media == "multipart/form-data":
        return _parse_multipart(raw, content_type, options)

    if media.startswith(_BINARY_PREFIXES):
        return BinaryBody(data=raw, content_type=content_type)

    return {"text": raw.decode(_charset(options))}


def _parse_multipart(
    body: bytes,
    content_type: str,
    options: dict[bytes, bytes],
) -> dict[str, Any]:
    """Parse a multipart body into a flat ``{field: str | UploadFile}`` dict."""
    boundary = options.get(b"boundary")
    if not boundary:
        raise BodyDecodeError(content_type, "Multipart form data missing boundary parameter")

    fields: dict[str, Any] = {}

    # Per-part state
    headers: dict[str, str] = {}
    header_field = bytearray()
    header_value = bytearray()
    data = bytearray()

    def on_part_begin() -> None:
        headers.clear()
        data.clear()

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        header_field.extend(chunk[start:end])

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        header_value.extend(chunk[start:end])

    def on_header_end() -> None:
        headers[header_field.decode("latin-1").lower()] = header_value.decode("latin-1")
        header_field.clear()
        header_value.clear()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        data.extend(chunk[start:end])

    def on_part_end() -> None:
        _, params = parse_options_header(headers.get("content-disposition", "").encode("latin-1"))
        name = params.get(b"name")
        if name is None:
            return
        field_name = name.decode("utf-8")
        filename = params.get(b"filename")
        if filename is not None:
            fields[field_name] = UploadFile(
                filename=filename.decode("utf-8"),
                content_type=headers.get("content-type", "application/octet-stream"),
                data=bytes(data),
            )
        else:
            fields[field_name] = data.decode(_charset(options), errors="replace")

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
        "on_header_end": on_header_end,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
    }

    parser = MultipartParser(boundary, callbacks)
    try:
        parser.write(body)
        parser.finalize()
    except Exception as exc:
        raise BodyDecodeError(content_type, f"Malformed multipart body: {exc}") from exc
    return fields
