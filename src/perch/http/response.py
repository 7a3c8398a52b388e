"""HTTP responses: the frozen ``Response`` and the write-once ``ResponseBuilder``.

Handlers receive a fresh ``ResponseBuilder`` per request, accumulate
status, headers, and cookies on it, then finalize it with ``send()`` or
``redirect()``. Finalizing produces exactly one immutable ``Response``;
later mutations are ignored with a warning.
"""

import json as json_module
import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from perch.http.cookies import SetCookie

logger = logging.getLogger("perch.server")

TEXT_CONTENT_TYPE = "text/html; charset=utf-8"
JSON_CONTENT_TYPE = "application/json"
BINARY_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class Response:
    """An immutable HTTP response.

    ``headers`` keeps insertion order. ``cookies`` holds serialized
    ``Set-Cookie`` directive strings, emitted after all other headers.
    ``content_type`` of ``None`` means no Content-Type header is sent.
    """

    body: str | bytes = ""
    status: int = 200
    content_type: str | None = TEXT_CONTENT_TYPE
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[str, ...] = ()

    def with_status(self, status: int) -> "Response":
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> "Response":
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def header(self, name: str, default: str | None = None) -> str | None:
        """Last value set for *name* (case-insensitive), or *default*."""
        wanted = name.lower()
        found = default
        for key, value in self.headers:
            if key.lower() == wanted:
                found = value
        if wanted == "content-type" and self.content_type is not None:
            return self.content_type
        return found

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        """Body as string."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body_bytes)


def merge_headers(*layers: Mapping[str, str]) -> tuple[tuple[str, str], ...]:
    """Merge header layers; later layers override earlier ones by name.

    Names compare case-insensitively. The first spelling and position of
    a name is kept, its value comes from the last layer that sets it.
    """
    merged: dict[str, tuple[str, str]] = {}
    for layer in layers:
        for name, value in layer.items():
            key = name.lower()
            if key in merged:
                merged[key] = (merged[key][0], value)
            else:
                merged[key] = (name, value)
    return tuple(merged.values())


class ResponseBuilder:
    """Mutable, write-once accumulator for a single response.

    Usage::

        def show(ctx, res):
            res.set_status(201)
            res.set_header("X-Item", ctx.path_params["id"])
            res.set_cookie("seen", "1", max_age=60, httponly=True)
            return res.send({"id": ctx.path_params["id"]})

    Header precedence when finalizing: global headers first, builder
    headers override them, cookie directives are appended last.
    """

    __slots__ = ("_cookies", "_global_headers", "_headers", "_response", "_status")

    def __init__(self, global_headers: Mapping[str, str] | None = None) -> None:
        self._global_headers: Mapping[str, str] = global_headers or {}
        self._status = 200
        self._headers: dict[str, str] = {}
        self._cookies: list[SetCookie] = []
        self._response: Response | None = None

    # -- State --

    @property
    def finalized(self) -> bool:
        return self._response is not None

    @property
    def response(self) -> Response | None:
        """The finalized response, or ``None`` before ``send``/``redirect``."""
        return self._response

    @property
    def status(self) -> int:
        return self._status

    @property
    def headers(self) -> Mapping[str, str]:
        return dict(self._headers)

    @property
    def cookie_directives(self) -> tuple[str, ...]:
        return tuple(cookie.to_header_value() for cookie in self._cookies)

    def _refuse(self, action: str) -> bool:
        if self._response is None:
            return False
        logger.warning("Response already sent; ignoring %s", action)
        return True

    # -- Mutation --

    def set_status(self, status: int) -> None:
        if self._refuse(f"set_status({status})"):
            return
        self._status = status

    def set_header(self, key: str, value: str) -> None:
        if self._refuse(f"set_header({key!r})"):
            return
        # Replace an existing header regardless of spelling
        for existing in list(self._headers):
            if existing.lower() == key.lower():
                del self._headers[existing]
        self._headers[key] = value

    def set_cookie(
        self,
        name: str,
        value: str,
        *,
        path: str | None = "/",
        max_age: int | None = None,
        expires: datetime | str | None = None,
        domain: str | None = None,
        secure: bool = False,
        httponly: bool = False,
        samesite: str | None = None,
    ) -> None:
        """Append a ``Set-Cookie`` directive."""
        if self._refuse(f"set_cookie({name!r})"):
            return
        self._cookies.append(
            SetCookie(
                name=name,
                value=value,
                path=path,
                max_age=max_age,
                expires=expires,
                domain=domain,
                secure=secure,
                httponly=httponly,
                samesite=samesite,
            )
        )

    def delete_cookie(self, name: str, *, path: str | None = "/", domain: str | None = None) -> None:
        """Append a directive that expires *name* (empty value, ``Max-Age=0``)."""
        if self._refuse(f"delete_cookie({name!r})"):
            return
        self._cookies.append(SetCookie.deletion(name, path=path, domain=domain))

    # -- Finalization --

    def redirect(self, url: str, status: int = 302) -> Response:
        """Finalize as a redirect to *url*. No body is produced."""
        if self._refuse(f"redirect({url!r})"):
            assert self._response is not None
            return self._response
        self._status = status
        self.set_header("Location", url)
        return self._finalize(body="", content_type=None)

    def send(self, payload: Any = None) -> Response:
        """Finalize with *payload* as the body.

        ``str`` is sent as HTML text, ``bytes`` as an octet stream, ``None``
        as an empty text body, and anything else is serialized to JSON.
        """
        if self._refuse("send()"):
            assert self._response is not None
            return self._response
        if payload is None:
            return self._finalize(body="", content_type=TEXT_CONTENT_TYPE)
        if isinstance(payload, str):
            return self._finalize(body=payload, content_type=TEXT_CONTENT_TYPE)
        if isinstance(payload, (bytes, bytearray, memoryview)):
            return self._finalize(body=bytes(payload), content_type=BINARY_CONTENT_TYPE)
        return self._finalize(
            body=json_module.dumps(payload, default=str),
            content_type=JSON_CONTENT_TYPE,
        )

    def _finalize(self, *, body: str | bytes, content_type: str | None) -> Response:
        # A Content-Type set explicitly on the builder or globally wins
        headers = merge_headers(self._global_headers, self._headers)
        explicit = [value for name, value in headers if name.lower() == "content-type"]
        if explicit:
            content_type = explicit[-1]
            headers = tuple((n, v) for n, v in headers if n.lower() != "content-type")
        self._response = Response(
            body=body,
            status=self._status,
            content_type=content_type,
            headers=headers,
            cookies=self.cookie_directives,
        )
        return self._response


def bare_response(global_headers: Mapping[str, str], status: int = 200) -> Response:
    """An empty response carrying only the global headers."""
    return Response(body="", status=status, content_type=None, headers=merge_headers(global_headers))
