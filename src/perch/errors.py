"""Perch exception hierarchy.

Shared across Router, App, guards, and the request handler so every
module raises and catches the same types. Every HTTP fault carries its
status code as a field set at construction.
"""

from collections.abc import Mapping
from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when app configuration or route registration is invalid.

    Surfaces at setup time, never while serving.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, guards, body decoder, or handlers. The request
    handler catches these and builds an ``ErrorRecord`` for the
    registered error handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class RouteNotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — the verb is unknown, or the path has no route for it.

    When the allowed methods are known they are listed in an ``Allow``
    header and in the detail string.
    """

    def __init__(self, allowed: frozenset[str] = frozenset(), detail: str = "") -> None:
        if allowed:
            allow_value = ", ".join(sorted(allowed))
            default_detail = f"Method not allowed. Allowed methods: {allow_value}"
            headers: tuple[tuple[str, str], ...] = (("Allow", allow_value),)
        else:
            default_detail = "Method not allowed"
            headers = ()
        super().__init__(status=405, detail=detail or default_detail, headers=headers)


class BadRequest(HTTPError):  # noqa: N818
    """400 — a guard rejected the request."""

    def __init__(self, url: str, detail: str = "") -> None:
        super().__init__(status=400, detail=detail or f"Bad request: {url}")
        object.__setattr__(self, "url", url)


class BodyDecodeError(HTTPError):
    """500 — the request body could not be decoded for its content type.

    Handlers that want to treat malformed input as a client error can
    catch this explicitly; left alone it surfaces as a server error.
    """

    def __init__(self, content_type: str, detail: str = "") -> None:
        super().__init__(
            status=500,
            detail=detail or f"Could not decode body as {content_type!r}",
        )
        object.__setattr__(self, "content_type", content_type)


class HandlerError(HTTPError):
    """500 — the route handler failed or produced no response."""

    def __init__(self, detail: str = "Internal Server Error") -> None:
        super().__init__(status=500, detail=detail)


class UpgradeFailed(HTTPError):
    """400 — the WebSocket upgrade was refused."""

    def __init__(self, detail: str = "WebSocket upgrade failed") -> None:
        super().__init__(status=400, detail=detail)


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """Normalized context handed to the registered error handler.

    ``status`` is the status hint: the fault's own status for
    ``HTTPError`` instances, 500 for anything else.
    """

    error: BaseException
    method: str
    url: str
    headers: Mapping[str, str]
    status: int

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        *,
        method: str,
        url: str,
        headers: Mapping[str, str],
    ) -> "ErrorRecord":
        status = exc.status if isinstance(exc, HTTPError) else 500
        return cls(error=exc, method=method, url=url, headers=headers, status=status)
