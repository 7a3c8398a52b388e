"""Error handling pipeline for perch requests.

Every fault raised while dispatching becomes an ``ErrorRecord``. If the
app registered an error handler it decides the response; otherwise
``HTTPError`` faults get their status and a short reason and anything
else collapses to an opaque 500.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from perch.errors import ErrorRecord, HTTPError
from perch.http.request import Request
from perch.http.response import Response, ResponseBuilder, merge_headers

logger = logging.getLogger("perch.server")

_REASONS = {
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    500: "Internal Server Error",
}


def build_error_record(exc: BaseException, request: Request) -> ErrorRecord:
    return ErrorRecord.from_exception(
        exc,
        method=request.method,
        url=request.url,
        headers=dict(request.headers),
    )


async def handle_error(
    exc: Exception,
    request: Request,
    error_handler: Callable[[ErrorRecord], Awaitable[Any]] | None,
    *,
    global_headers: dict[str, str],
    debug: bool,
) -> Response:
    """Map any exception raised during dispatch to a Response."""
    record = build_error_record(exc, request)

    if record.status >= 500:
        logger.exception("%d %s %s", record.status, request.method, request.path)
    else:
        logger.debug("%d %s %s — %s", record.status, request.method, request.path, exc)

    if error_handler is not None:
        try:
            return _coerce(await error_handler(record), record, global_headers)
        except Exception:
            logger.exception("Error handler failed for %s %s", request.method, request.path)
            return default_error_response(500, global_headers)

    if isinstance(exc, HTTPError):
        detail = f"{exc.status}: {exc.detail}" if debug and exc.detail else ""
        response = default_error_response(exc.status, global_headers, detail)
        for name, value in exc.headers:
            response = response.with_header(name, value)
        return response

    return default_error_response(500, global_headers)


def default_error_response(
    status: int,
    global_headers: dict[str, str],
    detail: str = "",
) -> Response:
    """A plain-text error response that leaks nothing about the fault."""
    body = detail or _REASONS.get(status, f"Error {status}")
    return Response(
        body=body,
        status=status,
        content_type="text/plain; charset=utf-8",
        headers=merge_headers(global_headers),
    )


def _coerce(result: Any, record: ErrorRecord, global_headers: dict[str, str]) -> Response:
    """Error handlers may return a Response or a plain payload."""
    if isinstance(result, Response):
        return result
    builder = ResponseBuilder(global_headers)
    builder.set_status(record.status)
    return builder.send(result)
