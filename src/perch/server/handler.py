"""ASGI handler — translates ASGI http scopes to perch types.

Converts the scope to a Request, runs it through static lookup, routing,
guards, body decoding, and the route handler, and sends the resulting
Response back through ASGI send(). Every fault is turned into a response
by ``perch.server.errors``.
"""

import logging
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch.errors import HandlerError, UpgradeFailed
from perch.http.body import decode_body, is_body_method
from perch.http.request import Request
from perch.http.response import Response, ResponseBuilder, bare_response
from perch.server.dispatch import DispatchTable, prepare
from perch.server.errors import handle_error
from perch.server.sender import send_response

logger = logging.getLogger("perch.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    table: DispatchTable,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    request = Request.from_asgi(scope, receive)
    logger.debug("%s %s", request.method, request.path)

    try:
        response = await dispatch(request, table)
    except Exception as exc:
        response = await handle_error(
            exc,
            request,
            table.error_handler,
            global_headers=dict(table.global_headers),
            debug=table.debug,
        )

    await send_response(response, send, head=request.method == "HEAD")


async def dispatch(request: Request, table: DispatchTable) -> Response:
    """Resolve *request* to a Response. Faults propagate to the caller."""
    # Static files first, for GET/HEAD only
    if table.static is not None and request.method in ("GET", "HEAD"):
        hit = table.static.lookup(request.path, dict(table.global_headers))
        if hit is not None:
            return hit

    prepared = await prepare(request, table)
    try:
        if prepared.short_circuit is not None:
            return prepared.short_circuit

        # A plain HTTP request cannot be upgraded
        if table.is_upgrade_path(request.route_path):
            msg = f"{request.method} {request.route_path} is not a WebSocket handshake"
            raise UpgradeFailed(msg)

        # Structurally valid probe with no handler of its own
        if prepared.match is None:
            return bare_response(table.global_headers)

        ctx = prepared.ctx
        ctx.query = request.query.to_dict()
        if is_body_method(request.method):
            ctx.body = await decode_body(request)

        res = ResponseBuilder(table.global_headers)
        result = await prepared.match.handler(ctx, res)
        return resolve_result(result, res)
    finally:
        prepared.release()


def resolve_result(result: Any, res: ResponseBuilder) -> Response:
    """Turn whatever the handler returned into the final Response.

    - ``Response``: used as is
    - ``None``: the builder's finalized response
    - anything else: passed to ``res.send()``
    """
    if isinstance(result, Response):
        return result
    if result is None:
        if res.response is None:
            msg = "Handler returned without sending a response"
            raise HandlerError(msg)
        return res.response
    return res.send(result)
