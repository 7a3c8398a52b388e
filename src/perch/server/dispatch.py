"""Compiled dispatch state and the steps shared by HTTP and WebSocket requests.

``DispatchTable`` is built once when the app freezes and read by every
request afterwards. ``prepare`` runs the common front half of a request:
verb check, route match, context construction, and the guard pipeline.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from contextvars import Token
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from perch.context import RequestContext, context_var
from perch.errors import RouteNotFound
from perch.guards.pipeline import run_guards
from perch.http.request import Request
from perch.http.response import Response
from perch.routing.route import RouteMatch
from perch.routing.router import Router

if TYPE_CHECKING:
    from perch.server.static import StaticFiles
    from perch.server.upgrade import WebSocketHooks


@dataclass(frozen=True, slots=True)
class DispatchTable:
    """Everything the request handlers need, frozen at startup.

    Only ``router`` and the shared ``state`` value are shared between
    requests; both are read-only while serving.
    """

    router: Router
    guards: tuple[Callable[[RequestContext], Awaitable[Any]], ...] = ()
    error_handler: Callable[..., Awaitable[Any]] | None = None
    global_headers: Mapping[str, str] = field(default_factory=dict)
    debug: bool = False
    state: Any = None
    state_factory: Callable[[], Any] | None = None
    websocket: WebSocketHooks | None = None
    static: StaticFiles | None = None

    def state_for_request(self) -> Any:
        """Fresh factory output, or the shared value (dicts read-only)."""
        if self.state_factory is not None:
            return self.state_factory()
        if isinstance(self.state, dict):
            return MappingProxyType(self.state)
        return self.state

    def is_upgrade_path(self, path: str) -> bool:
        return self.websocket is not None and path == self.websocket.path


@dataclass(slots=True)
class Prepared:
    """Outcome of ``prepare``: the context, its match, and any guard response.

    The context stays published in ``context_var`` until ``release()``.
    """

    ctx: RequestContext
    match: RouteMatch | None
    token: Token[RequestContext]
    short_circuit: Response | None = None

    def release(self) -> None:
        context_var.reset(self.token)


async def prepare(request: Request, table: DispatchTable) -> Prepared:
    """Match the route, build the context, and run the guards.

    A route miss is tolerated (``match`` is ``None``) in two cases: the
    path is the WebSocket upgrade path, or the request is an ``OPTIONS``
    probe for a path some other method serves. Otherwise it raises
    ``RouteNotFound``. Unknown verbs raise ``MethodNotAllowed``.
    """
    path = request.route_path
    match: RouteMatch | None
    try:
        match = table.router.match(request.method, path)
    except RouteNotFound:
        if table.is_upgrade_path(path):
            match = None
        elif request.method == "OPTIONS" and table.router.has_path(path):
            match = None
        else:
            raise

    ctx = RequestContext(
        request=request,
        path_params=dict(match.path_params) if match is not None else {},
        state=table.state_for_request(),
        route=match.route.template if match is not None else None,
    )

    token = context_var.set(ctx)
    try:
        short_circuit = await run_guards(table.guards, ctx)
    except BaseException:
        context_var.reset(token)
        raise
    return Prepared(ctx=ctx, match=match, token=token, short_circuit=short_circuit)
