"""Per-request context.

``RequestContext`` is created fresh for every request and handed to each
guard and then to the route handler. Guards may mutate it; the handler
sees every change.

The active context is also published through a ``ContextVar`` so helper
code deep inside a handler can reach it with ``get_context()``.

Thread safety:
    ``ContextVar`` is task-local under asyncio. Each request owns its
    context, so no locks are needed.
"""

from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from perch.http.headers import Headers
from perch.http.request import Request

if TYPE_CHECKING:
    from perch.routing.route import RouteTemplate


@dataclass(slots=True)
class RequestContext:
    """Everything a guard or handler knows about the current request.

    ``path_params`` holds exactly the parameters declared by the matched
    route template. ``query`` is flat with the last value winning.
    ``body`` is filled by the body decoder for ``POST``/``PUT``/``PATCH``.
    ``state`` is the shared state value (or this request's factory output).
    ``extras`` is free space for guards to pass values to the handler.
    """

    request: Request
    path_params: dict[str, str] = field(default_factory=dict)
    query: dict[str, str] = field(default_factory=dict)
    body: Any = None
    state: Any = None
    route: "RouteTemplate | None" = None
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def headers(self) -> Headers:
        return self.request.headers

    @property
    def cookies(self) -> Mapping[str, str]:
        return self.request.cookies

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def url(self) -> str:
        return self.request.url

    def header(self, name: str, default: str | None = None) -> str | None:
        """Header lookup that never faults on a missing name."""
        return self.request.headers.get(name, default)


context_var: ContextVar[RequestContext] = ContextVar("perch_context")
"""The current request context. Set by the request handler before guards run."""


def get_context() -> RequestContext:
    """Return the current request context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()
