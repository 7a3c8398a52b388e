"""Run guards in registration order, stopping at the first non-allow verdict."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from perch.context import RequestContext
from perch.errors import BadRequest
from perch.guards.protocol import Allow, Reject, ShortCircuit
from perch.http.response import Response

logger = logging.getLogger("perch.server")


async def run_guards(
    guards: Sequence[Callable[[RequestContext], Awaitable[Any]]],
    ctx: RequestContext,
) -> Response | None:
    """Run each guard against *ctx*, strictly in order.

    Returns the short-circuit ``Response`` if a guard produced one, or
    ``None`` when every guard allowed the request. A ``Reject`` raises
    ``BadRequest`` carrying the request URL.

    Guards are expected to be coroutine functions already (see
    ``perch._internal.invoke.ensure_async``).
    """
    for guard in guards:
        verdict = await guard(ctx)

        if verdict is None or isinstance(verdict, Allow):
            continue

        if isinstance(verdict, ShortCircuit):
            logger.debug("Guard %s short-circuited %s %s", _name(guard), ctx.method, ctx.path)
            return verdict.response

        if isinstance(verdict, Response):
            logger.debug("Guard %s short-circuited %s %s", _name(guard), ctx.method, ctx.path)
            return verdict

        if isinstance(verdict, Reject):
            logger.debug("Guard %s rejected %s %s", _name(guard), ctx.method, ctx.path)
            raise BadRequest(ctx.url, verdict.detail)

        msg = (
            f"Guard {_name(guard)} returned {type(verdict).__name__}; "
            "expected Allow, Reject, ShortCircuit, Response, or None."
        )
        raise TypeError(msg)

    return None


def _name(guard: Any) -> str:
    return getattr(guard, "__qualname__", None) or type(guard).__name__
