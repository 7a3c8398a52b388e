"""Guard protocol and verdict types.

A guard is any callable matching::

    def my_guard(ctx: RequestContext) -> Verdict: ...
    async def my_guard(ctx: RequestContext) -> Verdict: ...

No base class required. The framework checks the shape, not the lineage.

A guard answers with one of three verdicts:

- ``ALLOW`` (or ``None``): continue with the next guard.
- ``Reject(detail)``: stop with a 400 ``BadRequest``.
- ``ShortCircuit(response)`` (or a bare ``Response``): stop and send
  that response unchanged. No later guard and no handler runs.
"""

from dataclasses import dataclass
from typing import Protocol, TypeAlias

from perch.context import RequestContext
from perch.http.response import Response


@dataclass(frozen=True, slots=True)
class Allow:
    """Continue to the next guard."""


@dataclass(frozen=True, slots=True)
class Reject:
    """Fail the request with 400 Bad Request."""

    detail: str = ""


@dataclass(frozen=True, slots=True)
class ShortCircuit:
    """Answer the request with *response* right away."""

    response: Response


ALLOW = Allow()

# What a guard may return
Verdict: TypeAlias = Allow | Reject | ShortCircuit | Response | None


class Guard(Protocol):
    """Protocol for perch guards.

    Accepts both functions and callable objects::

        # Function guard
        def require_token(ctx: RequestContext) -> Verdict:
            if ctx.header("authorization") is None:
                return Reject("missing token")
            return ALLOW

        # Class guard
        class Maintenance:
            async def __call__(self, ctx: RequestContext) -> Verdict:
                return ShortCircuit(Response("down for maintenance", status=503))
    """

    def __call__(self, ctx: RequestContext) -> Verdict: ...
