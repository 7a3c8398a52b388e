"""Tests for perch.guards — verdicts and the ordered guard pipeline."""

import pytest

from perch._internal.invoke import ensure_async
from perch.context import RequestContext
from perch.errors import BadRequest
from perch.guards import ALLOW, Reject, ShortCircuit, run_guards
from perch.http.request import Request
from perch.http.response import Response


def _ctx(path: str = "/", query_string: bytes = b"") -> RequestContext:
    scope = {"type": "http", "method": "GET", "path": path, "query_string": query_string, "headers": []}
    return RequestContext(request=Request.from_asgi(scope))


def _guards(*funcs):
    return [ensure_async(f) for f in funcs]


class TestRunGuards:
    async def test_no_guards(self) -> None:
        assert await run_guards([], _ctx()) is None

    async def test_allow_and_none_continue(self) -> None:
        calls: list[str] = []

        def first(ctx):
            calls.append("first")
            return ALLOW

        def second(ctx):
            calls.append("second")

        assert await run_guards(_guards(first, second), _ctx()) is None
        assert calls == ["first", "second"]

    async def test_reject_raises_bad_request_with_url(self) -> None:
        def deny(ctx):
            return Reject("no token")

        with pytest.raises(BadRequest) as exc_info:
            await run_guards(_guards(deny), _ctx("/secret", b"x=1"))
        assert exc_info.value.status == 400
        assert exc_info.value.url == "/secret?x=1"
        assert exc_info.value.detail == "no token"

    async def test_reject_default_detail(self) -> None:
        with pytest.raises(BadRequest) as exc_info:
            await run_guards(_guards(lambda ctx: Reject()), _ctx("/x"))
        assert "/x" in exc_info.value.detail

    async def test_short_circuit_stops_pipeline(self) -> None:
        later_called = False
        teapot = Response("short", status=418)

        def stop(ctx):
            return ShortCircuit(teapot)

        def later(ctx):
            nonlocal later_called
            later_called = True

        assert await run_guards(_guards(stop, later), _ctx()) is teapot
        assert later_called is False

    async def test_bare_response_short_circuits(self) -> None:
        teapot = Response("short", status=418)
        assert await run_guards(_guards(lambda ctx: teapot), _ctx()) is teapot

    async def test_async_and_class_guards(self) -> None:
        class Stamp:
            async def __call__(self, ctx):
                ctx.extras["stamped"] = True

        async def check(ctx):
            assert ctx.extras["stamped"] is True
            return ALLOW

        ctx = _ctx()
        assert await run_guards(_guards(Stamp(), check), ctx) is None
        assert ctx.extras == {"stamped": True}

    async def test_guard_mutations_visible_later(self) -> None:
        def setter(ctx):
            ctx.path_params["user"] = "ada"

        def reader(ctx):
            return ALLOW if ctx.path_params.get("user") == "ada" else Reject("lost")

        assert await run_guards(_guards(setter, reader), _ctx()) is None

    async def test_unknown_verdict_type(self) -> None:
        with pytest.raises(TypeError, match="expected Allow"):
            await run_guards(_guards(lambda ctx: 42), _ctx())

    async def test_guard_exception_propagates(self) -> None:
        def boom(ctx):
            raise ValueError("broken guard")

        with pytest.raises(ValueError, match="broken guard"):
            await run_guards(_guards(boom), _ctx())
