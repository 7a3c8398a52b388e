"""Response assertion helpers for perch tests.

Each assertion produces a clear error message on failure.
"""

from typing import Any

from perch.http.response import Response


def assert_status(response: Response, status: int) -> None:
    """Assert the response status, showing the body on mismatch."""
    assert response.status == status, (
        f"Expected status {status}, got {response.status}.\n"
        f"Response body: {response.text[:500]}"
    )


def assert_header(response: Response, name: str, value: str | None = None) -> None:
    """Assert a header is present and, when *value* is given, equal to it."""
    actual = response.header(name)
    assert actual is not None, (
        f"Header {name!r} not present. Headers: {dict(response.headers)}"
    )
    if value is not None:
        assert actual == value, f"Expected {name}: {value!r}, got {actual!r}"


def assert_json(response: Response, expected: Any, *, status: int = 200) -> None:
    """Assert the response is JSON with the given status and payload."""
    assert_status(response, status)
    content_type = response.content_type or ""
    assert content_type.startswith("application/json"), (
        f"Expected application/json, got {response.content_type!r}"
    )
    assert response.json() == expected, (
        f"JSON mismatch.\nExpected: {expected!r}\nActual: {response.json()!r}"
    )


def assert_cookie_set(response: Response, name: str) -> str:
    """Assert a Set-Cookie directive for *name* exists; return it."""
    prefix = f"{name}="
    for directive in response.cookies:
        if directive.startswith(prefix):
            return directive
    msg = f"No Set-Cookie for {name!r}. Directives: {list(response.cookies)}"
    raise AssertionError(msg)
