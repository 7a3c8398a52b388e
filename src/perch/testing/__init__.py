"""Test utilities for perch applications.

Provides an in-process ASGI test client and response assertions::

    from perch.testing import TestClient, assert_json
"""

from perch.testing.assertions import assert_cookie_set, assert_header, assert_json, assert_status
from perch.testing.client import TestClient, WebSocketSession

__all__ = [
    "TestClient",
    "WebSocketSession",
    "assert_cookie_set",
    "assert_header",
    "assert_json",
    "assert_status",
]
