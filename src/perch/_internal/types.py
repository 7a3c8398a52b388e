"""Shared type aliases used across perch modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: receives (ctx, res) and returns a Response
Handler: TypeAlias = Callable[..., Any]

# Error handler: receives an ErrorRecord and returns a Response
ErrorHandler: TypeAlias = Callable[..., Any]

# Guard: receives a RequestContext and returns Allow / Reject / ShortCircuit
Guard: TypeAlias = Callable[..., Any]
