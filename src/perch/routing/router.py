"""Route table with prioritized matching.

Routes are registered during setup; the table is frozen when the app
starts serving. Matching tries, in order:

1. an exact literal match on the normalized path (one dict lookup),
2. parameterized patterns of the same length, most specific first,
3. wildcard patterns whose prefix starts the path, longest prefix first.
"""

import logging
from collections.abc import Callable
from typing import Any

from perch.errors import ConfigurationError, MethodNotAllowed, RouteNotFound
from perch.routing.route import PathSegment, Route, RouteMatch, RouteTemplate, SegmentKind

logger = logging.getLogger("perch.routing")

HTTP_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD")


def split_path(path: str) -> list[str]:
    """Split a request path into non-empty segments.

    ``"/a//b/"`` -> ``["a", "b"]``
    """
    return [part for part in path.split("/") if part]


def parse_pattern(pattern: str) -> list[PathSegment]:
    """Parse a route pattern string into segments.

    Examples::

        "/users"            -> [PathSegment("users")]
        "/users/:id"        -> [PathSegment("users"), PathSegment("id", PARAM)]
        "/static/*"         -> [PathSegment("static"), PathSegment("*", WILDCARD)]
        "/"                 -> []

    Raises ``ConfigurationError`` for placeholders in another framework's
    syntax, empty or repeated parameter names, and a wildcard that is not
    the last segment.
    """
    parts = split_path(pattern)
    segments: list[PathSegment] = []
    seen: set[str] = set()
    for index, part in enumerate(parts):
        if (part.startswith("{") and part.endswith("}")) or (
            part.startswith("<") and part.endswith(">")
        ):
            name = part[1:-1].split(":", 1)[0]
            msg = (
                f"Route pattern {pattern!r} uses {part!r}. "
                f"Perch path parameters are written ':{name}'."
            )
            raise ConfigurationError(msg)
        if part == "*":
            if index != len(parts) - 1:
                msg = f"Wildcard '*' must be the last segment in {pattern!r}."
                raise ConfigurationError(msg)
            segments.append(PathSegment("*", SegmentKind.WILDCARD))
        elif part.startswith(":"):
            name = part[1:]
            if not name:
                msg = f"Empty parameter name in route pattern {pattern!r}."
                raise ConfigurationError(msg)
            if name in seen:
                msg = f"Parameter ':{name}' appears twice in route pattern {pattern!r}."
                raise ConfigurationError(msg)
            seen.add(name)
            segments.append(PathSegment(name, SegmentKind.PARAM))
        else:
            segments.append(PathSegment(part))
    return segments


def _param_order(item: tuple[int, Route]) -> tuple[int, int, int]:
    index, route = item
    template = route.template
    return (-template.literal_prefix_length, -template.literal_count, index)


def _wildcard_order(item: tuple[int, Route]) -> tuple[int, int, int]:
    index, route = item
    template = route.template
    return (-len(template.prefix), -template.literal_count, index)


def _extract(segments: tuple[PathSegment, ...], parts: list[str]) -> dict[str, str]:
    """Map declared parameter names to their path segments, verbatim."""
    return {seg.value: part for seg, part in zip(segments, parts, strict=False) if seg.is_param}


class Router:
    """Route table keyed by method, then by raw pattern.

    Usage::

        router = Router()
        router.add("GET", "/users", list_users)
        router.add("GET", "/users/:id", show_user)
        router.compile()
        match = router.match("GET", "/users/42")
        match.path_params  # {"id": "42"}
    """

    __slots__ = ("_compiled", "_counter", "_literal", "_params", "_table", "_wildcards")

    def __init__(self) -> None:
        # method -> raw pattern -> route
        self._table: dict[str, dict[str, Route]] = {m: {} for m in HTTP_METHODS}
        # method -> normalized literal path -> route
        self._literal: dict[str, dict[str, Route]] = {m: {} for m in HTTP_METHODS}
        # method -> [(registration index, route)], kept in match order
        self._params: dict[str, list[tuple[int, Route]]] = {m: [] for m in HTTP_METHODS}
        self._wildcards: dict[str, list[tuple[int, Route]]] = {m: [] for m in HTTP_METHODS}
        self._counter = 0
        self._compiled = False

    def add(self, method: str, pattern: str, handler: Callable[..., Any]) -> Route:
        """Register *handler* for (*method*, *pattern*).

        Must be called before ``compile()``. Registering the same
        (method, pattern) twice raises ``ConfigurationError``.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        method = method.upper()
        if method not in HTTP_METHODS:
            msg = f"Unsupported HTTP method {method!r}. Use one of: {', '.join(HTTP_METHODS)}."
            raise ConfigurationError(msg)

        template = RouteTemplate(method=method, pattern=pattern, segments=tuple(parse_pattern(pattern)))
        if pattern in self._table[method]:
            msg = f"Route {method} {pattern!r} is already registered."
            raise ConfigurationError(msg)

        route = Route(template=template, handler=handler)
        if template.is_wildcard:
            self._wildcards[method].append((self._counter, route))
            self._wildcards[method].sort(key=_wildcard_order)
        elif template.is_literal:
            normalized = template.normalized_path
            existing = self._literal[method].get(normalized)
            if existing is not None:
                msg = (
                    f"Route {method} {pattern!r} conflicts with "
                    f"{existing.pattern!r} (same path once slashes are trimmed)."
                )
                raise ConfigurationError(msg)
            self._literal[method][normalized] = route
        else:
            self._params[method].append((self._counter, route))
            self._params[method].sort(key=_param_order)

        self._table[method][pattern] = route
        self._counter += 1
        logger.debug("Registered %s %s", method, pattern)
        return route

    @property
    def routes(self) -> list[Route]:
        """Every registered route, grouped by method in registration order."""
        return [route for by_pattern in self._table.values() for route in by_pattern.values()]

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    @property
    def compiled(self) -> bool:
        return self._compiled

    def match(self, method: str, path: str) -> RouteMatch:
        """Resolve (*method*, *path*) to a route and its parameters.

        Raises ``MethodNotAllowed`` for verbs perch does not route, listing
        the methods the path does serve. Raises ``RouteNotFound`` when
        nothing matches.
        """
        method = method.upper()
        if method not in HTTP_METHODS:
            raise MethodNotAllowed(allowed=self.allowed_methods(path))

        result = self._find(method, split_path(path))
        if result is None:
            raise RouteNotFound(f"No route matches {method} {path!r}")
        return result

    def allowed_methods(self, path: str) -> frozenset[str]:
        """Methods that have a route matching *path*."""
        parts = split_path(path)
        return frozenset(m for m in HTTP_METHODS if self._find(m, parts) is not None)

    def has_path(self, path: str) -> bool:
        """Whether any method has a route matching *path*."""
        parts = split_path(path)
        return any(self._find(m, parts) is not None for m in HTTP_METHODS)

    def _find(self, method: str, parts: list[str]) -> RouteMatch | None:
        # 1. Exact literal
        literal = self._literal[method].get("/".join(parts))
        if literal is not None:
            return RouteMatch(route=literal, path_params={})

        # 2. Parameterized, same shape
        for _, route in self._params[method]:
            segments = route.template.segments
            if len(segments) != len(parts):
                continue
            if all(seg.accepts(part) for seg, part in zip(segments, parts, strict=True)):
                return RouteMatch(route=route, path_params=_extract(segments, parts))

        # 3. Wildcard prefix
        for _, route in self._wildcards[method]:
            prefix = route.template.prefix
            if len(parts) < len(prefix):
                continue
            if all(seg.accepts(part) for seg, part in zip(prefix, parts, strict=False)):
                return RouteMatch(route=route, path_params=_extract(prefix, parts))

        return None
