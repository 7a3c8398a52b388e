"""Route template, Route, and RouteMatch frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class SegmentKind(StrEnum):
    LITERAL = "literal"
    PARAM = "param"
    WILDCARD = "wildcard"


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Literal:   ``/users``  (kind=LITERAL, value="users")
    Param:     ``/:id``    (kind=PARAM, value="id")
    Wildcard:  ``/*``      (kind=WILDCARD, value="*", last segment only)
    """

    value: str
    kind: SegmentKind = SegmentKind.LITERAL

    @property
    def is_param(self) -> bool:
        return self.kind is SegmentKind.PARAM

    @property
    def is_wildcard(self) -> bool:
        return self.kind is SegmentKind.WILDCARD

    def accepts(self, part: str) -> bool:
        """Whether a concrete path segment fits this template segment."""
        if self.kind is SegmentKind.LITERAL:
            return self.value == part
        return bool(part)


@dataclass(frozen=True, slots=True)
class RouteTemplate:
    """A registered (method, pattern) pair, parsed into segments."""

    method: str
    pattern: str
    segments: tuple[PathSegment, ...]

    @property
    def key(self) -> tuple[str, str]:
        return (self.method, self.pattern)

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(seg.value for seg in self.segments if seg.is_param)

    @property
    def is_wildcard(self) -> bool:
        return bool(self.segments) and self.segments[-1].is_wildcard

    @property
    def is_literal(self) -> bool:
        return all(seg.kind is SegmentKind.LITERAL for seg in self.segments)

    @property
    def prefix(self) -> tuple[PathSegment, ...]:
        """Segments before the wildcard marker (all segments otherwise)."""
        return self.segments[:-1] if self.is_wildcard else self.segments

    @property
    def normalized_path(self) -> str:
        """Literal patterns only: the slash-trimmed lookup key."""
        return "/".join(seg.value for seg in self.segments)

    @property
    def literal_prefix_length(self) -> int:
        """Number of literal segments before the first non-literal one."""
        count = 0
        for seg in self.segments:
            if seg.kind is not SegmentKind.LITERAL:
                break
            count += 1
        return count

    @property
    def literal_count(self) -> int:
        return sum(1 for seg in self.segments if seg.kind is SegmentKind.LITERAL)


@dataclass(frozen=True, slots=True)
class Route:
    """A template bound to its handler."""

    template: RouteTemplate
    handler: Callable[..., Any]

    @property
    def method(self) -> str:
        return self.template.method

    @property
    def pattern(self) -> str:
        return self.template.pattern


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]

    @property
    def handler(self) -> Callable[..., Any]:
        return self.route.handler
