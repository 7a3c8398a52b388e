"""Routing — route table with literal, parameterized, and wildcard matching.

Routes are registered during setup and frozen when the app starts
serving.
"""

from perch.routing.route import PathSegment, Route, RouteMatch, RouteTemplate, SegmentKind
from perch.routing.router import HTTP_METHODS, Router, parse_pattern, split_path

__all__ = [
    "HTTP_METHODS",
    "PathSegment",
    "Route",
    "RouteMatch",
    "RouteTemplate",
    "Router",
    "SegmentKind",
    "parse_pattern",
    "split_path",
]
