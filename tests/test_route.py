"""Tests for perch.routing.route — template, segment, and match dataclasses."""

from perch.routing.route import PathSegment, Route, RouteMatch, RouteTemplate, SegmentKind
from perch.routing.router import parse_pattern


def _template(pattern: str, method: str = "GET") -> RouteTemplate:
    return RouteTemplate(method=method, pattern=pattern, segments=tuple(parse_pattern(pattern)))


class TestPathSegment:
    def test_literal_accepts_exact(self) -> None:
        seg = PathSegment("users")
        assert seg.accepts("users") is True
        assert seg.accepts("Users") is False

    def test_param_accepts_any_non_empty(self) -> None:
        seg = PathSegment("id", SegmentKind.PARAM)
        assert seg.accepts("42") is True
        assert seg.accepts("") is False


class TestRouteTemplate:
    def test_key(self) -> None:
        assert _template("/a/:b", "POST").key == ("POST", "/a/:b")

    def test_param_names(self) -> None:
        assert _template("/orgs/:org/repos/:repo").param_names == ("org", "repo")

    def test_kinds(self) -> None:
        assert _template("/a/b").is_literal is True
        assert _template("/a/:b").is_literal is False
        assert _template("/a/*").is_wildcard is True
        assert _template("/").is_literal is True

    def test_prefix_drops_wildcard(self) -> None:
        assert [s.value for s in _template("/static/*").prefix] == ["static"]

    def test_normalized_path(self) -> None:
        assert _template("/a/b/").normalized_path == "a/b"

    def test_specificity_measures(self) -> None:
        template = _template("/api/v1/:id/items")
        assert template.literal_prefix_length == 2
        assert template.literal_count == 3


class TestRouteMatch:
    def test_handler_shortcut(self) -> None:
        def handler(ctx, res): ...

        route = Route(template=_template("/x/:id"), handler=handler)
        match = RouteMatch(route=route, path_params={"id": "1"})
        assert match.handler is handler
        assert route.method == "GET"
        assert route.pattern == "/x/:id"
