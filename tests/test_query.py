"""Tests for perch.http.query — flat, last-value-wins query parameters."""

from perch.http.query import QueryParams


class TestQueryParams:
    def test_empty(self) -> None:
        q = QueryParams(b"")
        assert len(q) == 0
        assert q.to_dict() == {}

    def test_simple(self) -> None:
        q = QueryParams(b"page=2&sort=name")
        assert q["page"] == "2"
        assert q["sort"] == "name"

    def test_last_value_wins(self) -> None:
        q = QueryParams(b"tag=a&tag=b")
        assert q["tag"] == "b"
        assert q.to_dict() == {"tag": "b"}

    def test_get_list_keeps_all(self) -> None:
        q = QueryParams(b"tag=a&tag=b")
        assert q.get_list("tag") == ["a", "b"]
        assert q.get_list("missing") == []

    def test_blank_values_kept(self) -> None:
        assert QueryParams(b"flag=")["flag"] == ""

    def test_percent_decoding(self) -> None:
        assert QueryParams(b"q=hello%20world")["q"] == "hello world"

    def test_get_int(self) -> None:
        q = QueryParams(b"page=3&bad=x")
        assert q.get_int("page") == 3
        assert q.get_int("bad", 1) == 1
        assert q.get_int("missing") is None
