from dataclasses import replace

import pytest
from conftest import mock_request

from ringmux.matcher import (
    Pattern,
    Segment,
    SegmentKind,
    compile_pattern,
    compile_prefix,
    match_prefix,
    match_route,
    split_path,
    with_segments,
)
from ringmux.types import FrozenDict, Method


# --- split_path / with_segments -----------------------------------------------
@pytest.mark.parametrize(
    "path, expected",
    [
        ("/", ()),
        ("", ()),
        ("/users", ("users",)),
        ("/users/", ("users",)),
        ("//users//1234/", ("users", "1234")),
        ("users/1234", ("users", "1234")),
    ],
)
def test_split_path(path: str, expected: tuple[str, ...]) -> None:
    assert split_path(path) == expected


def test_with_segments_populates_cache() -> None:
    request = with_segments(mock_request("/a/b"))
    assert request.segments == ("a", "b")


def test_with_segments_keeps_existing_cache() -> None:
    request = with_segments(mock_request("/a/b"))
    assert with_segments(request) is request


# --- compile_pattern ----------------------------------------------------------
def test_compile_pattern() -> None:
    pattern = compile_pattern("get", "/users/:id/name/:name")
    assert pattern == Pattern(
        method=Method.GET,
        segments=(
            Segment(SegmentKind.LITERAL, "users"),
            Segment(SegmentKind.PARAM, "id"),
            Segment(SegmentKind.LITERAL, "name"),
            Segment(SegmentKind.PARAM, "name"),
        ),
        is_prefix=False,
        text="/users/:id/name/:name",
    )


@pytest.mark.parametrize(
    "text, is_prefix",
    [
        ("/", False),  # root is always exact
        ("/images", False),
        ("/images/", True),
        ("/images/image-...", True),
        ("/...", True),
        ("/users/:id", False),
        ("/users/:id/", True),
    ],
)
def test_compile_pattern_is_prefix(text: str, is_prefix: bool) -> None:
    assert compile_pattern(Method.GET, text).is_prefix is is_prefix


def test_compile_pattern_prefix_literal_strips_marker() -> None:
    pattern = compile_pattern(Method.GET, "/images/image-...")
    assert pattern.segments[-1] == Segment(SegmentKind.PREFIX, "image-")


@pytest.mark.parametrize(
    "method, expected",
    [
        ("GET", Method.GET),
        ("get", Method.GET),
        ("Patch", Method.PATCH),
        ("*", Method.ANY),
        (None, Method.ANY),
        (Method.TRACE, Method.TRACE),
    ],
)
def test_compile_pattern_method(method: str | Method | None, expected: Method) -> None:
    assert compile_pattern(method, "/").method is expected


@pytest.mark.parametrize(
    "method, text, error",
    [
        ("GET", "users", "path must start with '/'"),
        ("GET", "", "path must start with '/'"),
        ("GET", "/images/image-.../deep", "only allowed in the last segment"),
        ("GET", "//", "prefix pattern must have at least one segment"),
        ("GET", "/users/:", "path parameter must be named"),
        ("FETCH", "/", "unsupported HTTP method 'FETCH'"),
        (1, "/", "unsupported HTTP method 1"),
    ],
)
def test_compile_pattern_rejects_malformed(
    method: str, text: str, error: str
) -> None:
    with pytest.raises(ValueError, match=error):
        compile_pattern(method, text)


# --- compile_prefix -----------------------------------------------------------
def test_compile_prefix() -> None:
    assert compile_prefix("/api/person/:id") == (
        Segment(SegmentKind.LITERAL, "api"),
        Segment(SegmentKind.LITERAL, "person"),
        Segment(SegmentKind.PARAM, "id"),
    )
    assert compile_prefix("/") == ()


@pytest.mark.parametrize(
    "prefix, error",
    [
        ("api", "path must start with '/'"),
        ("/api/v...", "mount prefix cannot contain '...'"),
    ],
)
def test_compile_prefix_rejects_malformed(prefix: str, error: str) -> None:
    with pytest.raises(ValueError, match=error):
        compile_prefix(prefix)


# --- match_route --------------------------------------------------------------
@pytest.mark.parametrize(
    "text, method, path, expected",
    [
        # exact literal match
        ("/path", "GET", "/path", {}),
        ("/", "GET", "/", {}),
        ("/a/b", "GET", "/a/b/", {}),
        # method normalization and any-method
        ("/path", "get", "/path", {}),
        ("/path", "*", "/path", {}),
        # parameters
        ("/users/:id", "GET", "/users/1234", {"id": "1234"}),
        (
            "/users/:id/name/:name",
            "GET",
            "/users/1234/name/jeff",
            {"id": "1234", "name": "jeff"},
        ),
        # trailing slash prefix, including the equal-length boundary
        ("/images/", "GET", "/images/my-image.jpg", {}),
        ("/images/", "GET", "/images/anything/deep", {}),
        ("/images/", "GET", "/images", {}),
        # prefix literal
        ("/images/image-...", "GET", "/images/image-1234", {}),
        ("/images/image-...", "GET", "/images/image-", {}),
        # segments after a matched prefix literal are never inspected
        ("/images/image-...", "GET", "/images/image-1234/extra/deep", {}),
        ("/files/:kind/v...", "GET", "/files/pdf/v2/x", {"kind": "pdf"}),
    ],
)
def test_match_route(
    text: str, method: str, path: str, expected: dict[str, str]
) -> None:
    pattern = compile_pattern(method, text)
    assert match_route(pattern, with_segments(mock_request(path, "GET"))) == expected


@pytest.mark.parametrize(
    "text, method, request_method, path",
    [
        # literal mismatch
        ("/path", "GET", "GET", "/users"),
        # literals are case-sensitive
        ("/path", "GET", "GET", "/Path"),
        # method mismatch
        ("/path", "POST", "GET", "/path"),
        ("/path", "GET", "FETCH", "/path"),
        # length mismatch
        ("/a/b", "GET", "GET", "/a"),
        ("/a", "GET", "GET", "/a/b"),
        ("/users/:id", "GET", "GET", "/users"),
        # root is never a prefix
        ("/", "GET", "GET", "/anything"),
        # prefix needs at least as many segments
        ("/images/", "GET", "GET", "/"),
        ("/images/", "GET", "GET", "/imagesx/1"),
        # prefix literal compares string prefixes of the segment
        ("/images/image-...", "GET", "GET", "/images/image1234"),
        ("/images/image-...", "GET", "GET", "/images"),
        # literal mismatch before a parameter aborts the walk
        ("/users/:id", "GET", "GET", "/people/1"),
    ],
)
def test_match_route_no_match(
    text: str, method: str, request_method: str, path: str
) -> None:
    pattern = compile_pattern(method, text)
    request = with_segments(mock_request(path, request_method))
    assert match_route(pattern, request) is None


def test_match_route_any_method_matches_unknown_method() -> None:
    pattern = compile_pattern(Method.ANY, "/path")
    assert match_route(pattern, mock_request("/path", "WRONG")) == {}


def test_match_route_request_method_case_insensitive() -> None:
    pattern = compile_pattern(Method.GET, "/path")
    assert match_route(pattern, mock_request("/path", "get")) == {}


def test_match_route_seeds_existing_params() -> None:
    pattern = compile_pattern(Method.GET, "/name/:name")
    request = with_segments(mock_request("/name/fred"))
    request = replace(request, path_params=FrozenDict({"id": "1234", "name": "old"}))
    assert match_route(pattern, request) == {"id": "1234", "name": "fred"}


def test_match_route_uses_cached_segments() -> None:
    pattern = compile_pattern(Method.GET, "/name/:name")
    request = with_segments(mock_request("/api/person/1/name/fred"))
    trimmed = replace(request, segments=("name", "fred"))
    assert match_route(pattern, request) is None
    assert match_route(pattern, trimmed) == {"name": "fred"}


def test_match_route_is_idempotent() -> None:
    pattern = compile_pattern(Method.GET, "/users/:id")
    request = with_segments(mock_request("/users/42"))
    assert match_route(pattern, request) == match_route(pattern, request)
    assert request.path_params == {}


# --- match_prefix -------------------------------------------------------------
def test_match_prefix() -> None:
    segments = compile_prefix("/api/person/:id")
    request = with_segments(mock_request("/api/person/1234/name/fred"))
    assert match_prefix(segments, request) == ({"id": "1234"}, ("name", "fred"))


def test_match_prefix_exact_length() -> None:
    segments = compile_prefix("/api/person")
    request = with_segments(mock_request("/api/person"))
    assert match_prefix(segments, request) == ({}, ())


def test_match_prefix_root_matches_everything() -> None:
    request = with_segments(mock_request("/a/b"))
    assert match_prefix(compile_prefix("/"), request) == ({}, ("a", "b"))


@pytest.mark.parametrize(
    "prefix, path",
    [
        ("/api/person", "/api"),
        ("/api/person", "/api/people/1"),
        ("/api/:version/users", "/api/v1/groups"),
    ],
)
def test_match_prefix_no_match(prefix: str, path: str) -> None:
    request = with_segments(mock_request(path))
    assert match_prefix(compile_prefix(prefix), request) is None
