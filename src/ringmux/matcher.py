"""Segment-based pattern compiler and matcher.

Patterns are compiled once at route construction into immutable `Pattern`
values, then matched against the cached segment tuple of each request:

    /users/:id          literal "users", parameter "id"
    /images/            prefix match: any path under /images
    /images/image-...   prefix match: last segment must start with "image-"
"""

from dataclasses import dataclass, replace
from enum import Enum

from .types import FrozenDict, Method, Request

PARAM_MARKER = ":"
PREFIX_MARKER = "..."


class SegmentKind(Enum):
    LITERAL = "literal"  # exact, case-sensitive string match
    PARAM = "param"  # named capture, any value accepted
    PREFIX = "prefix"  # string prefix of the request segment, final segment only


@dataclass(slots=True, frozen=True)
class Segment:
    kind: SegmentKind
    value: str  # literal text, parameter name, or prefix with marker stripped


@dataclass(slots=True, frozen=True)
class Pattern:
    """Compiled route pattern."""

    method: Method
    segments: tuple[Segment, ...]
    is_prefix: bool
    text: str


def split_path(path: str) -> tuple[str, ...]:
    """Split a path on "/", dropping empty components."""
    return tuple(seg for seg in path.split("/") if seg)


def with_segments(request: Request) -> Request:
    """Return request with its segment cache populated.

    Requests that already carry segments are returned as-is, so nested
    combinators reuse (and never re-derive) the sequence set by an enclosing
    one.
    """
    if request.segments is not None:
        return request
    return replace(request, segments=split_path(request.path))


def _parse_segment(seg: str) -> Segment:
    if seg.startswith(PARAM_MARKER):
        name = seg[len(PARAM_MARKER) :]
        if not name:
            msg = "path parameter must be named"
            raise ValueError(msg)
        return Segment(SegmentKind.PARAM, name)
    if seg.endswith(PREFIX_MARKER):
        return Segment(SegmentKind.PREFIX, seg[: -len(PREFIX_MARKER)])
    return Segment(SegmentKind.LITERAL, seg)


def _check_leading_slash(path: str) -> None:
    if not path.startswith("/"):
        msg = f"path must start with '/', provided {path=}"
        raise ValueError(msg)


def compile_pattern(method: Method | str | None, pattern: str) -> Pattern:
    """Compile a route pattern, rejecting malformed ones."""
    _check_leading_slash(pattern)
    segments = tuple(_parse_segment(seg) for seg in split_path(pattern))

    for seg in segments[:-1]:
        if seg.kind is SegmentKind.PREFIX:
            msg = f"'{PREFIX_MARKER}' is only allowed in the last segment, provided {pattern=}"
            raise ValueError(msg)

    trailing_slash = pattern != "/" and pattern.endswith("/")
    if trailing_slash and not segments:
        msg = f"prefix pattern must have at least one segment, provided {pattern=}"
        raise ValueError(msg)

    is_prefix = trailing_slash or (
        bool(segments) and segments[-1].kind is SegmentKind.PREFIX
    )
    return Pattern(
        method=Method.parse(method),
        segments=segments,
        is_prefix=is_prefix,
        text=pattern,
    )


def compile_prefix(prefix: str) -> tuple[Segment, ...]:
    """Compile a subrouter mount prefix: literals and parameters only."""
    _check_leading_slash(prefix)
    segments = tuple(_parse_segment(seg) for seg in split_path(prefix))
    if any(seg.kind is SegmentKind.PREFIX for seg in segments):
        msg = f"mount prefix cannot contain '{PREFIX_MARKER}', provided {prefix=}"
        raise ValueError(msg)
    return segments


def _method_matches(pattern: Pattern, method: str) -> bool:
    return pattern.method is Method.ANY or pattern.method.value == method.upper()


def match_route(pattern: Pattern, request: Request) -> FrozenDict[str, str] | None:
    """Match pattern against the (cached) segments of a request.

    Returns the parameters merged over `request.path_params`, or None if the
    request does not match.
    """
    if not _method_matches(pattern, request.method):
        return None

    uri_segs = (
        request.segments if request.segments is not None else split_path(request.path)
    )
    if len(uri_segs) < len(pattern.segments):
        return None
    if not pattern.is_prefix and len(uri_segs) > len(pattern.segments):
        return None

    params = dict(request.path_params)
    for seg, uri_seg in zip(pattern.segments, uri_segs, strict=False):
        match seg.kind:
            case SegmentKind.PARAM:
                params[seg.value] = uri_seg
            case SegmentKind.PREFIX:
                # terminates the walk: trailing segments are never inspected
                if not uri_seg.startswith(seg.value):
                    return None
                break
            case SegmentKind.LITERAL:
                if seg.value != uri_seg:
                    return None

    return FrozenDict(params)


def match_prefix(
    segments: tuple[Segment, ...], request: Request
) -> tuple[FrozenDict[str, str], tuple[str, ...]] | None:
    """Match the leading segments of a request against a mount prefix.

    Returns (params, remaining segments), or None if the prefix doesn't match.
    """
    uri_segs = (
        request.segments if request.segments is not None else split_path(request.path)
    )
    if len(uri_segs) < len(segments):
        return None

    params = dict(request.path_params)
    for seg, uri_seg in zip(segments, uri_segs, strict=False):
        if seg.kind is SegmentKind.PARAM:
            params[seg.value] = uri_seg
        elif seg.value != uri_seg:
            return None

    return FrozenDict(params), uri_segs[len(segments) :]
