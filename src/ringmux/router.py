"""Route combinators: route, group, subrouter and router.

Every combinator is an immutable callable from `Request` to a response or
`NO_MATCH`. There is no routing table: a router is just a group over an
ordered tuple of handlers, tried in declaration order.

    app = router(
        get("/health", health),
        subrouter(
            "/api/person/:id",
            get("/name/:name", person_name),
        ),
    )
    app(Request("GET", "/api/person/1234/name/fred"))
"""

import logging
from collections.abc import Callable
from contextvars import ContextVar
from dataclasses import dataclass, field, replace

from .matcher import (
    Pattern,
    Segment,
    compile_pattern,
    compile_prefix,
    match_prefix,
    match_route,
    with_segments,
)
from .types import NO_MATCH, NOT_FOUND, Handler, Method, NoMatch, Request, Response

logger = logging.getLogger(__name__)

# Request as last dispatched by a matching Route, for wrappers around a router
matched_request: ContextVar[Request | None] = ContextVar(
    "matched_request", default=None
)


def _join_route(prefix: str, pattern: str) -> str:
    if not prefix or prefix == "/":
        return pattern
    if pattern == "/":
        return prefix
    return prefix.rstrip("/") + pattern


def _check_callable(obj: object, what: str) -> None:
    if not callable(obj):
        msg = f"{what} must be callable, provided {obj!r}"
        raise TypeError(msg)


@dataclass(slots=True, frozen=True)
class Route[T]:
    """A handler bound to one method and pattern."""

    pattern: Pattern
    handler: Handler[T]

    def __call__(self, request: Request) -> T | NoMatch:
        request = with_segments(request)
        params = match_route(self.pattern, request)
        if params is None:
            return NO_MATCH
        matched = replace(
            request,
            path_params=params,
            route=_join_route(request.route, self.pattern.text),
        )
        token = matched_request.set(matched)
        result = self.handler(matched)
        if result is NO_MATCH:
            matched_request.reset(token)
        return result


@dataclass(slots=True, frozen=True)
class Group[T]:
    """Tries each handler in order, returning the first result that isn't NO_MATCH."""

    routes: tuple[Handler[T], ...]

    def __call__(self, request: Request) -> T | NoMatch:
        request = with_segments(request)
        for handler in self.routes:
            result = handler(request)
            if result is not NO_MATCH:
                return result
        return NO_MATCH


@dataclass(slots=True, frozen=True)
class Subrouter[T]:
    """Delegates requests under a mount prefix to a group of nested routes.

    Nested routes see only the segments left after the prefix, with the
    prefix parameters already merged into `path_params`.
    """

    prefix: str
    segments: tuple[Segment, ...]
    group: Group[T] = field(repr=False)

    def __call__(self, request: Request) -> T | NoMatch:
        request = with_segments(request)
        matched = match_prefix(self.segments, request)
        if matched is None:
            return NO_MATCH
        params, remaining = matched
        return self.group(
            replace(
                request,
                segments=remaining,
                path_params=params,
                route=_join_route(request.route, self.prefix),
            )
        )


def not_found(request: Request) -> Response:
    """Default router fallback: an empty 404 response."""
    logger.debug("no route matched %s %s", request.method, request.path)
    return NOT_FOUND


# --- constructors ---------------------------------------------------------------
def route[T](
    method: Method | str | None, pattern: str, handler: Handler[T]
) -> Route[T]:
    """Creates a route matching method and pattern to handler.

    `method` is a `Method`, a case-insensitive method name, or "*"/None for
    any method.

    `pattern` is a "/"-separated path; segments starting with ":" are path
    parameters, parsed into `request.path_params` when the route matches.
    A pattern ending in "/" (except the root "/") is a prefix: "/api/"
    matches "/api/some/other/path". A last segment ending in "..." only needs
    to be a string prefix of the request segment: "/images/image-..." matches
    "/images/image-logo.png" but not "/images/logo.png".

    The returned route calls handler when the request matches and returns
    NO_MATCH otherwise. Handlers may return NO_MATCH themselves to fall
    through to the next route of the enclosing group.
    """
    _check_callable(handler, "handler")
    compiled = compile_pattern(method, pattern)
    logger.debug("compiled route %r %s", compiled.method, pattern)
    return Route(pattern=compiled, handler=handler)


def group[T](*routes: Handler[T] | None | bool) -> Group[T]:
    """Creates a group that selects among routes, in order.

    None and False entries are skipped, which allows `debug and get("/debug", h)`.
    """
    handlers = tuple(r for r in routes if r is not None and r is not False)
    for handler in handlers:
        _check_callable(handler, "route")
    return Group(routes=handlers)


def subrouter[T](prefix: str, *routes: Handler[T] | None | bool) -> Subrouter[T]:
    """Creates a router at prefix and applies requests under it to routes.

    Path parameters in prefix are parsed into `request.path_params` before
    the nested routes run.
    """
    segments = compile_prefix(prefix)
    logger.debug("compiled subrouter %s", prefix)
    return Subrouter(prefix=prefix, segments=segments, group=group(*routes))


def router[T](
    *routes: Handler[T] | None | bool,
    not_found_handler: Handler[T | Response] = not_found,
) -> Group[T | Response]:
    """Creates a router that selects among routes, in order.

    Falls back to not_found_handler (an empty 404 response by default) when
    no route matches.
    """
    return group(*routes, not_found_handler)


def connect[T](pattern: str, handler: Handler[T]) -> Route[T]:
    """Creates a route for CONNECT on pattern. See `route` for pattern rules."""
    return route(Method.CONNECT, pattern, handler)


def delete[T](pattern: str, handler: Handler[T]) -> Route[T]:
    """Creates a route for DELETE on pattern. See `route` for pattern rules."""
    return route(Method.DELETE, pattern, handler)


def get[T](pattern: str, handler: Handler[T]) -> Route[T]:
    """Creates a route for GET on pattern. See `route` for pattern rules."""
    return route(Method.GET, pattern, handler)


def head[T](pattern: str, handler: Handler[T]) -> Route[T]:
    """Creates a route for HEAD on pattern. See `route` for pattern rules."""
    return route(Method.HEAD, pattern, handler)


def options[T](pattern: str, handler: Handler[T]) -> Route[T]:
    """Creates a route for OPTIONS on pattern. See `route` for pattern rules."""
    return route(Method.OPTIONS, pattern, handler)


def patch[T](pattern: str, handler: Handler[T]) -> Route[T]:
    """Creates a route for PATCH on pattern. See `route` for pattern rules."""
    return route(Method.PATCH, pattern, handler)


def post[T](pattern: str, handler: Handler[T]) -> Route[T]:
    """Creates a route for POST on pattern. See `route` for pattern rules."""
    return route(Method.POST, pattern, handler)


def put[T](pattern: str, handler: Handler[T]) -> Route[T]:
    """Creates a route for PUT on pattern. See `route` for pattern rules."""
    return route(Method.PUT, pattern, handler)


def trace[T](pattern: str, handler: Handler[T]) -> Route[T]:
    """Creates a route for TRACE on pattern. See `route` for pattern rules."""
    return route(Method.TRACE, pattern, handler)


def handle[T](pattern: str, handler: Handler[T]) -> Route[T]:
    """Creates a route for any method on pattern. See `route` for pattern rules."""
    return route(Method.ANY, pattern, handler)


# verb spellings
CONNECT = connect
DELETE = delete
GET = get
HEAD = head
OPTIONS = options
PATCH = patch
POST = post
PUT = put
TRACE = trace
ANY = handle


# --- formatting -----------------------------------------------------------------
type _RouteLine = tuple[str, str, str]


def format_routes(handler: Callable[[Request], object]) -> str:
    """Format the routes reachable from a composed handler, in match order.

        GET   /health                      health
        GET   /api/resource/:id            get_resource
        GET   /api/person/:id/name/:name   person_name
        *     /...                         not_found

    Plain callables inside groups (catch-alls, the router fallback) are
    listed with method "*" under the prefix they are mounted at.
    """
    lines = _collect_routes(handler, "")
    if not lines:
        return ""

    method_w = max(len(line[0]) for line in lines)
    path_w = max(len(line[1]) for line in lines)
    return "\n".join(
        f"{method:<{method_w}}   {path:<{path_w}}   {name}"
        for method, path, name in lines
    )


def _collect_routes(handler: Callable[[Request], object], prefix: str) -> list[_RouteLine]:
    match handler:
        case Route(pattern=pattern, handler=inner):
            return [
                (
                    pattern.method.value,
                    _join_route(prefix, pattern.text),
                    _qualname(inner),
                )
            ]
        case Group(routes=routes):
            return [line for r in routes for line in _collect_routes(r, prefix)]
        case Subrouter(prefix=mount, group=nested):
            return _collect_routes(nested, _join_route(prefix, mount))
        case _:
            return [("*", prefix.rstrip("/") + "/...", _qualname(handler))]


def _qualname(obj: object) -> str:
    """Extract __qualname__ from a callable, falling back to repr."""
    return str(obj.__qualname__) if hasattr(obj, "__qualname__") else repr(obj)
