from importlib.metadata import version

from .asgi import ASGIApp
from .router import (
    ANY,
    CONNECT,
    DELETE,
    GET,
    HEAD,
    OPTIONS,
    PATCH,
    POST,
    PUT,
    TRACE,
    Group,
    Route,
    Subrouter,
    connect,
    delete,
    format_routes,
    get,
    group,
    handle,
    head,
    matched_request,
    not_found,
    options,
    patch,
    post,
    put,
    route,
    router,
    subrouter,
    trace,
)
from .types import (
    NO_MATCH,
    NOT_FOUND,
    FrozenDict,
    Handler,
    Method,
    Middleware,
    NoMatch,
    Request,
    Response,
)

__all__ = [
    "ANY",
    "CONNECT",
    "DELETE",
    "GET",
    "HEAD",
    "NOT_FOUND",
    "NO_MATCH",
    "OPTIONS",
    "PATCH",
    "POST",
    "PUT",
    "TRACE",
    "ASGIApp",
    "FrozenDict",
    "Group",
    "Handler",
    "Method",
    "Middleware",
    "NoMatch",
    "Request",
    "Response",
    "Route",
    "Subrouter",
    "__version__",
    "connect",
    "delete",
    "format_routes",
    "get",
    "group",
    "handle",
    "head",
    "matched_request",
    "not_found",
    "options",
    "patch",
    "post",
    "put",
    "route",
    "router",
    "subrouter",
    "trace",
]

__version__ = version("ringmux")
