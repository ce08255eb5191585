"""Request, response and handler types shared by the matcher and combinators."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Final, Never


class Method(Enum):
    """HTTP methods a route can be bound to.

    Methods from the following RFCs are all observed:

        * RFC 9110: HTTP Semantics, obsoletes 7231, which obsoleted 2616
        * RFC 5789: PATCH Method for HTTP

    ANY matches every request method, including ones outside this set.
    """

    CONNECT = "CONNECT"  # Establish a connection to the server.
    DELETE = "DELETE"  # Remove the target.
    GET = "GET"  # Retrieve the target.
    HEAD = "HEAD"  # Same as GET, but only retrieve status line and header section.
    OPTIONS = "OPTIONS"  # Describe the communication options for the target.
    PATCH = "PATCH"  # Apply partial modifications to a target.
    POST = "POST"  # Perform target-specific processing with the request payload.
    PUT = "PUT"  # Replace the target with the request payload.
    TRACE = "TRACE"  # Perform a message loop-back test along the path to the target.

    ANY = "*"  # Any method.

    def __repr__(self) -> str:
        return str(self.value)

    @classmethod
    def parse(cls, token: "Method | str | None") -> "Method":
        """Normalize a method token; None and "*" both mean any method."""
        if isinstance(token, Method):
            return token
        if token is None:
            return cls.ANY
        if not isinstance(token, str):
            msg = f"unsupported HTTP method {token!r}"
            raise ValueError(msg)
        try:
            return cls(token.upper())
        except ValueError as e:
            msg = f"unsupported HTTP method {token!r}"
            raise ValueError(msg) from e


class NoMatch(Enum):
    """Result of a handler that did not match the request.

    Kept distinct from any response value so that None, "" or 0 remain valid
    responses.
    """

    NO_MATCH = "NO_MATCH"

    def __repr__(self) -> str:
        return self.value


NO_MATCH: Final = NoMatch.NO_MATCH


class FrozenDict[K, V](dict[K, V]):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._hash: int | None = None

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(frozenset(self.items()))
        return self._hash

    def _immutable(self, *args, **kwargs) -> Never:
        msg = "FrozenDict is immutable"
        raise TypeError(msg)

    __setitem__ = __delitem__ = clear = pop = popitem = setdefault = update = _immutable
    __ior__ = _immutable


@dataclass(slots=True, frozen=True)
class Request:
    """An inbound request as seen by the router.

    `path_params`, `segments` and `route` are written by the combinators:
    `segments` caches the split path (trimmed by each enclosing subrouter) and
    `route` is the pattern text matched so far, e.g. "/api/person/:id".
    """

    method: str
    path: str
    query_string: str = ""
    headers: FrozenDict[str, str] = field(default_factory=FrozenDict)
    body: bytes = b""
    path_params: FrozenDict[str, str] = field(default_factory=FrozenDict)
    segments: tuple[str, ...] | None = None
    route: str = ""


@dataclass(slots=True, frozen=True)
class Response:
    """An outbound response. Header names and values must be latin-1 encodable."""

    status: int
    headers: FrozenDict[str, str] = field(default_factory=FrozenDict)
    body: str | bytes = ""

    def __post_init__(self) -> None:
        for name, value in self.headers.items():
            try:
                name.encode("latin-1")
                value.encode("latin-1")
            except UnicodeEncodeError as e:
                msg = f"header {name!r} is not latin-1 encodable: {value!r}"
                raise ValueError(msg) from e


NOT_FOUND: Final = Response(status=404, headers=FrozenDict(), body="")

type Handler[T] = Callable[[Request], T | NoMatch]
type Middleware[T] = Callable[[Handler[T]], Handler[T]]
