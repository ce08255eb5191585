"""ASGI adapter for composed handlers.

Bridges an ASGI server (granian, uvicorn, ...) to a synchronous handler:

    app = ASGIApp(router(get("/", home)))
"""

import logging
from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any

from .types import NO_MATCH, NOT_FOUND, FrozenDict, Handler, Request, Response

logger = logging.getLogger(__name__)

type Message = MutableMapping[str, Any]
type Scope = MutableMapping[str, Any]
type Receive = Callable[[], Awaitable[Message]]
type Send = Callable[[Message], Awaitable[None]]


class ASGIApp:
    __slots__ = ("_handler",)
    _handler: Handler[Response]

    def __init__(self, handler: Handler[Response]) -> None:
        if not callable(handler):
            msg = f"handler must be callable, provided {handler!r}"
            raise TypeError(msg)
        self._handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            msg = f"unsupported ASGI scope type {scope['type']!r}"
            raise ValueError(msg)

        request = await _read_request(scope, receive)
        if request is None:
            logger.debug("client disconnected before the request body was read")
            return
        response = self._handler(request)
        if response is NO_MATCH:
            response = NOT_FOUND
        if not isinstance(response, Response):
            msg = f"handler must return a Response, returned {response!r}"
            raise TypeError(msg)
        await _send_response(send, response)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Handle ASGI lifespan events."""
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                logger.info("startup complete")
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                logger.info("shutdown complete")
                await send({"type": "lifespan.shutdown.complete"})
                return


def _decode_headers(raw: list[tuple[bytes, bytes]]) -> FrozenDict[str, str]:
    headers: dict[str, str] = {}
    for raw_name, raw_value in raw:
        name = raw_name.decode("latin-1").lower()
        value = raw_value.decode("latin-1")
        headers[name] = f"{headers[name]}, {value}" if name in headers else value
    return FrozenDict(headers)


async def _read_request(scope: Scope, receive: Receive) -> Request | None:
    """Read the full request body; None if the client disconnects first."""
    chunks: list[bytes] = []
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] == "http.disconnect":
            return None
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)

    # path is already percent-decoded by the server
    return Request(
        method=scope["method"],
        path=scope.get("path", ""),
        query_string=scope.get("query_string", b"").decode("latin-1"),
        headers=_decode_headers(scope.get("headers", [])),
        body=b"".join(chunks),
    )


async def _send_response(send: Send, response: Response) -> None:
    body = (
        response.body.encode("utf-8")
        if isinstance(response.body, str)
        else response.body
    )
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": [
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in response.headers.items()
            ],
        }
    )
    await send({"type": "http.response.body", "body": body})
