# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "ringmux @ file:///${PROJECT_ROOT}/../ringmux",
#     "granian>=2.6.0,<3.0.0",
# ]
# ///
"""ASGI server demo.

Fully functional web server using Granian + ringmux.
"""

import asyncio
import json
import logging
import sqlite3
from json.decoder import JSONDecodeError

from granian.constants import Interfaces
from granian.server.embed import Server

from ringmux import (
    NO_MATCH,
    ASGIApp,
    FrozenDict,
    Handler,
    NoMatch,
    Request,
    Response,
    format_routes,
    get,
    patch,
    post,
    router,
    subrouter,
)

ADDRESS = "127.0.0.1"
PORT = 8000
JSON = FrozenDict({"Content-Type": "application/json"})
TEXT = FrozenDict({"Content-Type": "text/plain"})

_db = sqlite3.connect(":memory:")
_db.cursor().executescript("""
CREATE TABLE IF NOT EXISTS user (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL
);
""")


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG)

    app = router(
        get("/", home),
        subrouter(
            "/user",
            get("/", get_users(_db)),
            post("/", create_user(_db)),
            get("/:id", get_user(_db)),
            patch("/:id", update_user(_db)),
        ),
    )
    print(format_routes(app))

    server = Server(
        ASGIApp(app),
        address=ADDRESS,
        port=PORT,
        interface=Interfaces.ASGI,
        log_access=True,
    )
    try:
        await server.serve()
    except asyncio.CancelledError:
        pass


def home(_request: Request) -> Response:
    return Response(200, TEXT, "Welcome home")


def _user_id(request: Request) -> int | None:
    try:
        return int(request.path_params["id"])
    except ValueError:
        return None


def _name(request: Request) -> str | Response:
    try:
        return json.loads(request.body)["name"]
    except JSONDecodeError:
        return Response(422, TEXT, "Invalid json")
    except KeyError:
        return Response(422, TEXT, "Missing name")


# closure over handler to inject dependencies
def get_users(db: sqlite3.Connection) -> Handler[Response]:
    def handler(_request: Request) -> Response:
        cur = db.cursor()
        cur.execute("SELECT * FROM user")
        result = cur.fetchall()
        return Response(200, JSON, json.dumps([{"id": r[0], "name": r[1]} for r in result]))

    return handler


def get_user(db: sqlite3.Connection) -> Handler[Response]:
    def handler(request: Request) -> Response | NoMatch:
        user_id = _user_id(request)
        if user_id is None:
            return NO_MATCH  # not a user id: fall through to the 404
        cur = db.cursor()
        cur.execute("SELECT * FROM user WHERE id = ?", (user_id,))
        result = cur.fetchone()
        if result is None:
            return Response(404, TEXT, "Not found")
        return Response(200, JSON, json.dumps({"id": result[0], "name": result[1]}))

    return handler


def create_user(db: sqlite3.Connection) -> Handler[Response]:
    def handler(request: Request) -> Response:
        name = _name(request)
        if isinstance(name, Response):
            return name
        cur = db.cursor()
        cur.execute("INSERT INTO user (name) VALUES (?) RETURNING *", (name,))
        result = cur.fetchone()
        return Response(201, JSON, json.dumps({"id": result[0], "name": result[1]}))

    return handler


def update_user(db: sqlite3.Connection) -> Handler[Response]:
    def handler(request: Request) -> Response | NoMatch:
        user_id = _user_id(request)
        if user_id is None:
            return NO_MATCH
        name = _name(request)
        if isinstance(name, Response):
            return name
        cur = db.cursor()
        cur.execute("UPDATE user SET name = ? WHERE id = ? RETURNING *", (name, user_id))
        result = cur.fetchone()
        if result is None:
            return Response(404, TEXT, "Not found")
        return Response(200, JSON, json.dumps({"id": result[0], "name": result[1]}))

    return handler


if __name__ == "__main__":
    asyncio.run(main())
