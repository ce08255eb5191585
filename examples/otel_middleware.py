# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "ringmux[otel]",
#     "opentelemetry-sdk>=1.39.1,<2.0.0",
# ]
#
# [tool.uv.sources]
# ringmux = { path = "../", editable = true }
# ///
"""OpenTelemetry tracing middleware demo.

Shows usage of otel middleware with an in-memory exporter so traces can be
printed to the console without needing an external collector.
"""

import logging
import sys

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from ringmux import Request, Response, get, router, subrouter
from ringmux.middleware.otel import otel


# --- handlers ---
def hello(request: Request) -> Response:
    return Response(200, {"content-type": "text/plain"}, "hello world")


def greet(request: Request) -> Response:
    name = request.path_params["name"]
    return Response(200, {"content-type": "text/plain"}, f"hello {name}")


# --- app setup ---
exporter = InMemorySpanExporter()
provider = TracerProvider()
provider.add_span_processor(SimpleSpanProcessor(exporter))

traced = otel(tracer_provider=provider)

# NOTE: wrapping route handlers records http.route; wrapping the router as a
# whole is what traces 404s.
app = router(
    get("/", traced(hello)),
    subrouter("/greet", get("/:name", traced(greet))),
)
traced_404s = traced(router())


def main() -> None:
    logging.basicConfig(level=logging.INFO)

    for path in ("/", "/greet/world", "/greet/ringmux"):
        print(f"--- GET {path} ---", file=sys.stderr)
        app(Request("GET", path))

    print("--- GET /nonexistent ---", file=sys.stderr)
    traced_404s(Request("GET", "/nonexistent"))

    print("--- Collected spans ---", file=sys.stderr)
    for span in exporter.get_finished_spans():
        attrs = span.attributes or {}
        print(
            f"  {span.name:<30} "
            f"status={attrs['http.response.status_code']:<4} "
            f"route={attrs.get('http.route', ''):<20} "  # not set on 404
            f"path={attrs['url.path']}",
            file=sys.stderr,
        )
    provider.shutdown()


if __name__ == "__main__":
    main()
