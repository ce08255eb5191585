"""OpenTelemetry tracing and metrics middleware.

Creates HTTP server spans and metrics with semantic conventions for each
handler call.

Install with: uv add "ringmux[otel]"
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ringmux.types import Handler, Middleware, NoMatch, Request

try:
    from opentelemetry import metrics, trace
    from opentelemetry.propagate import extract
    from opentelemetry.trace import (
        SpanKind,
        StatusCode,
        TracerProvider,
    )
except ImportError as e:
    msg = (
        "OpenTelemetry middleware requires the 'otel' extra. "
        "Install with: uv add 'ringmux[otel]'"
    )
    raise ImportError(msg) from e

from ringmux.router import matched_request
from ringmux.types import NO_MATCH, Response

_DURATION_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.075,
    0.1,
    0.25,
    0.5,
    0.75,
    1.0,
    2.5,
    5.0,
    7.5,
    10.0,
)


def otel(
    *,
    tracer_provider: TracerProvider | None = None,
    meter_provider: metrics.MeterProvider | None = None,
) -> Middleware[Response]:
    """Create OpenTelemetry tracing and metrics middleware.

    Creates a server span and metrics with HTTP semantic conventions for each
    call of the wrapped handler. Wrap a route's handler or a whole router;
    either way the span carries `http.route` and path params of the route
    that matched. A router-level wrapper also traces 404s, named "METHOD 404".

    Extracts trace context from incoming request headers (e.g. ``traceparent``)
    for distributed tracing. Only depends on ``opentelemetry-api``; users bring
    their own SDK and exporters.

    Metrics emitted:
        - ``http.server.request.duration`` (histogram, seconds)
        - ``http.server.active_requests`` (up-down counter)

    Handlers that fall through (return NO_MATCH) still get a span, tagged
    with ``ringmux.no_match``.

    Args:
        tracer_provider: Optional TracerProvider. If None, uses the global provider.
        meter_provider: Optional MeterProvider. If None, uses the global provider.

    Returns:
        Middleware function that wraps handlers with tracing and metrics.

    Example:
        traced = otel()
        app = router(
            get("/user/:id", traced(get_user)),
        )
    """
    tracer = trace.get_tracer(
        "ringmux",
        tracer_provider=tracer_provider,
    )
    meter = metrics.get_meter(
        "ringmux",
        meter_provider=meter_provider,
    )
    duration_histogram = meter.create_histogram(
        "http.server.request.duration",
        unit="s",
        description="Duration of HTTP server requests.",
        explicit_bucket_boundaries_advisory=_DURATION_BUCKETS,
    )
    active_requests_counter = meter.create_up_down_counter(
        "http.server.active_requests",
        unit="{request}",
        description="Number of active HTTP server requests.",
    )

    def middleware(handler: Handler[Response]) -> Handler[Response]:
        def traced_handler(request: Request) -> Response | NoMatch:
            # Extract propagated context from request headers
            ctx = extract(request.headers)

            # Set by route() when the wrapped handler sits under a matched route
            route = request.route

            # Build span name: "METHOD /route" for matched, placeholder for unmatched
            method = request.method.upper()
            span_name = f"{method} {route}" if route else method

            # Span attributes (stable HTTP semantic conventions)
            attributes: dict[str, str | int | bool] = {
                "http.request.method": method,
                "url.path": request.path,
            }
            if route:
                attributes["http.route"] = route
            if request.query_string:
                attributes["url.query"] = request.query_string
            user_agent = request.headers.get("user-agent")
            if user_agent is not None:
                attributes["user_agent.original"] = user_agent
            # below isn't part of semantic conventions but having path params is useful
            for key, value in request.path_params.items():
                attributes[f"http.route.param.{key}"] = value

            # Metric attributes (required + conditionally required by semantic conventions)
            active_attrs: dict[str, str | int] = {"http.request.method": method}
            if route:
                active_attrs["http.route"] = route

            active_requests_counter.add(1, active_attrs)
            start = time.perf_counter()
            token = matched_request.set(None)

            with tracer.start_as_current_span(
                span_name,
                context=ctx,
                kind=SpanKind.SERVER,
                attributes=attributes,
                record_exception=True,
                set_status_on_exception=True,
            ) as span:
                result: Response | NoMatch | None = None
                try:
                    result = handler(request)
                finally:
                    duration = time.perf_counter() - start
                    active_requests_counter.add(-1, active_attrs)
                    duration_attrs = dict(active_attrs)

                    # A route matched inside the wrapped handler (wrapping a router)
                    matched = matched_request.get()
                    matched_request.reset(token)
                    if matched is not None and matched.route != route:
                        route = matched.route
                        span.update_name(f"{method} {route}")
                        span.set_attribute("http.route", route)
                        for key, value in matched.path_params.items():
                            span.set_attribute(f"http.route.param.{key}", value)
                        duration_attrs["http.route"] = route

                    if isinstance(result, Response):
                        span.set_attribute("http.response.status_code", result.status)
                        duration_attrs["http.response.status_code"] = result.status
                        if not route:
                            span.update_name(f"{method} {result.status}")
                        if result.status >= 500:
                            span.set_status(StatusCode.ERROR)
                    elif result is NO_MATCH:
                        span.set_attribute("ringmux.no_match", True)
                    duration_histogram.record(duration, duration_attrs)
            return result

        return traced_handler

    return middleware
