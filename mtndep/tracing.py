"""OpenTelemetry tracing for the DEP client.

The client only creates spans. Exporting them is opt-in: call
:func:`init_tracing` once at application start-up, or configure a global
tracer provider elsewhere.
"""

import os
from functools import wraps
from typing import Any, Callable, TypeVar, ParamSpec
from urllib.parse import urlsplit

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.trace import Status, StatusCode

from .version import __version__

# Type variables for decorator
P = ParamSpec("P")
T = TypeVar("T")

TRACER_NAME = "mtndep"

_tracer: trace.Tracer | None = None
_initialized = False


def init_tracing(
    service_name: str = "mtn-dep-client",
    otlp_endpoint: str | None = None,
    enable_console_export: bool = False,
) -> trace.Tracer:
    """Initialize OpenTelemetry tracing.

    Args:
        service_name: Name of the service for tracing
        otlp_endpoint: OTLP collector endpoint (e.g., "http://localhost:4317")
                      If None, uses OTEL_EXPORTER_OTLP_ENDPOINT env var
        enable_console_export: If True, also export spans to console (for debugging)

    Returns:
        Configured tracer instance
    """
    global _tracer, _initialized

    if _initialized and _tracer is not None:
        return _tracer

    resource = Resource.create({
        SERVICE_NAME: service_name,
        "service.version": __version__,
        "deployment.environment": os.getenv("ENVIRONMENT", "development"),
    })
    provider = TracerProvider(resource=resource)

    endpoint = otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        otlp_exporter = OTLPSpanExporter(endpoint=endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    if enable_console_export or os.getenv("OTEL_CONSOLE_EXPORT", "").lower() == "true":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(TRACER_NAME, __version__)
    _initialized = True
    return _tracer


def get_tracer() -> trace.Tracer:
    """Get the configured tracer, or one bound to the global provider.

    Returns:
        Tracer instance
    """
    if _tracer is None:
        return trace.get_tracer(TRACER_NAME, __version__)
    return _tracer


def set_request_attributes(
    span: trace.Span,
    method: str,
    url: str,
    status_code: int | None = None,
) -> None:
    """Tag a span with a DEP request's method and path, and the response status if known.

    The query string is left out; it can carry subscriber MSISDNs.
    """
    parts = urlsplit(url)
    span.set_attribute("http.request.method", method)
    span.set_attribute("url.path", parts.path)
    span.set_attribute("server.address", parts.hostname or "")
    if status_code is not None:
        span.set_attribute("http.response.status_code", status_code)


def traced(
    name: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator to run a function inside a span.

    Args:
        name: Span name (defaults to function name)
        attributes: Additional span attributes

    Returns:
        Decorated function with tracing
    """
    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        span_name = name or func.__name__

        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            with get_tracer().start_as_current_span(span_name) as span:
                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)
                try:
                    result = func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise

        return wrapper

    return decorator
