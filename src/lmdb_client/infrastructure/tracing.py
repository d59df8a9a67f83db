"""OpenTelemetry tracing for engine calls.

Spans are opened around the calls that touch the disk (environment open,
commit, copy, sync). Without :func:`setup_tracing` they go to whatever
tracer provider is globally installed, which is a no-op by default.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

INSTRUMENTATION_NAME = "lmdb_client"

_tracer: trace.Tracer | None = None


def _build_provider(service_name: str) -> TracerProvider:
    from lmdb_client import __version__

    resource = Resource.create({"service.name": service_name, "service.version": __version__})
    return TracerProvider(resource=resource)


def setup_tracing(
    service_name: str = INSTRUMENTATION_NAME,
    otlp_endpoint: str | None = None,
    console_export: bool = False,
) -> trace.Tracer:
    """
    Install a tracer provider exporting engine spans.

    Args:
        service_name: ``service.name`` resource attribute
        otlp_endpoint: OTLP gRPC collector, e.g. ``http://localhost:4317``
        console_export: Also print finished spans to stdout

    Returns:
        The tracer used for engine spans
    """
    global _tracer

    provider = _build_provider(service_name)
    exporters = []
    if otlp_endpoint:
        exporters.append(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    if console_export:
        exporters.append(ConsoleSpanExporter())
    for exporter in exporters:
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    _tracer = provider.get_tracer(INSTRUMENTATION_NAME)
    return _tracer


def get_tracer() -> trace.Tracer:
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(INSTRUMENTATION_NAME)
    return _tracer


@contextmanager
def trace_span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[trace.Span, None, None]:
    """
    Run the block inside a span named ``name``.

    Attributes whose value is ``None`` are left off the span. An exception
    leaving the block is recorded on the span and propagates unchanged.
    """
    with get_tracer().start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        yield span
