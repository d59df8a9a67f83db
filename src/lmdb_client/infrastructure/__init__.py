"""Infrastructure layer - cross-cutting concerns."""

from lmdb_client.infrastructure.config import (
    Config,
    EnvironmentOptions,
    ObservabilityConfig,
    get_config,
)
from lmdb_client.infrastructure.container import Container, get_container, reset_container
from lmdb_client.infrastructure.logging import get_logger, setup_logging
from lmdb_client.infrastructure.metrics import MetricsRegistry, get_metrics, setup_metrics
from lmdb_client.infrastructure.tracing import get_tracer, setup_tracing, trace_span

__all__ = [
    "Config",
    "EnvironmentOptions",
    "ObservabilityConfig",
    "get_config",
    "Container",
    "get_container",
    "reset_container",
    "setup_logging",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
    "trace_span",
]
