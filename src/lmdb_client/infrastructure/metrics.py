"""Prometheus metrics for the LMDB client."""

from __future__ import annotations

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    start_http_server,
    REGISTRY,
    CollectorRegistry,
)


class MetricsRegistry:
    """Registry of all client metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        # Environment metrics
        self.environments_opened_total = Counter(
            "lmdb_environments_opened_total",
            "Total number of environments opened",
            registry=self._registry,
        )

        self.environments_closed_total = Counter(
            "lmdb_environments_closed_total",
            "Total number of environment handles released",
            ["reason"],  # explicit, finalized
            registry=self._registry,
        )

        # Transaction metrics
        self.transactions_begun_total = Counter(
            "lmdb_transactions_begun_total",
            "Total number of transactions begun",
            ["kind"],  # root, nested
            registry=self._registry,
        )

        self.transactions_total = Counter(
            "lmdb_transactions_total",
            "Total number of terminated transactions",
            ["status"],  # commit, abort, implicit_abort
            registry=self._registry,
        )

        self.commit_latency_seconds = Histogram(
            "lmdb_commit_latency_seconds",
            "Transaction commit latency in seconds",
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5, 1.0),
            registry=self._registry,
        )

        # Table and cursor metrics
        self.databases_opened_total = Counter(
            "lmdb_databases_opened_total",
            "Total number of table handles opened",
            registry=self._registry,
        )

        self.cursors_opened_total = Counter(
            "lmdb_cursors_opened_total",
            "Total number of cursors opened",
            registry=self._registry,
        )

        # Error metrics
        self.engine_errors_total = Counter(
            "lmdb_engine_errors_total",
            "Total engine failures surfaced to callers",
            ["error"],  # error class name
            registry=self._registry,
        )

        # Client info
        self.info = Info(
            "lmdb_client",
            "LMDB client information",
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry


# Global metrics registry
_metrics: MetricsRegistry | None = None


def setup_metrics(
    port: int | None = None, registry: CollectorRegistry | None = None
) -> MetricsRegistry:
    """
    Set up the client metrics.

    Args:
        port: Port for the metrics HTTP server; no server is started if None
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    target = registry or REGISTRY
    if _metrics is None or _metrics.registry is not target:
        _metrics = MetricsRegistry(target)

    from lmdb_client import __version__
    _metrics.info.info({
        "version": __version__,
    })

    if port is not None:
        start_http_server(port, registry=registry or REGISTRY)

    return _metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
