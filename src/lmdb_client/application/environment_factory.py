"""Composition root for opening environments.

Resolves the storage engine from the DI container and the default open
options from configuration, so callers only name a path:

    import lmdb_client

    lmdb_client.configure()          # optional: logging, metrics, tracing
    with lmdb_client.open("/var/lib/app/data", mapsize=1 << 30) as env:
        ...
"""

from __future__ import annotations

import os
from typing import Any

from lmdb_client.domain.entities import Environment
from lmdb_client.infrastructure.config import Config, EnvironmentOptions, get_config
from lmdb_client.infrastructure.container import get_container
from lmdb_client.infrastructure.logging import get_logger, setup_logging_from_config
from lmdb_client.infrastructure.metrics import setup_metrics
from lmdb_client.infrastructure.tracing import setup_tracing
from lmdb_client.ports.outbound.storage_engine import StorageEngine

logger = get_logger(__name__)


def resolve_options(
    options: EnvironmentOptions | None = None, **overrides: Any
) -> EnvironmentOptions:
    """
    Merge open options.

    Args:
        options: Base options; the configured defaults when omitted
        **overrides: Individual option values taking precedence

    Returns:
        Validated options
    """
    base = options if options is not None else get_config().environment
    if not overrides:
        return base
    return EnvironmentOptions.model_validate({**base.model_dump(), **overrides})


def open_environment(
    path: str | os.PathLike[str],
    options: EnvironmentOptions | None = None,
    *,
    engine: StorageEngine | None = None,
    **overrides: Any,
) -> Environment:
    """
    Open an environment.

    Args:
        path: Environment directory (or file prefix with ``NOSUBDIR``)
        options: Open options; configured defaults when omitted
        engine: Storage engine; resolved from the container when omitted
        **overrides: ``flags``, ``mode``, ``maxreaders``, ``maxdbs`` or
            ``mapsize`` taking precedence over ``options``

    Returns:
        The opened environment, usable as a context manager
    """
    resolved = resolve_options(options, **overrides)
    if engine is None:
        engine = get_container().resolve(StorageEngine)
    return Environment.open(engine, path, resolved)


def configure(config: Config | None = None) -> Config:
    """
    Wire logging, metrics and tracing from configuration.

    Args:
        config: Configuration; read from the environment when omitted

    Returns:
        The configuration applied
    """
    config = config or get_config()
    observability = config.observability

    setup_logging_from_config(observability)
    setup_metrics(observability.metrics_port)
    if observability.otel_endpoint:
        setup_tracing(observability.otel_service_name, observability.otel_endpoint)

    logger.info(
        "client.configured",
        log_level=observability.log_level,
        metrics_port=observability.metrics_port,
        tracing=bool(observability.otel_endpoint),
    )
    return config
