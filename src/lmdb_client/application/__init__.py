"""Application layer for the LMDB client.

Exports:
    - open_environment: Open an environment with configured defaults
    - resolve_options: Merge open options with overrides
    - configure: Wire logging, metrics and tracing
"""

from lmdb_client.application.environment_factory import (
    configure,
    open_environment,
    resolve_options,
)

__all__ = [
    "open_environment",
    "resolve_options",
    "configure",
]
