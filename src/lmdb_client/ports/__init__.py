"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts. The client
has a single outbound port, the storage engine it drives; the public
entities in :mod:`lmdb_client.domain.entities` are its inbound API.

Adapters implement these ports with concrete functionality.
"""

from lmdb_client.ports.outbound import StorageEngine

__all__ = [
    # Outbound ports
    "StorageEngine",
]
