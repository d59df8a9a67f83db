"""Outbound ports - interfaces for external dependencies.

Outbound ports define contracts for external systems that the client
depends on, here the embedded storage engine.
"""

from lmdb_client.ports.outbound.storage_engine import (
    CursorHandle,
    DbiHandle,
    EnvHandle,
    StorageEngine,
    TxnHandle,
)

__all__ = [
    "StorageEngine",
    "EnvHandle",
    "TxnHandle",
    "DbiHandle",
    "CursorHandle",
]
