"""Adapters layer - concrete implementations of port interfaces.

Adapters provide the actual implementations:
- Outbound adapters: Implement external dependencies (the storage engine)
"""

from lmdb_client.adapters.outbound import PyLmdbEngine

__all__ = [
    # Outbound adapters
    "PyLmdbEngine",
]
