"""Outbound adapters - implementations of outbound ports.

These adapters implement the storage engine the client drives.
"""

from lmdb_client.adapters.outbound.py_lmdb_engine import PyLmdbEngine

__all__ = [
    "PyLmdbEngine",
]
