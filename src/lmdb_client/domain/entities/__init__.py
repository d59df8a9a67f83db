"""Domain entities for the LMDB client.

Entities wrap engine handles and own their lifetimes. Each one holds a
reference-counted record from :mod:`ownership`; the records form the
validity chain that decides whether a handle may still be used.

Exports:
    Resources:
        - Environment: An opened engine environment
        - Transaction: Top-level or nested transaction
        - Database: Table handle bound to its opening transaction
        - Cursor: Ordered traversal of a table

    Ownership records:
        - EnvironmentRef, TransactionRef, DatabaseRef, CursorRef
"""

from lmdb_client.domain.entities.cursor import Cursor
from lmdb_client.domain.entities.database import Database
from lmdb_client.domain.entities.environment import Environment
from lmdb_client.domain.entities.ownership import (
    CursorRef,
    DatabaseRef,
    EnvironmentRef,
    TransactionRef,
)
from lmdb_client.domain.entities.transaction import Transaction

__all__ = [
    # Resources
    "Environment",
    "Transaction",
    "Database",
    "Cursor",
    # Ownership records
    "EnvironmentRef",
    "TransactionRef",
    "DatabaseRef",
    "CursorRef",
]
