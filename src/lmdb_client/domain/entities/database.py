"""Database entity: a table handle opened within a transaction.

A table handle is tied to the transaction that opened it: it can only be
used while that transaction is active. Each data operation also names the
transaction it runs in, which may be a different (but active) transaction
of the same environment.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING

from lmdb_client.domain.entities.cursor import Cursor, as_bytes
from lmdb_client.domain.entities.ownership import CursorRef, DatabaseRef
from lmdb_client.domain.value_objects import Stat
from lmdb_client.infrastructure.logging import get_logger
from lmdb_client.infrastructure.metrics import get_metrics
from lmdb_client.ports.outbound.storage_engine import TxnHandle

if TYPE_CHECKING:
    from lmdb_client.domain.entities.transaction import Transaction

logger = get_logger(__name__)


class Database:
    """A table of an :class:`Environment`."""

    def __init__(self, ref: DatabaseRef, transaction: Transaction) -> None:
        self._ref = ref
        self._transaction = transaction
        self._finalizer = weakref.finalize(self, ref.release)

    @property
    def transaction(self) -> Transaction:
        """The transaction that opened this table."""
        self._ref.check()
        return self._transaction

    @property
    def is_open(self) -> bool:
        return self._ref.open and self._ref.transaction.is_active()

    @property
    def name(self) -> str | None:
        return self._ref.name

    @property
    def flags(self) -> int:
        return self._ref.flags

    def _bind(self, txn: Transaction) -> TxnHandle:
        """Check this table and ``txn``, returning the engine handle to run in."""
        self._ref.check()
        ref = txn._ref
        if ref.environment is not self._ref.environment:
            raise ValueError("Transaction belongs to a different environment")
        return ref.check()

    def close(self) -> None:
        self._ref.check()
        self._ref.close()
        logger.debug("database.closed", name=self._ref.name)

    def stat(self, txn: Transaction) -> Stat:
        handle = self._bind(txn)
        return self._ref.transaction.engine.dbi_stat(handle, self._ref.dbi)

    def drop(self, txn: Transaction) -> None:
        """Delete the table from the environment; the handle is closed."""
        handle = self._bind(txn)
        self._ref.transaction.engine.dbi_drop(handle, self._ref.dbi, True)
        self._ref.open = False
        logger.debug("database.dropped", name=self._ref.name)

    def clear(self, txn: Transaction) -> None:
        """Remove every entry; the table and handle stay."""
        handle = self._bind(txn)
        self._ref.transaction.engine.dbi_drop(handle, self._ref.dbi, False)
        logger.debug("database.cleared", name=self._ref.name)

    def get(self, txn: Transaction, key: bytes) -> bytes:
        """
        Return the value stored under ``key``.

        Raises:
            NotFoundError: If the key is absent
        """
        handle = self._bind(txn)
        key = as_bytes(key, "key")
        return self._ref.transaction.engine.get(handle, self._ref.dbi, key)

    def put(self, txn: Transaction, key: bytes, value: bytes, flags: int = 0) -> None:
        """
        Store ``value`` under ``key``.

        Args:
            txn: Writable transaction to run in
            key: Key bytes
            value: Value bytes
            flags: Write flags (``WriteFlags``)

        Raises:
            KeyExistsError: If ``NOOVERWRITE`` or ``NODUPDATA`` forbid the write
        """
        handle = self._bind(txn)
        key = as_bytes(key, "key")
        value = as_bytes(value, "value")
        self._ref.transaction.engine.put(handle, self._ref.dbi, key, value, int(flags))

    def delete(self, txn: Transaction, key: bytes, value: bytes | None = None) -> None:
        """
        Delete ``key``, or only the ``key``/``value`` pair when ``value`` is
        given (meaningful for ``DUPSORT`` tables).

        Raises:
            NotFoundError: If nothing matched
        """
        handle = self._bind(txn)
        key = as_bytes(key, "key")
        if value is not None:
            value = as_bytes(value, "value")
        self._ref.transaction.engine.delete(handle, self._ref.dbi, key, value)

    def open_cursor(self, txn: Transaction) -> Cursor:
        """Open a cursor over this table, running in ``txn``."""
        handle = self._bind(txn)
        cursor = self._ref.transaction.engine.cursor_open(handle, self._ref.dbi)
        get_metrics().cursors_opened_total.inc()
        return Cursor(CursorRef(txn._ref, cursor), txn)

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<Database name={self._ref.name!r} {state}>"
