"""Cursor entity: ordered traversal of a table within a transaction."""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any, Iterator

from lmdb_client.domain.entities.ownership import CursorRef
from lmdb_client.domain.errors import NotFoundError
from lmdb_client.domain.value_objects import CursorOp

if TYPE_CHECKING:
    from lmdb_client.domain.entities.transaction import Transaction


def as_bytes(value: Any, what: str) -> bytes:
    """Return ``value`` as bytes, accepting any bytes-like object."""
    if isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"{what} must be bytes-like, not {type(value).__name__}")


class Cursor:
    """A cursor over a table.

    Positioning methods return the ``(key, value)`` pair the cursor lands
    on and raise :class:`~lmdb_client.domain.errors.NotFoundError` when
    there is none. Iterating a cursor walks from the first pair to the
    last.
    """

    def __init__(self, ref: CursorRef, transaction: Transaction) -> None:
        self._ref = ref
        self._transaction = transaction
        self._finalizer = weakref.finalize(self, ref.release)

    @property
    def transaction(self) -> Transaction:
        self._ref.check()
        return self._transaction

    def _get(self, op: CursorOp, key: bytes | None = None) -> tuple[bytes, bytes]:
        cursor = self._ref.check()
        return self._ref.transaction.engine.cursor_get(cursor, op, key)

    def close(self) -> None:
        self._ref.check()
        self._ref.close()

    def first(self) -> tuple[bytes, bytes]:
        return self._get(CursorOp.FIRST)

    def last(self) -> tuple[bytes, bytes]:
        return self._get(CursorOp.LAST)

    def next(self) -> tuple[bytes, bytes]:
        return self._get(CursorOp.NEXT)

    def prev(self) -> tuple[bytes, bytes]:
        return self._get(CursorOp.PREV)

    def get(self) -> tuple[bytes, bytes]:
        """Return the pair at the current position."""
        return self._get(CursorOp.GET_CURRENT)

    def set(self, key: bytes) -> tuple[bytes, bytes]:
        """Position exactly at ``key``."""
        return self._get(CursorOp.SET, as_bytes(key, "key"))

    def set_range(self, key: bytes) -> tuple[bytes, bytes]:
        """Position at the first key greater than or equal to ``key``."""
        return self._get(CursorOp.SET_RANGE, as_bytes(key, "key"))

    def put(self, key: bytes, value: bytes, flags: int = 0) -> None:
        """Store a pair through the cursor, leaving it positioned there."""
        cursor = self._ref.check()
        self._ref.transaction.engine.cursor_put(
            cursor, as_bytes(key, "key"), as_bytes(value, "value"), int(flags)
        )

    def delete(self, flags: int = 0) -> None:
        """Delete the pair at the current position.

        With ``NODUPDATA`` on a ``DUPSORT`` table, every value of the
        current key is deleted.
        """
        cursor = self._ref.check()
        self._ref.transaction.engine.cursor_del(cursor, int(flags))

    def count(self) -> int:
        """Number of values stored under the current key."""
        cursor = self._ref.check()
        return self._ref.transaction.engine.cursor_count(cursor)

    def __iter__(self) -> Iterator[tuple[bytes, bytes]]:
        try:
            item = self.first()
        except NotFoundError:
            return
        while True:
            yield item
            try:
                item = self.next()
            except NotFoundError:
                return

    def __enter__(self) -> Cursor:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        # Once the transaction is gone the engine has reclaimed the cursor.
        self._ref.close()
