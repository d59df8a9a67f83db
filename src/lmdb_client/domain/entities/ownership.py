"""Reference-counted ownership records behind the public resources.

Every public resource (:class:`Environment`, :class:`Transaction`,
:class:`Database`, :class:`Cursor`) owns exactly one record from this
module. The Python object counts as one reference to its record and gives
it back from a ``weakref.finalize`` callback, so cleanup never depends on
the order in which the garbage collector finalizes a group of objects.

Ownership graph::

    EnvironmentRef  <-- TransactionRef (root) <-- TransactionRef (child) ...
                              ^                         ^
                        DatabaseRef, CursorRef     DatabaseRef, CursorRef

Arrows are strong, counted references. Databases and cursors never point at
the environment directly; they reach it through their transaction.

Rules:
    - A transaction is active iff its own engine handle is set, every
      ancestor's handle is set, and the environment is open. This is
      recomputed by walking the chain on every check; terminating a parent
      never touches the children's fields.
    - Releasing a record runs its own cleanup first (abort, close) and only
      then gives back the references it owns, so the engine always sees
      children shut down before their parents.
"""

from __future__ import annotations

import threading

from lmdb_client.domain.errors import ClosedResourceError, TerminatedTransactionError
from lmdb_client.infrastructure.logging import get_logger
from lmdb_client.infrastructure.metrics import get_metrics
from lmdb_client.ports.outbound.storage_engine import (
    CursorHandle,
    DbiHandle,
    EnvHandle,
    StorageEngine,
    TxnHandle,
)

logger = get_logger(__name__)


class EnvironmentRef:
    """Shared ownership of an engine environment handle.

    The environment handle is released either by an explicit ``close()``
    (immediately, whatever the count) or when the last reference goes away.
    Once released it never comes back.
    """

    __slots__ = ("engine", "env", "path", "refcount", "_writers")

    def __init__(self, engine: StorageEngine, env: EnvHandle, path: str) -> None:
        self.engine = engine
        self.env: EnvHandle | None = env
        self.path = path
        self.refcount = 1
        self._writers: dict[int, TransactionRef] = {}

    @property
    def is_open(self) -> bool:
        return self.env is not None

    def check(self) -> EnvHandle:
        """Return the engine handle, or raise if the environment is closed."""
        if self.env is None:
            raise ClosedResourceError("Environment is closed")
        return self.env

    def retain(self) -> None:
        self.refcount += 1

    def close(self) -> None:
        """Release the engine handle now. The count is left untouched."""
        env = self.check()
        self.env = None
        self._writers.clear()
        self.engine.env_close(env)
        get_metrics().environments_closed_total.labels(reason="explicit").inc()
        logger.debug("environment.closed", path=self.path, refcount=self.refcount)

    def deref(self) -> None:
        self.refcount -= 1
        if self.refcount > 0 or self.env is None:
            return
        env = self.env
        self.env = None
        self._writers.clear()
        self.engine.env_close(env)
        get_metrics().environments_closed_total.labels(reason="finalized").inc()
        logger.info("environment.released", path=self.path)

    def active_writer(self) -> TransactionRef | None:
        """Return the writable root transaction still active on this thread."""
        ident = threading.get_ident()
        writer = self._writers.get(ident)
        if writer is not None and not writer.is_active():
            del self._writers[ident]
            writer = None
        return writer

    def claim_writer(self, transaction: TransactionRef) -> None:
        self._writers[threading.get_ident()] = transaction


class TransactionRef:
    """Ownership of an engine transaction handle.

    Holds counted references to its environment and, for nested
    transactions, to its parent.
    """

    __slots__ = ("environment", "parent", "txn", "readonly", "refcount")

    def __init__(
        self,
        environment: EnvironmentRef,
        parent: TransactionRef | None,
        txn: TxnHandle,
        readonly: bool,
    ) -> None:
        environment.retain()
        if parent is not None:
            parent.retain()
        self.environment = environment
        self.parent = parent
        self.txn: TxnHandle | None = txn
        self.readonly = readonly
        self.refcount = 1

    @property
    def engine(self) -> StorageEngine:
        return self.environment.engine

    @property
    def depth(self) -> int:
        """Number of ancestors (0 for a root transaction)."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def is_active(self) -> bool:
        node: TransactionRef | None = self
        while node is not None:
            if node.txn is None:
                return False
            node = node.parent
        return self.environment.is_open

    def check(self) -> TxnHandle:
        """Return the engine handle, or raise if the chain is not active."""
        if not self.is_active():
            raise TerminatedTransactionError("Transaction is terminated")
        return self.txn

    def terminate(self) -> TxnHandle | None:
        """Detach and return the engine handle; the transaction is ended."""
        txn = self.txn
        self.txn = None
        return txn

    def retain(self) -> None:
        self.refcount += 1

    def deref(self) -> None:
        self.refcount -= 1
        if self.refcount > 0:
            return
        if self.is_active():
            self.engine.txn_abort(self.terminate())
            get_metrics().transactions_total.labels(status="implicit_abort").inc()
            logger.info("transaction.implicit_abort", depth=self.depth, readonly=self.readonly)
        else:
            self.txn = None
        if self.parent is not None:
            self.parent.deref()
        self.environment.deref()


class DatabaseRef:
    """A table handle plus a counted reference to the transaction that
    opened it, which gates the handle's usability."""

    __slots__ = ("transaction", "dbi", "name", "flags", "open")

    def __init__(
        self, transaction: TransactionRef, dbi: DbiHandle, name: str | None, flags: int
    ) -> None:
        transaction.retain()
        self.transaction = transaction
        self.dbi = dbi
        self.name = name
        self.flags = flags
        self.open = True

    @property
    def environment(self) -> EnvironmentRef:
        return self.transaction.environment

    def check(self) -> DbiHandle:
        self.transaction.check()
        if not self.open:
            raise ClosedResourceError("Database is closed")
        return self.dbi

    def close(self) -> None:
        """Mark closed and release the table handle if the environment is open."""
        self.open = False
        environment = self.environment
        if environment.is_open:
            environment.engine.dbi_close(environment.env, self.dbi)

    def release(self) -> None:
        if self.open:
            self.close()
        self.transaction.deref()


class CursorRef:
    """A cursor handle plus a counted reference to its transaction."""

    __slots__ = ("transaction", "cursor")

    def __init__(self, transaction: TransactionRef, cursor: CursorHandle) -> None:
        transaction.retain()
        self.transaction = transaction
        self.cursor: CursorHandle | None = cursor

    def check(self) -> CursorHandle:
        self.transaction.check()
        if self.cursor is None:
            raise ClosedResourceError("Cursor is closed")
        return self.cursor

    def close(self) -> None:
        """Release the engine cursor; it is only handed back to the engine
        while its transaction is active, otherwise the engine already
        reclaimed it."""
        cursor = self.cursor
        self.cursor = None
        if cursor is not None and self.transaction.is_active():
            self.transaction.engine.cursor_close(cursor)

    def release(self) -> None:
        self.close()
        self.transaction.deref()
