"""Transaction entity: top-level or nested engine transaction."""

from __future__ import annotations

import time
import weakref
from typing import TYPE_CHECKING, Any

from lmdb_client.domain.entities.database import Database
from lmdb_client.domain.entities.ownership import DatabaseRef, TransactionRef
from lmdb_client.infrastructure.logging import get_logger
from lmdb_client.infrastructure.metrics import get_metrics
from lmdb_client.infrastructure.tracing import trace_span

if TYPE_CHECKING:
    from lmdb_client.domain.entities.environment import Environment

logger = get_logger(__name__)


class Transaction:
    """A transaction on an :class:`Environment`.

    A transaction is active while it, every ancestor, and the environment
    are open. Once inactive, every operation except the ``environment``,
    ``parent`` and ``active`` accessors raises
    :class:`~lmdb_client.domain.errors.TerminatedTransactionError`, as do
    the tables and cursors derived from it.

    As a context manager the transaction commits when the block completes
    and aborts when it raises; the exception propagates unchanged.
    """

    def __init__(
        self,
        ref: TransactionRef,
        environment: Environment,
        parent: Transaction | None,
    ) -> None:
        self._ref = ref
        self._environment = environment
        self._parent = parent
        self._finalizer = weakref.finalize(self, ref.deref)

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def parent(self) -> Transaction | None:
        return self._parent

    @property
    def active(self) -> bool:
        return self._ref.is_active()

    @property
    def readonly(self) -> bool:
        return self._ref.readonly

    def begin_nested(self) -> Transaction:
        """Begin a child transaction of this one."""
        txn = self._ref.check()
        environment = self._ref.environment
        child = environment.engine.txn_begin(environment.env, txn, 0)
        ref = TransactionRef(environment, self._ref, child, False)

        get_metrics().transactions_begun_total.labels(kind="nested").inc()
        logger.debug("transaction.begun", path=environment.path, readonly=False, depth=ref.depth)
        return Transaction(ref, self._environment, self)

    def commit(self) -> None:
        """
        Commit the transaction.

        The transaction is terminated even when the engine reports a
        failure; the failure is raised afterwards.
        """
        self._ref.check()
        txn = self._ref.terminate()
        start = time.perf_counter()

        with trace_span("lmdb.transaction.commit", {"lmdb.depth": self._ref.depth}):
            self._ref.engine.txn_commit(txn)

        metrics = get_metrics()
        metrics.commit_latency_seconds.observe(time.perf_counter() - start)
        metrics.transactions_total.labels(status="commit").inc()
        logger.debug("transaction.committed", depth=self._ref.depth, readonly=self._ref.readonly)

    def abort(self) -> None:
        self._ref.check()
        txn = self._ref.terminate()
        self._ref.engine.txn_abort(txn)
        get_metrics().transactions_total.labels(status="abort").inc()
        logger.debug("transaction.aborted", depth=self._ref.depth, readonly=self._ref.readonly)

    def reset(self) -> None:
        """Release the snapshot of a read-only transaction until :meth:`renew`."""
        txn = self._ref.check()
        self._ref.engine.txn_reset(txn)

    def renew(self) -> None:
        """Resume a reset read-only transaction on a fresh snapshot."""
        txn = self._ref.check()
        self._ref.engine.txn_renew(txn)

    def open_database(self, name: str | None = None, flags: int = 0) -> Database:
        """
        Open a table.

        Args:
            name: Table name, or None for the main table
            flags: Table flags (``DbFlags``); ``CREATE`` creates it if missing

        Returns:
            A handle usable while this transaction stays active
        """
        txn = self._ref.check()
        flags = int(flags)
        dbi = self._ref.engine.dbi_open(txn, name, flags)

        get_metrics().databases_opened_total.inc()
        logger.debug("database.opened", name=name, flags=flags)
        return Database(DatabaseRef(self._ref, dbi, name, flags), self)

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._ref.txn is None:
            return
        if not self._ref.is_active():
            # An ancestor or the environment ended it; the engine owns the handle.
            self._ref.terminate()
            return
        if exc_type is None:
            self.commit()
        else:
            self.abort()

    def __repr__(self) -> str:
        state = "active" if self.active else "terminated"
        kind = "readonly" if self.readonly else "write"
        return f"<Transaction {kind} depth={self._ref.depth} {state}>"
