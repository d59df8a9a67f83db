"""Environment entity: one opened engine environment.

An environment stays open while anything derived from it is alive. It can
be closed explicitly at any time; every transaction, table and cursor
derived from it then reports itself inactive on its next use.
"""

from __future__ import annotations

import os
import weakref
from typing import Any

from lmdb_client.domain.entities.ownership import EnvironmentRef, TransactionRef
from lmdb_client.domain.entities.transaction import Transaction
from lmdb_client.domain.errors import TransactionConflictError
from lmdb_client.domain.value_objects import ENV_FLAGS, MUTABLE_ENV_FLAGS, EnvFlags, Info, Stat
from lmdb_client.infrastructure.config import EnvironmentOptions
from lmdb_client.infrastructure.logging import get_logger
from lmdb_client.infrastructure.metrics import get_metrics
from lmdb_client.infrastructure.tracing import trace_span
from lmdb_client.ports.outbound.storage_engine import StorageEngine

logger = get_logger(__name__)


class Environment:
    """An opened engine environment.

    Use :meth:`open` (or ``lmdb_client.open``) to create one. As a context
    manager the environment is closed when the block exits, unless the
    block already closed it.

    Example:
        with lmdb_client.open("/tmp/data", mapsize=1 << 24) as env:
            with env.begin_transaction() as txn:
                db = txn.open_database()
                db.put(txn, b"key", b"value")
    """

    def __init__(self, ref: EnvironmentRef) -> None:
        self._ref = ref
        self._finalizer = weakref.finalize(self, ref.deref)

    @classmethod
    def open(
        cls,
        engine: StorageEngine,
        path: str | os.PathLike[str],
        options: EnvironmentOptions | None = None,
    ) -> Environment:
        """
        Create and open an environment.

        Args:
            engine: Storage engine to drive
            path: Environment directory (or file prefix with ``NOSUBDIR``)
            options: Open options; defaults apply when omitted

        Returns:
            The opened environment
        """
        options = options or EnvironmentOptions()
        path = os.fspath(path)

        with trace_span("lmdb.environment.open", {"lmdb.path": path, "lmdb.flags": options.flags}):
            env = engine.env_open(
                path,
                options.flags,
                options.mode,
                options.maxreaders,
                options.maxdbs,
                options.mapsize,
            )

        get_metrics().environments_opened_total.inc()
        logger.debug(
            "environment.opened",
            path=path,
            flags=options.flags,
            maxdbs=options.maxdbs,
            mapsize=options.mapsize,
        )
        return cls(EnvironmentRef(engine, env, path))

    @property
    def closed(self) -> bool:
        return not self._ref.is_open

    def close(self) -> None:
        """Close the environment.

        Raises:
            ClosedResourceError: If it is already closed
        """
        self._ref.close()

    def stat(self) -> Stat:
        """Return statistics for the main table."""
        env = self._ref.check()
        return self._ref.engine.env_stat(env)

    def info(self) -> Info:
        env = self._ref.check()
        return self._ref.engine.env_info(env)

    def copy(self, path: str | os.PathLike[str]) -> None:
        """Write a consistent copy of the environment into ``path``."""
        env = self._ref.check()
        path = os.fspath(path)
        with trace_span("lmdb.environment.copy", {"lmdb.path": self._ref.path, "lmdb.target": path}):
            self._ref.engine.env_copy(env, path)
        logger.debug("environment.copied", path=self._ref.path, target=path)

    def sync(self, force: bool = False) -> None:
        """Flush buffers to disk, synchronously if ``force``."""
        env = self._ref.check()
        with trace_span("lmdb.environment.sync", {"lmdb.path": self._ref.path, "lmdb.force": force}):
            self._ref.engine.env_sync(env, force)

    def get_flags(self) -> int:
        """Return the environment flags, limited to the exported ones."""
        env = self._ref.check()
        return EnvFlags(self._ref.engine.env_get_flags(env) & ENV_FLAGS)

    def set_flags(self, flags: int) -> int:
        """
        Replace the runtime-mutable flags.

        The current ``NOSYNC`` / ``NOMETASYNC`` / ``MAPASYNC`` bits are
        cleared, then ``flags`` is applied as given.

        Returns:
            The flags in effect afterwards
        """
        env = self._ref.check()
        engine = self._ref.engine
        current = engine.env_get_flags(env)
        engine.env_set_flags(env, current & MUTABLE_ENV_FLAGS, False)
        engine.env_set_flags(env, int(flags), True)
        return self.get_flags()

    def path(self) -> str:
        env = self._ref.check()
        return self._ref.engine.env_get_path(env)

    def begin_transaction(self, readonly: bool = False) -> Transaction:
        """
        Begin a top-level transaction.

        Args:
            readonly: Begin a read-only snapshot instead of a writer

        Returns:
            The new transaction, also usable as a context manager

        Raises:
            ClosedResourceError: If the environment is closed
            TransactionConflictError: If this thread already holds an active
                writable top-level transaction on the environment
        """
        env = self._ref.check()
        readonly = bool(readonly)
        if not readonly and self._ref.active_writer() is not None:
            raise TransactionConflictError(
                "A write transaction is already active on this thread"
            )

        flags = EnvFlags.RDONLY if readonly else 0
        txn = self._ref.engine.txn_begin(env, None, int(flags))
        ref = TransactionRef(self._ref, None, txn, readonly)
        if not readonly:
            self._ref.claim_writer(ref)

        get_metrics().transactions_begun_total.labels(kind="root").inc()
        logger.debug("transaction.begun", path=self._ref.path, readonly=readonly, depth=0)
        return Transaction(ref, self, None)

    def __enter__(self) -> Environment:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._ref.is_open:
            self._ref.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Environment path={self._ref.path!r} {state}>"
