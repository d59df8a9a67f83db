"""Storage Engine port for the embedded key-value engine.

This outbound port defines the narrow operation set the client consumes
from the engine. Everything behind it (page format, B-tree layout, MVCC
snapshots, file locking) is the engine's concern.

Handles returned by the port are opaque to the domain: the client only
stores them, passes them back, and drops its reference once it has asked
the engine to release them.

Failures are raised as :class:`~lmdb_client.domain.errors.EngineError`
subclasses, built with :func:`~lmdb_client.domain.errors.error_for_status`
so that every engine status maps to exactly one error class.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Protocol

from lmdb_client.domain.value_objects import CursorOp, Info, Stat

EnvHandle = Any
TxnHandle = Any
DbiHandle = Any
CursorHandle = Any


class StorageEngine(Protocol):
    """Protocol for the embedded storage engine.

    Flag arguments are integer bit-sets with the engine's own values
    (see :mod:`lmdb_client.domain.value_objects.flags`).

    Thread Safety:
        Follows the engine: one writer per environment at a time, any
        number of concurrent readers.
    """

    @abstractmethod
    def version(self) -> tuple[int, int, int]:
        """Return the engine version as ``(major, minor, patch)``."""
        ...

    # Environment -----------------------------------------------------

    @abstractmethod
    def env_open(
        self,
        path: str,
        flags: int,
        mode: int,
        maxreaders: int | None,
        maxdbs: int,
        mapsize: int | None,
    ) -> EnvHandle:
        """Create, configure and open an environment.

        Args:
            path: Directory (or file prefix with ``NOSUBDIR``).
            flags: Environment flags.
            mode: File creation mode.
            maxreaders: Reader slots, ``None`` for the engine default.
            maxdbs: Maximum number of named tables.
            mapsize: Map size in bytes, ``None`` for the engine default.

        Returns:
            An environment handle.
        """
        ...

    @abstractmethod
    def env_close(self, env: EnvHandle) -> None:
        """Release an environment handle. Never fails."""
        ...

    @abstractmethod
    def env_stat(self, env: EnvHandle) -> Stat:
        """Return statistics for the environment's main table."""
        ...

    @abstractmethod
    def env_info(self, env: EnvHandle) -> Info:
        """Return environment information."""
        ...

    @abstractmethod
    def env_copy(self, env: EnvHandle, path: str) -> None:
        """Write a consistent copy of the environment into ``path``."""
        ...

    @abstractmethod
    def env_sync(self, env: EnvHandle, force: bool) -> None:
        """Flush buffers to disk; ``force`` makes the flush synchronous."""
        ...

    @abstractmethod
    def env_get_flags(self, env: EnvHandle) -> int:
        """Return the environment's current flags."""
        ...

    @abstractmethod
    def env_set_flags(self, env: EnvHandle, flags: int, onoff: bool) -> None:
        """Set (``onoff=True``) or clear (``onoff=False``) ``flags``."""
        ...

    @abstractmethod
    def env_get_path(self, env: EnvHandle) -> str:
        """Return the path the environment was opened with."""
        ...

    # Transaction -----------------------------------------------------

    @abstractmethod
    def txn_begin(self, env: EnvHandle, parent: TxnHandle | None, flags: int) -> TxnHandle:
        """Begin a transaction, nested under ``parent`` when given.

        Args:
            env: The environment.
            parent: Parent transaction handle or ``None`` for a root.
            flags: ``RDONLY`` for a read-only transaction, else 0.
        """
        ...

    @abstractmethod
    def txn_commit(self, txn: TxnHandle) -> None:
        """Commit; the handle is released whether or not this fails."""
        ...

    @abstractmethod
    def txn_abort(self, txn: TxnHandle) -> None:
        """Abort and release the handle. Never fails."""
        ...

    @abstractmethod
    def txn_reset(self, txn: TxnHandle) -> None:
        """Suspend a read-only transaction, releasing its snapshot."""
        ...

    @abstractmethod
    def txn_renew(self, txn: TxnHandle) -> None:
        """Resume a reset read-only transaction on a fresh snapshot."""
        ...

    # Table -----------------------------------------------------------

    @abstractmethod
    def dbi_open(self, txn: TxnHandle, name: str | None, flags: int) -> DbiHandle:
        """Open a table; ``None`` names the environment's main table."""
        ...

    @abstractmethod
    def dbi_close(self, env: EnvHandle, dbi: DbiHandle) -> None:
        """Release a table handle. Never fails."""
        ...

    @abstractmethod
    def dbi_stat(self, txn: TxnHandle, dbi: DbiHandle) -> Stat:
        """Return statistics for a table."""
        ...

    @abstractmethod
    def dbi_drop(self, txn: TxnHandle, dbi: DbiHandle, delete: bool) -> None:
        """Empty a table, and delete it from the environment if ``delete``."""
        ...

    @abstractmethod
    def get(self, txn: TxnHandle, dbi: DbiHandle, key: bytes) -> bytes:
        """Return the value stored under ``key``.

        Raises:
            NotFoundError: If the key is absent.
        """
        ...

    @abstractmethod
    def put(self, txn: TxnHandle, dbi: DbiHandle, key: bytes, value: bytes, flags: int) -> None:
        """Store ``value`` under ``key`` honoring write ``flags``.

        Raises:
            KeyExistsError: If ``NOOVERWRITE`` / ``NODUPDATA`` forbid the write.
        """
        ...

    @abstractmethod
    def delete(self, txn: TxnHandle, dbi: DbiHandle, key: bytes, value: bytes | None) -> None:
        """Delete ``key`` (only the ``key``/``value`` pair if ``value`` given).

        Raises:
            NotFoundError: If nothing matched.
        """
        ...

    # Cursor ----------------------------------------------------------

    @abstractmethod
    def cursor_open(self, txn: TxnHandle, dbi: DbiHandle) -> CursorHandle:
        """Open a cursor over ``dbi`` within ``txn``."""
        ...

    @abstractmethod
    def cursor_close(self, cursor: CursorHandle) -> None:
        """Release a cursor handle. Never fails."""
        ...

    @abstractmethod
    def cursor_get(
        self, cursor: CursorHandle, op: CursorOp, key: bytes | None = None
    ) -> tuple[bytes, bytes]:
        """Position the cursor and return the ``(key, value)`` pair there.

        Raises:
            NotFoundError: If positioning fails.
        """
        ...

    @abstractmethod
    def cursor_put(self, cursor: CursorHandle, key: bytes, value: bytes, flags: int) -> None:
        """Store a pair through the cursor, leaving it positioned on it."""
        ...

    @abstractmethod
    def cursor_del(self, cursor: CursorHandle, flags: int) -> None:
        """Delete the pair at the cursor position."""
        ...

    @abstractmethod
    def cursor_count(self, cursor: CursorHandle) -> int:
        """Return the number of values under the cursor's current key."""
        ...
