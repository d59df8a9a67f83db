"""
LMDB Client - resource-safe access to an embedded LMDB environment

Exposes four resources (Environment, Transaction, Database, Cursor) with
reference-counted lifetimes: an environment stays open while anything
derived from it is alive, and every table or cursor becomes unusable the
moment its transaction, or any ancestor transaction, ends.
"""

__version__ = "0.1.0"

from lmdb_client.application import configure, open_environment
from lmdb_client.domain.entities import Cursor, Database, Environment, Transaction
from lmdb_client.domain.errors import (
    BadDbiError,
    BadReaderSlotError,
    BadTransactionError,
    BadValueSizeError,
    ClosedResourceError,
    CorruptedError,
    CursorFullError,
    DbsFullError,
    DiskFullError,
    EngineError,
    IncompatibleError,
    InvalidError,
    InvalidParameterError,
    KeyExistsError,
    LockError,
    MapFullError,
    MapResizedError,
    NotFoundError,
    OutOfMemoryError,
    PageFullError,
    PageNotFoundError,
    PanicError,
    ReadersFullError,
    ReadonlyError,
    TerminatedTransactionError,
    TlsFullError,
    TransactionConflictError,
    TxnFullError,
    VersionMismatchError,
    error_for_status,
)
from lmdb_client.domain.value_objects import DbFlags, EnvFlags, Info, Stat, WriteFlags
from lmdb_client.infrastructure.config import Config, EnvironmentOptions

open = open_environment

# Environment flags
FIXEDMAP = EnvFlags.FIXEDMAP
NOSUBDIR = EnvFlags.NOSUBDIR
NOSYNC = EnvFlags.NOSYNC
RDONLY = EnvFlags.RDONLY
NOMETASYNC = EnvFlags.NOMETASYNC
WRITEMAP = EnvFlags.WRITEMAP
MAPASYNC = EnvFlags.MAPASYNC

# Table flags
REVERSEKEY = DbFlags.REVERSEKEY
DUPSORT = DbFlags.DUPSORT
INTEGERKEY = DbFlags.INTEGERKEY
DUPFIXED = DbFlags.DUPFIXED
INTEGERDUP = DbFlags.INTEGERDUP
REVERSEDUP = DbFlags.REVERSEDUP
CREATE = DbFlags.CREATE

# Write flags
NOOVERWRITE = WriteFlags.NOOVERWRITE
NODUPDATA = WriteFlags.NODUPDATA
CURRENT = WriteFlags.CURRENT
RESERVE = WriteFlags.RESERVE
APPEND = WriteFlags.APPEND
APPENDDUP = WriteFlags.APPENDDUP
MULTIPLE = WriteFlags.MULTIPLE

_ENGINE_VERSION_NAMES = ("VERSION_MAJOR", "VERSION_MINOR", "VERSION_PATCH", "VERSION")


def __getattr__(name: str):
    # Engine version constants are read from the engine on first access.
    if name in _ENGINE_VERSION_NAMES:
        from lmdb_client.infrastructure.container import get_container
        from lmdb_client.ports.outbound.storage_engine import StorageEngine

        major, minor, patch = get_container().resolve(StorageEngine).version()
        values = {
            "VERSION_MAJOR": major,
            "VERSION_MINOR": minor,
            "VERSION_PATCH": patch,
            "VERSION": f"{major}.{minor}.{patch}",
        }
        globals().update(values)
        return values[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    "open",
    "open_environment",
    "configure",
    "Config",
    "EnvironmentOptions",
    # Resources
    "Environment",
    "Transaction",
    "Database",
    "Cursor",
    # Snapshots and flags
    "Stat",
    "Info",
    "EnvFlags",
    "DbFlags",
    "WriteFlags",
    "FIXEDMAP",
    "NOSUBDIR",
    "NOSYNC",
    "RDONLY",
    "NOMETASYNC",
    "WRITEMAP",
    "MAPASYNC",
    "REVERSEKEY",
    "DUPSORT",
    "INTEGERKEY",
    "DUPFIXED",
    "INTEGERDUP",
    "REVERSEDUP",
    "CREATE",
    "NOOVERWRITE",
    "NODUPDATA",
    "CURRENT",
    "RESERVE",
    "APPEND",
    "APPENDDUP",
    "MULTIPLE",
    "VERSION_MAJOR",
    "VERSION_MINOR",
    "VERSION_PATCH",
    "VERSION",
    # Errors
    "error_for_status",
    "EngineError",
    "ClosedResourceError",
    "TerminatedTransactionError",
    "TransactionConflictError",
    "KeyExistsError",
    "NotFoundError",
    "PageNotFoundError",
    "CorruptedError",
    "PanicError",
    "VersionMismatchError",
    "InvalidError",
    "MapFullError",
    "DbsFullError",
    "ReadersFullError",
    "TlsFullError",
    "TxnFullError",
    "CursorFullError",
    "PageFullError",
    "MapResizedError",
    "IncompatibleError",
    "BadReaderSlotError",
    "BadTransactionError",
    "BadValueSizeError",
    "BadDbiError",
    "ReadonlyError",
    "InvalidParameterError",
    "LockError",
    "OutOfMemoryError",
    "DiskFullError",
]
