"""Typed error hierarchy and engine status-code mapping.

Every engine status code maps to exactly one subclass of
:class:`EngineError`; codes without a dedicated class fall back to
:class:`EngineError` itself. Messages carry the engine's own text with any
leading ``component: `` prefixes removed, so ``"mdb_put: MDB_KEYEXIST:
Key/data pair already exists"`` surfaces as ``"Key/data pair already
exists"``.

Errors raised by the client itself (closed handles, terminated transaction
chains, writer conflicts) share the same base so callers can catch a single
type.
"""

from __future__ import annotations

import errno
import os
import re

# Engine status codes (lmdb.h)
MDB_KEYEXIST = -30799
MDB_NOTFOUND = -30798
MDB_PAGE_NOTFOUND = -30797
MDB_CORRUPTED = -30796
MDB_PANIC = -30795
MDB_VERSION_MISMATCH = -30794
MDB_INVALID = -30793
MDB_MAP_FULL = -30792
MDB_DBS_FULL = -30791
MDB_READERS_FULL = -30790
MDB_TLS_FULL = -30789
MDB_TXN_FULL = -30788
MDB_CURSOR_FULL = -30787
MDB_PAGE_FULL = -30786
MDB_MAP_RESIZED = -30785
MDB_INCOMPATIBLE = -30784
MDB_BAD_RSLOT = -30783
MDB_BAD_TXN = -30782
MDB_BAD_VALSIZE = -30781
MDB_BAD_DBI = -30780

# Text the engine reports for its own codes; errno codes use os.strerror.
STATUS_MESSAGES: dict[int, str] = {
    MDB_KEYEXIST: "MDB_KEYEXIST: Key/data pair already exists",
    MDB_NOTFOUND: "MDB_NOTFOUND: No matching key/data pair found",
    MDB_PAGE_NOTFOUND: "MDB_PAGE_NOTFOUND: Requested page not found",
    MDB_CORRUPTED: "MDB_CORRUPTED: Located page was wrong type",
    MDB_PANIC: "MDB_PANIC: Update of meta page failed or environment had fatal error",
    MDB_VERSION_MISMATCH: "MDB_VERSION_MISMATCH: Database environment version mismatch",
    MDB_INVALID: "MDB_INVALID: File is not an LMDB file",
    MDB_MAP_FULL: "MDB_MAP_FULL: Environment mapsize limit reached",
    MDB_DBS_FULL: "MDB_DBS_FULL: Environment maxdbs limit reached",
    MDB_READERS_FULL: "MDB_READERS_FULL: Environment maxreaders limit reached",
    MDB_TLS_FULL: "MDB_TLS_FULL: Thread-local storage keys full - too many environments open",
    MDB_TXN_FULL: "MDB_TXN_FULL: Transaction has too many dirty pages - transaction too big",
    MDB_CURSOR_FULL: "MDB_CURSOR_FULL: Internal error - cursor stack limit reached",
    MDB_PAGE_FULL: "MDB_PAGE_FULL: Internal error - page has no more space",
    MDB_MAP_RESIZED: "MDB_MAP_RESIZED: Database contents grew beyond environment mapsize",
    MDB_INCOMPATIBLE: "MDB_INCOMPATIBLE: Operation and DB incompatible, or DB flags changed",
    MDB_BAD_RSLOT: "MDB_BAD_RSLOT: Invalid reuse of reader locktable slot",
    MDB_BAD_TXN: "MDB_BAD_TXN: Transaction must abort, has a child, or is invalid",
    MDB_BAD_VALSIZE: "MDB_BAD_VALSIZE: Unsupported size of key/DB name/data, or wrong DUPFIXED size",
    MDB_BAD_DBI: "MDB_BAD_DBI: The specified DBI handle was closed/changed unexpectedly",
}


class EngineError(Exception):
    """Base class for every client failure, and the fallback for engine
    statuses without a dedicated class.

    Attributes:
        code: The engine status code, or 0 for failures raised by the
            client itself.
    """

    code: int = 0

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ClosedResourceError(EngineError):
    """Operation on an environment, table or cursor that was closed."""


class TerminatedTransactionError(EngineError):
    """Operation on a transaction whose chain is no longer active."""


class TransactionConflictError(EngineError):
    """A second writable top-level transaction was requested on a thread
    that already holds the environment's writer."""


class KeyExistsError(EngineError):
    """Key/data pair already exists."""

    code = MDB_KEYEXIST


class NotFoundError(EngineError):
    """No matching key/data pair found."""

    code = MDB_NOTFOUND


class PageNotFoundError(EngineError):
    code = MDB_PAGE_NOTFOUND


class CorruptedError(EngineError):
    code = MDB_CORRUPTED


class PanicError(EngineError):
    code = MDB_PANIC


class VersionMismatchError(EngineError):
    code = MDB_VERSION_MISMATCH


class InvalidError(EngineError):
    """File is not an LMDB file."""

    code = MDB_INVALID


class MapFullError(EngineError):
    """Environment mapsize limit reached."""

    code = MDB_MAP_FULL


class DbsFullError(EngineError):
    """Environment maxdbs limit reached."""

    code = MDB_DBS_FULL


class ReadersFullError(EngineError):
    """Environment maxreaders limit reached."""

    code = MDB_READERS_FULL


class TlsFullError(EngineError):
    code = MDB_TLS_FULL


class TxnFullError(EngineError):
    """Transaction has too many dirty pages."""

    code = MDB_TXN_FULL


class CursorFullError(EngineError):
    code = MDB_CURSOR_FULL


class PageFullError(EngineError):
    code = MDB_PAGE_FULL


class MapResizedError(EngineError):
    code = MDB_MAP_RESIZED


class IncompatibleError(EngineError):
    """Operation and table incompatible, or table flags changed."""

    code = MDB_INCOMPATIBLE


class BadReaderSlotError(EngineError):
    code = MDB_BAD_RSLOT


class BadTransactionError(EngineError):
    """Transaction must abort, has a child, or is invalid."""

    code = MDB_BAD_TXN


class BadValueSizeError(EngineError):
    """Unsupported size of key, table name or data."""

    code = MDB_BAD_VALSIZE


class BadDbiError(EngineError):
    code = MDB_BAD_DBI


class ReadonlyError(EngineError):
    """Write attempted in a read-only transaction or environment."""

    code = errno.EACCES


class InvalidParameterError(EngineError):
    """The engine rejected an argument or flag combination."""

    code = errno.EINVAL


class LockError(EngineError):
    """The environment is locked by another process."""

    code = errno.EAGAIN


class OutOfMemoryError(EngineError):
    code = errno.ENOMEM


class DiskFullError(EngineError):
    code = errno.ENOSPC


_ERROR_CLASSES: tuple[type[EngineError], ...] = (
    KeyExistsError,
    NotFoundError,
    PageNotFoundError,
    CorruptedError,
    PanicError,
    VersionMismatchError,
    InvalidError,
    MapFullError,
    DbsFullError,
    ReadersFullError,
    TlsFullError,
    TxnFullError,
    CursorFullError,
    PageFullError,
    MapResizedError,
    IncompatibleError,
    BadReaderSlotError,
    BadTransactionError,
    BadValueSizeError,
    BadDbiError,
    ReadonlyError,
    InvalidParameterError,
    LockError,
    OutOfMemoryError,
    DiskFullError,
)

ERROR_MAP: dict[int, type[EngineError]] = {cls.code: cls for cls in _ERROR_CLASSES}

_PREFIX = re.compile(r"^(?:(?:mdb_\w+|MDB_[A-Z_]+): )+")


def strip_prefix(message: str) -> str:
    """Remove leading ``component: `` prefixes from an engine message.

    Only function names (``mdb_put``) and status names (``MDB_KEYEXIST``)
    count as prefixes; the rest of the message is kept as the engine wrote it.
    """
    return _PREFIX.sub("", message, count=1)


def status_message(code: int) -> str:
    """Return the engine's text for ``code``."""
    if code in STATUS_MESSAGES:
        return STATUS_MESSAGES[code]
    if code > 0:
        return os.strerror(code)
    return f"Unknown engine status {code}"


def error_for_status(code: int, message: str | None = None) -> EngineError:
    """Build the typed error for an engine status code.

    Args:
        code: Non-zero engine status code.
        message: Engine message text; defaults to the engine's text for
            ``code``.

    Returns:
        An instance of the class mapped to ``code``, or :class:`EngineError`
        for unmapped codes.
    """
    text = strip_prefix(message if message is not None else status_message(code))
    return ERROR_MAP.get(code, EngineError)(text, code)
