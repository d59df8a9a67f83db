"""py-lmdb implementation of the StorageEngine port.

This adapter drives the LMDB C library through the ``lmdb`` distribution
(py-lmdb). py-lmdb exposes keyword options and boolean results where the
port speaks in flag bit-sets and status codes, so the adapter translates in
both directions:

    - flag bit-sets become py-lmdb keyword options; bits py-lmdb cannot
      express fail with EINVAL
    - ``False`` from ``put`` becomes MDB_KEYEXIST, ``None`` from ``get`` and
      ``False`` from ``delete`` / cursor moves become MDB_NOTFOUND
    - py-lmdb exceptions become the client's typed errors

Handles returned to the domain are small mutable records wrapping the
py-lmdb objects. The records let the adapter provide what py-lmdb keeps
internal: read-only reset/renew, per-handle table flags, and changing the
runtime-mutable environment flags (done by reopening the environment while
no transaction is live).

Thread Safety:
    As py-lmdb: an environment may be shared between threads, a
    transaction and its cursors belong to the thread that began it.
"""

from __future__ import annotations

import errno
import weakref
from contextlib import contextmanager
from typing import Any, Iterator

import lmdb

from lmdb_client.domain.errors import (
    MDB_BAD_RSLOT,
    MDB_BAD_TXN,
    MDB_BAD_VALSIZE,
    MDB_CORRUPTED,
    MDB_CURSOR_FULL,
    MDB_DBS_FULL,
    MDB_INCOMPATIBLE,
    MDB_INVALID,
    MDB_KEYEXIST,
    MDB_MAP_FULL,
    MDB_MAP_RESIZED,
    MDB_NOTFOUND,
    MDB_PAGE_FULL,
    MDB_PAGE_NOTFOUND,
    MDB_PANIC,
    MDB_READERS_FULL,
    MDB_TLS_FULL,
    MDB_TXN_FULL,
    MDB_VERSION_MISMATCH,
    ClosedResourceError,
    EngineError,
    error_for_status,
)
from lmdb_client.domain.value_objects import (
    MUTABLE_ENV_FLAGS,
    CursorOp,
    DbFlags,
    EnvFlags,
    Info,
    Stat,
    WriteFlags,
)
from lmdb_client.infrastructure.logging import get_logger
from lmdb_client.infrastructure.metrics import get_metrics

logger = get_logger(__name__)

# py-lmdb exception class -> engine status code
_STATUS_BY_CLASS: dict[type[Exception], int] = {
    lmdb.KeyExistsError: MDB_KEYEXIST,
    lmdb.NotFoundError: MDB_NOTFOUND,
    lmdb.PageNotFoundError: MDB_PAGE_NOTFOUND,
    lmdb.CorruptedError: MDB_CORRUPTED,
    lmdb.PanicError: MDB_PANIC,
    lmdb.VersionMismatchError: MDB_VERSION_MISMATCH,
    lmdb.InvalidError: MDB_INVALID,
    lmdb.MapFullError: MDB_MAP_FULL,
    lmdb.DbsFullError: MDB_DBS_FULL,
    lmdb.ReadersFullError: MDB_READERS_FULL,
    lmdb.TlsFullError: MDB_TLS_FULL,
    lmdb.TxnFullError: MDB_TXN_FULL,
    lmdb.CursorFullError: MDB_CURSOR_FULL,
    lmdb.PageFullError: MDB_PAGE_FULL,
    lmdb.MapResizedError: MDB_MAP_RESIZED,
    lmdb.IncompatibleError: MDB_INCOMPATIBLE,
    lmdb.BadRslotError: MDB_BAD_RSLOT,
    lmdb.BadTxnError: MDB_BAD_TXN,
    lmdb.BadValsizeError: MDB_BAD_VALSIZE,
    lmdb.ReadonlyError: errno.EACCES,
    lmdb.InvalidParameterError: errno.EINVAL,
    lmdb.LockError: errno.EAGAIN,
    lmdb.MemoryError: errno.ENOMEM,
    lmdb.DiskError: errno.ENOSPC,
}

_DB_FLAGS = (
    DbFlags.REVERSEKEY
    | DbFlags.DUPSORT
    | DbFlags.INTEGERKEY
    | DbFlags.DUPFIXED
    | DbFlags.INTEGERDUP
    | DbFlags.CREATE
)
_PUT_FLAGS = (
    WriteFlags.NOOVERWRITE | WriteFlags.NODUPDATA | WriteFlags.APPEND | WriteFlags.APPENDDUP
)
_OPEN_FLAGS = (
    EnvFlags.NOSUBDIR
    | EnvFlags.NOSYNC
    | EnvFlags.RDONLY
    | EnvFlags.NOMETASYNC
    | EnvFlags.WRITEMAP
    | EnvFlags.MAPASYNC
)


def _fail(code: int, message: str | None = None) -> EngineError:
    error = error_for_status(code, message)
    get_metrics().engine_errors_total.labels(error=type(error).__name__).inc()
    return error


@contextmanager
def _translated(what: str) -> Iterator[None]:
    """Re-raise py-lmdb failures as typed engine errors."""
    try:
        yield
    except lmdb.Error as exc:
        code = _STATUS_BY_CLASS.get(type(exc)) or getattr(exc, "code", 0) or 0
        logger.debug("engine.error", operation=what, code=code, error=str(exc))
        raise _fail(code, str(exc)) from exc


def _check_flags(flags: int, allowed: int) -> int:
    flags = int(flags)
    if flags & ~int(allowed):
        raise _fail(errno.EINVAL)
    return flags


def _open_kwargs(flags: int, mode: int, maxreaders: int | None, maxdbs: int,
                 mapsize: int | None) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "subdir": not flags & EnvFlags.NOSUBDIR,
        "readonly": bool(flags & EnvFlags.RDONLY),
        "metasync": not flags & EnvFlags.NOMETASYNC,
        "sync": not flags & EnvFlags.NOSYNC,
        "map_async": bool(flags & EnvFlags.MAPASYNC),
        "writemap": bool(flags & EnvFlags.WRITEMAP),
        "mode": mode,
        "max_dbs": maxdbs,
        "create": True,
    }
    if maxreaders is not None:
        kwargs["max_readers"] = maxreaders
    if mapsize is not None:
        kwargs["map_size"] = mapsize
    return kwargs


def _stat(raw: dict[str, int]) -> Stat:
    return Stat(
        page_size=raw["psize"],
        depth=raw["depth"],
        branch_pages=raw["branch_pages"],
        leaf_pages=raw["leaf_pages"],
        overflow_pages=raw["overflow_pages"],
        entries=raw["entries"],
    )


class _EnvRecord:
    __slots__ = ("env", "path", "kwargs", "txns", "dbis")

    def __init__(self, env: lmdb.Environment, path: str, kwargs: dict[str, Any]) -> None:
        self.env: lmdb.Environment | None = env
        self.path = path
        self.kwargs = kwargs
        self.txns: weakref.WeakSet[_TxnRecord] = weakref.WeakSet()
        self.dbis: weakref.WeakSet[_DbiRecord] = weakref.WeakSet()

    def live_txns(self) -> int:
        return sum(1 for record in list(self.txns) if record.live())

    def require(self) -> lmdb.Environment:
        if self.env is None:
            raise ClosedResourceError("Environment is closed")
        return self.env


class _TxnRecord:
    __slots__ = ("env", "parent", "txn", "write", "reset", "__weakref__")

    def __init__(self, env: _EnvRecord, parent: _TxnRecord | None,
                 txn: lmdb.Transaction, write: bool) -> None:
        self.env = env
        self.parent = parent
        self.txn: lmdb.Transaction | None = txn
        self.write = write
        self.reset = False

    def live(self) -> bool:
        record: _TxnRecord | None = self
        while record is not None:
            if record.txn is None:
                return False
            record = record.parent
        return True

    def require(self) -> lmdb.Transaction:
        if self.txn is None:
            raise _fail(MDB_BAD_TXN)
        return self.txn


class _DbiRecord:
    __slots__ = ("name", "flags", "db", "__weakref__")

    def __init__(self, name: bytes | None, flags: int, db: Any) -> None:
        self.name = name
        self.flags = flags
        self.db = db

    @property
    def options(self) -> dict[str, bool]:
        return {
            "reverse_key": bool(self.flags & DbFlags.REVERSEKEY),
            "dupsort": bool(self.flags & DbFlags.DUPSORT),
            "integerkey": bool(self.flags & DbFlags.INTEGERKEY),
            "dupfixed": bool(self.flags & DbFlags.DUPFIXED),
            "integerdup": bool(self.flags & DbFlags.INTEGERDUP),
        }


class _CursorRecord:
    __slots__ = ("cursor", "dupsort")

    def __init__(self, cursor: lmdb.Cursor, dupsort: bool) -> None:
        self.cursor = cursor
        self.dupsort = dupsort


class PyLmdbEngine:
    """StorageEngine implementation on top of py-lmdb."""

    def version(self) -> tuple[int, int, int]:
        major, minor, patch = lmdb.version()[:3]
        return major, minor, patch

    # Environment -----------------------------------------------------

    def env_open(
        self,
        path: str,
        flags: int,
        mode: int,
        maxreaders: int | None,
        maxdbs: int,
        mapsize: int | None,
    ) -> _EnvRecord:
        flags = _check_flags(flags, _OPEN_FLAGS)
        kwargs = _open_kwargs(flags, mode, maxreaders, maxdbs, mapsize)
        with _translated("env_open"):
            env = lmdb.open(path, **kwargs)
        return _EnvRecord(env, path, kwargs)

    def env_close(self, env: _EnvRecord) -> None:
        if env.env is not None:
            env.env.close()
            env.env = None
        env.txns.clear()

    def env_stat(self, env: _EnvRecord) -> Stat:
        with _translated("env_stat"):
            return _stat(env.require().stat())

    def env_info(self, env: _EnvRecord) -> Info:
        with _translated("env_info"):
            raw = env.require().info()
        return Info(
            map_address=raw["map_addr"],
            map_size=raw["map_size"],
            last_page_number=raw["last_pgno"],
            last_transaction_id=raw["last_txnid"],
            max_readers=raw["max_readers"],
            num_readers=raw["num_readers"],
        )

    def env_copy(self, env: _EnvRecord, path: str) -> None:
        with _translated("env_copy"):
            env.require().copy(path)

    def env_sync(self, env: _EnvRecord, force: bool) -> None:
        with _translated("env_sync"):
            env.require().sync(force)

    def env_get_flags(self, env: _EnvRecord) -> int:
        with _translated("env_get_flags"):
            raw = env.require().flags()
        flags = 0
        if not raw.get("subdir", True):
            flags |= EnvFlags.NOSUBDIR
        if raw.get("readonly"):
            flags |= EnvFlags.RDONLY
        if not raw.get("sync", True):
            flags |= EnvFlags.NOSYNC
        if not raw.get("metasync", True):
            flags |= EnvFlags.NOMETASYNC
        if raw.get("map_async"):
            flags |= EnvFlags.MAPASYNC
        if raw.get("writemap"):
            flags |= EnvFlags.WRITEMAP
        return int(flags)

    def env_set_flags(self, env: _EnvRecord, flags: int, onoff: bool) -> None:
        flags = _check_flags(flags, MUTABLE_ENV_FLAGS)
        current = self.env_get_flags(env) & MUTABLE_ENV_FLAGS
        wanted = (current | flags) if onoff else (current & ~flags)
        if wanted == current:
            return
        if env.live_txns():
            raise _fail(errno.EBUSY)

        kwargs = {
            **env.kwargs,
            "sync": not wanted & EnvFlags.NOSYNC,
            "metasync": not wanted & EnvFlags.NOMETASYNC,
            "map_async": bool(wanted & EnvFlags.MAPASYNC),
        }
        env.require().close()
        env.env = None
        try:
            self._reopen(env, kwargs)
        except EngineError:
            # Back to the previous flags; if that fails too the record stays closed.
            self._reopen(env, env.kwargs)
            raise
        logger.debug("engine.env_reopened", path=env.path, flags=int(wanted))

    def _reopen(self, env: _EnvRecord, kwargs: dict[str, Any]) -> None:
        with _translated("env_set_flags"):
            handle = lmdb.open(env.path, **kwargs)
            try:
                for dbi in list(env.dbis):
                    dbi.db = handle.open_db(dbi.name, create=False, **dbi.options)
            except lmdb.Error:
                handle.close()
                raise
        env.env = handle
        env.kwargs = kwargs

    def env_get_path(self, env: _EnvRecord) -> str:
        with _translated("env_get_path"):
            return env.require().path()

    # Transaction -----------------------------------------------------

    def txn_begin(self, env: _EnvRecord, parent: _TxnRecord | None, flags: int) -> _TxnRecord:
        flags = _check_flags(flags, EnvFlags.RDONLY)
        write = not flags & EnvFlags.RDONLY
        parent_txn = parent.require() if parent is not None else None
        with _translated("txn_begin"):
            txn = env.require().begin(write=write, parent=parent_txn)
        record = _TxnRecord(env, parent, txn, write)
        env.txns.add(record)
        return record

    def txn_commit(self, txn: _TxnRecord) -> None:
        handle = txn.require()
        txn.txn = None
        txn.env.txns.discard(txn)
        with _translated("txn_commit"):
            handle.commit()

    def txn_abort(self, txn: _TxnRecord) -> None:
        handle = txn.txn
        txn.txn = None
        txn.env.txns.discard(txn)
        if handle is not None:
            handle.abort()

    def txn_reset(self, txn: _TxnRecord) -> None:
        if txn.write or txn.reset:
            return
        handle = txn.require()
        txn.txn = None
        txn.reset = True
        txn.env.txns.discard(txn)
        handle.abort()

    def txn_renew(self, txn: _TxnRecord) -> None:
        if txn.write or not txn.reset:
            raise _fail(errno.EINVAL)
        with _translated("txn_renew"):
            txn.txn = txn.env.require().begin(write=False)
        txn.reset = False
        txn.env.txns.add(txn)

    # Table -----------------------------------------------------------

    def dbi_open(self, txn: _TxnRecord, name: str | None, flags: int) -> _DbiRecord:
        flags = _check_flags(flags, _DB_FLAGS)
        handle = txn.require()
        key = name.encode("utf-8") if name is not None else None
        record = _DbiRecord(key, flags, None)
        with _translated("dbi_open"):
            record.db = txn.env.require().open_db(
                key, txn=handle, create=bool(flags & DbFlags.CREATE), **record.options
            )
        txn.env.dbis.add(record)
        return record

    def dbi_close(self, env: _EnvRecord, dbi: _DbiRecord) -> None:
        # py-lmdb keeps table handles for the environment's lifetime.
        env.dbis.discard(dbi)

    def dbi_stat(self, txn: _TxnRecord, dbi: _DbiRecord) -> Stat:
        handle = txn.require()
        with _translated("dbi_stat"):
            return _stat(handle.stat(dbi.db))

    def dbi_drop(self, txn: _TxnRecord, dbi: _DbiRecord, delete: bool) -> None:
        handle = txn.require()
        with _translated("dbi_drop"):
            handle.drop(dbi.db, delete=delete)
        if delete:
            txn.env.dbis.discard(dbi)

    def get(self, txn: _TxnRecord, dbi: _DbiRecord, key: bytes) -> bytes:
        handle = txn.require()
        with _translated("get"):
            value = handle.get(key, db=dbi.db)
        if value is None:
            raise _fail(MDB_NOTFOUND)
        return value

    def put(self, txn: _TxnRecord, dbi: _DbiRecord, key: bytes, value: bytes, flags: int) -> None:
        flags = _check_flags(flags, _PUT_FLAGS)
        handle = txn.require()
        with _translated("put"):
            stored = handle.put(
                key,
                value,
                dupdata=not flags & WriteFlags.NODUPDATA,
                overwrite=not flags & WriteFlags.NOOVERWRITE,
                append=bool(flags & (WriteFlags.APPEND | WriteFlags.APPENDDUP)),
                db=dbi.db,
            )
        if not stored:
            raise _fail(MDB_KEYEXIST)

    def delete(self, txn: _TxnRecord, dbi: _DbiRecord, key: bytes, value: bytes | None) -> None:
        handle = txn.require()
        with _translated("delete"):
            if value is not None and dbi.flags & DbFlags.DUPSORT:
                # py-lmdb reads an empty value as "all duplicates"; a cursor
                # removes exactly the requested pair.
                cursor = handle.cursor(db=dbi.db)
                try:
                    deleted = cursor.set_key_dup(key, value) and cursor.delete()
                finally:
                    cursor.close()
            else:
                deleted = handle.delete(key, value or b"", db=dbi.db)
        if not deleted:
            raise _fail(MDB_NOTFOUND)

    # Cursor ----------------------------------------------------------

    def cursor_open(self, txn: _TxnRecord, dbi: _DbiRecord) -> _CursorRecord:
        handle = txn.require()
        with _translated("cursor_open"):
            cursor = handle.cursor(db=dbi.db)
        return _CursorRecord(cursor, bool(dbi.flags & DbFlags.DUPSORT))

    def cursor_close(self, cursor: _CursorRecord) -> None:
        cursor.cursor.close()

    def cursor_get(
        self, cursor: _CursorRecord, op: CursorOp, key: bytes | None = None
    ) -> tuple[bytes, bytes]:
        handle = cursor.cursor
        with _translated("cursor_get"):
            if op == CursorOp.FIRST:
                found = handle.first()
            elif op == CursorOp.LAST:
                found = handle.last()
            elif op == CursorOp.NEXT:
                found = handle.next()
            elif op == CursorOp.PREV:
                found = handle.prev()
            elif op == CursorOp.SET:
                found = handle.set_key(key)
            elif op == CursorOp.SET_RANGE:
                found = handle.set_range(key)
            elif op == CursorOp.GET_CURRENT:
                # Keys are never empty, so an empty key means unpositioned.
                found = bool(handle.key())
            else:
                raise _fail(errno.EINVAL)
            if not found:
                raise _fail(MDB_NOTFOUND)
            return handle.key(), handle.value()

    def cursor_put(self, cursor: _CursorRecord, key: bytes, value: bytes, flags: int) -> None:
        flags = _check_flags(flags, _PUT_FLAGS)
        with _translated("cursor_put"):
            stored = cursor.cursor.put(
                key,
                value,
                dupdata=not flags & WriteFlags.NODUPDATA,
                overwrite=not flags & WriteFlags.NOOVERWRITE,
                append=bool(flags & (WriteFlags.APPEND | WriteFlags.APPENDDUP)),
            )
        if not stored:
            raise _fail(MDB_KEYEXIST)

    def cursor_del(self, cursor: _CursorRecord, flags: int) -> None:
        flags = _check_flags(flags, WriteFlags.NODUPDATA)
        with _translated("cursor_del"):
            if not cursor.cursor.key():
                raise _fail(errno.EINVAL)
            cursor.cursor.delete(dupdata=bool(flags & WriteFlags.NODUPDATA))

    def cursor_count(self, cursor: _CursorRecord) -> int:
        if not cursor.dupsort:
            return 1
        with _translated("cursor_count"):
            return cursor.cursor.count()
