"""Integration tests for environments on py-lmdb."""

from __future__ import annotations

import errno
from pathlib import Path

import lmdb
import pytest

import lmdb_client
from lmdb_client import (
    NOSYNC,
    ClosedResourceError,
    EngineError,
    InvalidParameterError,
    TerminatedTransactionError,
)
from lmdb_client.adapters.outbound import PyLmdbEngine


@pytest.mark.integration
class TestEnvironment:
    """Environment operations against the real engine."""

    def test_stat_and_info(self, env) -> None:
        stat = env.stat()
        info = env.info()

        assert stat.page_size > 0
        assert stat.entries == 0
        assert info.map_size == 1 << 24
        assert info.max_readers > 0

    def test_path(self, env, db_path: Path) -> None:
        assert env.path() == str(db_path)

    def test_sync(self, env) -> None:
        env.sync()
        env.sync(force=True)

    def test_copy_is_readable(self, env, temp_dir: Path) -> None:
        with env.begin_transaction() as txn:
            txn.open_database().put(txn, b"key", b"value")
        target = temp_dir / "copy"
        target.mkdir()

        env.copy(target)

        with lmdb_client.open(target, engine=PyLmdbEngine()) as copy:
            with copy.begin_transaction(readonly=True) as txn:
                assert txn.open_database().get(txn, b"key") == b"value"

    def test_open_flags_are_reported(self, db_path: Path) -> None:
        with lmdb_client.open(db_path, engine=PyLmdbEngine(), flags=NOSYNC) as env:
            assert env.get_flags() & NOSYNC

    def test_set_flags_without_live_transactions(self, env) -> None:
        with env.begin_transaction() as txn:
            txn.open_database().put(txn, b"key", b"value")

        assert env.set_flags(NOSYNC) & NOSYNC
        assert not env.set_flags(0) & NOSYNC

        with env.begin_transaction(readonly=True) as txn:
            assert txn.open_database().get(txn, b"key") == b"value"

    def test_set_flags_with_live_transaction_is_busy(self, env) -> None:
        txn = env.begin_transaction(readonly=True)

        with pytest.raises(EngineError) as excinfo:
            env.set_flags(NOSYNC)

        assert excinfo.value.code == errno.EBUSY
        txn.abort()

    def test_failed_reopen_keeps_previous_flags(self, env, monkeypatch) -> None:
        with env.begin_transaction() as txn:
            txn.open_database().put(txn, b"key", b"value")
        real_open = lmdb.open
        attempts = []

        def reject_first(path, **kwargs):
            attempts.append(kwargs)
            if len(attempts) == 1:
                raise lmdb.InvalidParameterError("mdb_env_open: rejected")
            return real_open(path, **kwargs)

        monkeypatch.setattr(lmdb, "open", reject_first)

        with pytest.raises(InvalidParameterError, match="rejected"):
            env.set_flags(NOSYNC)

        assert len(attempts) == 2
        assert not env.get_flags() & NOSYNC
        with env.begin_transaction(readonly=True) as txn:
            assert txn.open_database().get(txn, b"key") == b"value"

    def test_failed_restore_reports_closed(self, env, monkeypatch) -> None:
        def reject(path, **kwargs):
            raise lmdb.InvalidParameterError("mdb_env_open: rejected")

        monkeypatch.setattr(lmdb, "open", reject)

        with pytest.raises(InvalidParameterError):
            env.set_flags(NOSYNC)

        with pytest.raises(ClosedResourceError):
            env.stat()

    def test_unsupported_open_flag(self, db_path: Path) -> None:
        with pytest.raises(InvalidParameterError):
            lmdb_client.open(db_path, engine=PyLmdbEngine(), flags=lmdb_client.FIXEDMAP)

    def test_closed_environment(self, db_path: Path) -> None:
        env = lmdb_client.open(db_path, engine=PyLmdbEngine())
        txn = env.begin_transaction()
        db = txn.open_database()

        env.close()

        assert env.closed
        assert not txn.active
        with pytest.raises(ClosedResourceError):
            env.stat()
        with pytest.raises(ClosedResourceError):
            env.begin_transaction()
        with pytest.raises(TerminatedTransactionError):
            db.get(txn, b"key")
        with pytest.raises(TerminatedTransactionError):
            txn.commit()

    def test_engine_version_constants(self) -> None:
        assert lmdb_client.VERSION == (
            f"{lmdb_client.VERSION_MAJOR}.{lmdb_client.VERSION_MINOR}.{lmdb_client.VERSION_PATCH}"
        )
        assert lmdb_client.VERSION_MAJOR >= 0
