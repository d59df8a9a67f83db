"""Integration tests for transactions on py-lmdb."""

from __future__ import annotations

import gc

import pytest

from lmdb_client import (
    BadTransactionError,
    NotFoundError,
    ReadonlyError,
    TerminatedTransactionError,
)


def read(env, key: bytes) -> bytes:
    with env.begin_transaction(readonly=True) as txn:
        return txn.open_database().get(txn, key)


@pytest.mark.integration
class TestTransactions:
    """Commit, abort and nesting against the real engine."""

    def test_commit_is_visible(self, env) -> None:
        txn = env.begin_transaction()
        txn.open_database().put(txn, b"key", b"value")
        txn.commit()

        assert read(env, b"key") == b"value"

    def test_abort_is_invisible(self, env) -> None:
        txn = env.begin_transaction()
        txn.open_database().put(txn, b"key", b"value")
        txn.abort()

        with pytest.raises(NotFoundError):
            read(env, b"key")

    def test_scoped_error_aborts(self, env) -> None:
        with pytest.raises(RuntimeError):
            with env.begin_transaction() as txn:
                txn.open_database().put(txn, b"key", b"value")
                raise RuntimeError("fail")

        with pytest.raises(NotFoundError):
            read(env, b"key")

    def test_nested_commit_then_parent_commit(self, env) -> None:
        with env.begin_transaction() as parent:
            db = parent.open_database()
            with parent.begin_nested() as child:
                db.put(child, b"key", b"child")
            assert db.get(parent, b"key") == b"child"

        assert read(env, b"key") == b"child"

    def test_nested_abort_discards_child_writes(self, env) -> None:
        with env.begin_transaction() as parent:
            db = parent.open_database()
            db.put(parent, b"kept", b"1")
            child = parent.begin_nested()
            db.put(child, b"dropped", b"2")
            child.abort()

            with pytest.raises(NotFoundError):
                db.get(parent, b"dropped")

        assert read(env, b"kept") == b"1"

    def test_parent_abort_discards_committed_child(self, env) -> None:
        parent = env.begin_transaction()
        db = parent.open_database()
        child = parent.begin_nested()
        db.put(child, b"key", b"value")
        child.commit()
        parent.abort()

        with pytest.raises(NotFoundError):
            read(env, b"key")

    def test_parent_commit_ends_open_child(self, env) -> None:
        parent = env.begin_transaction()
        child = parent.begin_nested()

        parent.commit()

        assert not parent.active
        assert not child.active
        with pytest.raises(TerminatedTransactionError):
            child.commit()

    def test_write_in_readonly_transaction(self, env) -> None:
        with env.begin_transaction(readonly=True) as txn:
            db = txn.open_database()
            with pytest.raises(ReadonlyError):
                db.put(txn, b"key", b"value")

    def test_reset_and_renew(self, env) -> None:
        reader = env.begin_transaction(readonly=True)
        db = reader.open_database()
        with pytest.raises(NotFoundError):
            db.get(reader, b"key")

        reader.reset()
        with pytest.raises(BadTransactionError):
            db.get(reader, b"key")

        with env.begin_transaction() as writer:
            writer.open_database().put(writer, b"key", b"value")

        reader.renew()
        assert db.get(reader, b"key") == b"value"
        reader.abort()

    def test_ended_transactions_are_not_retained(self, env) -> None:
        for _ in range(200):
            with env.begin_transaction(readonly=True):
                pass
        with env.begin_transaction() as txn:
            txn.begin_nested().commit()
            txn.begin_nested().abort()
        reader = env.begin_transaction(readonly=True)
        reader.reset()
        reader.abort()
        gc.collect()

        assert len(env._ref.env.txns) == 0

    def test_implicit_abort_on_collection(self, env) -> None:
        txn = env.begin_transaction()
        txn.open_database().put(txn, b"key", b"value")
        del txn
        gc.collect()

        # The writer lock was released, so a new writer can begin
        with env.begin_transaction() as txn:
            with pytest.raises(NotFoundError):
                txn.open_database().get(txn, b"key")
