"""Pytest configuration and fixtures for lmdb_client tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any, Generator

import pytest
from prometheus_client import CollectorRegistry

from lmdb_client.domain.errors import MDB_KEYEXIST, MDB_NOTFOUND, error_for_status
from lmdb_client.domain.value_objects import CursorOp, Info, Stat, WriteFlags
from lmdb_client.infrastructure.container import Container, reset_container
from lmdb_client.infrastructure.metrics import MetricsRegistry, setup_metrics


class FakeEngine:
    """In-memory StorageEngine that records every call.

    Handles are small tagged tuples so tests can assert on the exact
    sequence of engine calls (``engine.calls``). Data lives in one dict per
    table; transactions are not isolated.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.flags: dict[Any, int] = {}
        self.tables: dict[str | None, dict[bytes, bytes]] = {}
        self._ids = 0
        self.fail_commit: Exception | None = None

    def _next(self, kind: str) -> tuple[str, int]:
        self._ids += 1
        return (kind, self._ids)

    def names(self) -> list[str]:
        """Return just the operation names of the recorded calls."""
        return [call[0] for call in self.calls]

    def version(self) -> tuple[int, int, int]:
        return (0, 9, 70)

    def env_open(self, path, flags, mode, maxreaders, maxdbs, mapsize):
        env = self._next("env")
        self.flags[env] = flags
        self.calls.append(("env_open", path, flags, mode, maxreaders, maxdbs, mapsize))
        return env

    def env_close(self, env):
        self.calls.append(("env_close", env))

    def env_stat(self, env):
        self.calls.append(("env_stat", env))
        return Stat(4096, 1, 0, 1, 0, len(self.tables.get(None, {})))

    def env_info(self, env):
        self.calls.append(("env_info", env))
        return Info(0, 1 << 20, 1, 0, 126, 0)

    def env_copy(self, env, path):
        self.calls.append(("env_copy", env, path))

    def env_sync(self, env, force):
        self.calls.append(("env_sync", env, force))

    def env_get_flags(self, env):
        self.calls.append(("env_get_flags", env))
        return self.flags[env]

    def env_set_flags(self, env, flags, onoff):
        self.calls.append(("env_set_flags", env, flags, onoff))
        if onoff:
            self.flags[env] |= flags
        else:
            self.flags[env] &= ~flags

    def env_get_path(self, env):
        self.calls.append(("env_get_path", env))
        return next(call[1] for call in self.calls if call[0] == "env_open")

    def txn_begin(self, env, parent, flags):
        txn = self._next("txn")
        self.calls.append(("txn_begin", env, parent, flags, txn))
        return txn

    def txn_commit(self, txn):
        self.calls.append(("txn_commit", txn))
        if self.fail_commit is not None:
            raise self.fail_commit

    def txn_abort(self, txn):
        self.calls.append(("txn_abort", txn))

    def txn_reset(self, txn):
        self.calls.append(("txn_reset", txn))

    def txn_renew(self, txn):
        self.calls.append(("txn_renew", txn))

    def dbi_open(self, txn, name, flags):
        self.calls.append(("dbi_open", txn, name, flags))
        self.tables.setdefault(name, {})
        return ("dbi", name)

    def dbi_close(self, env, dbi):
        self.calls.append(("dbi_close", env, dbi))

    def dbi_stat(self, txn, dbi):
        self.calls.append(("dbi_stat", txn, dbi))
        return Stat(4096, 1, 0, 1, 0, len(self.tables[dbi[1]]))

    def dbi_drop(self, txn, dbi, delete):
        self.calls.append(("dbi_drop", txn, dbi, delete))
        self.tables[dbi[1]].clear()

    def get(self, txn, dbi, key):
        self.calls.append(("get", txn, dbi, key))
        try:
            return self.tables[dbi[1]][key]
        except KeyError:
            raise error_for_status(MDB_NOTFOUND) from None

    def put(self, txn, dbi, key, value, flags):
        self.calls.append(("put", txn, dbi, key, value, flags))
        table = self.tables[dbi[1]]
        if flags & WriteFlags.NOOVERWRITE and key in table:
            raise error_for_status(MDB_KEYEXIST)
        table[key] = value

    def delete(self, txn, dbi, key, value):
        self.calls.append(("delete", txn, dbi, key, value))
        table = self.tables[dbi[1]]
        if key not in table or (value is not None and table[key] != value):
            raise error_for_status(MDB_NOTFOUND)
        del table[key]

    def cursor_open(self, txn, dbi):
        cursor = self._next("cursor")
        self.calls.append(("cursor_open", txn, dbi, cursor))
        return cursor

    def cursor_close(self, cursor):
        self.calls.append(("cursor_close", cursor))

    def cursor_get(self, cursor, op, key=None):
        self.calls.append(("cursor_get", cursor, CursorOp(op), key))
        return (b"k", b"v")

    def cursor_put(self, cursor, key, value, flags):
        self.calls.append(("cursor_put", cursor, key, value, flags))

    def cursor_del(self, cursor, flags):
        self.calls.append(("cursor_del", cursor, flags))

    def cursor_count(self, cursor):
        self.calls.append(("cursor_count", cursor))
        return 1


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def engine() -> FakeEngine:
    """Provide a fresh recording engine."""
    return FakeEngine()


@pytest.fixture
def container() -> Generator[Container, None, None]:
    """Provide a fresh DI container for each test."""
    reset_container()
    c = Container()
    yield c
    c.clear()


@pytest.fixture(autouse=True)
def metrics_registry() -> MetricsRegistry:
    """Route client metrics to a fresh registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return setup_metrics(registry=registry)


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests against the real engine")
    config.addinivalue_line("markers", "property: Randomized property tests")
