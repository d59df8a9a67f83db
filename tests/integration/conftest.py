"""Fixtures for integration tests against py-lmdb."""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

import lmdb_client
from lmdb_client.adapters.outbound import PyLmdbEngine


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    path = temp_dir / "env"
    path.mkdir()
    return path


@pytest.fixture
def env(db_path: Path) -> Generator[lmdb_client.Environment, None, None]:
    """Provide an environment backed by py-lmdb, closed afterwards."""
    with lmdb_client.open(db_path, engine=PyLmdbEngine(), mapsize=1 << 24, maxdbs=4) as environment:
        yield environment
