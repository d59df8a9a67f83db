"""Unit tests for the error hierarchy and status-code mapping."""

from __future__ import annotations

import errno

import pytest

from lmdb_client.domain.errors import (
    ERROR_MAP,
    MDB_KEYEXIST,
    MDB_MAP_FULL,
    MDB_NOTFOUND,
    ClosedResourceError,
    DiskFullError,
    EngineError,
    InvalidParameterError,
    KeyExistsError,
    MapFullError,
    NotFoundError,
    ReadonlyError,
    TerminatedTransactionError,
    error_for_status,
    status_message,
    strip_prefix,
)


@pytest.mark.unit
class TestErrorForStatus:
    """Tests for mapping engine status codes to error classes."""

    @pytest.mark.parametrize(
        ("code", "cls"),
        [
            (MDB_KEYEXIST, KeyExistsError),
            (MDB_NOTFOUND, NotFoundError),
            (MDB_MAP_FULL, MapFullError),
            (errno.EACCES, ReadonlyError),
            (errno.EINVAL, InvalidParameterError),
            (errno.ENOSPC, DiskFullError),
        ],
    )
    def test_maps_code_to_class(self, code: int, cls: type[EngineError]) -> None:
        error = error_for_status(code)

        assert type(error) is cls
        assert error.code == code

    def test_every_code_maps_to_one_class(self) -> None:
        classes = list(ERROR_MAP.values())

        assert len(classes) == len(set(classes))
        for code, cls in ERROR_MAP.items():
            assert cls.code == code

    def test_unknown_code_falls_back_to_base(self) -> None:
        error = error_for_status(-1)

        assert type(error) is EngineError
        assert error.code == -1
        assert "Unknown engine status" in str(error)

    def test_message_prefixes_are_stripped(self) -> None:
        error = error_for_status(MDB_KEYEXIST, "mdb_put: MDB_KEYEXIST: Key/data pair already exists")

        assert str(error) == "Key/data pair already exists"

    def test_default_message_is_engine_text(self) -> None:
        assert str(error_for_status(MDB_NOTFOUND)) == "No matching key/data pair found"
        assert str(error_for_status(errno.EINVAL)) == strip_prefix(status_message(errno.EINVAL))

    def test_client_errors_share_base(self) -> None:
        assert issubclass(ClosedResourceError, EngineError)
        assert issubclass(TerminatedTransactionError, EngineError)
        assert ClosedResourceError("Environment is closed").code == 0


@pytest.mark.unit
class TestStripPrefix:
    """Tests for removing component prefixes from engine messages."""

    def test_keeps_colons_in_message_body(self) -> None:
        error = error_for_status(-1, "mdb_env_open: /tmp/a: b: No such file")

        assert str(error) == "/tmp/a: b: No such file"

    def test_path_prefix_is_not_a_component(self) -> None:
        assert strip_prefix("/data/env: Permission denied") == "/data/env: Permission denied"

    def test_only_leading_prefixes_are_removed(self) -> None:
        message = "mdb_put: MDB_KEYEXIST: key mdb_x: MDB_Y: kept"

        assert strip_prefix(message) == "key mdb_x: MDB_Y: kept"

    def test_strip_prefix_without_prefix(self) -> None:
        assert strip_prefix("plain") == "plain"
