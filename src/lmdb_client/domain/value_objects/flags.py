"""Engine flag sets and cursor operations.

The numeric values are LMDB's own and are passed to the engine verbatim;
the client never reinterprets them beyond masking the environment flags it
reports back.
"""

from __future__ import annotations

from enum import IntEnum, IntFlag


class EnvFlags(IntFlag):
    """Environment flags accepted by ``open`` and reported by ``get_flags``."""

    FIXEDMAP = 0x01
    NOSUBDIR = 0x4000
    NOSYNC = 0x10000
    RDONLY = 0x20000
    NOMETASYNC = 0x40000
    WRITEMAP = 0x80000
    MAPASYNC = 0x100000


class DbFlags(IntFlag):
    """Flags accepted when opening a table."""

    REVERSEKEY = 0x02
    DUPSORT = 0x04
    INTEGERKEY = 0x08
    DUPFIXED = 0x10
    INTEGERDUP = 0x20
    REVERSEDUP = 0x40
    CREATE = 0x40000


class WriteFlags(IntFlag):
    """Flags accepted by ``put`` and cursor ``put`` / ``delete``."""

    NOOVERWRITE = 0x10
    NODUPDATA = 0x20
    CURRENT = 0x40
    RESERVE = 0x10000
    APPEND = 0x20000
    APPENDDUP = 0x40000
    MULTIPLE = 0x80000


class CursorOp(IntEnum):
    """Cursor positioning operations used by the client."""

    FIRST = 0
    GET_CURRENT = 4
    LAST = 6
    NEXT = 8
    PREV = 12
    SET = 15
    SET_RANGE = 17


ENV_FLAGS = (
    EnvFlags.FIXEDMAP
    | EnvFlags.NOSUBDIR
    | EnvFlags.NOSYNC
    | EnvFlags.RDONLY
    | EnvFlags.NOMETASYNC
    | EnvFlags.WRITEMAP
    | EnvFlags.MAPASYNC
)
"""Every environment flag the client exports."""

MUTABLE_ENV_FLAGS = EnvFlags.NOSYNC | EnvFlags.NOMETASYNC | EnvFlags.MAPASYNC
"""Environment flags the engine allows toggling after open."""
