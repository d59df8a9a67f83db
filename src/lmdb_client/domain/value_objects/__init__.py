"""Value objects for the LMDB client domain.

Value objects are immutable types that represent domain concepts.
They have no identity - two value objects with the same attributes are equal.

Exports:
    Flags:
        - EnvFlags, DbFlags, WriteFlags: Engine flag sets (LMDB values)
        - CursorOp: Cursor positioning operations
        - ENV_FLAGS, MUTABLE_ENV_FLAGS: Environment flag masks

    Snapshots:
        - Stat: B-tree statistics
        - Info: Environment information
"""

from lmdb_client.domain.value_objects.flags import (
    ENV_FLAGS,
    MUTABLE_ENV_FLAGS,
    CursorOp,
    DbFlags,
    EnvFlags,
    WriteFlags,
)
from lmdb_client.domain.value_objects.stats import Info, Stat

__all__ = [
    # Flags
    "EnvFlags",
    "DbFlags",
    "WriteFlags",
    "CursorOp",
    "ENV_FLAGS",
    "MUTABLE_ENV_FLAGS",
    # Snapshots
    "Stat",
    "Info",
]
