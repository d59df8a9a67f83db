"""Read-only snapshots returned by ``stat`` and ``info`` calls."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Stat:
    """B-tree statistics of an environment or table.

    Attributes:
        page_size: Size of a page in bytes.
        depth: Height of the B-tree.
        branch_pages: Number of internal (non-leaf) pages.
        leaf_pages: Number of leaf pages.
        overflow_pages: Number of overflow pages.
        entries: Number of data items.
    """

    page_size: int
    depth: int
    branch_pages: int
    leaf_pages: int
    overflow_pages: int
    entries: int


@dataclass(frozen=True, slots=True)
class Info:
    """Environment information captured at call time.

    Attributes:
        map_address: Address of the memory map, 0 unless fixed-map is used.
        map_size: Size of the memory map in bytes.
        last_page_number: ID of the last used page.
        last_transaction_id: ID of the last committed transaction.
        max_readers: Size of the reader lock table.
        num_readers: Reader slots currently in use.
    """

    map_address: int
    map_size: int
    last_page_number: int
    last_transaction_id: int
    max_readers: int
    num_readers: int
