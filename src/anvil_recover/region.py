"""
Anvil region file container and header table codec.

A region file starts with two 4096-byte tables: the location table (1024
big-endian words, ``offset_sectors << 8 | size_sectors``) and the timestamp
table. Chunk payloads follow from sector 2 onwards. Only the location table
is ever rewritten here; the timestamp table and the payload sectors are
treated as opaque.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Tuple

from .errors import InvariantViolation

if TYPE_CHECKING:
    from .resolve import SlotRecovery

SECTOR_SIZE = 4096
HEADER_SLOTS = 1024
FIRST_PAYLOAD_SECTOR = 2

SIZE_BITS = 8
SIZE_MASK = (1 << SIZE_BITS) - 1
MAX_OFFSET_SECTORS = (1 << 24) - 1

_ENTRY = struct.Struct(">I")

HeaderEntry = Tuple[int, int]


def pack_entry(offset_sectors: int, size_sectors: int) -> bytes:
    """Pack a location entry into its 4-byte big-endian form."""

    if not 0 <= offset_sectors <= MAX_OFFSET_SECTORS:
        raise ValueError(f"sector offset {offset_sectors} does not fit in 24 bits")
    if not 0 <= size_sectors <= SIZE_MASK:
        raise ValueError(f"sector count {size_sectors} does not fit in 8 bits")
    return _ENTRY.pack((offset_sectors << SIZE_BITS) | size_sectors)


def unpack_entry(raw: bytes) -> HeaderEntry:
    (packed,) = _ENTRY.unpack(raw)
    return packed >> SIZE_BITS, packed & SIZE_MASK


def _slot_offset(slot: int) -> int:
    if not 0 <= slot < HEADER_SLOTS:
        raise IndexError(f"header slot {slot} out of range")
    return slot * _ENTRY.size


def read_header_entry(data: bytes | bytearray, slot: int) -> HeaderEntry:
    start = _slot_offset(slot)
    return unpack_entry(bytes(data[start : start + _ENTRY.size]))


def write_header_entry(
    data: bytearray, slot: int, offset_sectors: int, size_sectors: int
) -> None:
    """
    Overwrite one location entry and verify that it reads back unchanged.

    A mismatch means the buffer or the codec is broken, so it is reported as
    an :class:`InvariantViolation` rather than a recoverable error.
    """

    start = _slot_offset(slot)
    data[start : start + _ENTRY.size] = pack_entry(offset_sectors, size_sectors)

    written = read_header_entry(data, slot)
    if written != (offset_sectors, size_sectors):
        raise InvariantViolation(
            f"header slot {slot} reads back as {written}, "
            f"expected {(offset_sectors, size_sectors)}"
        )


class RegionFile:
    """In-memory copy of a region file; owns its buffer for one recovery run."""

    def __init__(self, data: bytes | bytearray, path: Path | None = None):
        self.data = bytearray(data)
        self.path = path

    @classmethod
    def from_file(cls, path: Path | str) -> "RegionFile":
        path = Path(path)
        return cls(path.read_bytes(), path=path)

    @classmethod
    def from_bytes(cls, data: bytes | bytearray) -> "RegionFile":
        return cls(data)

    @property
    def sector_count(self) -> int:
        return len(self.data) // SECTOR_SIZE

    def header_entry(self, slot: int) -> HeaderEntry:
        return read_header_entry(self.data, slot)

    def set_header_entry(self, slot: int, offset_sectors: int, size_sectors: int) -> None:
        write_header_entry(self.data, slot, offset_sectors, size_sectors)

    def apply(self, recoveries: Iterable["SlotRecovery"]) -> bool:
        """Write every chosen entry into the header; return True if any slot changed."""

        changed = False
        for recovery in recoveries:
            entry = recovery.entry
            self.set_header_entry(recovery.slot, entry.offset_sectors, entry.size_sectors)
            changed = True
        return changed

    def to_bytes(self) -> bytes:
        return bytes(self.data)


__all__ = [
    "SECTOR_SIZE",
    "HEADER_SLOTS",
    "FIRST_PAYLOAD_SECTOR",
    "SIZE_BITS",
    "SIZE_MASK",
    "MAX_OFFSET_SECTORS",
    "HeaderEntry",
    "pack_entry",
    "unpack_entry",
    "read_header_entry",
    "write_header_entry",
    "RegionFile",
]
