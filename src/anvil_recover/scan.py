"""Discovery of chunk payloads by walking the sector stream of a region file."""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass
from typing import Callable, Dict, List

import nbtlib

from .chunk import (
    COMPRESSION_NAMES,
    DECODE_ERRORS,
    chunk_coordinates,
    decode_chunk,
)
from .coords import chunk_position, slot_index
from .region import (
    FIRST_PAYLOAD_SECTOR,
    SECTOR_SIZE,
    SIZE_MASK,
    read_header_entry,
)

logger = logging.getLogger(__name__)

_PAYLOAD_HEADER = struct.Struct(">IB")

Decoder = Callable[[bytes, int], nbtlib.Compound]


@dataclass(frozen=True)
class RegionEntry:
    """A decodable payload found at ``offset_sectors`` that belongs to some slot."""

    offset_sectors: int
    size_sectors: int
    is_current: bool

    @property
    def location(self) -> tuple[int, int]:
        return self.offset_sectors, self.size_sectors


DiscoveredEntries = Dict[int, List[RegionEntry]]


def discover_entries(
    data: bytes | bytearray, decode: Decoder = decode_chunk
) -> DiscoveredEntries:
    """
    Scan every sector from 2 onwards for a payload that decodes as a chunk.

    Returns a mapping of header slot to the entries found for it, each list
    in ascending sector order. Slots without candidates are absent. Sectors
    whose length prefix runs past the end of the data, or whose compression
    type is unknown, are skipped without calling ``decode``.
    """

    discovered: DiscoveredEntries = {}
    total = len(data)

    for sector_idx in range(FIRST_PAYLOAD_SECTOR, total // SECTOR_SIZE):
        byte_offset = sector_idx * SECTOR_SIZE
        length, compression = _PAYLOAD_HEADER.unpack_from(data, byte_offset)

        payload_start = byte_offset + _PAYLOAD_HEADER.size
        payload_end = byte_offset + 4 + length
        if payload_end > total or compression not in COMPRESSION_NAMES:
            continue

        size_sectors = math.ceil(length / SECTOR_SIZE)
        if size_sectors > SIZE_MASK:
            logger.debug(
                "sector %d: %d bytes needs %d sectors, more than a header entry holds",
                sector_idx,
                length,
                size_sectors,
            )
            continue

        try:
            root = decode(bytes(data[payload_start:payload_end]), compression)
        except DECODE_ERRORS as exc:
            logger.debug(
                "sector %d: %s payload does not decode: %s",
                sector_idx,
                COMPRESSION_NAMES[compression],
                exc,
            )
            continue

        coords = chunk_coordinates(root)
        if coords is None:
            logger.debug(
                "sector %d: decoded chunk has no integer xPos/zPos", sector_idx
            )
            continue

        slot = slot_index(*coords)
        current_offset, current_size = read_header_entry(data, slot)
        entry = RegionEntry(
            offset_sectors=sector_idx,
            size_sectors=size_sectors,
            is_current=(current_offset == sector_idx and current_size == size_sectors),
        )
        discovered.setdefault(slot, []).append(entry)

    return discovered


def summarize_entries(
    discovered: DiscoveredEntries,
    data: bytes | bytearray,
    region_position: tuple[int, int] | None = None,
) -> dict:
    """Build a JSON-serialisable report of the candidates found by a scan."""

    slots: list[dict] = []
    for slot in sorted(discovered):
        entries = discovered[slot]
        header_offset, header_size = read_header_entry(data, slot)
        item: dict = {
            "slot": slot,
            "header": {"offset_sectors": header_offset, "size_sectors": header_size},
            "current_count": sum(1 for e in entries if e.is_current),
            "untracked_count": sum(1 for e in entries if not e.is_current),
            "entries": [
                {
                    "offset_sectors": e.offset_sectors,
                    "size_sectors": e.size_sectors,
                    "is_current": e.is_current,
                }
                for e in entries
            ],
        }
        if region_position is not None:
            item["chunk"] = list(chunk_position(region_position, slot))
        slots.append(item)

    needs_attention = [s["slot"] for s in slots if s["untracked_count"]]
    return {
        "summary": {
            "sectors": len(data) // SECTOR_SIZE,
            "region": list(region_position) if region_position is not None else None,
            "slots_with_candidates": len(slots),
            "candidates": sum(len(s["entries"]) for s in slots),
            "slots_with_untracked": len(needs_attention),
        },
        "slots": slots,
    }


__all__ = ["RegionEntry", "DiscoveredEntries", "discover_entries", "summarize_entries"]
