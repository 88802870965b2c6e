#!/usr/bin/env python
"""
Inspect an Anvil region file and print its header table against the sectors.

Example:
    python scripts/inspect_region.py world/region/r.0.0.mca --only-broken
"""

from __future__ import annotations

import argparse
from pathlib import Path

from anvil_recover.chunk import COMPRESSION_NAMES, DECODE_ERRORS, chunk_coordinates, decode_chunk
from anvil_recover.coords import chunk_position, parse_region_position
from anvil_recover.region import HEADER_SLOTS, SECTOR_SIZE, RegionFile


def describe_slot(region: RegionFile, slot: int) -> str | None:
    """Return a one-line description of what the header slot points at."""

    offset, size = region.header_entry(slot)
    if offset == 0 and size == 0:
        return None
    start = offset * SECTOR_SIZE
    if offset < 2 or start + 5 > len(region.data):
        return f"sector {offset} x{size}: outside payload area"

    length = int.from_bytes(region.data[start : start + 4], "big")
    compression = region.data[start + 4]
    if compression not in COMPRESSION_NAMES:
        return f"sector {offset} x{size}: unknown compression {compression}"
    if start + 4 + length > len(region.data):
        return f"sector {offset} x{size}: length {length} runs past end of file"
    try:
        root = decode_chunk(bytes(region.data[start + 5 : start + 4 + length]), compression)
    except DECODE_ERRORS as exc:
        return f"sector {offset} x{size}: does not decode ({exc})"
    coords = chunk_coordinates(root)
    if coords is None:
        return f"sector {offset} x{size}: no xPos/zPos"
    return f"sector {offset} x{size}: chunk {coords} ({COMPRESSION_NAMES[compression]})"


def main() -> None:
    parser = argparse.ArgumentParser(description="Inspect an Anvil region file.")
    parser.add_argument("region_path", type=Path, help="Path to .mca file")
    parser.add_argument(
        "--only-broken",
        action="store_true",
        help="Only list slots whose header entry does not point at a matching chunk",
    )
    args = parser.parse_args()

    region = RegionFile.from_file(args.region_path)
    region_position = parse_region_position(args.region_path)
    print(
        f"{args.region_path.name}: {len(region.data)} bytes, "
        f"{region.sector_count} sectors, region {region_position}"
    )

    for slot in range(HEADER_SLOTS):
        description = describe_slot(region, slot)
        if description is None:
            continue
        expected = chunk_position(region_position, slot)
        ok = f"chunk {expected}" in description
        if args.only_broken and ok:
            continue
        marker = "  " if ok else "!!"
        print(f"{marker} slot {slot:4d} {expected}: {description}")


if __name__ == "__main__":
    main()
