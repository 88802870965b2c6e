"""Mapping between chunk coordinates, region coordinates and header slots."""

from __future__ import annotations

from pathlib import Path

from .errors import RegionNameError

REGION_DIAMETER = 32  # chunks per region along each axis
_AXIS_MASK = REGION_DIAMETER - 1
_Z_SHIFT = 5


def slot_index(chunk_x: int, chunk_z: int) -> int:
    """Header slot for a chunk, using only its position inside the region."""

    return (chunk_x & _AXIS_MASK) | ((chunk_z & _AXIS_MASK) << _Z_SHIFT)


def slot_position(slot: int) -> tuple[int, int]:
    """Region-relative ``(x, z)`` of a header slot."""

    return slot & _AXIS_MASK, slot >> _Z_SHIFT


def chunk_position(region_position: tuple[int, int], slot: int) -> tuple[int, int]:
    """Absolute chunk coordinates of ``slot`` inside the given region."""

    local_x, local_z = slot_position(slot)
    region_x, region_z = region_position
    return (
        region_x * REGION_DIAMETER + local_x,
        region_z * REGION_DIAMETER + local_z,
    )


def parse_region_position(path: Path | str) -> tuple[int, int]:
    """
    Parse the region coordinates from a file name such as ``r.-1.3.mca``.

    The second and third dot-separated tokens of the base name must be
    integers; anything else raises :class:`RegionNameError`.
    """

    name = Path(path).name
    tokens = name.split(".")
    if len(tokens) < 3:
        raise RegionNameError(f"region file name {name!r} has no position tokens")
    try:
        return int(tokens[1]), int(tokens[2])
    except ValueError:
        raise RegionNameError(
            f"region file name {name!r} has non-integer position tokens"
        ) from None


__all__ = [
    "REGION_DIAMETER",
    "slot_index",
    "slot_position",
    "chunk_position",
    "parse_region_position",
]
