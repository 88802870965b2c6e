"""Chunk payload decoding and coordinate extraction."""

from __future__ import annotations

import gzip
import io
import struct
import zlib

import nbtlib

COMPRESSION_GZIP = 1
COMPRESSION_ZLIB = 2
COMPRESSION_NAMES = {COMPRESSION_GZIP: "gzip", COMPRESSION_ZLIB: "zlib"}

# Everything a truncated, garbage or pathologically nested payload can raise
# while being inflated and parsed as NBT.
DECODE_ERRORS = (
    EOFError,
    OSError,
    zlib.error,
    struct.error,
    KeyError,
    IndexError,
    TypeError,
    ValueError,
    RecursionError,
)


def decompress_payload(payload: bytes, compression: int) -> bytes:
    if compression == COMPRESSION_GZIP:
        return gzip.decompress(payload)
    if compression == COMPRESSION_ZLIB:
        return zlib.decompress(payload)
    raise ValueError(f"unsupported compression type {compression}")


def decode_chunk(payload: bytes, compression: int) -> nbtlib.Compound:
    """Inflate a chunk payload and parse it as a big-endian NBT file."""

    raw_nbt = decompress_payload(payload, compression)
    return nbtlib.File.parse(io.BytesIO(raw_nbt), byteorder="big")


def chunk_coordinates(root: nbtlib.Compound) -> tuple[int, int] | None:
    """
    Return ``(xPos, zPos)`` from a decoded chunk, or None if they are missing.

    Older formats keep the fields inside a ``Level`` compound; newer ones
    store them on the root. When ``Level`` exists it is the only place
    looked at.
    """

    if not isinstance(root, nbtlib.Compound):
        return None

    container = root
    if "Level" in root:
        container = root["Level"]
        if not isinstance(container, nbtlib.Compound):
            return None

    chunk_x = container.get("xPos")
    chunk_z = container.get("zPos")
    if not isinstance(chunk_x, nbtlib.Int) or not isinstance(chunk_z, nbtlib.Int):
        return None
    return int(chunk_x), int(chunk_z)


__all__ = [
    "COMPRESSION_GZIP",
    "COMPRESSION_ZLIB",
    "COMPRESSION_NAMES",
    "DECODE_ERRORS",
    "decompress_payload",
    "decode_chunk",
    "chunk_coordinates",
]
