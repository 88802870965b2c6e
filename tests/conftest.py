from __future__ import annotations

import gzip
import importlib.util
import io
import struct
import sys
import zlib
from pathlib import Path

import pytest

SECTOR = 4096


def repo_src_path() -> Path:
    """Return the repository's ``src`` directory."""

    return Path(__file__).resolve().parents[1] / "src"


def _ensure_repo_on_path() -> None:
    if importlib.util.find_spec("anvil_recover") is None:
        sys.path.insert(0, str(repo_src_path()))


_ensure_repo_on_path()

import nbtlib  # noqa: E402


def chunk_nbt(chunk_x: int, chunk_z: int, *, level: bool = False) -> bytes:
    """Uncompressed NBT for a minimal chunk at the given coordinates."""

    fields = {
        "xPos": nbtlib.Int(chunk_x),
        "zPos": nbtlib.Int(chunk_z),
        "Status": nbtlib.String("minecraft:full"),
    }
    if level:
        root = nbtlib.Compound({"Level": nbtlib.Compound(fields)})
    else:
        root = nbtlib.Compound(fields)
    f = nbtlib.File(root, gzipped=False, byteorder="big")
    buf = io.BytesIO()
    f.write(buf)
    return buf.getvalue()


def compress(raw: bytes, compression: int = 2) -> bytes:
    if compression == 1:
        return gzip.compress(raw)
    return zlib.compress(raw)


def payload_bytes(body: bytes, compression: int = 2, length: int | None = None) -> bytes:
    """Length prefix, compression tag and body, padded to whole sectors."""

    if length is None:
        length = len(body) + 1
    raw = struct.pack(">IB", length, compression) + body
    padding = (-len(raw)) % SECTOR
    return raw + b"\x00" * padding


def chunk_payload(
    chunk_x: int, chunk_z: int, *, compression: int = 2, level: bool = False
) -> bytes:
    return payload_bytes(
        compress(chunk_nbt(chunk_x, chunk_z, level=level), compression), compression
    )


def slot_of(chunk_x: int, chunk_z: int) -> int:
    return (chunk_x % 32) + (chunk_z % 32) * 32


def build_region(
    total_sectors: int,
    header: dict[int, tuple[int, int]] | None = None,
    payloads: dict[int, bytes] | None = None,
) -> bytearray:
    """Assemble a region file image from raw header words and sector payloads."""

    data = bytearray(total_sectors * SECTOR)
    for slot, (offset, size) in (header or {}).items():
        data[slot * 4 : slot * 4 + 4] = struct.pack(">I", (offset << 8) | size)
    for sector, payload in (payloads or {}).items():
        start = sector * SECTOR
        data[start : start + len(payload)] = payload
    return data


def header_word(data: bytes | bytearray, slot: int) -> tuple[int, int]:
    (packed,) = struct.unpack(">I", bytes(data[slot * 4 : slot * 4 + 4]))
    return packed >> 8, packed & 0xFF


@pytest.fixture
def world_dir(tmp_path: Path) -> Path:
    (tmp_path / "region").mkdir()
    return tmp_path
