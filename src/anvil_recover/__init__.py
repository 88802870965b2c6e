"""
Top-level package for Anvil region file recovery.

Scans corrupted Minecraft region files (``.mca``) for chunk payloads that
still decode, works out which header slot each one belongs to, and rewrites
the location table so the chunks are reachable again.
"""

from .chunk import chunk_coordinates, decode_chunk
from .coords import chunk_position, parse_region_position, slot_index
from .errors import InvariantViolation, RecoveryError, RegionNameError, ResolutionError
from .recover import RecoveryResult, RegionRecoverer, recover_region_file, recover_world
from .region import RegionFile, pack_entry, unpack_entry, write_header_entry
from .resolve import (
    DuplicateBehaviour,
    DuplicateChooser,
    ScriptedChooser,
    SlotRecovery,
    resolve_entries,
    resolve_slot,
)
from .scan import RegionEntry, discover_entries

__all__ = [
    "__version__",
    "RegionFile",
    "pack_entry",
    "unpack_entry",
    "write_header_entry",
    "slot_index",
    "chunk_position",
    "parse_region_position",
    "decode_chunk",
    "chunk_coordinates",
    "RegionEntry",
    "discover_entries",
    "DuplicateBehaviour",
    "DuplicateChooser",
    "ScriptedChooser",
    "SlotRecovery",
    "resolve_slot",
    "resolve_entries",
    "RecoveryResult",
    "RegionRecoverer",
    "recover_region_file",
    "recover_world",
    "RecoveryError",
    "InvariantViolation",
    "RegionNameError",
    "ResolutionError",
]

__version__ = "0.1.0"
