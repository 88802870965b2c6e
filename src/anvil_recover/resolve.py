"""
Deciding which discovered entry each header slot should point at.

Resolution is a pure decision over the candidates of a slot: it never reads
or writes files. When the candidates are ambiguous, the configured
:class:`DuplicateBehaviour` decides, and a :class:`DuplicateChooser` supplies
whatever the behaviour leaves open (a behaviour for one slot when none is
configured, or which of several untracked entries to take).
"""

from __future__ import annotations

import enum
from collections import deque
from dataclasses import dataclass
from typing import Iterable, Sequence

from .coords import chunk_position
from .errors import InvariantViolation, ResolutionError
from .scan import DiscoveredEntries, RegionEntry


class DuplicateBehaviour(enum.Enum):
    TAKE_CURRENT = "take-current"  # keep the entry the header points at
    TAKE_UNTRACKED = "take-untracked"  # take an entry the header does not point at

    @classmethod
    def parse(cls, text: str) -> "DuplicateBehaviour":
        """Accept ``take-current``, ``TakeCurrent``, ``take_current`` and so on."""

        key = text.strip().lower().replace("-", "").replace("_", "")
        for member in cls:
            if member.value.replace("-", "") == key:
                return member
        raise ValueError(f"unknown duplicate behaviour {text!r}")


class DuplicateChooser:
    """Source of answers for slots the configured behaviour cannot settle."""

    def choose_behaviour(
        self, chunk: tuple[int, int], current_count: int, untracked_count: int
    ) -> DuplicateBehaviour:
        raise NotImplementedError

    def choose_entry(
        self, chunk: tuple[int, int], candidates: Sequence[RegionEntry]
    ) -> int:
        """Return a 1-based ordinal into ``candidates``."""

        raise NotImplementedError


class ScriptedChooser(DuplicateChooser):
    """Answers from pre-supplied sequences; records every question asked."""

    def __init__(
        self,
        behaviours: Iterable[DuplicateBehaviour] = (),
        ordinals: Iterable[int] = (),
    ) -> None:
        self._behaviours = deque(behaviours)
        self._ordinals = deque(ordinals)
        self.asked: list[tuple[str, tuple[int, int]]] = []

    def choose_behaviour(self, chunk, current_count, untracked_count):
        self.asked.append(("behaviour", chunk))
        if not self._behaviours:
            raise ResolutionError(
                f"no scripted duplicate behaviour left for chunk {chunk}"
            )
        return self._behaviours.popleft()

    def choose_entry(self, chunk, candidates):
        self.asked.append(("entry", chunk))
        if not self._ordinals:
            raise ResolutionError(f"no scripted entry choice left for chunk {chunk}")
        return self._ordinals.popleft()


@dataclass(frozen=True)
class SlotRecovery:
    """Instruction to point ``slot`` at ``entry``."""

    slot: int
    chunk: tuple[int, int]
    entry: RegionEntry
    current_count: int
    untracked_count: int


def _pick_untracked(
    chooser: DuplicateChooser | None,
    chunk: tuple[int, int],
    untracked: list[RegionEntry],
) -> RegionEntry:
    if len(untracked) == 1:
        return untracked[0]
    if chooser is None:
        raise ResolutionError(
            f"chunk {chunk} has {len(untracked)} untracked entries and no chooser"
        )
    ordinal = chooser.choose_entry(chunk, untracked)
    if not 1 <= ordinal <= len(untracked):
        raise ResolutionError(
            f"entry choice {ordinal} for chunk {chunk} is not between 1 and "
            f"{len(untracked)}"
        )
    return untracked[ordinal - 1]


def resolve_slot(
    slot: int,
    entries: Sequence[RegionEntry],
    behaviour: DuplicateBehaviour | None = None,
    chooser: DuplicateChooser | None = None,
    region_position: tuple[int, int] = (0, 0),
) -> RegionEntry | None:
    """Return the entry ``slot`` should be rewritten to, or None to leave it."""

    if not entries:
        return None

    if len(entries) == 1:
        entry = entries[0]
        return None if entry.is_current else entry

    current = [e for e in entries if e.is_current]
    untracked = [e for e in entries if not e.is_current]
    if len(current) > 1:
        raise InvariantViolation(
            f"header slot {slot} matches {len(current)} current entries"
        )
    if len(current) + len(untracked) != len(entries):
        raise InvariantViolation(
            f"header slot {slot} has entries that are neither current nor untracked"
        )

    chunk = chunk_position(region_position, slot)

    if not current:
        return _pick_untracked(chooser, chunk, untracked)
    if not untracked:
        return None

    if behaviour is None:
        if chooser is None:
            raise ResolutionError(
                f"chunk {chunk} needs a duplicate behaviour and no chooser was given"
            )
        behaviour = chooser.choose_behaviour(chunk, len(current), len(untracked))

    if behaviour is DuplicateBehaviour.TAKE_CURRENT:
        return None
    if behaviour is DuplicateBehaviour.TAKE_UNTRACKED:
        return _pick_untracked(chooser, chunk, untracked)
    raise InvariantViolation(f"unknown duplicate behaviour {behaviour!r}")


def resolve_entries(
    discovered: DiscoveredEntries,
    behaviour: DuplicateBehaviour | None = None,
    chooser: DuplicateChooser | None = None,
    region_position: tuple[int, int] = (0, 0),
) -> list[SlotRecovery]:
    """Resolve every slot in ascending order; slots needing no change are omitted."""

    recoveries: list[SlotRecovery] = []
    for slot in sorted(discovered):
        entries = discovered[slot]
        chosen = resolve_slot(slot, entries, behaviour, chooser, region_position)
        if chosen is None:
            continue
        recoveries.append(
            SlotRecovery(
                slot=slot,
                chunk=chunk_position(region_position, slot),
                entry=chosen,
                current_count=sum(1 for e in entries if e.is_current),
                untracked_count=sum(1 for e in entries if not e.is_current),
            )
        )
    return recoveries


__all__ = [
    "DuplicateBehaviour",
    "DuplicateChooser",
    "ScriptedChooser",
    "SlotRecovery",
    "resolve_slot",
    "resolve_entries",
]
