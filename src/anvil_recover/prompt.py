"""Interactive answers for ambiguous header slots."""

from __future__ import annotations

from typing import Callable, Sequence

from .errors import ResolutionError
from .resolve import DuplicateBehaviour, DuplicateChooser
from .scan import RegionEntry

BEHAVIOUR_HELP = """Duplicate entries have been found, what would you like to do?
    `TakeCurrent` - Take the current chunk
    `TakeUntracked` - Take one of the untracked chunks (you can decide if there are multiple)"""


class ConsoleChooser(DuplicateChooser):
    """
    Ask on the terminal. Invalid answers are rejected and asked again; there
    is no default and no timeout. End of input raises
    :class:`ResolutionError` for the chunk being asked about.
    """

    def __init__(
        self,
        read_line: Callable[[str], str] | None = None,
        write: Callable[[str], None] | None = None,
    ) -> None:
        self.read_line = read_line or input
        self.write = write or print

    def choose_behaviour(
        self, chunk: tuple[int, int], current_count: int, untracked_count: int
    ) -> DuplicateBehaviour:
        self.write(
            f"Chunk ({chunk[0]}, {chunk[1]}) has {current_count} known entries "
            f"and {untracked_count} unknown entries"
        )
        self.write(BEHAVIOUR_HELP)
        while True:
            try:
                line = self.read_line("")
            except EOFError:
                raise ResolutionError(f"no answer for chunk {chunk}") from None
            try:
                return DuplicateBehaviour.parse(line)
            except ValueError:
                self.write("Invalid value!")

    def choose_entry(
        self, chunk: tuple[int, int], candidates: Sequence[RegionEntry]
    ) -> int:
        count = len(candidates)
        self.write(f"Chunk ({chunk[0]}, {chunk[1]}) has {count} unknown entries:")
        for ordinal, entry in enumerate(candidates, start=1):
            self.write(
                f"  {ordinal}: sector {entry.offset_sectors}, "
                f"{entry.size_sectors} sector(s)"
            )
        self.write(f"Which unknown entry should be chosen (1 to {count})?")
        try:
            return ask_for_integer(
                lambda value: 1 <= value <= count, self.read_line, self.write
            )
        except EOFError:
            raise ResolutionError(f"no answer for chunk {chunk}") from None


def ask_for_integer(
    is_valid: Callable[[int], bool],
    read_line: Callable[[str], str] | None = None,
    write: Callable[[str], None] | None = None,
) -> int:
    """Read lines until one parses as an int accepted by ``is_valid``."""

    read_line = read_line or input
    write = write or print
    while True:
        line = read_line("").strip()
        try:
            value = int(line)
        except ValueError:
            write("Invalid value!")
            continue
        if is_valid(value):
            return value
        write("Invalid value!")


__all__ = ["ConsoleChooser", "ask_for_integer", "BEHAVIOUR_HELP"]
