"""Region file recovery runs and the command line front end."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from .chunk import decode_chunk
from .coords import parse_region_position
from .errors import InvariantViolation, RecoveryError
from .prompt import ConsoleChooser
from .region import RegionFile
from .resolve import DuplicateBehaviour, DuplicateChooser, SlotRecovery, resolve_entries
from .scan import Decoder, discover_entries, summarize_entries

REGION_SUFFIX = "mca"


@dataclass
class RecoveryResult:
    path: Path
    region_position: tuple[int, int] | None = None
    recoveries: list[SlotRecovery] = field(default_factory=list)
    candidates: int = 0
    written: bool = False
    error: str | None = None

    @property
    def modified(self) -> bool:
        return bool(self.recoveries)

    @property
    def failed(self) -> bool:
        return self.error is not None


def iter_region_files(world_path: Path) -> list[Path]:
    """Files under ``<world>/region`` whose extension ends in ``mca``, by name."""

    region_dir = Path(world_path) / "region"
    return sorted(
        path
        for path in region_dir.iterdir()
        if not path.is_dir() and path.suffix.lstrip(".").endswith(REGION_SUFFIX)
    )


class RegionRecoverer:
    """Runs discovery, resolution and header rewrites over region files."""

    def __init__(
        self,
        *,
        behaviour: DuplicateBehaviour | None = None,
        chooser: DuplicateChooser | None = None,
        dry_run: bool = False,
        decode: Decoder = decode_chunk,
    ) -> None:
        self.behaviour = behaviour
        self.chooser = chooser if chooser is not None else ConsoleChooser()
        self.dry_run = dry_run
        self.decode = decode

    def recover_file(self, path: Path | str) -> RecoveryResult:
        """
        Recover one region file, writing it back only if a header slot changed.

        Raises ``OSError``, :class:`RegionNameError`,
        :class:`ResolutionError` or :class:`InvariantViolation`; the file on
        disk is untouched in every one of those cases.
        """

        path = Path(path)
        region_position = parse_region_position(path)
        region = RegionFile.from_file(path)

        discovered = discover_entries(region.data, decode=self.decode)
        recoveries = resolve_entries(
            discovered,
            behaviour=self.behaviour,
            chooser=self.chooser,
            region_position=region_position,
        )
        result = RecoveryResult(
            path=path,
            region_position=region_position,
            recoveries=recoveries,
            candidates=sum(len(entries) for entries in discovered.values()),
        )

        changed = region.apply(recoveries)
        for recovery in recoveries:
            chunk_x, chunk_z = recovery.chunk
            print(
                f"Chunk ({chunk_x}, {chunk_z}) recovered unknown entry! "
                f"(sector {recovery.entry.offset_sectors}, "
                f"{recovery.entry.size_sectors} sector(s))"
            )

        if not changed:
            return result

        if self.dry_run:
            print(
                f"Would write {len(recoveries)} header entries to "
                f"{path.name} (dry run)"
            )
            return result

        path.write_bytes(region.to_bytes())
        result.written = True
        print(f"Wrote to region {path.name}")
        return result

    def recover_paths(self, paths: Iterable[Path]) -> list[RecoveryResult]:
        results: list[RecoveryResult] = []
        for path in paths:
            try:
                results.append(self.recover_file(path))
            except InvariantViolation as exc:
                print(f"Aborted region file {path.name}: {exc}", file=sys.stderr)
                results.append(RecoveryResult(path=path, error=str(exc)))
            except (OSError, RecoveryError) as exc:
                print(f"Error parsing region file {path.name}: {exc}", file=sys.stderr)
                results.append(RecoveryResult(path=path, error=str(exc)))
        return results

    def recover_world(self, world_path: Path | str) -> list[RecoveryResult]:
        return self.recover_paths(iter_region_files(Path(world_path)))


def recover_region_file(
    path: Path | str,
    *,
    behaviour: DuplicateBehaviour | None = None,
    chooser: DuplicateChooser | None = None,
    dry_run: bool = False,
    decode: Decoder = decode_chunk,
) -> RecoveryResult:
    recoverer = RegionRecoverer(
        behaviour=behaviour, chooser=chooser, dry_run=dry_run, decode=decode
    )
    return recoverer.recover_file(path)


def recover_world(
    world_path: Path | str,
    *,
    behaviour: DuplicateBehaviour | None = None,
    chooser: DuplicateChooser | None = None,
    dry_run: bool = False,
) -> list[RecoveryResult]:
    recoverer = RegionRecoverer(behaviour=behaviour, chooser=chooser, dry_run=dry_run)
    return recoverer.recover_world(world_path)


def scan_region_file(path: Path | str) -> dict:
    """Read-only scan report for one region file."""

    path = Path(path)
    region = RegionFile.from_file(path)
    try:
        region_position: tuple[int, int] | None = parse_region_position(path)
    except RecoveryError:
        region_position = None
    discovered = discover_entries(region.data)
    report = summarize_entries(discovered, region.data, region_position)
    report["summary"]["path"] = str(path)
    return report


def format_summary(results: Sequence[RecoveryResult]) -> str:
    written = sum(1 for r in results if r.written)
    modified = sum(1 for r in results if r.modified)
    failed = sum(1 for r in results if r.failed)
    slots = sum(len(r.recoveries) for r in results)
    return (
        f"Processed {len(results)} region files: {modified} modified "
        f"({written} written), {slots} header entries recovered, {failed} failed"
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="anvil_recover")
    subparsers = parser.add_subparsers(dest="command", required=True)

    recover = subparsers.add_parser(
        "recover",
        help="Rebuild region file headers from chunk payloads found in the file",
    )
    recover.add_argument(
        "-w",
        "--world-path",
        required=True,
        type=Path,
        help="World directory containing a region/ folder",
    )
    recover.add_argument(
        "-d",
        "--duplicate-behaviour",
        type=DuplicateBehaviour.parse,
        default=None,
        metavar="{take-current,take-untracked}",
        help="How to settle slots with both a current and untracked entries "
        "(asked per chunk if omitted)",
    )
    recover.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be recovered without writing any file",
    )
    recover.add_argument(
        "-v", "--verbose", action="store_true", help="Log skipped candidates"
    )

    scan = subparsers.add_parser(
        "scan",
        help="List the chunk payloads discovered in a single region file",
    )
    scan.add_argument("region_file", type=Path, help="Input .mca file")
    scan.add_argument("--out", type=Path, help="Output JSON path (stdout if omitted)")
    scan.add_argument(
        "-v", "--verbose", action="store_true", help="Log skipped candidates"
    )

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.command == "recover":
        recoverer = RegionRecoverer(
            behaviour=args.duplicate_behaviour, dry_run=args.dry_run
        )
        try:
            results = recoverer.recover_world(args.world_path)
        except OSError as exc:
            print(f"Cannot read world {args.world_path}: {exc}", file=sys.stderr)
            return 1
        print(format_summary(results))
        return 1 if any(r.failed for r in results) else 0

    if args.command == "scan":
        try:
            report = scan_region_file(args.region_file)
        except OSError as exc:
            print(f"Cannot read {args.region_file}: {exc}", file=sys.stderr)
            return 1
        text = json.dumps(report, indent=2)
        if args.out is not None:
            args.out.write_text(text)
        else:
            print(text)
        return 0

    parser.error(f"Unknown command {args.command}")
    return 1


__all__ = [
    "RecoveryResult",
    "RegionRecoverer",
    "iter_region_files",
    "recover_region_file",
    "recover_world",
    "scan_region_file",
    "format_summary",
    "main",
    "build_arg_parser",
]
