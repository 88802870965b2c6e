import pytest

from conftest import build_region, chunk_payload, slot_of
from anvil_recover.errors import InvariantViolation, RecoveryError, ResolutionError
from anvil_recover.resolve import (
    DuplicateBehaviour,
    ScriptedChooser,
    resolve_entries,
    resolve_slot,
)
from anvil_recover.scan import RegionEntry, discover_entries

SLOT = slot_of(3, 5)


def _entry(offset: int, current: bool = False, size: int = 1) -> RegionEntry:
    return RegionEntry(offset_sectors=offset, size_sectors=size, is_current=current)


def _duplicate_region():
    """Header slot points at sector 10; a second copy of the chunk sits at 20."""

    return build_region(
        24,
        header={SLOT: (10, 1)},
        payloads={10: chunk_payload(3, 5), 20: chunk_payload(3, 5)},
    )


def test_take_current_keeps_header() -> None:
    discovered = discover_entries(_duplicate_region())
    chooser = ScriptedChooser()
    assert resolve_entries(discovered, DuplicateBehaviour.TAKE_CURRENT, chooser) == []
    assert chooser.asked == []


def test_take_untracked_adopts_other_copy() -> None:
    discovered = discover_entries(_duplicate_region())
    (recovery,) = resolve_entries(discovered, DuplicateBehaviour.TAKE_UNTRACKED)
    assert recovery.slot == SLOT
    assert recovery.entry.location == (20, 1)
    assert (recovery.current_count, recovery.untracked_count) == (1, 1)


@pytest.mark.parametrize(
    "answer,expected",
    [(DuplicateBehaviour.TAKE_CURRENT, None), (DuplicateBehaviour.TAKE_UNTRACKED, 20)],
)
def test_unset_behaviour_asks_per_slot(answer, expected) -> None:
    discovered = discover_entries(_duplicate_region())
    chooser = ScriptedChooser(behaviours=[answer])

    recoveries = resolve_entries(discovered, None, chooser, region_position=(1, 0))

    assert chooser.asked == [("behaviour", (35, 5))]
    if expected is None:
        assert recoveries == []
    else:
        assert [r.entry.offset_sectors for r in recoveries] == [expected]


@pytest.mark.parametrize(
    "behaviour",
    [None, DuplicateBehaviour.TAKE_CURRENT, DuplicateBehaviour.TAKE_UNTRACKED],
)
def test_single_untracked_entry_is_adopted_regardless_of_behaviour(behaviour) -> None:
    # header points at sector 3, which holds nothing decodable
    data = build_region(8, header={SLOT: (3, 1)}, payloads={6: chunk_payload(3, 5)})
    chooser = ScriptedChooser()

    (recovery,) = resolve_entries(discover_entries(data), behaviour, chooser)

    assert recovery.entry.location == (6, 1)
    assert chooser.asked == []


@pytest.mark.parametrize(
    "behaviour",
    [None, DuplicateBehaviour.TAKE_CURRENT, DuplicateBehaviour.TAKE_UNTRACKED],
)
def test_ordinal_selects_among_untracked_in_sector_order(behaviour) -> None:
    data = build_region(
        12,
        header={SLOT: (2, 1)},
        payloads={4: chunk_payload(3, 5), 9: chunk_payload(3, 5)},
    )
    chooser = ScriptedChooser(ordinals=[2])

    (recovery,) = resolve_entries(discover_entries(data), behaviour, chooser)

    assert recovery.entry.offset_sectors == 9
    assert chooser.asked == [("entry", (3, 5))]


def test_take_untracked_with_several_untracked_asks_for_ordinal() -> None:
    entries = [_entry(2), _entry(5, current=True), _entry(7), _entry(11)]
    chooser = ScriptedChooser(ordinals=[1])
    chosen = resolve_slot(0, entries, DuplicateBehaviour.TAKE_UNTRACKED, chooser)
    assert chosen == _entry(2)

    chooser = ScriptedChooser(ordinals=[3])
    chosen = resolve_slot(0, entries, DuplicateBehaviour.TAKE_UNTRACKED, chooser)
    assert chosen == _entry(11)


def test_single_current_entry_needs_no_action() -> None:
    assert resolve_slot(0, [_entry(2, current=True)]) is None
    assert resolve_slot(0, []) is None


def test_current_without_untracked_needs_no_action() -> None:
    # only reachable through a hand-built candidate list
    assert resolve_slot(0, [_entry(2, current=True)], None, ScriptedChooser()) is None


def test_two_current_entries_are_fatal() -> None:
    entries = [_entry(2, current=True), _entry(4, current=True)]
    with pytest.raises(InvariantViolation):
        resolve_slot(7, entries, DuplicateBehaviour.TAKE_UNTRACKED)


@pytest.mark.parametrize("ordinal", [0, 3, -1])
def test_out_of_range_ordinal_is_rejected(ordinal: int) -> None:
    entries = [_entry(2), _entry(4)]
    with pytest.raises(ResolutionError):
        resolve_slot(0, entries, None, ScriptedChooser(ordinals=[ordinal]))


def test_missing_chooser_for_ambiguous_slot() -> None:
    with pytest.raises(ResolutionError):
        resolve_slot(0, [_entry(2), _entry(4)])
    with pytest.raises(ResolutionError):
        resolve_slot(0, [_entry(2, current=True), _entry(4)])


def test_exhausted_scripted_chooser_is_a_recovery_error() -> None:
    chooser = ScriptedChooser()
    with pytest.raises(RecoveryError):
        resolve_slot(0, [_entry(2, current=True), _entry(4)], None, chooser)
    with pytest.raises(ResolutionError):
        resolve_slot(0, [_entry(2), _entry(4)], None, chooser)
    assert [kind for kind, _ in chooser.asked] == ["behaviour", "entry"]


def test_recovered_file_resolves_to_no_action() -> None:
    data = build_region(
        12,
        header={SLOT: (9, 1), slot_of(0, 0): (4, 1)},
        payloads={4: chunk_payload(0, 0), 9: chunk_payload(3, 5)},
    )
    discovered = discover_entries(data)
    assert all(e.is_current for entries in discovered.values() for e in entries)
    for behaviour in (None, *DuplicateBehaviour):
        assert resolve_entries(discovered, behaviour, ScriptedChooser()) == []


@pytest.mark.parametrize(
    "text,expected",
    [
        ("take-current", DuplicateBehaviour.TAKE_CURRENT),
        ("TakeCurrent", DuplicateBehaviour.TAKE_CURRENT),
        (" takeuntracked\n", DuplicateBehaviour.TAKE_UNTRACKED),
        ("TAKE_UNTRACKED", DuplicateBehaviour.TAKE_UNTRACKED),
    ],
)
def test_parse_duplicate_behaviour(text: str, expected: DuplicateBehaviour) -> None:
    assert DuplicateBehaviour.parse(text) is expected


def test_parse_duplicate_behaviour_rejects_other_words() -> None:
    with pytest.raises(ValueError):
        DuplicateBehaviour.parse("both")
