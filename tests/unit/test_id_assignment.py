from __future__ import annotations

from attendance_sync.services.id_assignment import IdSource, assign_ids
from attendance_sync.services.id_extractor import extract_number_from_id
from attendance_sync.services.lookup_maps import NamedLookup


def _lookups(*maps: tuple[str, dict[str, str]]) -> list[NamedLookup]:
    return [NamedLookup(name, mapping) for name, mapping in maps]


DIRECTORY = ("Directory", {"JANE DOE": "DIR-00010"})


def test_three_row_example() -> None:
    """Test reference, minted and existing ids in one batch."""
    rows = [("", "Jane Doe"), ("", "John Roe"), ("00007", "Ann Lee")]
    result = assign_ids(rows, _lookups(DIRECTORY), highest_seen=50)

    assert result.values == ["00010", "00051", "00007"]
    assert result.highest == 51
    assert result.minted == 1
    assert [a.source for a in result.assignments] == [
        IdSource.REFERENCE,
        IdSource.MINTED,
        IdSource.EXISTING_CELL,
    ]
    assert result.assignments[0].source_table == "Directory"
    assert result.changed_count == 2


def test_blank_name_passes_existing_cell_through() -> None:
    """Test rows with a blank name."""
    result = assign_ids([("00099", "  "), ("", None)], _lookups(DIRECTORY), 5)
    assert result.values == ["00099", ""]
    assert result.minted == 0
    assert result.highest == 5
    assert all(a.source is IdSource.BLANK_NAME for a in result.assignments)


def test_same_name_in_batch_shares_minted_id() -> None:
    """Test that a repeated new name gets one minted id."""
    rows = [("", "New Person"), ("", " new person "), ("", "Other")]
    result = assign_ids(rows, [], 3)
    assert result.values == ["00004", "00004", "00005"]
    assert result.assignments[1].source is IdSource.RUN_CACHE
    assert result.minted == 2


def test_run_cache_reuses_existing_cell_value() -> None:
    """Test that a kept cell value is reused for the same name."""
    rows = [("7", "Ann Lee"), ("", "Ann Lee")]
    result = assign_ids(rows, [], 100)
    assert result.values == ["7", "7"]
    assert result.minted == 0


def test_reference_priority_order() -> None:
    """Test that earlier reference tables win."""
    lookups = _lookups(
        ("Directory", {"JANE DOE": "00010"}),
        ("New Member Form", {"JANE DOE": "00020", "SAM POE": "NM-21"}),
    )
    result = assign_ids([("", "Jane Doe"), ("", "Sam Poe")], lookups, 30)
    assert result.values == ["00010", "00021"]
    assert result.assignments[1].source_table == "New Member Form"


def test_reference_beats_existing_cell() -> None:
    """Test that a reference id replaces the existing cell."""
    result = assign_ids([("00099", "Jane Doe")], _lookups(DIRECTORY), 100)
    assert result.values == ["00010"]
    assert result.assignments[0].changed


def test_unparseable_reference_falls_through_to_next_map() -> None:
    """Test falling through an unparseable reference id."""
    lookups = _lookups(
        ("Directory", {"JANE DOE": "pending"}),
        ("Sunday Service Attend", {"JANE DOE": "00033"}),
    )
    result = assign_ids([("", "Jane Doe")], lookups, 40)
    assert result.values == ["00033"]


def test_existing_plain_number_kept_verbatim() -> None:
    """Test that a plain numeric cell is kept as is."""
    result = assign_ids([("7", "Ann Lee")], [], 100)
    assert result.values == ["7"]
    assert not result.assignments[0].changed


def test_existing_decorated_cell_is_replaced_by_minted_id() -> None:
    """Test that a non-numeric existing cell is replaced."""
    result = assign_ids([("X-7", "Ann Lee")], [], 100)
    assert result.values == ["00101"]
    assert result.assignments[0].source is IdSource.MINTED


def test_numeric_cells_read_as_numbers() -> None:
    """Test cells that come back as floats or None."""
    result = assign_ids([(7.0, "Ann Lee"), (None, "Jane Doe")], _lookups(DIRECTORY), 1)
    assert result.values == ["7", "00010"]


def test_idempotent_on_fully_assigned_batch() -> None:
    """Test that a second pass changes nothing."""
    rows = [("", "Jane Doe"), ("", "John Roe"), ("", "Jane Doe"), ("", "")]
    lookups = _lookups(DIRECTORY)
    first = assign_ids(rows, lookups, 50)
    second_rows = [(v, name) for v, (_, name) in zip(first.values, rows)]
    second = assign_ids(second_rows, lookups, first.highest)
    assert second.values == first.values
    assert second.changed_count == 0
    assert second.minted == 0


def test_minted_ids_strictly_increase_above_seed() -> None:
    """Test that minted ids count up from the seed."""
    seed = 17
    rows = [("", f"Person {i}") for i in range(6)]
    result = assign_ids(rows, [], seed)
    minted = [extract_number_from_id(a.assigned) for a in result.assignments if a.source is IdSource.MINTED]
    assert minted == list(range(seed + 1, seed + 7))
    assert all(len(a.assigned) == 5 for a in result.assignments)
    assert result.highest == seed + 6


def test_distinct_names_never_share_minted_id() -> None:
    """Test that distinct names get distinct ids."""
    rows = [("", n) for n in ["A", "B", "a", "C", "b"]]
    result = assign_ids(rows, [], 0)
    by_name: dict[str, set[str]] = {}
    for a in result.assignments:
        by_name.setdefault(a.name, set()).add(a.assigned)
    assert all(len(ids) == 1 for ids in by_name.values())
    assert len({next(iter(ids)) for ids in by_name.values()}) == 3


def test_output_length_matches_input() -> None:
    """Test one output value per input row."""
    rows = [("", "A"), ("1", ""), ("", "B")]
    assert len(assign_ids(rows, [], 0).values) == 3
    assert assign_ids([], [], 9).values == []


def test_repeated_new_name_and_existing_cell_example() -> None:
    """Test two rows for one new name plus a nameless row with an id."""
    rows = [("", "A B"), ("", "A B"), ("00099", "")]
    result = assign_ids(rows, [], highest_seen=50)
    assert result.values == ["00051", "00051", "00099"]
    assert result.highest == 51
    assert [a.source for a in result.assignments] == [
        IdSource.MINTED,
        IdSource.RUN_CACHE,
        IdSource.BLANK_NAME,
    ]
