from __future__ import annotations

import pytest

from carrier_ledger.excel.columns import (
    ABSENT,
    ColumnMap,
    MissingColumnsError,
    find_column_index,
    resolve_columns,
)
from carrier_ledger.excel.reader import WorkbookError


def test_resolve_all_columns_canonical_names():
    cols = resolve_columns(["Date", "MC", "Carrier Name", "Amount", "Approved", "Checked By", "Note"])
    assert cols.positions == {
        "date": 0,
        "mc": 1,
        "carrier_name": 2,
        "amount": 3,
        "approved": 4,
        "checked_by": 5,
        "note": 6,
    }


@pytest.mark.parametrize(
    "header,field",
    [
        ("CARRIER", "carrier_name"),
        ("carriername", "carrier_name"),
        ("  Carrier Name  ", "carrier_name"),
        ("Approval", "approved"),
        ("CHECKER", "checked_by"),
        ("checkedby", "checked_by"),
        ("Notes", "note"),
    ],
)
def test_resolve_synonyms_any_case(header: str, field: str):
    cols = resolve_columns(["mc", header])
    assert cols.index_of(field) == 1


def test_missing_mc_column_fails_fast():
    with pytest.raises(MissingColumnsError) as e:
        resolve_columns(["Date", "Carrier", "Amount"])
    assert str(e.value) == "Missing required column: MC"
    assert isinstance(e.value, WorkbookError)


def test_optional_columns_absent():
    cols = resolve_columns(["MC"])
    assert cols.index_of("mc") == 0
    for field in ("date", "carrier_name", "amount", "approved", "checked_by", "note"):
        assert cols.index_of(field) == ABSENT
        assert not cols.has(field)


def test_first_matching_header_wins():
    cols = resolve_columns(["MC", "Note", "Notes"])
    assert cols.index_of("note") == 1


def test_exact_match_preferred_over_contains():
    # "mc number" contains "mc" but the exact "mc" header further right wins
    assert find_column_index(["mc number", "mc"], ("mc",)) == 1


def test_contains_match_both_directions():
    assert find_column_index(["carrier mc #"], ("mc",)) == 0
    # header contained in an accepted name
    assert find_column_index(["checked"], ("checked by",)) == 0


def test_blank_headers_never_match():
    cols = resolve_columns(["", "MC", ""])
    assert cols.index_of("mc") == 1
    assert cols.index_of("date") == ABSENT


def test_non_string_headers_are_stringified():
    cols = resolve_columns([2024, "mc"])
    assert cols.index_of("mc") == 1


def test_column_map_cell_lookup():
    cols = ColumnMap(positions={"mc": 0, "note": 5, "date": ABSENT})
    row = ["MC100", "x"]
    assert cols.cell(row, "mc") == "MC100"
    assert cols.cell(row, "note") == ""  # out of range
    assert cols.cell(row, "date") == ""  # absent
