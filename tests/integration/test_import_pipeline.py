from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from carrier_ledger.excel.normalize import today_iso
from carrier_ledger.logging.error_log import ErrorLogBuffer
from carrier_ledger.services.commit import commit_staged
from carrier_ledger.services.staging import CommitPreconditionError, StagingSession

"""End-to-end import: real .xlsx -> staging -> review edits -> commit -> reload.

The record store is the in-memory FakeStore from conftest; everything else is
the production code path.
"""


@pytest.fixture()
def carrier_workbook(workbook_factory) -> bytes:
    return workbook_factory([
        ["Date", "MC Number", "Carrier Name", "Amount ($)", "Approved?", "Checked By", "Notes"],
        [datetime(2024, 1, 15), 100001, "Acme Freight", 1250.5, "Yes", "ana", "quick pay"],
        ["03/05/2024", "MC100002", "Beta Lines", "$2,000", "n", "bo", None],
        [None, None, None, None, None, None, None],
        [45356, "MC100003", None, "abc", "TRUE", None, None],
        ["garbage date", "MC100004", "Delta", None, "1", "cy", "N/A"],
        ["01/01/2024", None, "No MC Carrier", "50", "YES", "dee", None],
    ], name="carriers.xlsx").read_bytes()


def test_parse_stage_and_commit(carrier_workbook: bytes, store_factory, tmp_path: Path):
    session = StagingSession()
    staged = session.load_workbook(carrier_workbook, source_name="carriers.xlsx")

    assert [r.import_id for r in staged] == ["import-1", "import-2", "import-4", "import-5"]
    assert [r.to_dict() for r in staged] == [
        {"import_id": "import-1", "date": "2024-01-15", "mc": "100001", "carrier_name": "Acme Freight",
         "amount": "1250.5", "approved": "YES", "checked_by": "ana", "note": "quick pay"},
        {"import_id": "import-2", "date": "2024-03-05", "mc": "MC100002", "carrier_name": "Beta Lines",
         "amount": "2000", "approved": "NO", "checked_by": "bo", "note": ""},
        {"import_id": "import-4", "date": "2024-03-05", "mc": "MC100003", "carrier_name": "",
         "amount": "0", "approved": "YES", "checked_by": "", "note": ""},
        {"import_id": "import-5", "date": today_iso(), "mc": "MC100004", "carrier_name": "Delta",
         "amount": "0", "approved": "YES", "checked_by": "cy", "note": "N/A"},
    ]

    # review: fix a carrier name, drop the garbage-date row
    session.edit_cell(2, "carrierName", "Gamma Transport")
    session.remove_row(3)

    store = store_factory(reject={"MC100002"})
    error_log = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    result = commit_staged(session, store, error_log=error_log)

    assert (result.succeeded, result.failed) == (2, 1)
    assert len(session) == 0
    assert [e.mc for e in result.entries] == ["MC100003", "100001"]
    assert result.entries[0].carrier_name == "Gamma Transport"
    assert [r.import_id for r in error_log.records] == ["import-2"]


def test_reparse_same_file_twice(carrier_workbook: bytes):
    first, second = StagingSession(), StagingSession()
    first.load_workbook(carrier_workbook)
    second.load_workbook(carrier_workbook)
    assert [r.import_id for r in first.records] == [r.import_id for r in second.records]

    first.edit_cell(0, "mc", "")
    assert second.records[0].mc == "100001"


def test_cleared_mc_blocks_whole_commit(carrier_workbook: bytes, fake_store):
    session = StagingSession()
    session.load_workbook(carrier_workbook)
    session.edit_cell(1, "mc", " ")
    with pytest.raises(CommitPreconditionError):
        commit_staged(session, fake_store)
    assert fake_store.create_calls == []
    assert len(session) == 4
