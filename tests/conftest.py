# Shared pytest fixtures
from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from carrier_ledger.db.entry_store import RecordStoreError
from carrier_ledger.models.entry import Entry
from carrier_ledger.models.staged_record import StagedRecord


@pytest.fixture()
def temp_workdir(tmp_path: Path, monkeypatch) -> Path:
    (tmp_path / "config").mkdir()
    (tmp_path / "data").mkdir()
    (tmp_path / "logs").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture()
def sample_config_yaml() -> str:
    return """table: entries
timezone: UTC
page_size: 2
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ledger.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_workbook(tmp_path: Path, rows: list[list[object]], name: str = "upload.xlsx") -> Path:
    path = tmp_path / name
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return path


class FakeStore:
    """In-memory record store; MC values listed in ``reject`` fail on create."""

    def __init__(self, reject: set[str] | None = None, fail_reload: bool = False) -> None:
        self.reject = reject or set()
        self.fail_reload = fail_reload
        self.rows: list[dict[str, Any]] = []
        self.create_calls: list[StagedRecord] = []
        self.list_calls = 0

    def create_entry(self, record: StagedRecord) -> Entry:
        self.create_calls.append(record)
        if record.mc in self.reject:
            raise RecordStoreError(f'duplicate key value violates unique constraint "entries_mc_key" ({record.mc})')
        row = {
            "id": len(self.rows) + 1,
            "date": record.date,
            "mc": record.mc,
            "carrier_name": record.carrier_name,
            "amount": record.amount,
            "approved": record.approved,
            "checked_by": record.checked_by,
            "note": record.note or None,
        }
        self.rows.append(row)
        return Entry.from_row(row)

    def list_entries(self) -> list[Entry]:
        self.list_calls += 1
        if self.fail_reload:
            raise RecordStoreError("connection reset")
        ordered = sorted(self.rows, key=lambda r: r["date"], reverse=True)
        return [Entry.from_row(r) for r in ordered]

    def delete_entry(self, entry_id: Any) -> None:
        before = len(self.rows)
        self.rows = [r for r in self.rows if r["id"] != int(entry_id)]
        if len(self.rows) == before:
            raise RecordStoreError(f"entry {entry_id} not found")


@pytest.fixture()
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def staged_factory():
    def _make(mc: str, row_index: int = 1, **overrides: str) -> StagedRecord:
        values = {
            "import_id": f"import-{row_index}",
            "date": "2024-03-05",
            "mc": mc,
            "carrier_name": f"Carrier {mc}",
            "amount": "100",
            "approved": "NO",
            "checked_by": "ana",
            "note": "",
        }
        values.update(overrides)
        return StagedRecord(**values)
    return _make


@pytest.fixture()
def workbook_factory(tmp_path: Path):
    """Return a callable building a real .xlsx from rows and returning its path."""
    def _make(rows: list[list[object]], name: str = "upload.xlsx") -> Path:
        return make_workbook(tmp_path, rows, name)
    return _make


@pytest.fixture()
def store_factory():
    return FakeStore
