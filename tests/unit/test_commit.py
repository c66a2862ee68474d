from __future__ import annotations

import json

import psycopg2
import pytest

from carrier_ledger.db.entry_store import EntryStore
from carrier_ledger.logging.error_log import ErrorLogBuffer
from carrier_ledger.services.commit import commit_staged
from carrier_ledger.services.staging import CommitPreconditionError, StagingSession


def _session(staged_factory, mcs: list[str]) -> StagingSession:
    s = StagingSession()
    s.load_records([staged_factory(mc, i + 1) for i, mc in enumerate(mcs)], "batch.xlsx")
    return s


def test_commit_all_succeed(staged_factory, fake_store):
    session = _session(staged_factory, ["MC1", "MC2", "MC3"])
    result = commit_staged(session, fake_store)
    assert (result.succeeded, result.failed) == (3, 0)
    assert [r.mc for r in fake_store.create_calls] == ["MC1", "MC2", "MC3"]
    assert len(session) == 0
    assert result.entries is not None and len(result.entries) == 3
    assert not result.partial_failure


def test_commit_partial_failure_attempts_every_record(staged_factory, store_factory, tmp_path):
    store = store_factory(reject={"MC2"})
    session = _session(staged_factory, ["MC1", "MC2", "MC3", "MC4"])
    error_log = ErrorLogBuffer(logs_dir=tmp_path / "logs")

    result = commit_staged(session, store, error_log=error_log)

    assert [r.mc for r in store.create_calls] == ["MC1", "MC2", "MC3", "MC4"]
    assert result.succeeded == 3
    assert result.failed == 1
    assert result.attempted == 4
    assert len(session) == 0

    (record,) = error_log.records
    assert record.import_id == "import-2"
    assert record.mc == "MC2"
    assert record.file == "batch.xlsx"
    assert record.error_type == "INSERT_ERROR"
    assert "unique constraint" in record.db_message

    path = error_log.flush()
    assert path is not None
    line = json.loads(path.read_text(encoding="utf-8").strip())
    assert set(line) == {"timestamp", "file", "import_id", "mc", "error_type", "db_message"}


def test_commit_all_fail_still_clears_staging(staged_factory, store_factory):
    store = store_factory(reject={"MC1", "MC2"})
    session = _session(staged_factory, ["MC1", "MC2"])
    result = commit_staged(session, store)
    assert (result.succeeded, result.failed) == (0, 2)
    assert len(session) == 0


def test_entries_come_from_store_reload(staged_factory, fake_store):
    fake_store.rows.append({"id": 99, "date": "2030-01-01", "mc": "OLD", "amount": None})
    session = _session(staged_factory, ["MC1"])
    result = commit_staged(session, fake_store)
    assert fake_store.list_calls == 1
    assert [e.mc for e in result.entries] == ["OLD", "MC1"]


def test_reload_failure_is_reported(staged_factory, store_factory):
    store = store_factory(fail_reload=True)
    session = _session(staged_factory, ["MC1"])
    result = commit_staged(session, store)
    assert result.succeeded == 1
    assert result.entries is None
    assert result.reload_error == "connection reset"
    assert len(session) == 0


def test_cleared_mc_aborts_commit_without_store_calls(staged_factory, fake_store):
    session = _session(staged_factory, ["MC1", "MC2"])
    session.edit_cell(0, "mc", "")
    with pytest.raises(CommitPreconditionError):
        commit_staged(session, fake_store)
    assert fake_store.create_calls == []
    assert fake_store.list_calls == 0
    assert len(session) == 2


def test_empty_staging_aborts_commit(fake_store):
    with pytest.raises(CommitPreconditionError):
        commit_staged(StagingSession(), fake_store)
    assert fake_store.create_calls == []


def test_timing_fields(staged_factory, fake_store):
    result = commit_staged(_session(staged_factory, ["MC1"]), fake_store)
    assert result.end_time >= result.start_time
    assert result.elapsed_seconds >= 0
    assert result.throughput_rows_per_sec >= 0


class _DroppingCursor:
    def __init__(self, conn: _DroppingConnection) -> None:
        self.conn = conn
        self.row: dict | None = None

    def __enter__(self) -> _DroppingCursor:
        return self

    def __exit__(self, *exc) -> None:
        return None

    def execute(self, query, params=None) -> None:
        self.conn.executes += 1
        if self.conn.executes == self.conn.drop_on:
            self.conn.closed = 2
            raise psycopg2.OperationalError("server closed the connection unexpectedly")
        self.row = {"id": self.conn.executes, **(params or {})}

    def fetchone(self) -> dict | None:
        return self.row

    def fetchall(self) -> list[dict]:
        return []


class _DroppingConnection:
    """psycopg2-like connection whose server goes away on the Nth execute."""

    def __init__(self, drop_on: int) -> None:
        self.drop_on = drop_on
        self.executes = 0
        self.closed = 0

    def cursor(self, cursor_factory=None) -> _DroppingCursor:
        if self.closed:
            raise psycopg2.InterfaceError("connection already closed")
        return _DroppingCursor(self)

    def commit(self) -> None:
        if self.closed:
            raise psycopg2.InterfaceError("connection already closed")

    def rollback(self) -> None:
        if self.closed:
            raise psycopg2.InterfaceError("connection already closed")


def test_lost_connection_mid_commit_counts_remaining_records(staged_factory, tmp_path):
    conn = _DroppingConnection(drop_on=2)
    session = _session(staged_factory, ["MC1", "MC2", "MC3"])
    error_log = ErrorLogBuffer(logs_dir=tmp_path / "logs")

    result = commit_staged(session, EntryStore(conn), error_log=error_log)

    assert (result.succeeded, result.failed) == (1, 2)
    assert conn.executes == 2
    assert len(session) == 0
    assert [r.mc for r in error_log.records] == ["MC2", "MC3"]
    assert "server closed the connection" in error_log.records[0].db_message
    assert "connection already closed" in error_log.records[1].db_message
    assert result.entries is None
    assert result.reload_error is not None


def test_unexpected_store_error_is_counted(staged_factory, store_factory):
    store = store_factory()
    original_create = store.create_entry

    def create(record):
        if record.mc == "MC1":
            raise RuntimeError("boom")
        return original_create(record)

    store.create_entry = create
    session = _session(staged_factory, ["MC1", "MC2"])
    result = commit_staged(session, store)
    assert (result.succeeded, result.failed) == (1, 1)
    assert len(session) == 0
