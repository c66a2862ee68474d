from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import psycopg2
from psycopg2 import sql
from psycopg2.extras import RealDictCursor

from ..excel.normalize import us_date_to_iso
from ..models.entry import Entry
from ..models.staged_record import FIELD_ALIASES, StagedRecord

"""Record store over a PostgreSQL table.

Columns: id, date, mc, carrier_name, amount, approved, checked_by, note
(+ created_at if the table has it). Every operation runs in its own
transaction: on a driver error the transaction is rolled back (unless the
connection is already closed) and the error is re-raised as RecordStoreError,
so one rejected insert never poisons the next.
"""

__all__ = [
    "RecordStoreError",
    "EntryStore",
    "INSERT_COLUMNS",
    "to_insert_values",
]

logger = logging.getLogger(__name__)

INSERT_COLUMNS = ("date", "mc", "carrier_name", "amount", "approved", "checked_by", "note")
UPDATABLE_COLUMNS = frozenset(INSERT_COLUMNS)


class RecordStoreError(Exception):
    pass


def _amount_value(amount: str) -> float:
    if not amount:
        return 0.0
    try:
        return float(amount)
    except ValueError as e:
        raise RecordStoreError(f"invalid amount: {amount!r}") from e


def to_insert_values(record: StagedRecord) -> dict[str, Any]:
    """Map a staged record onto table columns.

    A "MM/DD/YYYY" date left by manual editing is reassembled as YYYY-MM-DD;
    an empty note is stored as NULL.

    Raises:
        RecordStoreError: The amount is not a number.
    """
    date_text = record.date
    if "/" in date_text:
        date_text = us_date_to_iso(date_text) or date_text
    return {
        "date": date_text,
        "mc": record.mc,
        "carrier_name": record.carrier_name,
        "amount": _amount_value(record.amount),
        "approved": record.approved,
        "checked_by": record.checked_by,
        "note": record.note or None,
    }


class EntryStore:
    """Table client exposing list/create/update/delete on the entries table."""

    def __init__(self, conn: Any, table: str = "entries") -> None:
        self.conn = conn
        self.table = table

    def _run(self, query: sql.Composable, params: Any = None, fetch: str | None = None) -> Any:
        try:
            with self.conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(query, params)
                if fetch == "one":
                    result = cur.fetchone()
                elif fetch == "all":
                    result = cur.fetchall()
                else:
                    result = cur.rowcount
            self.conn.commit()
            return result
        except psycopg2.Error as e:
            message = (e.pgerror or str(e)).strip()
            # a dropped server connection leaves nothing to roll back
            if not self.conn.closed:
                try:
                    self.conn.rollback()
                except psycopg2.Error as rollback_e:
                    logger.warning(f"rollback failed: {rollback_e}")
            raise RecordStoreError(message) from e

    def list_entries(self) -> list[Entry]:
        """All entries, newest date first."""
        query = sql.SQL("SELECT * FROM {} ORDER BY date DESC").format(sql.Identifier(self.table))
        rows = self._run(query, fetch="all") or []
        return [Entry.from_row(dict(r)) for r in rows]

    def create_entry(self, record: StagedRecord) -> Entry:
        values = to_insert_values(record)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            sql.Identifier(self.table),
            sql.SQL(", ").join(sql.Identifier(c) for c in INSERT_COLUMNS),
            sql.SQL(", ").join(sql.Placeholder(c) for c in INSERT_COLUMNS),
        )
        row = self._run(query, values, fetch="one")
        if row is None:
            raise RecordStoreError("insert returned no row")
        return Entry.from_row(dict(row))

    def update_entry(self, entry_id: Any, updates: Mapping[str, Any]) -> Entry:
        """Update selected columns; camelCase field names are accepted."""
        columns = {FIELD_ALIASES.get(k, k): v for k, v in updates.items()}
        unknown = set(columns) - UPDATABLE_COLUMNS
        if unknown:
            raise RecordStoreError(f"unknown column(s): {sorted(unknown)}")
        if not columns:
            raise RecordStoreError("no columns to update")
        query = sql.SQL("UPDATE {} SET {} WHERE id = %(id)s RETURNING *").format(
            sql.Identifier(self.table),
            sql.SQL(", ").join(
                sql.SQL("{} = {}").format(sql.Identifier(c), sql.Placeholder(c)) for c in columns
            ),
        )
        row = self._run(query, {**columns, "id": entry_id}, fetch="one")
        if row is None:
            raise RecordStoreError(f"entry {entry_id} not found")
        return Entry.from_row(dict(row))

    def delete_entry(self, entry_id: Any) -> None:
        query = sql.SQL("DELETE FROM {} WHERE id = %s").format(sql.Identifier(self.table))
        deleted = self._run(query, (entry_id,))
        if deleted == 0:
            raise RecordStoreError(f"entry {entry_id} not found")
