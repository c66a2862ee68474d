from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

"""Entry model: a persisted record as returned by the record store."""

__all__ = [
    "Entry",
    "format_amount",
]


def _amount_text(value: Any) -> str:
    if value is None:
        return "0"
    if isinstance(value, Decimal):
        value = float(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_amount(amount: str) -> str:
    """Render an amount string for display, e.g. "1234.5" -> "$1234.50"."""
    try:
        return f"${float(amount or 0):.2f}"
    except ValueError:
        return "$0.00"


@dataclass(frozen=True)
class Entry:
    id: Any
    date: str
    mc: str
    carrier_name: str
    amount: str  # decimal string, "0" when NULL in the store
    approved: str
    checked_by: str
    note: str  # "" when NULL in the store
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Entry:
        """Build an Entry from a store row (snake_case column names)."""
        raw_date = row.get("date")
        if isinstance(raw_date, (date, datetime)):
            date_text = raw_date.strftime("%Y-%m-%d")
        else:
            date_text = str(raw_date or "")
        return cls(
            id=row.get("id"),
            date=date_text,
            mc=row.get("mc") or "",
            carrier_name=row.get("carrier_name") or "",
            amount=_amount_text(row.get("amount")),
            approved=row.get("approved") or "NO",
            checked_by=row.get("checked_by") or "",
            note=row.get("note") or "",
            created_at=row.get("created_at"),
        )
