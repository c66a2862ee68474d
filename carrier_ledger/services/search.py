from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime

from ..models.entry import Entry

"""Search, sort and paginate over a loaded entry list.

Everything here works on the in-memory list returned by the record store; no
query is pushed down to the database.
"""

__all__ = [
    "SORT_FIELDS",
    "SortState",
    "Page",
    "filter_entries",
    "sort_entries",
    "paginate",
    "search_entries",
]

DEFAULT_PAGE_SIZE = 50

# sort key name -> Entry attribute
SORT_FIELDS = {
    "date": "date",
    "mc": "mc",
    "carrierName": "carrier_name",
    "carrier_name": "carrier_name",
    "checkedBy": "checked_by",
    "checked_by": "checked_by",
}


@dataclass(frozen=True)
class SortState:
    field: str = "date"
    direction: str = "desc"

    def toggle(self, field: str) -> SortState:
        """Clicking the active field flips direction; a new field starts ascending."""
        if field == self.field:
            return SortState(field, "asc" if self.direction == "desc" else "desc")
        return SortState(field, "asc")


@dataclass(frozen=True)
class Page:
    items: list[Entry]
    page: int
    total_pages: int
    total: int


def filter_entries(entries: Sequence[Entry], term: str) -> list[Entry]:
    """Case-insensitive substring match on MC, carrier name, checker and note."""
    needle = term.strip().lower()
    if not needle:
        return list(entries)
    return [
        e
        for e in entries
        if needle in e.mc.lower()
        or needle in e.carrier_name.lower()
        or needle in e.checked_by.lower()
        or (e.note and needle in e.note.lower())
    ]


def _date_key(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        # unparseable dates sort as the earliest possible date
        return date.min


def sort_entries(entries: Sequence[Entry], sort: SortState = SortState()) -> list[Entry]:
    attr = SORT_FIELDS.get(sort.field)
    if attr is None:
        raise ValueError(f"unsupported sort field: {sort.field}")
    reverse = sort.direction == "desc"
    if attr == "date":
        return sorted(entries, key=lambda e: _date_key(e.date), reverse=reverse)
    return sorted(entries, key=lambda e: getattr(e, attr) or "", reverse=reverse)


def paginate(entries: Sequence[Entry], page: int = 1, per_page: int = DEFAULT_PAGE_SIZE) -> Page:
    """Slice out a 1-based page. Pages past the end come back empty."""
    total = len(entries)
    total_pages = math.ceil(total / per_page) if per_page > 0 else 0
    start = (page - 1) * per_page
    items = list(entries[start:start + per_page]) if page >= 1 else []
    return Page(items=items, page=page, total_pages=total_pages, total=total)


def search_entries(
    entries: Sequence[Entry],
    term: str = "",
    sort: SortState = SortState(),
    page: int = 1,
    per_page: int = DEFAULT_PAGE_SIZE,
) -> Page:
    return paginate(sort_entries(filter_entries(entries, term), sort), page, per_page)
