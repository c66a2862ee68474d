from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .reader import WorkbookError

"""Column-header resolver.

Maps the header row of an uploaded sheet onto the entry fields. Each field has
a priority-ordered list of accepted header names. Matching is case-insensitive
and runs in two passes:

1. exact: a header equal to one of the accepted names
2. contains: a header that contains, or is contained by, an accepted name

Within a pass the leftmost matching header wins; any later matching column is
ignored. Blank header cells never match.
"""

__all__ = [
    "ABSENT",
    "FIELD_RULES",
    "ColumnMap",
    "MissingColumnsError",
    "normalize_headers",
    "find_column_index",
    "resolve_columns",
]

ABSENT = -1

# field -> accepted header names, in priority order
FIELD_RULES: dict[str, tuple[str, ...]] = {
    "date": ("date",),
    "mc": ("mc",),
    "carrier_name": ("carrier name", "carriername", "carrier"),
    "amount": ("amount",),
    "approved": ("approved", "approval"),
    "checked_by": ("checked by", "checkedby", "checker"),
    "note": ("note", "notes"),
}

REQUIRED_FIELDS = ("mc",)


class MissingColumnsError(WorkbookError):
    """Raised when a required column has no matching header."""


@dataclass(frozen=True)
class ColumnMap:
    """Field name -> zero-based column position (ABSENT when unmatched)."""
    positions: dict[str, int]

    def index_of(self, field: str) -> int:
        return self.positions.get(field, ABSENT)

    def has(self, field: str) -> bool:
        return self.index_of(field) != ABSENT

    def cell(self, row: Sequence[Any], field: str) -> Any:
        """Return the row's cell for ``field``, or "" if unmapped or out of range."""
        idx = self.index_of(field)
        if idx == ABSENT or idx >= len(row):
            return ""
        return row[idx]


def normalize_headers(header_row: Sequence[Any]) -> list[str]:
    return [str(h).strip().lower() for h in header_row]


def find_column_index(headers: Sequence[str], names: Sequence[str]) -> int:
    """Position of the first header matching any of ``names`` (exact, then contains)."""
    for i, header in enumerate(headers):
        if header and header in names:
            return i
    for i, header in enumerate(headers):
        if not header:
            continue
        for name in names:
            if name in header or header in name:
                return i
    return ABSENT


def resolve_columns(header_row: Sequence[Any]) -> ColumnMap:
    """Resolve every field against the header row.

    Raises:
        MissingColumnsError: The MC column is absent.
    """
    headers = normalize_headers(header_row)
    positions = {field: find_column_index(headers, names) for field, names in FIELD_RULES.items()}
    for field in REQUIRED_FIELDS:
        if positions[field] == ABSENT:
            raise MissingColumnsError(f"Missing required column: {field.upper()}")
    return ColumnMap(positions=positions)
