from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..excel.columns import ColumnMap, resolve_columns
from ..excel.normalize import cell_text, normalize_amount, normalize_approval, normalize_date
from ..excel.reader import is_blank, read_workbook, require_data_rows
from ..models.staged_record import StagedRecord

"""Row assembly: sheet grid -> staged records.

Row 0 is the header. Data rows that are entirely blank, or whose MC cell is
blank after trimming, produce nothing. Every other row becomes one
StagedRecord whose import_id is derived from the row's grid position, so
parsing the same file twice yields the same id sequence.
"""

__all__ = [
    "import_id_for",
    "assemble_row",
    "assemble_records",
    "parse_grid",
    "parse_workbook",
]

logger = logging.getLogger(__name__)


def import_id_for(row_index: int) -> str:
    return f"import-{row_index}"


def _is_blank_row(row: Sequence[Any]) -> bool:
    return all(is_blank(cell) for cell in row)


def assemble_row(
    row: Sequence[Any], row_index: int, columns: ColumnMap, timezone: str = "UTC"
) -> StagedRecord | None:
    """Build a StagedRecord from one data row, or None if the row is not admitted."""
    if not row or _is_blank_row(row):
        return None

    mc = cell_text(columns.cell(row, "mc")).strip()
    if not mc:
        return None

    return StagedRecord(
        import_id=import_id_for(row_index),
        date=normalize_date(columns.cell(row, "date"), timezone),
        mc=mc,
        carrier_name=cell_text(columns.cell(row, "carrier_name")).strip(),
        amount=normalize_amount(columns.cell(row, "amount")),
        approved=normalize_approval(columns.cell(row, "approved")),
        checked_by=cell_text(columns.cell(row, "checked_by")).strip(),
        note=cell_text(columns.cell(row, "note")).strip(),
    )


def assemble_records(
    grid: Sequence[Sequence[Any]], columns: ColumnMap, timezone: str = "UTC"
) -> list[StagedRecord]:
    records: list[StagedRecord] = []
    skipped = 0
    for row_index in range(1, len(grid)):
        record = assemble_row(grid[row_index], row_index, columns, timezone)
        if record is None:
            skipped += 1
            continue
        records.append(record)
    logger.debug("assembled %d record(s), skipped %d row(s)", len(records), skipped)
    return records


def parse_grid(grid: Sequence[Sequence[Any]], timezone: str = "UTC") -> list[StagedRecord]:
    """Resolve columns from row 0 and assemble the data rows.

    Raises:
        SheetHeaderError: Fewer than two rows.
        MissingColumnsError: No MC column.
    """
    require_data_rows(grid)
    columns = resolve_columns(grid[0])
    return assemble_records(grid, columns, timezone)


def parse_workbook(data: bytes, timezone: str = "UTC") -> list[StagedRecord]:
    """Decode workbook bytes into staged records.

    Raises:
        WorkbookError: The upload is rejected as a whole (unreadable file,
            no data rows, or missing MC column).
    """
    return parse_grid(read_workbook(data), timezone)
