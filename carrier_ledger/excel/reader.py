from __future__ import annotations

import io
import math
from datetime import date, datetime
from typing import Any

import pandas as pd
from openpyxl.utils.datetime import from_excel

"""Workbook decoder.

Reads the first sheet of an uploaded workbook into a plain grid: a list of
rows, each a list of cell values, row 0 being the header row. Empty cells
become "". The engine is chosen by pandas from the file content (openpyxl for
.xlsx, xlrd for .xls); the upload's extension is not trusted.
"""

__all__ = [
    "WorkbookError",
    "WorkbookReadError",
    "SheetHeaderError",
    "read_workbook",
    "require_data_rows",
    "serial_to_date",
    "is_blank",
]

READ_ERROR_MESSAGE = "Failed to parse Excel file. Please ensure it is a valid Excel file."
TOO_FEW_ROWS_MESSAGE = "Excel file must have at least a header row and one data row."


class WorkbookError(Exception):
    """Base for errors that reject a whole upload."""


class WorkbookReadError(WorkbookError):
    """Raised when the uploaded bytes cannot be decoded as a workbook."""


class SheetHeaderError(WorkbookError):
    """Raised when the first sheet lacks a header row plus one data row."""


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT, and empty or whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float) and math.isnan(value):
        return True
    if value is pd.NaT:
        return True
    return False


def read_workbook(data: bytes) -> list[list[Any]]:
    """Decode workbook bytes and return the first sheet as a grid.

    Strings such as "NA" or "N/A" are kept verbatim (pandas' default NA
    conversion is disabled); only truly empty cells become "".

    Raises:
        WorkbookReadError: The content is not a readable workbook.
    """
    if not data:
        raise WorkbookReadError(f"{READ_ERROR_MESSAGE} (empty file)")
    try:
        df = pd.read_excel(
            io.BytesIO(data),
            sheet_name=0,
            header=None,
            dtype=object,
            keep_default_na=False,
            na_values=[],
        )
    except Exception as e:
        # pandas surfaces engine-specific errors (zipfile, xlrd, openpyxl) for bad content
        raise WorkbookReadError(f"{READ_ERROR_MESSAGE} ({e})") from e

    grid: list[list[Any]] = []
    for raw in df.itertuples(index=False, name=None):
        grid.append(["" if is_blank(v) else v for v in raw])
    return grid


def require_data_rows(grid: list[list[Any]]) -> None:
    """Reject grids without a header row and at least one data row."""
    if len(grid) < 2:
        raise SheetHeaderError(TOO_FEW_ROWS_MESSAGE)


def serial_to_date(value: float) -> date:
    """Convert a workbook date serial (1900 date system) to a calendar date.

    Raises:
        ValueError: The serial is outside the representable range.
    """
    try:
        converted = from_excel(value)
    except (OverflowError, TypeError) as e:
        raise ValueError(f"invalid date serial: {value!r}") from e
    if isinstance(converted, datetime):
        return converted.date()
    if isinstance(converted, date):
        return converted
    raise ValueError(f"invalid date serial: {value!r}")
