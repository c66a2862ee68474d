from __future__ import annotations

import logging
from dataclasses import replace

from ..models.staged_record import EDITABLE_FIELDS, FIELD_ALIASES, StagedRecord
from .assembler import parse_workbook

"""Staging session: the in-memory review list between upload and commit.

A session owns exactly one list of staged records. Loading a workbook replaces
the list only when parsing succeeds; a rejected upload leaves it untouched.
Edits and removals are local mutations, nothing here talks to the record store.
"""

__all__ = [
    "StagingError",
    "CommitPreconditionError",
    "StagingSession",
    "NO_DATA_MESSAGE",
    "MISSING_MC_MESSAGE",
]

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "No data to import."
MISSING_MC_MESSAGE = "Please ensure all entries have an MC value."


class StagingError(Exception):
    """Raised for an edit/remove addressed to a row or field that does not exist."""


class CommitPreconditionError(Exception):
    """Raised when the staged list cannot be committed as a whole."""


class StagingSession:
    """Holds the staged records of one upload/review/commit cycle."""

    def __init__(self, timezone: str = "UTC") -> None:
        self.timezone = timezone
        self.source_name = ""
        self._records: list[StagedRecord] = []

    @property
    def records(self) -> list[StagedRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def load_workbook(self, data: bytes, source_name: str = "") -> list[StagedRecord]:
        """Parse workbook bytes and replace the staged list with the result.

        Raises:
            WorkbookError: Upload rejected; the current staged list is kept.
        """
        records = parse_workbook(data, self.timezone)
        self._records = records
        self.source_name = source_name
        logger.info(f"staged {len(records)} record(s) from {source_name or 'upload'}")
        return self.records

    def load_records(self, records: list[StagedRecord], source_name: str = "") -> None:
        self._records = [replace(r) for r in records]
        self.source_name = source_name

    def _resolve_position(self, position: int) -> int:
        if not 0 <= position < len(self._records):
            raise StagingError(
                f"row {position} out of range (staged rows: {len(self._records)})"
            )
        return position

    def edit_cell(self, position: int, field: str, value: str) -> StagedRecord:
        """Set ``field`` of the staged record at ``position`` to ``value``.

        Any value is accepted, including an empty MC; commit re-checks.
        """
        idx = self._resolve_position(position)
        name = FIELD_ALIASES.get(field, field)
        if name not in EDITABLE_FIELDS:
            raise StagingError(f"unknown field: {field}")
        record = self._records[idx]
        setattr(record, name, value)
        return record

    def remove_row(self, position: int) -> StagedRecord:
        idx = self._resolve_position(position)
        return self._records.pop(idx)

    def clear(self) -> None:
        self._records = []
        self.source_name = ""

    def check_committable(self) -> None:
        """Verify the whole staged list may be submitted.

        Raises:
            CommitPreconditionError: Nothing staged, or a record lacks MC.
        """
        if not self._records:
            raise CommitPreconditionError(NO_DATA_MESSAGE)
        missing = [r.import_id for r in self._records if not r.has_mc]
        if missing:
            logger.debug(f"records without MC: {missing}")
            raise CommitPreconditionError(MISSING_MC_MESSAGE)
