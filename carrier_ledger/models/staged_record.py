from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum

"""StagedRecord model: one editable candidate entry produced by a workbook import.

Staged records live only inside a StagingSession. They are mutable because the
review step edits them in place before commit.
"""

__all__ = [
    "Approval",
    "StagedRecord",
    "EDITABLE_FIELDS",
    "FIELD_ALIASES",
]


class Approval(str, Enum):
    """Approval flag stored on every entry."""
    YES = "YES"
    NO = "NO"


# Attribute names that the staging editor may change (import_id is fixed)
EDITABLE_FIELDS = ("date", "mc", "carrier_name", "amount", "approved", "checked_by", "note")

# camelCase names used by the upload form / workbook review table
FIELD_ALIASES = {
    "carrierName": "carrier_name",
    "checkedBy": "checked_by",
}


@dataclass
class StagedRecord:
    """Candidate entry awaiting commit.

    All values are kept as strings: ``date`` is YYYY-MM-DD, ``amount`` a
    decimal string, ``approved`` "YES" or "NO". Edits may put arbitrary text
    in any field; the record store re-checks on insert.
    """
    import_id: str  # "import-<grid row index>", unique within one staging batch
    date: str
    mc: str
    carrier_name: str = ""
    amount: str = "0"
    approved: str = Approval.NO.value
    checked_by: str = ""
    note: str = ""

    @property
    def has_mc(self) -> bool:
        return bool(self.mc and self.mc.strip())

    def to_dict(self) -> dict[str, str]:
        return asdict(self)
