"""Domain models for the carrier ledger.

Staged records (editable import candidates), persisted entries, commit results
and error log records.
"""

from .commit_result import CommitResult
from .entry import Entry, format_amount
from .error_record import ErrorRecord
from .staged_record import EDITABLE_FIELDS, FIELD_ALIASES, Approval, StagedRecord

__all__ = [
    "Approval",
    "CommitResult",
    "EDITABLE_FIELDS",
    "Entry",
    "ErrorRecord",
    "FIELD_ALIASES",
    "StagedRecord",
    "format_amount",
]
