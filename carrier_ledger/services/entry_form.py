from __future__ import annotations

from dataclasses import dataclass

from ..excel.normalize import today_iso
from ..models.staged_record import Approval, StagedRecord

"""Manual entry form validation.

Unlike imported rows, a hand-entered record needs MC, carrier name and checker.
The date is always today.
"""

__all__ = [
    "EntryForm",
    "EntryValidationError",
    "build_manual_entry",
]

REQUIRED_MESSAGES = {
    "mc": "MC is required",
    "carrier_name": "Carrier Name is required",
    "checked_by": "Checked By is required",
}


class EntryValidationError(Exception):
    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("; ".join(errors.values()))
        self.errors = errors


@dataclass
class EntryForm:
    mc: str = ""
    carrier_name: str = ""
    amount: str = ""
    approved: str = Approval.NO.value
    checked_by: str = ""
    note: str = ""

    def validate(self) -> dict[str, str]:
        errors = {
            field: message
            for field, message in REQUIRED_MESSAGES.items()
            if not getattr(self, field).strip()
        }
        if self.approved not in (Approval.YES.value, Approval.NO.value):
            errors["approved"] = "Approved must be YES or NO"
        return errors


def build_manual_entry(form: EntryForm, timezone: str = "UTC") -> StagedRecord:
    """Validate the form and return a record ready for ``create_entry``.

    Raises:
        EntryValidationError: One or more required fields are blank.
    """
    errors = form.validate()
    if errors:
        raise EntryValidationError(errors)
    return StagedRecord(
        import_id="manual",
        date=today_iso(timezone),
        mc=form.mc.strip(),
        carrier_name=form.carrier_name.strip(),
        amount=form.amount or "0",
        approved=form.approved,
        checked_by=form.checked_by.strip(),
        note=form.note.strip(),
    )
