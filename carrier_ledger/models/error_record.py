from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for commit failure logging.

One record per staged entry the record store rejected during a commit pass.
Serialized as a JSON Lines object with a fixed key set.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Workbook name the staged entry came from ("" for manual entries)
        import_id: Staging id of the rejected entry (e.g. "import-3")
        mc: MC value of the rejected entry
        error_type: Error classification in UPPER_SNAKE_CASE format
        db_message: Record store error message
    """
    timestamp: str
    file: str
    import_id: str
    mc: str
    error_type: str
    db_message: str

    @staticmethod
    def create(file: str, import_id: str, mc: str, error_type: str, db_message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            import_id=import_id,
            mc=mc,
            error_type=error_type,
            db_message=db_message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
