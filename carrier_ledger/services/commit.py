from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Protocol

from ..logging.error_log import ErrorLogBuffer
from ..models.commit_result import CommitResult
from ..models.entry import Entry
from ..models.error_record import ErrorRecord
from ..models.staged_record import StagedRecord
from .progress import ProgressTracker
from .staging import StagingSession

"""Commit orchestration: staged records -> record store.

Records are submitted one at a time, in staged order. Any error raised while
creating a record (a rejected row, a lost connection) is counted and logged,
and the pass moves on to the next record. Once every record has been attempted
the staging list is cleared (whatever the outcome) and the entry list is
reloaded from the store.
"""

__all__ = [
    "RecordStore",
    "commit_staged",
]

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    def list_entries(self) -> list[Entry]: ...

    def create_entry(self, record: StagedRecord) -> Entry: ...


def commit_staged(
    session: StagingSession,
    store: RecordStore,
    error_log: ErrorLogBuffer | None = None,
) -> CommitResult:
    """Submit every staged record and reload the authoritative entry list.

    Args:
        session: Staging session holding the reviewed records
        store: Record store receiving one create call per record
        error_log: Buffer receiving one ErrorRecord per rejected record

    Returns:
        CommitResult with succeeded/failed counts and the reloaded entries

    Raises:
        CommitPreconditionError: Nothing staged or a record lacks MC. No store
            call is made and the session is left as it was.
    """
    session.check_committable()

    start_time = datetime.now(UTC)
    records = session.records
    succeeded = 0
    failed = 0

    try:
        with ProgressTracker(len(records)) as progress:
            for record in records:
                progress.start_record(record.mc)
                try:
                    store.create_entry(record)
                except Exception as e:
                    failed += 1
                    logger.debug(f"create failed import_id={record.import_id} mc={record.mc}: {e}")
                    if error_log is not None:
                        error_log.append(
                            ErrorRecord.create(
                                file=session.source_name,
                                import_id=record.import_id,
                                mc=record.mc,
                                error_type="INSERT_ERROR",
                                db_message=str(e),
                            )
                        )
                    progress.finish_record(success=False)
                else:
                    succeeded += 1
                    progress.finish_record(success=True)
                progress.set_postfix(success=succeeded, failed=failed)
    finally:
        session.clear()

    entries: list[Entry] | None = None
    reload_error: str | None = None
    try:
        entries = store.list_entries()
    except Exception as e:
        reload_error = str(e)
        logger.error(f"reload after commit failed: {e}")

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput_rps = succeeded / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return CommitResult(
        succeeded=succeeded,
        failed=failed,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput_rps,
        entries=entries,
        reload_error=reload_error,
    )
