from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .entry import Entry

"""Commit result model: aggregated outcome of one commit pass."""


@dataclass(frozen=True)
class CommitResult:
    """Counts and timing for a commit pass, plus the reloaded entry list.

    ``entries`` is the authoritative list read back from the record store after
    the pass. When that reload fails, ``entries`` is None and ``reload_error``
    carries the store message.
    """
    succeeded: int
    failed: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float  # succeeded / elapsed
    entries: list[Entry] | None = None
    reload_error: str | None = None

    @property
    def attempted(self) -> int:
        return self.succeeded + self.failed

    @property
    def partial_failure(self) -> bool:
        return self.failed > 0
