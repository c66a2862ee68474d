from __future__ import annotations

from ..models.commit_result import CommitResult

"""Summary rendering for commit passes.

Two renderings of the same CommitResult:
- render_summary_line: machine-oriented SUMMARY line
- render_import_message: the user-facing sentence shown after an import
"""


def _format_number(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(result: CommitResult) -> str:
    """Render the SUMMARY line for a commit pass.

    Format:
    SUMMARY staged={n} success={s} failed={f} elapsed_sec={e} throughput_rps={t}

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = CommitResult(
        ...     succeeded=9, failed=1, start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, throughput_rows_per_sec=4.5,
        ... )
        >>> render_summary_line(result)
        'SUMMARY staged=10 success=9 failed=1 elapsed_sec=2 throughput_rps=4.5'
    """
    return (
        f"SUMMARY staged={result.attempted} "
        f"success={result.succeeded} "
        f"failed={result.failed} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_rows_per_sec)}"
    )


def render_import_message(result: CommitResult) -> str:
    if result.succeeded == 0:
        return "Failed to import entries. Please check the data and try again."
    noun = "entry" if result.succeeded == 1 else "entries"
    message = f"Successfully imported {result.succeeded} {noun}"
    if result.failed > 0:
        return f"{message}. {result.failed} failed."
    return f"{message}."
