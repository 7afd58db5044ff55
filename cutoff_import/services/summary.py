from __future__ import annotations

from ..models.processing_result import DedupResult, FileStat, ProcessingResult

"""SUMMARY line rendering.

The run line is machine-parsed by wrappers (cron mail filters, CI); keep the
key order and the key=value shape stable.
"""

__all__ = [
    "format_seconds",
    "render_summary_line",
    "render_file_line",
    "render_dedup_line",
]


def format_seconds(seconds: float) -> str:
    """Plain decimal, no scientific notation, no trailing zeros."""
    if seconds <= 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    return f"{seconds:.3f}".rstrip("0").rstrip(".") or "0"


def render_summary_line(result: ProcessingResult) -> str:
    """Render the run SUMMARY line.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from cutoff_import.models.processing_result import ImportSummary
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_files=1, failed_files=0, skipped_files=1,
        ...     summary=ImportSummary(rows_seen=10, records_synthesized=4, records_written=4),
        ...     start_time=t, end_time=t, elapsed_seconds=1.5,
        ... )
        >>> render_summary_line(result)
        'SUMMARY files=2 success=1 failed=0 skipped=1 rows=10 synthesized=4 written=4 dropped_context=0 dropped_rank=0 dropped_entity=0 elapsed_sec=1.5'
    """
    s = result.summary
    return (
        f"SUMMARY files={result.total_files} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"skipped={result.skipped_files} "
        f"rows={s.rows_seen} "
        f"synthesized={s.records_synthesized} "
        f"written={s.records_written} "
        f"dropped_context={s.dropped_missing_context} "
        f"dropped_rank={s.dropped_bad_rank} "
        f"dropped_entity={s.dropped_unresolved_entity} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )


def render_file_line(stat: FileStat) -> str:
    s = stat.summary
    line = (
        f"FILE {stat.file_name} status={stat.status} "
        f"context={stat.context or '-'} "
        f"rows={s.rows_seen} written={s.records_written} "
        f"columns_skipped={s.columns_skipped} "
        f"batches={stat.total_batches} "
        f"p95_batch_sec={format_seconds(stat.p95_batch_seconds)} "
        f"elapsed_sec={format_seconds(stat.elapsed_seconds)}"
    )
    if stat.error:
        line += f" error={stat.error}"
    return line


def render_dedup_line(result: DedupResult) -> str:
    return (
        f"DEDUP groups={result.duplicate_groups} removed={result.removed_records} "
        f"before={result.records_before} after={result.records_after}"
    )
