from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import datetime

"""Processing result models for the cutoff importer.

ImportSummary is the per-file count object handed to callers; ProcessingResult
aggregates a whole run and feeds the SUMMARY line.
"""

__all__ = [
    "ImportSummary",
    "FileStat",
    "ProcessingResult",
    "DedupResult",
    "BatchStatsAccumulator",
]


@dataclass(frozen=True)
class ImportSummary:
    """Counts for one spreadsheet (or one column, before merging).

    Every non-empty data cell is one row seen. A synthesized record ends up
    either written or dropped as unresolved; rank rows that never became a
    candidate are counted under the missing-context or bad-rank reasons.
    """
    rows_seen: int = 0
    records_synthesized: int = 0
    records_written: int = 0
    dropped_missing_context: int = 0
    dropped_bad_rank: int = 0
    dropped_unresolved_entity: int = 0
    columns_skipped: int = 0
    rows_by_kind: dict[str, int] = field(default_factory=dict)

    def merge(self, other: ImportSummary) -> ImportSummary:
        kinds = dict(self.rows_by_kind)
        for kind, count in other.rows_by_kind.items():
            kinds[kind] = kinds.get(kind, 0) + count
        return ImportSummary(
            rows_seen=self.rows_seen + other.rows_seen,
            records_synthesized=self.records_synthesized + other.records_synthesized,
            records_written=self.records_written + other.records_written,
            dropped_missing_context=self.dropped_missing_context + other.dropped_missing_context,
            dropped_bad_rank=self.dropped_bad_rank + other.dropped_bad_rank,
            dropped_unresolved_entity=(
                self.dropped_unresolved_entity + other.dropped_unresolved_entity
            ),
            columns_skipped=self.columns_skipped + other.columns_skipped,
            rows_by_kind=kinds,
        )

    def as_dict(self) -> dict[str, object]:
        """Structured report in the caller-facing key style."""
        return {
            "rowsSeen": self.rows_seen,
            "recordsSynthesized": self.records_synthesized,
            "recordsWritten": self.records_written,
            "droppedMissingContext": self.dropped_missing_context,
            "droppedBadRank": self.dropped_bad_rank,
            "droppedUnresolvedEntity": self.dropped_unresolved_entity,
            "columnsSkipped": self.columns_skipped,
            "rowsByKind": dict(self.rows_by_kind),
        }


@dataclass(frozen=True)
class FileStat:
    """Per-file processing statistics.

    status is one of success / failed / skipped. Skipped files (unrecognized
    filename) still carry an empty summary so callers can tell them apart from
    files that matched nothing.
    """
    file_name: str
    status: str
    summary: ImportSummary
    elapsed_seconds: float
    context: str | None = None  # ImportContext.label()
    error: str | None = None
    total_batches: int = 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results for a whole run."""
    success_files: int
    failed_files: int
    skipped_files: int
    summary: ImportSummary  # merged over successful and failed files
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files + self.skipped_files


@dataclass(frozen=True)
class DedupResult:
    """Outcome of a batch duplicate collapse."""
    duplicate_groups: int
    removed_records: int
    records_before: int
    records_after: int


class BatchStatsAccumulator:
    """Accumulates upsert batch timings for FileStat.

    Column workers call add_batch_time concurrently; list.append is atomic
    under the GIL so no lock is taken here.
    """

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Return (total_batches, avg_batch_seconds, p95_batch_seconds)."""
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method="inclusive"
            )[18]  # 95th percentile

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
