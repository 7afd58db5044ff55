from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..db.store import CutoffStore, StoreError, StoreUnavailableError
from ..models.processing_result import DedupResult
from ..models.records import CutoffRecord

"""Dedup & merge engine.

Import-time upserts replace any record that already carries the same natural
key. Batch deduplication is a maintenance pass over the whole store: for each
natural key with several rows the lowest insertion sequence survives and the
rest are deleted in one transaction.
"""

__all__ = [
    "BatchMetrics",
    "DedupError",
    "MergeEngine",
    "UpsertError",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchMetrics:
    """Timing for one upsert batch."""
    batch_size: int
    elapsed_seconds: float
    start_time: float
    end_time: float


class DedupError(Exception):
    """Duplicate collapse failed.

    committed is False when the delete was rolled back and the store is
    unchanged; True when the delete went through but the record count did
    not add up afterwards.
    """

    def __init__(self, message: str, committed: bool = False) -> None:
        super().__init__(message)
        self.committed = committed


class UpsertError(Exception):
    """An upsert batch failed; earlier batches stay committed."""

    def __init__(self, message: str, written: int) -> None:
        super().__init__(message)
        self.written = written


class MergeEngine:
    def __init__(self, store: CutoffStore, batch_size: int = 1000) -> None:
        self.store = store
        self.batch_size = max(1, batch_size)

    def upsert(
        self,
        records: Sequence[CutoffRecord],
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> int:
        """Write-or-replace records in batches; returns the number submitted.

        Each batch is its own transaction. A failed batch raises UpsertError
        carrying the count already written; earlier batches stay committed.
        metrics_callback receives one BatchMetrics per batch, failed ones too.
        """
        written = 0
        for start in range(0, len(records), self.batch_size):
            chunk = records[start:start + self.batch_size]
            start_time = time.time()
            try:
                written += self.store.upsert_records(chunk)
            except StoreUnavailableError:
                raise
            except StoreError as e:
                raise UpsertError(str(e), written=written) from e
            finally:
                end_time = time.time()
                if metrics_callback is not None:
                    metrics_callback(
                        BatchMetrics(
                            batch_size=len(chunk),
                            elapsed_seconds=end_time - start_time,
                            start_time=start_time,
                            end_time=end_time,
                        )
                    )
        return written

    def count_duplicates(self) -> tuple[int, int]:
        """Return (duplicate groups, surplus rows) without changing anything."""
        groups = self.store.duplicate_groups()
        return len(groups), sum(len(g) - 1 for g in groups)

    def collapse_duplicates(self) -> DedupResult:
        before = self.store.count_records()
        groups = self.store.duplicate_groups()
        doomed = [seq for group in groups for seq in sorted(group)[1:]]
        if not doomed:
            logger.info("no duplicate natural keys")
            return DedupResult(
                duplicate_groups=0,
                removed_records=0,
                records_before=before,
                records_after=before,
            )

        logger.info(f"collapsing {len(groups)} duplicate groups ({len(doomed)} surplus rows)")
        try:
            removed = self.store.delete_records(doomed)
        except StoreError as e:
            raise DedupError(f"duplicate collapse rolled back: {e}") from e

        after = self.store.count_records()
        if after != before - removed:
            raise DedupError(
                f"record count mismatch after committed collapse: before={before} "
                f"removed={removed} after={after}",
                committed=True,
            )
        return DedupResult(
            duplicate_groups=len(groups),
            removed_records=removed,
            records_before=before,
            records_after=after,
        )
