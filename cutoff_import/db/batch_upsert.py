from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

from ..models.records import CutoffRecord, NaturalKey

"""Batched CutoffRecord upsert via psycopg2.extras.execute_values.

The statement relies on the unique natural-key index created by
PostgresStore.ensure_schema(). PostgreSQL rejects an ON CONFLICT DO UPDATE
statement that touches the same key twice, so the batch is collapsed by
natural key first (last record wins).
"""

__all__ = [
    "CUTOFF_TABLE",
    "NATURAL_KEY_COLUMNS",
    "UpsertResult",
    "collapse_by_key",
    "batch_upsert",
]

CUTOFF_TABLE = "cutoff_records"
NATURAL_KEY_COLUMNS: tuple[str, ...] = (
    "institution_id",
    "program_id",
    "counselling_type",
    "year",
    "round",
    "category",
    "quota",
    "rank",
)
INSERT_COLUMNS: tuple[str, ...] = NATURAL_KEY_COLUMNS + ("source_file",)


@dataclass(frozen=True)
class UpsertResult:
    submitted_rows: int  # records handed in
    distinct_keys: int  # rows actually sent after collapsing


def collapse_by_key(records: Iterable[CutoffRecord]) -> list[CutoffRecord]:
    """Keep one record per natural key, last occurrence wins, in first-seen key order."""
    latest: dict[NaturalKey, CutoffRecord] = {}
    for record in records:
        latest[record.natural_key] = record
    return list(latest.values())


def batch_upsert(
    cursor: Any,
    records: Iterable[CutoffRecord],
    page_size: int = 1000,
) -> UpsertResult:
    """Write-or-replace records under their natural key.

    Parameters
    ----------
    cursor: psycopg2 cursor inside an open transaction
    records: resolved records
    page_size: execute_values page size
    """
    submitted = list(records)
    if not submitted:
        return UpsertResult(submitted_rows=0, distinct_keys=0)
    rows = [(*r.natural_key, r.source_file) for r in collapse_by_key(submitted)]

    cols_sql = ",".join(f'"{c}"' for c in INSERT_COLUMNS)
    key_sql = ",".join(f'"{c}"' for c in NATURAL_KEY_COLUMNS)
    sql = (
        f"INSERT INTO {CUTOFF_TABLE} ({cols_sql}) VALUES %s "
        f"ON CONFLICT ({key_sql}) DO UPDATE "
        f"SET source_file = EXCLUDED.source_file, imported_at = now()"
    )
    execute_values(cursor, sql, rows, page_size=page_size)
    return UpsertResult(submitted_rows=len(submitted), distinct_keys=len(rows))
