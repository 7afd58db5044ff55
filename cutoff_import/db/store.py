from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import Protocol

from ..models.records import CutoffRecord, EntityKind, ImportContext, NaturalKey

"""Persistent store interface and the in-process implementation.

MemoryStore backs the test suite and the CLI's --dry-run mode. Unlike the
PostgreSQL store it can hold duplicate natural keys (seeded with append_raw),
which is what batch deduplication exists to repair.
"""

__all__ = [
    "StoreError",
    "StoreUnavailableError",
    "CutoffStore",
    "MemoryStore",
]


class StoreError(Exception):
    """A store statement failed; the current transaction was rolled back."""


class StoreUnavailableError(StoreError):
    """The store connection is gone. Fatal to the whole run."""


class CutoffStore(Protocol):
    def ensure_schema(self) -> None: ...

    def find_or_create_entity(self, kind: EntityKind, name: str) -> tuple[int, bool]: ...

    def upsert_records(self, records: Sequence[CutoffRecord]) -> int: ...

    def duplicate_groups(self) -> list[list[int]]: ...

    def delete_records(self, ids: Sequence[int]) -> int: ...

    def delete_context(self, context: ImportContext) -> int: ...

    def count_records(self) -> int: ...

    def natural_keys(self) -> set[NaturalKey]: ...

    def close(self) -> None: ...


class MemoryStore:
    """Thread-safe in-memory store.

    Records are kept in insertion order keyed by their sequence number; an
    upsert that hits an existing key replaces the lowest-sequence row in
    place and keeps its sequence.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._entities: dict[EntityKind, dict[str, int]] = {k: {} for k in EntityKind}
        self._records: dict[int, CutoffRecord] = {}
        self._by_key: dict[NaturalKey, list[int]] = {}
        self._next_seq = 1

    def ensure_schema(self) -> None:
        return None

    # -- entities ---------------------------------------------------------
    def find_or_create_entity(self, kind: EntityKind, name: str) -> tuple[int, bool]:
        with self._lock:
            table = self._entities[kind]
            if name in table:
                return table[name], False
            entity_id = len(table) + 1
            table[name] = entity_id
            return entity_id, True

    def entities(self, kind: EntityKind) -> dict[str, int]:
        with self._lock:
            return dict(self._entities[kind])

    # -- records ----------------------------------------------------------
    def _append(self, record: CutoffRecord) -> int:
        seq = self._next_seq
        self._next_seq += 1
        self._records[seq] = replace(record, seq=seq)
        self._by_key.setdefault(record.natural_key, []).append(seq)
        return seq

    def upsert_records(self, records: Sequence[CutoffRecord]) -> int:
        with self._lock:
            for record in records:
                seqs = self._by_key.get(record.natural_key)
                if seqs:
                    keep = min(seqs)
                    self._records[keep] = replace(record, seq=keep)
                else:
                    self._append(record)
            return len(records)

    def append_raw(self, record: CutoffRecord) -> int:
        """Insert without the natural-key check (legacy duplicate rows)."""
        with self._lock:
            return self._append(record)

    def records(self) -> list[CutoffRecord]:
        with self._lock:
            return list(self._records.values())

    def duplicate_groups(self) -> list[list[int]]:
        with self._lock:
            groups = [sorted(seqs) for seqs in self._by_key.values() if len(seqs) > 1]
        return sorted(groups, key=lambda g: g[0])

    def delete_records(self, ids: Sequence[int]) -> int:
        with self._lock:
            wanted = set(ids)
            missing = wanted - self._records.keys()
            if missing:
                raise StoreError(f"records not found: {sorted(missing)[:10]}")
            self._delete(wanted)
            return len(wanted)

    def _delete(self, seqs: Iterable[int]) -> None:
        for seq in seqs:
            record = self._records.pop(seq)
            remaining = [s for s in self._by_key[record.natural_key] if s != seq]
            if remaining:
                self._by_key[record.natural_key] = remaining
            else:
                del self._by_key[record.natural_key]

    def delete_context(self, context: ImportContext) -> int:
        with self._lock:
            doomed = [
                seq
                for seq, r in self._records.items()
                if (r.counselling_type, r.year, r.round)
                == (context.counselling_type, context.year, context.round)
            ]
            self._delete(doomed)
            return len(doomed)

    def count_records(self) -> int:
        with self._lock:
            return len(self._records)

    def natural_keys(self) -> set[NaturalKey]:
        with self._lock:
            return set(self._by_key)

    def close(self) -> None:
        return None
