from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

"""Record models for the cutoff decoding pipeline.

Lifecycle: RawCell -> ClassifiedRow -> (folded into) HierarchyState
-> CandidateRecord -> CutoffRecord. Everything here is immutable; the
HierarchyTracker replaces its state instead of mutating it.
"""

__all__ = [
    "RowKind",
    "EntityKind",
    "RawCell",
    "ColumnData",
    "ClassifiedRow",
    "HierarchyState",
    "ImportContext",
    "CandidateRecord",
    "CutoffRecord",
    "NaturalKey",
]


class RowKind(Enum):
    """Kind of a single cell within an institution column."""
    PROGRAM = "program"
    CATEGORY = "category"
    QUOTA = "quota"
    RANK = "rank"
    UNKNOWN = "unknown"


class EntityKind(Enum):
    """Canonical entity families owned by the store."""
    INSTITUTION = "institution"
    PROGRAM = "program"


@dataclass(frozen=True)
class RawCell:
    row: int  # 0 = header row
    column: int
    text: str  # stripped cell text (numbers already rendered)


@dataclass(frozen=True)
class ColumnData:
    """One institution column: header text plus its non-empty cells top to bottom."""
    index: int
    header: str
    cells: tuple[RawCell, ...] = ()


@dataclass(frozen=True)
class ClassifiedRow:
    kind: RowKind
    text: str  # normalized text
    row: int


@dataclass(frozen=True)
class HierarchyState:
    """Header values in force at the current position of a column scan."""
    program: str | None = None
    category: str | None = None
    quota: str | None = None

    @property
    def complete(self) -> bool:
        return bool(self.program and self.category and self.quota)


@dataclass(frozen=True)
class ImportContext:
    """File-level metadata attached to every record of one spreadsheet."""
    counselling_type: str  # e.g. AIQ_PG, KEA_MEDICAL
    year: int
    round: str  # "1", "2", "STRAY", "MOPUP", ...

    def label(self) -> str:
        return f"{self.counselling_type} {self.year} round={self.round}"


@dataclass(frozen=True)
class CandidateRecord:
    institution_name: str
    program_name: str
    category: str
    quota: str
    rank: int
    context: ImportContext
    row: int = -1  # source row for error reporting


# (institution_id, program_id, counselling_type, year, round, category, quota, rank)
NaturalKey = tuple[int, int, str, int, str, str, str, int]


@dataclass(frozen=True)
class CutoffRecord:
    """Fully resolved record as persisted.

    ``seq`` is the store's insertion sequence (``None`` until persisted); it is
    bookkeeping and never part of the natural key.
    """
    institution_id: int
    program_id: int
    counselling_type: str
    year: int
    round: str
    category: str
    quota: str
    rank: int
    source_file: str | None = None
    seq: int | None = field(default=None, compare=False)

    @property
    def natural_key(self) -> NaturalKey:
        return (
            self.institution_id,
            self.program_id,
            self.counselling_type,
            self.year,
            self.round,
            self.category,
            self.quota,
            self.rank,
        )

    @staticmethod
    def from_candidate(
        candidate: CandidateRecord,
        institution_id: int,
        program_id: int,
        source_file: str | None = None,
    ) -> CutoffRecord:
        ctx = candidate.context
        return CutoffRecord(
            institution_id=institution_id,
            program_id=program_id,
            counselling_type=ctx.counselling_type,
            year=ctx.year,
            round=ctx.round,
            category=candidate.category,
            quota=candidate.quota,
            rank=candidate.rank,
            source_file=source_file,
        )
