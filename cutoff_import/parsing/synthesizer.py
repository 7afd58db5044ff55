from __future__ import annotations

from enum import Enum

from ..models.records import CandidateRecord, ClassifiedRow, HierarchyState, ImportContext

"""Record synthesis: a rank row plus a complete hierarchy becomes a CandidateRecord."""

__all__ = [
    "DropReason",
    "RecordSynthesizer",
]


class DropReason(Enum):
    MISSING_CONTEXT = "missing_context"
    BAD_RANK = "bad_rank"


def parse_rank(text: str) -> int | None:
    try:
        value = int(text)
    except (TypeError, ValueError):
        return None
    if value < 0:
        return None
    return value


class RecordSynthesizer:
    """Builds candidates for one column (fixed institution and import context)."""

    def __init__(self, institution_name: str, context: ImportContext) -> None:
        self.institution_name = institution_name
        self.context = context

    def synthesize(
        self, state: HierarchyState, row: ClassifiedRow
    ) -> CandidateRecord | DropReason:
        if not state.complete:
            return DropReason.MISSING_CONTEXT
        rank = parse_rank(row.text)
        if rank is None:
            return DropReason.BAD_RANK
        return CandidateRecord(
            institution_name=self.institution_name,
            program_name=state.program,
            category=state.category,
            quota=state.quota,
            rank=rank,
            context=self.context,
            row=row.row,
        )
