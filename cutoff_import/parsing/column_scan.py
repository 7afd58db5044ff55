from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from ..models.processing_result import ImportSummary
from ..models.records import CandidateRecord, ColumnData, ImportContext, RowKind
from .classifier import RowClassifier
from .hierarchy import HierarchyTracker
from .normalizer import Normalizer
from .synthesizer import DropReason, RecordSynthesizer

"""Pure per-column decoding: Normalizer -> Classifier -> Tracker -> Synthesizer.

No store access happens here, so columns can be scanned on any thread.
"""

__all__ = [
    "ColumnScan",
    "ColumnScanner",
]


@dataclass(frozen=True)
class ColumnScan:
    column: int
    institution_name: str | None  # None: header yielded no name, column skipped
    candidates: list[CandidateRecord] = field(default_factory=list)
    summary: ImportSummary = field(default_factory=ImportSummary)


class ColumnScanner:
    def __init__(
        self,
        normalizer: Normalizer,
        classifier: RowClassifier,
        header_strategy: Callable[[str], str],
    ) -> None:
        self.normalizer = normalizer
        self.classifier = classifier
        self.header_strategy = header_strategy

    def institution_name(self, header: str) -> str:
        return self.header_strategy(self.normalizer.normalize(header))

    def scan(self, column: ColumnData, context: ImportContext) -> ColumnScan:
        name = self.institution_name(column.header)
        if not name:
            return ColumnScan(
                column=column.index,
                institution_name=None,
                summary=ImportSummary(columns_skipped=1),
            )

        tracker = HierarchyTracker()
        synthesizer = RecordSynthesizer(name, context)
        candidates: list[CandidateRecord] = []
        by_kind: dict[str, int] = {}
        missing_context = 0
        bad_rank = 0

        for cell in column.cells:
            row = self.classifier.classify(self.normalizer.normalize(cell.text), cell.row)
            by_kind[row.kind.value] = by_kind.get(row.kind.value, 0) + 1
            state = tracker.apply(row)
            if row.kind is not RowKind.RANK:
                continue
            outcome = synthesizer.synthesize(state, row)
            if outcome is DropReason.MISSING_CONTEXT:
                missing_context += 1
            elif outcome is DropReason.BAD_RANK:
                bad_rank += 1
            else:
                candidates.append(outcome)

        return ColumnScan(
            column=column.index,
            institution_name=name,
            candidates=candidates,
            summary=ImportSummary(
                rows_seen=len(column.cells),
                records_synthesized=len(candidates),
                dropped_missing_context=missing_context,
                dropped_bad_rank=bad_rank,
                rows_by_kind=by_kind,
            ),
        )
