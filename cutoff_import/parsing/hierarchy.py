from __future__ import annotations

from ..models.records import ClassifiedRow, HierarchyState, RowKind

"""Hierarchy tracker for a single column.

Carry-forward rules, top to bottom:

- Program: set program, clear category and quota
- Category: set category, clear quota
- Quota: set quota
- Rank / Unknown: no change

State is local to one column; a fresh tracker is used per column.
"""

__all__ = [
    "HierarchyTracker",
]


class HierarchyTracker:
    def __init__(self) -> None:
        self.state = HierarchyState()

    def apply(self, row: ClassifiedRow) -> HierarchyState:
        """Fold one classified row into the state and return the state in force."""
        if row.kind is RowKind.PROGRAM:
            self.state = HierarchyState(program=row.text)
        elif row.kind is RowKind.CATEGORY:
            self.state = HierarchyState(program=self.state.program, category=row.text)
        elif row.kind is RowKind.QUOTA:
            self.state = HierarchyState(
                program=self.state.program,
                category=self.state.category,
                quota=row.text,
            )
        return self.state

    def reset(self) -> None:
        self.state = HierarchyState()
