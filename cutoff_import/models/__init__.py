"""Domain models for the cutoff importer."""

from .config_models import DatabaseConfig, ImportConfig, ProfileConfig
from .processing_result import DedupResult, FileStat, ImportSummary, ProcessingResult
from .records import (
    CandidateRecord,
    ClassifiedRow,
    ColumnData,
    CutoffRecord,
    EntityKind,
    HierarchyState,
    ImportContext,
    RawCell,
    RowKind,
)

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "ProfileConfig",
    # Pipeline models
    "RawCell",
    "ColumnData",
    "RowKind",
    "ClassifiedRow",
    "HierarchyState",
    "ImportContext",
    "CandidateRecord",
    "CutoffRecord",
    "EntityKind",
    # Results
    "ImportSummary",
    "FileStat",
    "ProcessingResult",
    "DedupResult",
]
