from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from .processing_result import ImportSummary
from .records import ImportContext

"""ExcelFile domain model and FileStatus enum.

Tracks one spreadsheet through the import lifecycle.
"""


class FileStatus(Enum):
    """Status of one spreadsheet.

    pending -> processing -> (success | failed | skipped)

    SKIPPED: filename metadata unrecognized, nothing read.
    FAILED: unreadable workbook or a store write failed part-way.
    """
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ExcelFile:
    path: Path
    name: str
    context: ImportContext | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: FileStatus = FileStatus.PENDING
    summary: ImportSummary = field(default_factory=ImportSummary)
    error: str | None = None
    batch_stats: tuple[int, float, float] = (0, 0.0, 0.0)  # count, avg, p95 seconds
