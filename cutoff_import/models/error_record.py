from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

row = -1 marks file-level or column-level errors where no single row applies;
column = -1 marks file-level errors.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: spreadsheet filename being processed
        column: 0-based column index, -1 for file-level errors
        row: 0-based row index within the sheet, -1 when unknown
        error_type: classification in UPPER_SNAKE_CASE
        message: store error message or description
    """
    timestamp: str
    file: str
    column: int
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, column: int, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            column=column,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
