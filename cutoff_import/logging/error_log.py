from __future__ import annotations

import threading
from datetime import UTC, datetime, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

from ..models.error_record import ErrorRecord

"""JSON Lines error log.

One file per run, logs/errors-YYYYMMDD-HHMMSS.log stamped in the configured
timezone (UTC by default), created on the first flush that has records.
Column workers append concurrently, so the buffer is guarded by a lock.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "resolve_timezone",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


def resolve_timezone(name: str) -> tzinfo:
    """Map a config timezone name to a tzinfo; UTC needs no tz database."""
    if name.upper() == "UTC":
        return UTC
    return ZoneInfo(name)


class ErrorLogBuffer:
    def __init__(self, logs_dir: Path | None = None, tz: tzinfo = UTC) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir or LOGS_DIR
        self._lock = threading.Lock()
        self.tz = tz

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(self.tz).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        with self._lock:
            self._records.append(record)

    def records(self) -> list[ErrorRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file; None when nothing was buffered."""
        with self._lock:
            if not self._records:
                return None
            fp = self.file_path
            with fp.open("a", encoding="utf-8") as f:
                for r in self._records:
                    f.write(r.to_json_line() + "\n")
            self._records.clear()
            return fp
