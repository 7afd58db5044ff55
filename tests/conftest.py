# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pandas as pd
import pytest

from cutoff_import.db.store import MemoryStore
from cutoff_import.logging.init import reset_logging
from cutoff_import.models.records import ColumnData, ImportContext, RawCell


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
workers: 1
batch_size: 100
keep_na_strings: ["NA"]
typo_fixes:
  "GENER AL": "GENERAL"
profiles:
  KEA:
    header_strategy: full
timezone: UTC
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: cutoffs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def aiq_context() -> ImportContext:
    return ImportContext(counselling_type="AIQ_PG", year=2024, round="1")


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


def _make_column(header: str, rows: list[str], index: int = 0) -> ColumnData:
    return ColumnData(
        index=index,
        header=header,
        cells=tuple(RawCell(row=i, column=index, text=t) for i, t in enumerate(rows, start=1)),
    )


def _write_workbook(path: Path, columns: list[list[object]]) -> Path:
    height = max(len(c) for c in columns)
    frame = pd.DataFrame({i: c + [None] * (height - len(c)) for i, c in enumerate(columns)})
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return path


@pytest.fixture()
def make_column():
    """Build a ColumnData; rows are numbered from 1 (row 0 is the header)."""
    return _make_column


@pytest.fixture()
def write_workbook():
    """Write columns (header first) to the first sheet of an .xlsx file."""
    return _write_workbook
