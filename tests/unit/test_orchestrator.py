from __future__ import annotations

from datetime import timedelta, timezone
from pathlib import Path
from unittest.mock import patch

import pandas as pd
import pytest

from cutoff_import.db.store import MemoryStore, StoreError, StoreUnavailableError
from cutoff_import.excel.reader import SheetReadError
from cutoff_import.logging.error_log import ErrorLogBuffer
from cutoff_import.models.config_models import ImportConfig, ProfileConfig
from cutoff_import.models.excel_file import FileStatus
from cutoff_import.models.records import EntityKind, ImportContext
from cutoff_import.services.orchestrator import (
    ImportPipeline,
    ProcessingError,
    process_all,
    scan_excel_files,
)

AIQ_FILE = "AIQ_PG_2024_R1.xlsx"


def _frame(*columns: list[object]) -> pd.DataFrame:
    height = max(len(c) for c in columns)
    return pd.DataFrame(
        {i: c + [None] * (height - len(c)) for i, c in enumerate(columns)}, dtype=object
    )


GOOD_FRAME = _frame(
    ["Alpha Medical College, City, State", "M.D. General Medicine", "OPEN", "ALL INDIA QUOTA", "1024 8", "2048"],
    ["Beta Institute, Town", "MBBS", "SC", "STATE QUOTA", "77"],
)


@pytest.fixture()
def config(temp_workdir: Path) -> ImportConfig:
    return ImportConfig(source_directory=str(temp_workdir / "data"), batch_size=2)


@pytest.fixture()
def error_log(temp_workdir: Path) -> ErrorLogBuffer:
    return ErrorLogBuffer(logs_dir=temp_workdir / "logs")


def test_scan_excel_files(temp_workdir: Path):
    data = temp_workdir / "data"
    for name in ["b.xlsx", "a.xlsx", "~$a.xlsx", "notes.txt"]:
        (data / name).write_bytes(b"")
    (data / "sub").mkdir()
    (data / "sub" / "c.xlsx").write_bytes(b"")
    assert [p.name for p in scan_excel_files(data)] == ["a.xlsx", "b.xlsx"]
    assert [p.name for p in scan_excel_files(data, recursive=True)] == [
        "a.xlsx",
        "b.xlsx",
        "c.xlsx",
    ]


def test_scan_excel_files_missing_directory(temp_workdir: Path):
    with pytest.raises(ProcessingError, match="not found"):
        scan_excel_files(temp_workdir / "nope")


def test_import_file_success(temp_workdir, config, store, error_log):
    path = temp_workdir / "data" / AIQ_FILE
    with patch("cutoff_import.services.orchestrator.read_excel_file", return_value=GOOD_FRAME):
        result = ImportPipeline(config, store, error_log).import_file(path)

    assert result.status is FileStatus.SUCCESS
    assert result.context == ImportContext("AIQ_PG", 2024, "1")
    s = result.summary
    assert (s.rows_seen, s.records_synthesized, s.records_written) == (9, 3, 3)
    assert store.count_records() == 3
    assert sorted(r.rank for r in store.records()) == [77, 2048, 10248]
    assert set(store.entities(EntityKind.INSTITUTION)) == {"Alpha Medical College", "Beta Institute"}
    assert result.batch_stats[0] == 2  # Alpha: one batch of 2, Beta: one batch of 1
    assert error_log.records() == []


def test_unrecognized_filename_is_skipped(temp_workdir, config, store, error_log):
    with patch("cutoff_import.services.orchestrator.read_excel_file") as reader:
        result = ImportPipeline(config, store, error_log).import_file(
            temp_workdir / "data" / "cutoffs.xlsx"
        )
    reader.assert_not_called()
    assert result.status is FileStatus.SKIPPED
    assert [r.error_type for r in error_log.records()] == ["FILENAME_UNRECOGNIZED"]


def test_unreadable_file_fails_only_that_file(temp_workdir, config, store, error_log):
    with patch(
        "cutoff_import.services.orchestrator.read_excel_file",
        side_effect=SheetReadError("bad zip"),
    ):
        result = ImportPipeline(config, store, error_log).import_file(
            temp_workdir / "data" / AIQ_FILE
        )
    assert result.status is FileStatus.FAILED
    assert result.summary.rows_seen == 0
    rec = error_log.records()[0]
    assert (rec.error_type, rec.column, rec.row) == ("FILE_UNREADABLE", -1, -1)


def test_entity_store_error_drops_column_records(temp_workdir, config, error_log):
    class NoBeta(MemoryStore):
        def find_or_create_entity(self, kind, name):
            if name == "Beta Institute":
                raise StoreError("lock timeout")
            return super().find_or_create_entity(kind, name)

    store = NoBeta()
    with patch("cutoff_import.services.orchestrator.read_excel_file", return_value=GOOD_FRAME):
        result = ImportPipeline(config, store, error_log).import_file(
            temp_workdir / "data" / AIQ_FILE
        )
    assert result.status is FileStatus.SUCCESS
    assert result.summary.records_written == 2
    assert result.summary.dropped_unresolved_entity == 1
    assert [r.error_type for r in error_log.records()] == ["ENTITY_UNRESOLVED"]


def test_program_resolution_failure_drops_one_record(temp_workdir, config, error_log):
    class NoMbbs(MemoryStore):
        def find_or_create_entity(self, kind, name):
            if kind is EntityKind.PROGRAM and name == "MBBS":
                raise StoreError("serialization failure")
            return super().find_or_create_entity(kind, name)

    store = NoMbbs()
    with patch("cutoff_import.services.orchestrator.read_excel_file", return_value=GOOD_FRAME):
        result = ImportPipeline(config, store, error_log).import_file(
            temp_workdir / "data" / AIQ_FILE
        )
    assert result.summary.records_written == 2
    assert result.summary.dropped_unresolved_entity == 1
    rec = error_log.records()[0]
    assert (rec.column, rec.row) == (1, 4)


def test_upsert_failure_marks_file_failed(temp_workdir, config, error_log):
    class RejectingStore(MemoryStore):
        def upsert_records(self, records):
            raise StoreError("check constraint violated")

    with patch("cutoff_import.services.orchestrator.read_excel_file", return_value=GOOD_FRAME):
        result = ImportPipeline(config, RejectingStore(), error_log).import_file(
            temp_workdir / "data" / AIQ_FILE
        )
    assert result.status is FileStatus.FAILED
    assert result.summary.records_written == 0
    assert result.summary.records_synthesized == 3
    assert {r.error_type for r in error_log.records()} == {"UPSERT_FAILED"}


def test_replace_purges_context_first(temp_workdir, config, store, error_log):
    pipeline = ImportPipeline(config, store, error_log)
    path = temp_workdir / "data" / AIQ_FILE
    with patch("cutoff_import.services.orchestrator.read_excel_file", return_value=GOOD_FRAME):
        pipeline.import_file(path)
    smaller = _frame(["Alpha Medical College", "MBBS", "OPEN", "ALL INDIA QUOTA", "5"])
    with patch("cutoff_import.services.orchestrator.read_excel_file", return_value=smaller):
        pipeline.import_file(path, replace=True)
    assert [r.rank for r in store.records()] == [5]


def test_profile_header_strategy_is_used(temp_workdir, store, error_log):
    config = ImportConfig(
        source_directory=str(temp_workdir / "data"),
        profiles={"AIQ": ProfileConfig(name="AIQ", header_strategy="full")},
    )
    with patch("cutoff_import.services.orchestrator.read_excel_file", return_value=GOOD_FRAME):
        ImportPipeline(config, store, error_log).import_file(temp_workdir / "data" / AIQ_FILE)
    assert "Beta Institute, Town" in store.entities(EntityKind.INSTITUTION)


def test_process_all_counts_and_flushes(temp_workdir, config, store, error_log):
    data = temp_workdir / "data"
    for name in [AIQ_FILE, "KEA_2024_MEDICAL_R1.xlsx", "random.xlsx"]:
        (data / name).write_bytes(b"")

    def fake_read(path, keep_na_strings=()):
        if path.name.startswith("KEA"):
            raise SheetReadError("truncated")
        return GOOD_FRAME

    with patch("cutoff_import.services.orchestrator.read_excel_file", side_effect=fake_read):
        result = process_all(config, store, error_log=error_log)

    assert (result.success_files, result.failed_files, result.skipped_files) == (1, 1, 1)
    assert result.summary.records_written == 3
    assert [s.status for s in result.file_stats] == ["success", "failed", "skipped"]
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    assert len(logs[0].read_text(encoding="utf-8").splitlines()) == 2


def test_process_all_escalates_store_loss(temp_workdir, config, error_log):
    class Down(MemoryStore):
        def find_or_create_entity(self, kind, name):
            raise StoreUnavailableError("server closed the connection unexpectedly")

    (temp_workdir / "data" / AIQ_FILE).write_bytes(b"")
    with patch("cutoff_import.services.orchestrator.read_excel_file", return_value=GOOD_FRAME):
        with pytest.raises(ProcessingError, match="store unavailable"):
            process_all(config, Down(), error_log=error_log)


def test_parallel_columns_match_serial(temp_workdir, error_log):
    wide = _frame(
        *[
            [f"College {i}, City", "MBBS", "OPEN", "ALL INDIA QUOTA", str(100 + i), "MS ORTHOPAEDICS", "SC", "STATE QUOTA", str(200 + i)]
            for i in range(12)
        ]
    )
    results = []
    for workers in (1, 4):
        store = MemoryStore()
        config = ImportConfig(source_directory=str(temp_workdir / "data"), workers=workers)
        with patch("cutoff_import.services.orchestrator.read_excel_file", return_value=wide):
            ImportPipeline(config, store, error_log).import_file(temp_workdir / "data" / AIQ_FILE)
        names = {v: k for k, v in store.entities(EntityKind.INSTITUTION).items()}
        programs = {v: k for k, v in store.entities(EntityKind.PROGRAM).items()}
        results.append(
            {(names[r.institution_id], programs[r.program_id], r.rank) for r in store.records()}
        )
        assert len(store.entities(EntityKind.PROGRAM)) == 2
    assert results[0] == results[1]
    assert len(results[0]) == 24


def test_default_error_log_uses_configured_timezone(temp_workdir: Path, monkeypatch):
    ist = timezone(timedelta(hours=5, minutes=30))
    seen: list[str] = []

    def fake_resolve(name: str):
        seen.append(name)
        return ist

    monkeypatch.setattr("cutoff_import.services.orchestrator.resolve_timezone", fake_resolve)
    cfg = ImportConfig(source_directory=str(temp_workdir / "data"), timezone="Asia/Kolkata")
    pipeline = ImportPipeline(cfg, MemoryStore())
    assert seen == ["Asia/Kolkata"]
    assert pipeline.error_log.tz is ist
