from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..db.store import CutoffStore, StoreError, StoreUnavailableError
from ..excel.reader import SheetReadError, iter_columns, read_excel_file
from ..logging.error_log import ErrorLogBuffer, ErrorRecord, resolve_timezone
from ..models.config_models import ImportConfig
from ..models.excel_file import ExcelFile, FileStatus
from ..models.processing_result import (
    BatchStatsAccumulator,
    FileStat,
    ImportSummary,
    ProcessingResult,
)
from ..models.records import ColumnData, CutoffRecord, EntityKind, ImportContext
from ..parsing.classifier import ClassifierRules, RowClassifier
from ..parsing.column_scan import ColumnScanner
from ..parsing.headers import get_header_strategy
from ..parsing.normalizer import Normalizer
from .entity_resolver import EntityResolutionError, EntityResolver
from .filename_meta import parse_import_context
from .merge import BatchMetrics, MergeEngine, UpsertError
from .progress import ProgressTracker

"""Import orchestration.

One spreadsheet at a time; within a spreadsheet every column is independent
and may run on a worker thread. Per-record and per-column problems become
counts plus error-log entries; a file that cannot be read or named is skipped;
only a lost store connection stops the run (ProcessingError).
"""

__all__ = [
    "ProcessingError",
    "ImportPipeline",
    "scan_excel_files",
    "process_all",
]

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal to the run: missing directory or store unavailable."""


@dataclass(frozen=True)
class _ColumnOutcome:
    summary: ImportSummary
    error: str | None = None


def scan_excel_files(directory: Path, recursive: bool = False) -> list[Path]:
    """List .xlsx files (sorted), skipping Office lock files.

    Raises:
        ProcessingError: directory missing, not a directory, or unreadable
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    try:
        candidates = directory.rglob("*.xlsx") if recursive else directory.glob("*.xlsx")
        return sorted(p for p in candidates if p.is_file() and not p.name.startswith("~$"))
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


class ImportPipeline:
    """Normalizer -> Classifier -> Tracker -> Synthesizer -> Resolver -> Merge.

    One pipeline serves a whole run so the entity cache is shared across
    files.
    """

    def __init__(
        self,
        config: ImportConfig,
        store: CutoffStore,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.error_log = (
            error_log if error_log is not None
            else ErrorLogBuffer(tz=resolve_timezone(config.timezone))
        )
        self.normalizer = Normalizer(config.typo_fixes)
        self.resolver = EntityResolver(store)
        self.merge = MergeEngine(store, batch_size=config.batch_size)
        self._scanners: dict[str, ColumnScanner] = {}

    def scanner_for(self, context: ImportContext) -> ColumnScanner:
        profile = self.config.profile_for(context.counselling_type)
        key = profile.name if profile else ""
        scanner = self._scanners.get(key)
        if scanner is None:
            scanner = ColumnScanner(
                self.normalizer,
                RowClassifier(ClassifierRules.for_profile(profile)),
                get_header_strategy(profile.header_strategy if profile else "first_segment"),
            )
            self._scanners[key] = scanner
        return scanner

    def _record_error(
        self, file_name: str, column: int, row: int, error_type: str, message: str
    ) -> None:
        self.error_log.append(
            ErrorRecord.create(
                file=file_name, column=column, row=row, error_type=error_type, message=message
            )
        )

    def _process_column(
        self,
        scanner: ColumnScanner,
        column: ColumnData,
        context: ImportContext,
        file_name: str,
        accumulator: BatchStatsAccumulator | None = None,
    ) -> _ColumnOutcome:
        scan = scanner.scan(column, context)
        if scan.institution_name is None:
            logger.debug(f"{file_name}: column {column.index} has no institution header")
            return _ColumnOutcome(scan.summary)

        try:
            institution_id = self.resolver.resolve(EntityKind.INSTITUTION, scan.institution_name)
        except StoreUnavailableError:
            raise
        except (EntityResolutionError, StoreError) as e:
            self._record_error(file_name, column.index, -1, "ENTITY_UNRESOLVED", str(e))
            return _ColumnOutcome(
                scan.summary.merge(
                    ImportSummary(dropped_unresolved_entity=len(scan.candidates))
                )
            )

        records: list[CutoffRecord] = []
        unresolved = 0
        for candidate in scan.candidates:
            try:
                program_id = self.resolver.resolve(EntityKind.PROGRAM, candidate.program_name)
            except StoreUnavailableError:
                raise
            except (EntityResolutionError, StoreError) as e:
                unresolved += 1
                self._record_error(
                    file_name, column.index, candidate.row, "ENTITY_UNRESOLVED", str(e)
                )
                continue
            records.append(
                CutoffRecord.from_candidate(candidate, institution_id, program_id, file_name)
            )

        callback = None
        if accumulator is not None:
            def callback(metrics: BatchMetrics) -> None:
                accumulator.add_batch_time(metrics.elapsed_seconds)

        error = None
        try:
            written = self.merge.upsert(records, metrics_callback=callback)
        except UpsertError as e:
            written = e.written
            error = f"column {column.index} ({scan.institution_name}): {e}"
            self._record_error(file_name, column.index, -1, "UPSERT_FAILED", str(e))

        return _ColumnOutcome(
            scan.summary.merge(
                ImportSummary(records_written=written, dropped_unresolved_entity=unresolved)
            ),
            error,
        )

    def import_columns(
        self,
        columns: Sequence[ColumnData],
        context: ImportContext,
        file_name: str,
        accumulator: BatchStatsAccumulator | None = None,
    ) -> tuple[ImportSummary, list[str]]:
        """Run every column through the pipeline.

        Returns the merged summary and the column-level write errors. Column
        order does not matter; with workers > 1 columns run concurrently.

        Raises:
            StoreUnavailableError: the store connection was lost
        """
        scanner = self.scanner_for(context)

        def run(column: ColumnData) -> _ColumnOutcome:
            return self._process_column(scanner, column, context, file_name, accumulator)

        workers = max(1, self.config.workers)
        if workers > 1 and len(columns) > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="column") as pool:
                outcomes = list(pool.map(run, columns))
        else:
            outcomes = [run(c) for c in columns]

        summary = ImportSummary()
        errors: list[str] = []
        for outcome in outcomes:
            summary = summary.merge(outcome.summary)
            if outcome.error:
                errors.append(outcome.error)
        return summary, errors

    def import_file(self, path: Path, replace: bool = False) -> ExcelFile:
        """Import one spreadsheet.

        Args:
            path: spreadsheet path; its name supplies the import context
            replace: purge the context's existing records first (fix run)

        Raises:
            StoreUnavailableError: the store connection was lost
        """
        start_time = datetime.now(UTC)

        def finish(status: FileStatus, **kwargs) -> ExcelFile:
            return ExcelFile(
                path=path,
                name=path.name,
                start_time=start_time,
                end_time=datetime.now(UTC),
                status=status,
                **kwargs,
            )

        context = parse_import_context(path.name)
        if context is None:
            logger.warning(f"{path.name}: unrecognized filename, skipped")
            self._record_error(path.name, -1, -1, "FILENAME_UNRECOGNIZED", path.name)
            return finish(FileStatus.SKIPPED, error="unrecognized filename")

        try:
            df = read_excel_file(path, keep_na_strings=self.config.keep_na_strings)
        except SheetReadError as e:
            logger.error(f"{path.name}: {e}")
            self._record_error(path.name, -1, -1, "FILE_UNREADABLE", str(e))
            return finish(FileStatus.FAILED, context=context, error=str(e))

        if replace:
            try:
                purged = self.store.delete_context(context)
            except StoreUnavailableError:
                raise
            except StoreError as e:
                logger.error(f"{path.name}: purge failed: {e}")
                self._record_error(path.name, -1, -1, "CONTEXT_PURGE_FAILED", str(e))
                return finish(FileStatus.FAILED, context=context, error=str(e))
            logger.info(f"{path.name}: purged {purged} records of {context.label()}")

        accumulator = BatchStatsAccumulator()
        summary, errors = self.import_columns(
            list(iter_columns(df)), context, path.name, accumulator
        )
        status = FileStatus.FAILED if errors else FileStatus.SUCCESS
        logger.debug(f"{path.name}: {summary.as_dict()}")
        logger.info(
            f"{path.name}: {context.label()} rows={summary.rows_seen} "
            f"synthesized={summary.records_synthesized} written={summary.records_written} "
            f"dropped_context={summary.dropped_missing_context} "
            f"dropped_rank={summary.dropped_bad_rank} "
            f"dropped_entity={summary.dropped_unresolved_entity}"
        )
        return finish(
            status,
            context=context,
            summary=summary,
            error="; ".join(errors) if errors else None,
            batch_stats=accumulator.get_stats(),
        )


def process_all(
    config: ImportConfig,
    store: CutoffStore,
    replace: bool = False,
    error_log: ErrorLogBuffer | None = None,
) -> ProcessingResult:
    """Import every spreadsheet under config.source_directory.

    Raises:
        ProcessingError: directory problems or a lost store connection
    """
    start_time = datetime.now(UTC)
    if error_log is None:
        error_log = ErrorLogBuffer(tz=resolve_timezone(config.timezone))
    file_paths = scan_excel_files(Path(config.source_directory), recursive=config.recursive)
    pipeline = ImportPipeline(config, store, error_log)

    file_stats: list[FileStat] = []
    counts = {status: 0 for status in FileStatus}
    summary = ImportSummary()

    try:
        with ProgressTracker(len(file_paths), description="Importing files") as progress:
            for file_path in file_paths:
                progress.start_file(file_path)
                result = pipeline.import_file(file_path, replace=replace)
                counts[result.status] += 1
                summary = summary.merge(result.summary)
                progress.set_postfix(
                    ok=counts[FileStatus.SUCCESS],
                    failed=counts[FileStatus.FAILED],
                    written=summary.records_written,
                )
                progress.finish_file(success=result.status == FileStatus.SUCCESS)

                total_batches, avg_batch, p95_batch = result.batch_stats
                elapsed = 0.0
                if result.start_time and result.end_time:
                    elapsed = (result.end_time - result.start_time).total_seconds()
                file_stats.append(
                    FileStat(
                        file_name=result.name,
                        status=result.status.value,
                        summary=result.summary,
                        elapsed_seconds=elapsed,
                        context=result.context.label() if result.context else None,
                        error=result.error,
                        total_batches=total_batches,
                        avg_batch_seconds=avg_batch,
                        p95_batch_seconds=p95_batch,
                    )
                )
    except StoreUnavailableError as e:
        raise ProcessingError(f"store unavailable: {e}") from e
    finally:
        error_path = error_log.flush()
        if error_path is not None:
            logger.info(f"error log written: {error_path}")

    created = pipeline.resolver.created
    logger.info(
        f"entities created: institutions={created[EntityKind.INSTITUTION]} "
        f"programs={created[EntityKind.PROGRAM]}"
    )

    end_time = datetime.now(UTC)
    return ProcessingResult(
        success_files=counts[FileStatus.SUCCESS],
        failed_files=counts[FileStatus.FAILED],
        skipped_files=counts[FileStatus.SKIPPED],
        summary=summary,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=file_stats,
    )
