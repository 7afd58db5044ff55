from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import ConfigError, load_config
from ..db.postgres import PostgresStore, resolve_dsn
from ..db.store import CutoffStore, MemoryStore, StoreError
from ..excel.reader import SheetReadError, iter_columns, read_excel_file
from ..logging.init import log_summary, setup_logging
from ..models.config_models import ImportConfig
from ..services.filename_meta import parse_import_context
from ..services.merge import DedupError, MergeEngine
from ..services.orchestrator import (
    ImportPipeline,
    ProcessingError,
    process_all,
    scan_excel_files,
)
from ..services.summary import render_dedup_line, render_file_line, render_summary_line

"""CLI entrypoint: python -m cutoff_import.cli

Import mode (default) reads every spreadsheet under source_directory into the
store. --dedupe runs the batch duplicate collapse instead; --inspect-data
prints what the parser sees without writing anything.

Exit codes: 0 all files imported, 2 some file failed or was skipped,
1 fatal (config, directory, store unavailable, dedup failure).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DEFAULT_CONFIG_PATH = Path("config/import.yml")
INSPECT_COLUMNS = 3
INSPECT_ROWS = 8


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; with override=True its values beat the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="cutoff-import",
        description="Import counselling cutoff spreadsheets into the cutoff store",
    )
    p.add_argument(
        "--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path"
    )
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--inspect-data",
        action="store_true",
        help="Print import context, headers and classified rows per file, then exit",
    )
    p.add_argument(
        "--dry-run",
        action="store_true",
        help="Import into an in-memory store; with --dedupe only report duplicates",
    )
    p.add_argument(
        "--replace",
        action="store_true",
        help="Purge each file's (counselling type, year, round) before importing it",
    )
    p.add_argument(
        "--dedupe",
        action="store_true",
        help="Collapse records sharing a natural key instead of importing",
    )
    return p.parse_args(argv)


def _open_store(cfg: ImportConfig, enforce_unique_key: bool = True) -> CutoffStore:
    store = PostgresStore(
        resolve_dsn(cfg.database),
        max_connections=cfg.workers + 1,
        page_size=cfg.batch_size,
    )
    try:
        store.ensure_schema(enforce_unique_key=enforce_unique_key)
    except StoreError:
        store.close()
        raise
    return store


def _inspect_data(cfg: ImportConfig) -> int:
    try:
        files = scan_excel_files(Path(cfg.source_directory), recursive=cfg.recursive)
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not files:
        print("inspect: no .xlsx files")
        return EXIT_SUCCESS_ALL

    pipeline = ImportPipeline(cfg, MemoryStore())
    for f in files:
        context = parse_import_context(f.name)
        print(f"FILE: {f.name} context={context.label() if context else 'UNRECOGNIZED'}")
        if context is None:
            continue
        try:
            df = read_excel_file(f, keep_na_strings=cfg.keep_na_strings)
        except SheetReadError as e:
            print(f"  read_error: {e}")
            continue
        scanner = pipeline.scanner_for(context)
        for column in list(iter_columns(df))[:INSPECT_COLUMNS]:
            print(
                f"  COLUMN {column.index}: header={column.header!r} "
                f"institution={scanner.institution_name(column.header)!r}"
            )
            for cell in column.cells[:INSPECT_ROWS]:
                text = pipeline.normalizer.normalize(cell.text)
                kind = scanner.classifier.kind_of(text)
                print(f"    row {cell.row}: {kind.value:<8} {text!r}")
    return EXIT_SUCCESS_ALL


def _dedupe(cfg: ImportConfig, report_only: bool, logger: logging.Logger) -> int:
    try:
        store = _open_store(cfg, enforce_unique_key=False)
    except StoreError as e:
        logger.error(f"store: {e}")
        return EXIT_FATAL
    try:
        engine = MergeEngine(store, batch_size=cfg.batch_size)
        groups, surplus = engine.count_duplicates()
        logger.info(f"duplicate groups={groups} surplus_rows={surplus}")
        if report_only:
            return EXIT_SUCCESS_ALL
        result = engine.collapse_duplicates()
        logger.info(render_dedup_line(result))
        remaining, _ = engine.count_duplicates()
        if remaining:
            logger.error(f"{remaining} duplicate groups remain after collapse")
            return EXIT_FATAL
        if isinstance(store, PostgresStore):
            store.create_unique_key_index()
    except (DedupError, StoreError) as e:
        logger.error(f"dedupe: {e}")
        return EXIT_FATAL
    finally:
        store.close()
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # [] from tests must not fall back to pytest's own argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    if args.inspect_data:
        return _inspect_data(cfg)

    if args.dedupe:
        return _dedupe(cfg, report_only=args.dry_run, logger=logger)

    directory = Path(cfg.source_directory)
    if not directory.exists():
        logger.error(f"directory not found: {directory}")
        return EXIT_FATAL
    logger.info(f"Processing files from: {directory}")

    store: CutoffStore
    if args.dry_run:
        logger.info("dry run: records go to an in-memory store")
        store = MemoryStore()
    else:
        try:
            store = _open_store(cfg)
        except StoreError as e:
            logger.error(f"store: {e}")
            return EXIT_FATAL

    try:
        result = process_all(cfg, store, replace=args.replace)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    finally:
        store.close()

    for stat in result.file_stats or []:
        logger.debug(render_file_line(stat))

    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(result)[len("SUMMARY "):])

    if result.failed_files or result.skipped_files:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
