from __future__ import annotations

import logging

from cutoff_import.logging.init import (
    APP_LOGGER_NAME,
    SUMMARY_LEVEL,
    get_logger,
    log_summary,
    setup_logging,
)


def test_setup_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert first.name == APP_LOGGER_NAME
    assert len(first.handlers) == 1


def test_labeled_lines(capsys):
    logger = setup_logging()
    logger.info("hello")
    logger.warning("careful")
    log_summary("files=1")
    out = capsys.readouterr().out.splitlines()
    assert out == ["INFO hello", "WARN careful", "SUMMARY files=1"]


def test_module_loggers_share_the_handler(capsys):
    setup_logging()
    logging.getLogger("cutoff_import.services.orchestrator").error("boom")
    assert capsys.readouterr().out.strip() == "ERROR boom"


def test_summary_level_is_between_info_and_warning():
    assert logging.INFO < SUMMARY_LEVEL < logging.WARNING
    assert get_logger() is setup_logging()
