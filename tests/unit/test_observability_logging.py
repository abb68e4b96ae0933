"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest

from transitgit.observability import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_configure_logging_sets_level_warning() -> None:
    """Default verbosity (0) sets WARNING level."""
    configure_logging(verbosity=0)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.WARNING


def test_configure_logging_verbose_sets_debug_root() -> None:
    """verbosity=1 opens the root logger; the console handler filters to INFO."""
    configure_logging(verbosity=1)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG
    assert root_logger.handlers[0].level == logging.INFO


def test_get_logger_returns_bound_logger() -> None:
    """get_logger returns a structlog logger with expected methods."""
    logger = get_logger(__name__)

    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "error")
    assert hasattr(logger, "warning")


def test_get_logger_auto_configures() -> None:
    """get_logger configures logging if not already done."""
    import transitgit.observability.logging as log_module

    log_module._configured = False

    logger = get_logger("test")

    assert log_module._configured is True
    assert logger is not None


@pytest.mark.parametrize("name", ["git", "httpx", "httpcore", "urllib3"])
def test_configure_logging_suppresses_noisy_loggers(name: str) -> None:
    """Library loggers stay at WARNING even in debug mode."""
    configure_logging(verbosity=2)

    assert logging.getLogger(name).level == logging.WARNING


def test_configure_logging_with_file_logging(tmp_path: Path) -> None:
    """File logging creates the logs directory."""
    logs_dir = tmp_path / ".transitgit-logs"
    configure_logging(verbosity=0, log_to_file=True, log_dir=logs_dir)

    assert logs_dir.exists()
    assert get_logs_dir() == logs_dir
    close_file_logging()


def test_configure_logging_requires_log_dir_for_file_logging() -> None:
    """log_to_file=True without log_dir raises ValueError."""
    with pytest.raises(ValueError, match="log_dir is required"):
        configure_logging(verbosity=0, log_to_file=True, log_dir=None)


def test_configure_logging_reconfiguration_closes_handler(tmp_path: Path) -> None:
    """Reconfiguring logging closes previous file handler."""
    import transitgit.observability.logging as log_module

    configure_logging(verbosity=0, log_to_file=True, log_dir=tmp_path)
    first_handler = log_module._file_handler
    assert first_handler is not None

    configure_logging(verbosity=0, log_to_file=True, log_dir=tmp_path)
    second_handler = log_module._file_handler

    assert first_handler.stream is None or first_handler.stream.closed
    assert second_handler is not None
    close_file_logging()


def test_close_file_logging_clears_handler(tmp_path: Path) -> None:
    """close_file_logging closes handler and clears reference."""
    import transitgit.observability.logging as log_module

    configure_logging(verbosity=0, log_to_file=True, log_dir=tmp_path)
    assert log_module._file_handler is not None

    close_file_logging()

    assert log_module._file_handler is None


def test_jsonl_file_handler_writes_structlog_context(tmp_path: Path) -> None:
    """JSONLFileHandler extracts structlog context into JSONL fields."""
    configure_logging(verbosity=2, log_to_file=True, log_dir=tmp_path)

    logger = get_logger("test.context")
    logger.info("merge_commit_created", stop="Central", parents=["abc", "def"])

    close_file_logging()

    log_file = tmp_path / "debug.jsonl"
    assert log_file.exists()

    found = False
    with log_file.open() as f:
        for line in f:
            entry = json.loads(line)
            if entry.get("message") == "merge_commit_created":
                found = True
                assert entry["stop"] == "Central"
                assert entry["parents"] == ["abc", "def"]
                assert entry["level"] == "INFO"
                break

    assert found, "Log entry with structlog context not found in JSONL"


def test_jsonl_file_handler_writes_plain_stdlib_records(tmp_path: Path) -> None:
    """Records from plain stdlib loggers keep their formatted message."""
    configure_logging(verbosity=0, log_to_file=True, log_dir=tmp_path)

    logging.getLogger("plain.module").warning("retrying %s", "download")
    close_file_logging()

    lines = (tmp_path / "debug.jsonl").read_text().splitlines()
    last = json.loads(lines[-1])
    assert last["message"] == "retrying download"
    assert last["level"] == "WARNING"
    assert last["logger"] == "plain.module"
