"""Observability module for transitgit.

Provides structured logging to the console and to JSONL files.
"""

from transitgit.observability.logging import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)

__all__ = [
    "close_file_logging",
    "configure_logging",
    "get_logger",
    "get_logs_dir",
]
