"""Observability module for talegraph.

Structured logging with rich console output and a JSONL event log.
"""

from talegraph.observability.logging import (
    LOG_FILE_NAME,
    bind_log_context,
    clear_log_context,
    close_file_logging,
    configure_logging,
    get_logger,
    log_file_for,
)

__all__ = [
    "LOG_FILE_NAME",
    "bind_log_context",
    "clear_log_context",
    "close_file_logging",
    "configure_logging",
    "get_logger",
    "log_file_for",
]
