"""Logging setup for talegraph.

All events go through structlog into the standard logging tree, which
fans them out to:
- the console, via rich, at a level picked by the -v count
- a JSONL file beside the project being processed, when --log is given

Values bound with bind_log_context (the CLI binds the command name and
the project path) are merged into every event, so each JSONL line records
which run produced it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from pathlib import Path

    from structlog.typing import EventDict, Processor, WrappedLogger

LOG_DIR_NAME = "logs"
LOG_FILE_NAME = "talegraph.jsonl"

_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)

_configured = False
_file_handler: logging.FileHandler | None = None


def log_file_for(project_file: Path) -> Path:
    """Return the JSONL log file used for runs on ``project_file``."""
    return project_file.parent / LOG_DIR_NAME / LOG_FILE_NAME


def _event_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _strip_console_fields(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    # RichHandler already shows these
    for key in ("timestamp", "level", "logger"):
        event_dict.pop(key, None)
    return event_dict


def _console_handler(verbosity: int) -> RichHandler:
    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity >= 2,
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
        markup=False,
        level=_VERBOSITY_LEVELS[min(max(verbosity, 0), 2)],
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_event_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _strip_console_fields,
                structlog.processors.KeyValueRenderer(key_order=["event"]),
            ],
        )
    )
    return handler


def _jsonl_handler(log_file: Path) -> logging.FileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_event_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.EventRenamer("message"),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
        )
    )
    return handler


def configure_logging(verbosity: int = 0, log_file: Path | None = None) -> None:
    """Configure console logging and, optionally, the JSONL event log.

    Args:
        verbosity: 0=WARNING (default), 1=INFO, 2+=DEBUG on the console.
        log_file: When given, every event at DEBUG and above is appended
            to this file as one JSON object per line.
    """
    global _configured, _file_handler

    close_file_logging()

    handlers: list[logging.Handler] = [_console_handler(verbosity)]
    if log_file is not None:
        _file_handler = _jsonl_handler(log_file)
        handlers.append(_file_handler)

    root_level = logging.DEBUG if (verbosity > 0 or log_file is not None) else logging.WARNING
    logging.basicConfig(level=root_level, handlers=handlers, force=True)

    # Loggers are not cached: the CLI reconfigures once it knows the project.
    structlog.configure(
        processors=[
            *_event_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        cache_logger_on_first_use=False,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Get a structured logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()

    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger


def bind_log_context(**values: Any) -> None:
    """Attach values to every event logged from the current context."""
    structlog.contextvars.bind_contextvars(**values)


def clear_log_context() -> None:
    structlog.contextvars.clear_contextvars()


def close_file_logging() -> None:
    """Flush and detach the JSONL handler, if one is open."""
    global _file_handler
    if _file_handler is not None:
        logging.getLogger().removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None
