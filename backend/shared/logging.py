"""structlog configuration for the trivia server.

Both structlog loggers and plain stdlib loggers end up in the same handlers,
rendered by a structlog ProcessorFormatter.

Environment variables:
- LOG_FORMAT: "console" (default) for colored human-readable lines,
  "json" for one JSON object per line.
- LOG_LEVEL: DEBUG, INFO (default), WARNING, ERROR or CRITICAL.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

LOG_FILE_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"

_LOG_FORMATS = ("console", "json")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Third-party loggers that are too chatty at INFO.
_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def enum_values(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Render Enum fields by value (reason=time_expired, not RoundEndReason.TIME_EXPIRED)."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _is_test() -> bool:
    return "pytest" in sys.modules


def log_format_from_env() -> str:
    value = os.environ.get("LOG_FORMAT", "").strip().lower() or "console"
    if value not in _LOG_FORMATS:
        msg = f"Invalid LOG_FORMAT={value!r}. Expected one of: {', '.join(_LOG_FORMATS)}."
        raise ValueError(msg)
    return value


def log_level_from_env() -> int:
    value = os.environ.get("LOG_LEVEL", "").strip().upper() or "INFO"
    if value not in _LOG_LEVELS:
        msg = f"Invalid LOG_LEVEL={value!r}. Expected one of: {', '.join(_LOG_LEVELS)}."
        raise ValueError(msg)
    return logging.getLevelNamesMapping()[value]


def _pre_chain() -> list[Any]:
    """Processors applied to every event before it reaches a handler."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        enum_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _formatter(log_format: str, *, colors: bool) -> structlog.stdlib.ProcessorFormatter:
    renderer: Any = (
        structlog.processors.JSONRenderer() if log_format == "json" else structlog.dev.ConsoleRenderer(colors=colors)
    )
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_pre_chain(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def setup_logging(log_dir: Path | str | None = None, level: int | None = None) -> Path | None:
    """Route structlog through the stdlib root logger.

    Always logs to stdout. When log_dir is given (and we are not under
    pytest), also writes to a timestamped file in that directory and
    returns its path.
    """
    log_format = log_format_from_env()
    if level is None:
        level = log_level_from_env()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_pre_chain(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_formatter(log_format, colors=sys.stdout.isatty()))
    root.addHandler(console)

    if log_dir is None or _is_test():
        return None

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / f"trivia-{datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log"
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(_formatter(log_format, colors=False))
    root.addHandler(file_handler)
    return log_path
