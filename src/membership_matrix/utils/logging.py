from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, cast

import structlog
from loguru import logger as loguru_logger
from structlog.exceptions import DropEvent
from structlog.stdlib import BoundLogger
from structlog.typing import EventDict, WrappedLogger

from membership_matrix.config.settings import log_dir
from membership_matrix.utils.sanitize import sanitize_log_message


LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {extra[logger_name]} | {message} | {extra}"
)
DEFAULT_LOG_FILENAME = "membership-matrix.log"
# Not "logger": structlog reserves that keyword in wrap_logger().
LOGGER_NAME_KEY = "logger_name"

# Keys structlog adds that loguru renders on its own.
_RESERVED_KEYS = ("level", "event", "exception", "timestamp", "stack")


@dataclass(slots=True)
class LoggingOptions:
    """Where matrix logs go.

    ``console`` can be switched off for embedding hosts that own stderr; the
    file sink is always installed and always records DEBUG.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    console: bool = True
    rotation: str = "10 MB"
    retention: str = "14 days"
    log_path: Optional[Path] = None


_state: dict[str, Any] = {"path": None}


def configure_logging(options: LoggingOptions | None = None) -> Path:
    """Install loguru sinks, point structlog at them and return the log file."""
    opts = options or LoggingOptions()
    log_path = opts.log_path or (log_dir() / DEFAULT_LOG_FILENAME)

    _install_sinks(opts, log_path)
    threshold = logging.DEBUG if opts.debug else logging.getLevelName(opts.level)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            _emit_via_loguru,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        cache_logger_on_first_use=True,
    )

    _state["path"] = log_path
    return log_path


def _install_sinks(opts: LoggingOptions, log_path: Path) -> None:
    loguru_logger.remove()
    loguru_logger.configure(extra={LOGGER_NAME_KEY: "membership_matrix"})
    if opts.console:
        loguru_logger.add(
            sys.stderr,
            level="DEBUG" if opts.debug else opts.level,
            format=LOG_FORMAT,
            colorize=True,
            backtrace=opts.debug,
            diagnose=opts.debug,
        )
    loguru_logger.add(
        log_path,
        level="DEBUG",
        format=LOG_FORMAT,
        rotation=opts.rotation,
        retention=opts.retention,
        encoding="utf-8",
        enqueue=True,
    )


def _emit_via_loguru(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    level, event, exception = (
        str(event_dict.get("level", "info")).upper(),
        str(event_dict.get("event", "")),
        event_dict.get("exception"),
    )
    context = {key: value for key, value in event_dict.items() if key not in _RESERVED_KEYS}
    message = sanitize_log_message(event)
    if exception:
        message = f"{message}\n{exception}"
    loguru_logger.bind(**context).opt(depth=6).log(level, message)
    raise DropEvent


def get_logger(name: str | None = None, **initial_kw: object) -> BoundLogger:
    """Module logger; ``name`` shows up as the ``logger_name`` column."""
    if _state["path"] is None:
        configure_logging()
    if name is not None:
        initial_kw.setdefault(LOGGER_NAME_KEY, name)
    return cast(BoundLogger, structlog.get_logger(**initial_kw))


def log_file_path() -> Path:
    path = _state["path"]
    return path if path is not None else configure_logging()


__all__ = ["LoggingOptions", "configure_logging", "get_logger", "log_file_path"]
