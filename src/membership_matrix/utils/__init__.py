"""Shared utility helpers for the membership matrix."""

from .asyncio import Debouncer, call_later
from .cancellation import CancellationError, CancellationToken, CancellationTokenSource
from .logging import LoggingOptions, configure_logging, get_logger, log_file_path
from .sanitize import sanitize_log_message, strip_control_characters

__all__ = [
    "LoggingOptions",
    "configure_logging",
    "get_logger",
    "log_file_path",
    "strip_control_characters",
    "sanitize_log_message",
    "Debouncer",
    "call_later",
    "CancellationToken",
    "CancellationTokenSource",
    "CancellationError",
]
