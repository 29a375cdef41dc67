from __future__ import annotations

import re
from typing import Final

_QUERY_CONTROL_CHARS: Final[re.Pattern[str]] = re.compile(r"[\x00-\x1f\x7f]")

_LOG_CONTROL_CHARS: Final[frozenset[str]] = frozenset(
    chr(code) for code in range(0x00, 0x20) if chr(code) not in {"\t", "\n"}
)


def strip_control_characters(value: str) -> str:
    """Remove ASCII control characters from a search query.

    Everything else, punctuation and surrounding whitespace included, is the
    user's query and reaches the directory unchanged.
    """

    return _QUERY_CONTROL_CHARS.sub("", value)


def sanitize_log_message(value: str) -> str:
    """Normalise log messages by stripping control characters and CR sequences."""

    normalised = value.replace("\r\n", "\n").replace("\r", "\n")
    return "".join(ch for ch in normalised if ch not in _LOG_CONTROL_CHARS)


__all__ = ["sanitize_log_message", "strip_control_characters"]
