from __future__ import annotations

import re
from typing import Final

_WHITESPACE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\s+", flags=re.UNICODE)

_CONTROL_CHARS: Final[frozenset[str]] = frozenset(
    chr(code) for code in range(0x00, 0x20) if chr(code) not in {"\t", "\n"}
)


def sanitize_search_text(value: str | None) -> str:
    """Trim a search term and collapse internal whitespace runs.

    Principal names legitimately contain punctuation (``domain\\user``,
    ``first.last@org``), so only control characters are removed.
    """

    if not value:
        return ""
    stripped = "".join(ch for ch in value if ch not in _CONTROL_CHARS)
    return _WHITESPACE_PATTERN.sub(" ", stripped).strip()


def sanitize_log_message(value: str) -> str:
    """Normalise log messages by stripping control characters and CR sequences."""

    normalised = value.replace("\r\n", "\n").replace("\r", "\n")
    return "".join(ch for ch in normalised if ch not in _CONTROL_CHARS)


__all__ = ["sanitize_search_text", "sanitize_log_message"]
