"""Sanitize upstream text before it reaches a terminal or a report."""

from __future__ import annotations

import re

_CSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
_OSC_RE = re.compile(r"\x1b\][^\x07]*(?:\x07|\x1b\\)")
_ESC_RE = re.compile(r"\x1b[^\[\]]?")
# Control characters except newline and tab
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0d\x0e-\x1f\x7f-\x9f]")

MAX_MESSAGE_LENGTH = 200


def sanitize_for_terminal(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Strip ANSI escape sequences and control characters, then truncate.

    Args:
        text: Untrusted text, e.g. an HTTP reason phrase or exception message.
        max_length: Longest string returned; longer input ends with "...".

    Returns:
        Printable text safe to echo.
    """
    text = _CSI_RE.sub("", text)
    text = _OSC_RE.sub("", text)
    text = _ESC_RE.sub("", text)
    text = _CONTROL_RE.sub("", text)
    if len(text) > max_length:
        return text[: max_length - 3] + "..."
    return text
