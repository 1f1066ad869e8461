"""Plain-text fallback shared by every agent."""
from __future__ import annotations

import re

from ..models import EventType, ParsedEvent

# CSI (colors, cursor control, erase), OSC (titles, hyperlinks) and
# two-character escapes.
ANSI_ESCAPE_RE = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b[@-Z\\-_]"
)


def strip_ansi(text: str) -> str:
    """Remove terminal escape sequences from *text*."""
    return ANSI_ESCAPE_RE.sub("", text)


def parse_raw_line(line: str) -> list[ParsedEvent]:
    """Emit the escape-stripped line as a single raw event, or nothing if blank."""
    cleaned = strip_ansi(line).rstrip("\r\n")
    if not cleaned.strip():
        return []
    return [ParsedEvent(EventType.RAW, cleaned)]
