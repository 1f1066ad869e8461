"""Abstract base for per-agent line parsers.

Each parser owns exactly one agent protocol and maps one raw stdout
line to zero or more canonical events. Parsers are stateless: the
same line always yields the same events.
"""
from __future__ import annotations

import abc
import json
from typing import Any

from ..models import ParsedEvent
from .raw import parse_raw_line

TOOL_INPUT_PREVIEW_CHARS = 200


def decode_envelope(line: str) -> dict[str, Any] | None:
    """Decode a JSON object line; None for anything that is not an object."""
    try:
        payload = json.loads(line)
    except (json.JSONDecodeError, ValueError):
        return None
    return payload if isinstance(payload, dict) else None


def compact_json(value: Any, limit: int = TOOL_INPUT_PREVIEW_CHARS) -> str:
    """Single-line JSON rendering of a tool input, truncated to *limit* chars."""
    try:
        rendered = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        rendered = str(value)
    if len(rendered) > limit:
        return rendered[: limit - 3] + "..."
    return rendered


def as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_text(value: Any) -> str | None:
    """Return *value* if it is a non-empty string."""
    if isinstance(value, str) and value:
        return value
    return None


class EventParser(abc.ABC):
    """Parser for one agent's stdout protocol."""

    @property
    @abc.abstractmethod
    def agent(self) -> str:
        """Agent identity this parser handles (e.g. 'claude')."""

    @abc.abstractmethod
    def parse_line(self, line: str) -> list[ParsedEvent]:
        """Map one stdout line to canonical events. Must not raise."""

    def fallback(self, line: str) -> list[ParsedEvent]:
        """Handle a line the protocol rules do not claim."""
        return parse_raw_line(line)


class RawTextParser(EventParser):
    """Parser for agents treated as opaque text producers."""

    def __init__(self, agent: str) -> None:
        self._agent = agent

    @property
    def agent(self) -> str:
        return self._agent

    def parse_line(self, line: str) -> list[ParsedEvent]:
        return parse_raw_line(line)
