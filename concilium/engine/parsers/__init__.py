"""Line normalization: raw agent stdout to canonical transcript events."""
from __future__ import annotations

import logging

from ..models import AgentKind, ParsedEvent
from .base import EventParser, RawTextParser
from .claude_parser import ClaudeParser
from .opencode_parser import OpenCodeParser
from .raw import parse_raw_line, strip_ansi
from .registry import ParserRegistry, build_default_registry
from .shapes import adapt_envelope
from .usage import StreamUsage

logger = logging.getLogger(__name__)

_DEFAULT_REGISTRY = build_default_registry()


def default_registry() -> ParserRegistry:
    """The registry used when no registry is passed to parse_event_line()."""
    return _DEFAULT_REGISTRY


def parse_event_line(
    agent: str | AgentKind,
    line: str,
    registry: ParserRegistry | None = None,
) -> list[ParsedEvent]:
    """Normalize one stdout line from *agent* into zero or more events.

    Never raises: a parser fault degrades to the raw text fallback.
    """
    if not isinstance(line, str) or not line.strip():
        return []
    parser = (registry or _DEFAULT_REGISTRY).resolve(agent)
    try:
        return parser.parse_line(line)
    except Exception:
        logger.debug(
            "Parser %s failed on line; using raw fallback",
            type(parser).__name__, exc_info=True,
        )
        return parse_raw_line(line)


__all__ = [
    "ClaudeParser",
    "EventParser",
    "OpenCodeParser",
    "ParserRegistry",
    "RawTextParser",
    "StreamUsage",
    "adapt_envelope",
    "build_default_registry",
    "default_registry",
    "parse_event_line",
    "parse_raw_line",
    "strip_ansi",
]
