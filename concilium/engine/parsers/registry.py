"""Parser registry: maps agent identities to EventParser instances."""
from __future__ import annotations

import logging

from ..models import AgentKind
from .base import EventParser, RawTextParser

logger = logging.getLogger(__name__)


def _normalize_key(agent: str | AgentKind) -> str:
    value = agent.value if isinstance(agent, AgentKind) else str(agent)
    return value.strip().lower()


class ParserRegistry:
    """Registry of line parsers keyed by agent identity.

    Agents without a registered parser are treated as plain text
    producers.
    """

    def __init__(self) -> None:
        self._parsers: dict[str, EventParser] = {}

    def register(
        self,
        parser: EventParser,
        *,
        name: str | None = None,
        overwrite: bool = False,
    ) -> None:
        """Register *parser* under *name* (default: its agent identity)."""
        key = _normalize_key(name or parser.agent)
        if not key:
            raise ValueError("Agent name cannot be empty")
        if key in self._parsers and not overwrite:
            raise ValueError(f"Parser for agent '{key}' is already registered")
        self._parsers[key] = parser
        logger.debug("Parser registered: %s -> %s", key, type(parser).__name__)

    def get(self, agent: str | AgentKind) -> EventParser | None:
        """Get the parser for *agent*, or None if not registered."""
        return self._parsers.get(_normalize_key(agent))

    def resolve(self, agent: str | AgentKind) -> EventParser:
        """Get the parser for *agent*, falling back to a raw text parser."""
        parser = self.get(agent)
        if parser is None:
            return RawTextParser(_normalize_key(agent))
        return parser

    def list_names(self) -> list[str]:
        """Return all registered agent names."""
        return list(self._parsers.keys())

    def __contains__(self, agent: object) -> bool:
        if not isinstance(agent, (str, AgentKind)):
            return False
        return _normalize_key(agent) in self._parsers


def build_default_registry() -> ParserRegistry:
    """Registry with the built-in Claude, OpenCode and Codex parsers."""
    from .claude_parser import ClaudeParser
    from .opencode_parser import OpenCodeParser

    registry = ParserRegistry()
    registry.register(ClaudeParser())
    registry.register(OpenCodeParser())
    registry.register(RawTextParser(AgentKind.CODEX.value))
    return registry
