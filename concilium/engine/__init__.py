"""Concilium engine: agent command construction and stdout event normalization."""
from .models import (
    AgentKind,
    CommandSpec,
    EventType,
    ParsedEvent,
    TokenUsage,
)
from .config import AgentSettings, ConciliumConfig
from .commands import build_claude_command, merged_env, wrap_prompt_for_research
from .errors import (
    AgentExitError,
    AgentSpawnError,
    ConciliumError,
    ConfigError,
    LaunchError,
)
from .parsers import ParserRegistry, StreamUsage, parse_event_line
from .agent_stream import AgentStream

__all__ = [
    "AgentExitError",
    "AgentKind",
    "AgentSettings",
    "AgentSpawnError",
    "AgentStream",
    "CommandSpec",
    "ConciliumConfig",
    "ConciliumError",
    "ConfigError",
    "EventType",
    "LaunchError",
    "ParsedEvent",
    "ParserRegistry",
    "StreamUsage",
    "TokenUsage",
    "build_claude_command",
    "merged_env",
    "parse_event_line",
    "wrap_prompt_for_research",
]
