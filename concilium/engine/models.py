"""Core data models for the normalization engine.

All dataclasses and enums shared by the command builder, the
per-agent parsers and the stream runner. Single source of truth
to avoid circular imports.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class AgentKind(str, Enum):
    """Agent identities with a dedicated parser.

    Any other string is still a valid agent identity; it is handled
    by the raw text fallback.
    """
    CLAUDE = "claude"
    OPENCODE = "opencode"
    CODEX = "codex"


class EventType(str, Enum):
    """Canonical transcript event kinds understood by the renderer."""
    STATUS = "status"
    TOOL_CALL = "tool_call"
    TEXT = "text"
    THINKING = "thinking"
    RAW = "raw"


@dataclass(frozen=True)
class TokenUsage:
    """Uniform token/cost record extracted from one agent event."""
    input_tokens: int = 0
    output_tokens: int = 0
    total_cost: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "totalCost": self.total_cost,
        }


@dataclass(frozen=True)
class ParsedEvent:
    """One normalized transcript event.

    ``token_usage_cumulative`` is only set on events that carry a
    run total (as opposed to a per-turn total).
    """
    event_type: EventType
    text: str
    token_usage: TokenUsage | None = None
    token_usage_cumulative: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        """Render the wire shape consumed by the transcript renderer."""
        payload: dict[str, Any] = {
            "eventType": self.event_type.value,
            "text": self.text,
        }
        if self.token_usage is not None:
            payload["tokenUsage"] = self.token_usage.to_dict()
        if self.token_usage_cumulative is not None:
            payload["tokenUsageCumulative"] = self.token_usage_cumulative
        return payload


def _freeze_env(env: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(env or {}))


@dataclass(frozen=True)
class CommandSpec:
    """Immutable invocation descriptor handed to the process spawner."""
    program: str
    arguments: tuple[str, ...] = ()
    environment: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", tuple(self.arguments))
        object.__setattr__(self, "environment", _freeze_env(self.environment))

    @property
    def argv(self) -> list[str]:
        """Program followed by its arguments, ready for exec."""
        return [self.program, *self.arguments]
