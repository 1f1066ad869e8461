"""Claude Code ``--output-format stream-json`` parser.

Event types:
  system, assistant, user, result, stream_event

Assistant ``text`` blocks are not displayed: the authoritative final
text arrives once in the ``result`` event.
"""
from __future__ import annotations

from typing import Any

from ..models import AgentKind, EventType, ParsedEvent
from .base import EventParser, as_dict, as_text, compact_json, decode_envelope
from .usage import claude_result_usage, claude_turn_usage

EXECUTING_TOOLS = "Executing tools..."


def _tool_call_text(name: str, tool_input: Any) -> str:
    text = f"Tool: {name}"
    if tool_input in (None, {}, [], ""):
        return text
    return f"{text} {compact_json(tool_input)}"


def _is_error_subtype(subtype: Any) -> bool:
    return isinstance(subtype, str) and (
        subtype == "error" or subtype.startswith("error_")
    )


class ClaudeParser(EventParser):
    """Parser for Claude Code stream-json events."""

    @property
    def agent(self) -> str:
        return AgentKind.CLAUDE.value

    def parse_line(self, line: str) -> list[ParsedEvent]:
        stripped = line.strip()
        if not stripped:
            return []

        event = decode_envelope(stripped)
        if event is None:
            return self.fallback(line)

        etype = event.get("type")
        if etype == "system":
            return []
        if etype == "assistant":
            return self._parse_assistant(as_dict(event.get("message")))
        if etype == "result":
            return self._parse_result(event)
        if etype == "stream_event":
            return self._parse_stream_event(as_dict(event.get("event")))
        # user (tool results) and anything newer are not displayed
        return []

    @staticmethod
    def _parse_assistant(message: dict[str, Any]) -> list[ParsedEvent]:
        events: list[ParsedEvent] = []
        content = message.get("content")
        blocks = content if isinstance(content, list) else []

        for block in blocks:
            if not isinstance(block, dict):
                continue
            btype = block.get("type")
            if btype == "thinking":
                thinking = block.get("thinking", block.get("text"))
                events.append(ParsedEvent(
                    EventType.THINKING, thinking if isinstance(thinking, str) else "",
                ))
            elif btype == "tool_use":
                name = as_text(block.get("name")) or "unknown"
                events.append(ParsedEvent(
                    EventType.TOOL_CALL, _tool_call_text(name, block.get("input")),
                ))

        usage = message.get("usage")
        turn_usage = claude_turn_usage(usage) if isinstance(usage, dict) else None

        if events:
            events.append(ParsedEvent(
                EventType.STATUS,
                EXECUTING_TOOLS,
                token_usage=turn_usage or claude_turn_usage(None),
            ))
            return events

        stop_reason = as_text(message.get("stop_reason"))
        text = f"Turn completed ({stop_reason})" if stop_reason else "Processing..."
        return [ParsedEvent(EventType.STATUS, text, token_usage=turn_usage)]

    @staticmethod
    def _parse_result(event: dict[str, Any]) -> list[ParsedEvent]:
        usage = claude_result_usage(event)
        if _is_error_subtype(event.get("subtype")):
            return [ParsedEvent(
                EventType.STATUS, "Run failed",
                token_usage=usage, token_usage_cumulative=True,
            )]
        result = event.get("result")
        return [ParsedEvent(
            EventType.TEXT,
            result if isinstance(result, str) else "",
            token_usage=usage,
            token_usage_cumulative=True,
        )]

    @staticmethod
    def _parse_stream_event(inner: dict[str, Any]) -> list[ParsedEvent]:
        itype = inner.get("type")

        if itype == "content_block_start":
            block = as_dict(inner.get("content_block"))
            if block.get("type") == "tool_use":
                name = as_text(block.get("name")) or "unknown"
                return [ParsedEvent(EventType.TOOL_CALL, f"Tool: {name}")]
            return []

        if itype == "content_block_delta":
            delta = as_dict(inner.get("delta"))
            if delta.get("type") == "text_delta":
                text = delta.get("text")
                return [ParsedEvent(EventType.TEXT, text if isinstance(text, str) else "")]
            return []

        if itype == "message_delta":
            delta = as_dict(inner.get("delta"))
            if delta.get("stop_reason") == "tool_use":
                return [ParsedEvent(EventType.STATUS, EXECUTING_TOOLS)]
            return []

        return []
