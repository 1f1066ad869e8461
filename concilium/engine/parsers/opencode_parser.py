"""OpenCode ``run --format json`` parser.

Event types:
  step_start, tool_use, step_finish, reasoning, text, error

The SDK event stream uses dotted envelopes (``message.part.updated``
and friends); see shapes.py. ``opencode run --share`` also prints the
share URL as a bare line outside JSON.
"""
from __future__ import annotations

import re
from typing import Any

from ..models import AgentKind, EventType, ParsedEvent
from .base import EventParser, as_dict, as_text, decode_envelope
from .raw import strip_ansi
from .shapes import adapt_envelope
from .usage import opencode_step_usage

SHARE_URL_RE = re.compile(
    r"^https?://(?:www\.)?(?:opncd\.ai|opencode\.ai)/s(?:hare)?/[\w-]+/?$"
)

# First present field wins when summarising a tool input.
PRIMARY_INPUT_KEYS: tuple[str, ...] = (
    "command",
    "file_path",
    "filePath",
    "path",
    "pattern",
)


def _primary_input(value: dict[str, Any]) -> str:
    for key in PRIMARY_INPUT_KEYS:
        candidate = value.get(key)
        if isinstance(candidate, str) and candidate:
            return candidate
        if isinstance(candidate, (int, float)) and not isinstance(candidate, bool):
            return str(candidate)
    return ""


def _join(head: str, tail: str, sep: str = " ") -> str:
    return f"{head}{sep}{tail}" if tail else head


class OpenCodeParser(EventParser):
    """Parser for OpenCode JSON events."""

    @property
    def agent(self) -> str:
        return AgentKind.OPENCODE.value

    def parse_line(self, line: str) -> list[ParsedEvent]:
        stripped = line.strip()
        if not stripped:
            return []

        event = decode_envelope(stripped)
        if event is None:
            candidate = strip_ansi(stripped).strip()
            if SHARE_URL_RE.match(candidate):
                return [ParsedEvent(EventType.STATUS, f"Share link: {candidate}")]
            return self.fallback(line)

        event = adapt_envelope(event)
        etype = event.get("type")
        part = as_dict(event.get("part"))

        if etype == "step_start":
            return [ParsedEvent(EventType.STATUS, "Step started")]

        if etype == "tool_use":
            return [ParsedEvent(EventType.TOOL_CALL, self._tool_text(part))]

        if etype == "step_finish":
            reason = as_text(part.get("finish_reason")) or as_text(part.get("reason"))
            text = "Step completed"
            if reason:
                text = f"{text} ({reason})"
            return [ParsedEvent(
                EventType.STATUS, text, token_usage=opencode_step_usage(part),
            )]

        if etype == "reasoning":
            return [ParsedEvent(EventType.THINKING, _part_text(part))]

        if etype == "text":
            return [ParsedEvent(EventType.TEXT, _part_text(part))]

        if etype == "error":
            return [ParsedEvent(EventType.RAW, f"Error: {_error_message(event, part)}")]

        content = _extract_content(event, part)
        if content is not None:
            return [ParsedEvent(EventType.TEXT, content)]
        label = etype if isinstance(etype, str) and etype else "unknown"
        return [ParsedEvent(EventType.STATUS, f"[{label}]")]

    @staticmethod
    def _tool_text(part: dict[str, Any]) -> str:
        tool = as_text(part.get("tool")) or as_text(part.get("name")) or "tool"
        state = as_dict(part.get("state"))
        tool_input = as_dict(state.get("input")) or as_dict(part.get("input"))
        value = _primary_input(tool_input)

        title = as_text(state.get("title"))
        if title:
            return _join(title, value, ": ")

        status = as_text(state.get("status"))
        if status and status != "running":
            return _join(f"{tool}({status})", value)

        return _join(tool, value)


def _part_text(part: dict[str, Any]) -> str:
    text = part.get("text")
    return text if isinstance(text, str) else ""


def _error_message(event: dict[str, Any], part: dict[str, Any]) -> str:
    message = as_text(event.get("message"))
    if message:
        return message
    error = event.get("error")
    if isinstance(error, dict):
        nested = as_text(error.get("message")) or as_text(
            as_dict(error.get("data")).get("message")
        )
        if nested:
            return nested
    elif as_text(error):
        return error
    return as_text(part.get("message")) or "Unknown error"


def _extract_content(event: dict[str, Any], part: dict[str, Any]) -> str | None:
    for source in (part, event):
        for key in ("text", "content"):
            value = as_text(source.get(key))
            if value is not None:
                return value
    return None
