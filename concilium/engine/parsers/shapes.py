"""Envelope shape adapter.

The OpenCode SDK event stream wraps parts as
``{"type": "message.part.updated", "properties": {"part": {...}}}``
while ``opencode run --format json`` emits flat
``{"type": "tool_use", "part": {...}}`` envelopes. Dotted envelopes
are rewritten into the flat form before dispatch.
"""
from __future__ import annotations

from typing import Any

DOTTED_TYPE_MAP: dict[str, str] = {
    "message.part.updated": "tool_use",
    "message.step.started": "step_start",
    "message.step.finished": "step_finish",
}


def adapt_envelope(event: dict[str, Any]) -> dict[str, Any]:
    """Return *event* in the flat envelope shape.

    Flat envelopes are returned unchanged; dotted ones are copied,
    never mutated in place.
    """
    etype = event.get("type")
    primary = DOTTED_TYPE_MAP.get(etype) if isinstance(etype, str) else None
    if primary is None:
        return event

    adapted = {k: v for k, v in event.items() if k != "properties"}
    adapted["type"] = primary
    properties = event.get("properties")
    if isinstance(properties, dict):
        part = properties.get("part")
        if isinstance(part, dict):
            adapted["part"] = part
    adapted.setdefault("part", {})
    return adapted
