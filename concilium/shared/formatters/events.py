"""Rich markup rendering for normalized transcript events.

Used by the terminal CLI; the desktop renderer consumes
ParsedEvent.to_dict() directly.
"""

from __future__ import annotations

from rich.markup import escape

from concilium.engine.models import EventType, ParsedEvent, TokenUsage

# ── Styles ──

_EVENT_STYLES: dict[EventType, tuple[str, str]] = {
    EventType.STATUS: ("•", "dim"),
    EventType.TOOL_CALL: ("▶", "cyan"),
    EventType.TEXT: ("", "none"),
    EventType.THINKING: ("…", "italic magenta"),
    EventType.RAW: ("", "yellow"),
}


def format_token_usage(usage: TokenUsage, *, cumulative: bool = False) -> str:
    """Plain one-line summary, e.g. ``in 1,000 / out 200 / $0.0500``."""
    parts = [
        f"in {usage.input_tokens:,}",
        f"out {usage.output_tokens:,}",
    ]
    if usage.total_cost is not None:
        parts.append(f"${usage.total_cost:.4f}")
    summary = " / ".join(parts)
    return f"total {summary}" if cumulative else summary


def render_event_rich(event: ParsedEvent, *, show_usage: bool = True) -> str:
    """Render one event as a Rich markup string."""
    icon, style = _EVENT_STYLES.get(event.event_type, ("", "none"))
    body = escape(event.text)
    if style:
        body = f"[{style}]{body}[/{style}]"
    line = f"[dim]{icon}[/dim] {body}" if icon else body

    if show_usage and event.token_usage is not None:
        usage = format_token_usage(
            event.token_usage, cumulative=bool(event.token_usage_cumulative),
        )
        line = f"{line}  [dim]({escape(usage)})[/dim]"
    return line
