from __future__ import annotations

from rich.console import Console

from concilium.engine.models import EventType, ParsedEvent, TokenUsage
from concilium.shared.formatters.events import format_token_usage, render_event_rich


def _plain(markup: str) -> str:
    console = Console(width=200, highlight=False, color_system=None)
    with console.capture() as capture:
        console.print(markup)
    return capture.get().rstrip("\n")


def test_format_token_usage_with_cost():
    assert format_token_usage(TokenUsage(1000, 200, 0.05)) == "in 1,000 / out 200 / $0.0500"


def test_format_token_usage_without_cost():
    assert format_token_usage(TokenUsage(12, 3)) == "in 12 / out 3"


def test_format_token_usage_cumulative():
    assert format_token_usage(TokenUsage(1, 2), cumulative=True) == "total in 1 / out 2"


def test_tool_call_has_icon_and_style():
    markup = render_event_rich(ParsedEvent(EventType.TOOL_CALL, "bash ls"))

    assert markup == "[dim]▶[/dim] [cyan]bash ls[/cyan]"


def test_text_is_unstyled():
    assert render_event_rich(ParsedEvent(EventType.TEXT, "Hello")) == "[none]Hello[/none]"
    assert _plain(render_event_rich(ParsedEvent(EventType.TEXT, "Hello"))) == "Hello"


def test_markup_in_text_is_escaped():
    markup = render_event_rich(ParsedEvent(EventType.RAW, "[red]not markup[/red]"))

    assert _plain(markup) == "[red]not markup[/red]"


def test_usage_suffix():
    event = ParsedEvent(EventType.TEXT, "done", TokenUsage(5, 6, 0.1), True)

    assert _plain(render_event_rich(event)) == "done  (total in 5 / out 6 / $0.1000)"
    assert _plain(render_event_rich(event, show_usage=False)) == "done"


def test_trailing_backslash_does_not_swallow_closing_tag():
    markup = render_event_rich(ParsedEvent(EventType.RAW, "cd C:\\"))

    assert _plain(markup) == "cd C:\\"


def test_trailing_backslash_with_usage_suffix():
    event = ParsedEvent(EventType.TEXT, "path\\", TokenUsage(1, 2))

    assert _plain(render_event_rich(event)) == "path\\  (in 1 / out 2)"
