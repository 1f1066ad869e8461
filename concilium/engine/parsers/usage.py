"""Token usage extraction and per-stream usage bookkeeping."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from ..models import ParsedEvent, TokenUsage


def coerce_count(value: Any) -> int:
    """Turn a reported token count into a non-negative int (0 when unusable)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return max(int(value), 0)


def coerce_cost(value: Any) -> float | None:
    """Turn a reported cost into a non-negative float, or None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    cost = float(value)
    if not math.isfinite(cost) or cost < 0:
        return None
    return cost


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def opencode_step_usage(part: dict[str, Any]) -> TokenUsage:
    """Usage for an OpenCode ``step_finish`` part.

    Reasoning tokens are billed as output.
    """
    tokens = _as_dict(part.get("tokens"))
    return TokenUsage(
        input_tokens=coerce_count(tokens.get("input")),
        output_tokens=(
            coerce_count(tokens.get("output"))
            + coerce_count(tokens.get("reasoning"))
        ),
        total_cost=coerce_cost(part.get("cost")),
    )


def claude_turn_usage(usage: Any) -> TokenUsage:
    """Per-turn usage from a Claude ``message.usage`` block.

    Cache writes and reads count as input. Cost is not reported
    mid-turn.
    """
    usage = _as_dict(usage)
    return TokenUsage(
        input_tokens=(
            coerce_count(usage.get("input_tokens"))
            + coerce_count(usage.get("cache_creation_input_tokens"))
            + coerce_count(usage.get("cache_read_input_tokens"))
        ),
        output_tokens=coerce_count(usage.get("output_tokens")),
        total_cost=None,
    )


def claude_result_usage(event: dict[str, Any]) -> TokenUsage:
    """Run-total usage from a Claude ``result`` event."""
    turn = claude_turn_usage(event.get("usage"))
    cost = coerce_cost(event.get("total_cost_usd"))
    if cost is None:
        cost = coerce_cost(event.get("cost_usd"))
    return TokenUsage(
        input_tokens=turn.input_tokens,
        output_tokens=turn.output_tokens,
        total_cost=cost,
    )


@dataclass
class StreamUsage:
    """Usage ledger for a single agent stream.

    Per-turn and cumulative records are kept apart; one ledger
    must never be shared between two agents' streams.
    """
    last_turn: TokenUsage | None = None
    cumulative: TokenUsage | None = None
    turns: int = 0

    def record(self, event: ParsedEvent) -> None:
        if event.token_usage is None:
            return
        if event.token_usage_cumulative:
            self.cumulative = event.token_usage
        else:
            self.last_turn = event.token_usage
            self.turns += 1

    @property
    def latest(self) -> TokenUsage | None:
        """Best available figure: the run total if reported, else the last turn."""
        return self.cumulative or self.last_turn
