"""Concilium: multi-LLM deliberation, agent stream normalization and launcher."""

__version__ = "0.1.0"
