"""Configuration loaded from environment variables.

All settings have sensible defaults. Override via CONCILIUM_* env vars.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# Desktop shell checkout sitting next to the Python package.
_DEFAULT_DESKTOP_ROOT = str(Path(__file__).resolve().parents[2] / "desktop")


@dataclass
class AgentSettings:
    """Per-agent command settings (from YAML ``agents:`` section)."""
    command: str | None = None
    model: str | None = None
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class ConciliumConfig:
    """Engine and launcher configuration."""

    # Claude CLI used for plan requests
    claude_command: str = "claude"
    default_model: str | None = None

    # Logging
    log_level: str = "INFO"
    log_file: str | None = None

    # Desktop shell launcher
    desktop_root: str = _DEFAULT_DESKTOP_ROOT
    app_name: str = "Concilium"

    # Seconds between SIGTERM and SIGKILL when stopping an agent
    terminate_grace_seconds: float = 5.0

    agents: dict[str, AgentSettings] = field(default_factory=dict)

    def agent_settings(self, agent: str) -> AgentSettings:
        """Settings for *agent*, falling back to the top-level Claude defaults."""
        settings = self.agents.get(agent)
        if settings is None:
            settings = AgentSettings()
        if agent == "claude":
            return AgentSettings(
                command=settings.command or self.claude_command,
                model=settings.model or self.default_model,
                env=dict(settings.env),
            )
        return settings

    @classmethod
    def from_env(cls) -> ConciliumConfig:
        """Load configuration from CONCILIUM_* environment variables."""
        overrides = {
            k: v for k, v in os.environ.items() if k.startswith("CONCILIUM_")
        }
        if overrides:
            logger.info(
                "ConciliumConfig.from_env: CONCILIUM_* env overrides: %s",
                ", ".join(f"{k}={v}" for k, v in sorted(overrides.items())),
            )
        else:
            logger.debug("ConciliumConfig.from_env: no CONCILIUM_* env vars set, using defaults")

        try:
            grace = float(os.getenv(
                "CONCILIUM_TERMINATE_GRACE", str(cls.terminate_grace_seconds)
            ))
        except ValueError:
            logger.warning(
                "Ignoring invalid CONCILIUM_TERMINATE_GRACE=%r",
                os.getenv("CONCILIUM_TERMINATE_GRACE"),
            )
            grace = cls.terminate_grace_seconds

        config = cls(
            claude_command=os.getenv(
                "CONCILIUM_CLAUDE_COMMAND", cls.claude_command
            ),
            default_model=os.getenv("CONCILIUM_MODEL") or None,
            log_level=os.getenv("CONCILIUM_LOG_LEVEL", cls.log_level).upper(),
            log_file=os.getenv("CONCILIUM_LOG_FILE") or None,
            desktop_root=os.getenv("CONCILIUM_DESKTOP_ROOT", cls.desktop_root),
            app_name=os.getenv("CONCILIUM_APP_NAME", cls.app_name),
            terminate_grace_seconds=grace,
        )
        logger.debug(
            "ConciliumConfig.from_env: claude=%s model=%s log_level=%s",
            config.claude_command, config.default_model, config.log_level,
        )
        return config
