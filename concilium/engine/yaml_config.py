"""YAML configuration loader.

Loads an optional ``concilium.yaml`` on top of the env-derived
config. When no YAML is provided, CONCILIUM_* env vars work exactly
as before.

Example YAML:
    engine:
      claude_command: claude
      default_model: claude-opus-4-6
      log_level: DEBUG
      terminate_grace_seconds: 10

    agents:
      claude:
        command: /opt/claude/bin/claude
        model: claude-sonnet-4-5
        env:
          ANTHROPIC_LOG: debug
      opencode:
        command: opencode
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .config import AgentSettings, ConciliumConfig
from .errors import ConfigError

logger = logging.getLogger(__name__)

# Engine keys by expected YAML type. Optional keys accept null to mean "unset".
_REQUIRED_TEXT_KEYS = {"claude_command", "log_level", "desktop_root", "app_name"}
_OPTIONAL_TEXT_KEYS = {"default_model", "log_file"}
_NUMBER_KEYS = {"terminate_grace_seconds"}
_ENGINE_KEYS = _REQUIRED_TEXT_KEYS | _OPTIONAL_TEXT_KEYS | _NUMBER_KEYS


def _check_text(path: Path, where: str, value: Any, *, optional: bool) -> str | None:
    if optional and value in (None, ""):
        return None
    if not isinstance(value, str) or not value.strip():
        kind = "a string" if optional else "a non-empty string"
        raise ConfigError(str(path), f"{where} must be {kind}")
    return value


def _check_number(path: Path, where: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(str(path), f"{where} must be a number >= 0")
    return float(value)


def _parse_engine(path: Path, raw: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key in sorted(set(raw) & _ENGINE_KEYS):
        where = f"engine.{key}"
        if key in _NUMBER_KEYS:
            values[key] = _check_number(path, where, raw[key])
        else:
            values[key] = _check_text(
                path, where, raw[key], optional=key in _OPTIONAL_TEXT_KEYS,
            )
    if "log_level" in values:
        values["log_level"] = values["log_level"].upper()
    return values


def _parse_agent(path: Path, name: str, raw: Any) -> AgentSettings:
    if raw is None:
        return AgentSettings()
    if not isinstance(raw, dict):
        raise ConfigError(str(path), f"agents.{name} must be a mapping")
    env = raw.get("env") or {}
    if not isinstance(env, dict):
        raise ConfigError(str(path), f"agents.{name}.env must be a mapping")
    return AgentSettings(
        command=_check_text(path, f"agents.{name}.command", raw.get("command"), optional=True),
        model=_check_text(path, f"agents.{name}.model", raw.get("model"), optional=True),
        env={str(k): str(v) for k, v in env.items()},
    )


def load_yaml_config(
    path: str | Path,
    base: ConciliumConfig | None = None,
) -> ConciliumConfig:
    """Load and parse a YAML config file over *base* (default: from_env())."""
    path = Path(path)
    config = base if base is not None else ConciliumConfig.from_env()
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        logger.info("load_yaml_config: loaded %s", path)
    except FileNotFoundError:
        logger.error("load_yaml_config: config file not found at %s", path.absolute())
        raise
    except yaml.YAMLError as exc:
        logger.error("load_yaml_config: YAML parse error in %s: %s", path, exc)
        raise ConfigError(str(path), f"YAML parse error: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(str(path), "top level must be a mapping")

    engine_raw = raw.get("engine") or {}
    if not isinstance(engine_raw, dict):
        raise ConfigError(str(path), "engine must be a mapping")
    unknown = sorted(set(engine_raw) - _ENGINE_KEYS)
    if unknown:
        logger.warning(
            "load_yaml_config: ignoring unknown engine keys in %s: %s",
            path, ", ".join(unknown),
        )
    engine = _parse_engine(path, engine_raw)

    agents_raw = raw.get("agents") or {}
    if not isinstance(agents_raw, dict):
        raise ConfigError(str(path), "agents must be a mapping")
    agents: dict[str, AgentSettings] = {}
    for name, agent_raw in agents_raw.items():
        key = str(name).strip().lower()
        agents[key] = _parse_agent(path, key, agent_raw)

    for key, value in engine.items():
        setattr(config, key, value)
    config.agents.update(agents)

    logger.info(
        "Parsed YAML config %s: agents=%s",
        path.name, ", ".join(sorted(config.agents)) or "(none)",
    )
    return config
