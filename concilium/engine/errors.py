"""Exception hierarchy for the engine.

The line normalizer never raises; these cover the layers around it
(spawning agents, launching the desktop shell, loading config).
"""
from __future__ import annotations


class ConciliumError(Exception):
    """Base exception for all engine errors."""


class AgentSpawnError(ConciliumError):
    """Failed to start an agent subprocess."""
    def __init__(self, agent: str, reason: str):
        self.agent = agent
        self.reason = reason
        super().__init__(f"Failed to spawn agent {agent}: {reason}")


class AgentExitError(ConciliumError):
    """Agent subprocess exited with a non-zero status."""
    def __init__(self, agent: str, returncode: int, stderr_tail: str = ""):
        self.agent = agent
        self.returncode = returncode
        self.stderr_tail = stderr_tail
        message = f"Agent {agent} exited with code {returncode}"
        if stderr_tail:
            message = f"{message}: {stderr_tail}"
        super().__init__(message)


class LaunchError(ConciliumError):
    """The desktop shell could not be launched."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ConfigError(ConciliumError):
    """Configuration file is present but invalid."""
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid config {path}: {reason}")
