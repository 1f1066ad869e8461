"""Agent subprocess runner.

Spawns one agent CLI from a CommandSpec, feeds its stdout lines to
the normalizer in arrival order, and reports the exit code. One
AgentStream per subprocess: event order and usage accounting are
only meaningful within a single stream.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from collections.abc import Mapping
from typing import AsyncIterator

from .commands import merged_env
from .errors import AgentExitError, AgentSpawnError
from .models import AgentKind, CommandSpec, ParsedEvent
from .parsers import ParserRegistry, StreamUsage, parse_event_line

logger = logging.getLogger(__name__)

STDERR_TAIL_LINES = 50

# StreamReader line limit; tool results and final plans arrive as one line.
STREAM_LIMIT_BYTES = 16 * 1024 * 1024


class AgentStream:
    """Stream normalized events from one agent subprocess.

    Usage::

        stream = AgentStream("claude", build_claude_command("..."))
        async for event in stream.events():
            render(event)
        stream.raise_for_returncode()
    """

    def __init__(
        self,
        agent: str | AgentKind,
        spec: CommandSpec,
        *,
        cwd: str | None = None,
        registry: ParserRegistry | None = None,
        base_env: Mapping[str, str] | None = None,
        grace_seconds: float = 5.0,
    ) -> None:
        self.agent = agent.value if isinstance(agent, AgentKind) else agent
        self.spec = spec
        self.usage = StreamUsage()
        self.returncode: int | None = None
        self._cwd = cwd
        self._registry = registry
        self._base_env = base_env
        self._grace_seconds = grace_seconds
        self._process: asyncio.subprocess.Process | None = None
        self._stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)

    @property
    def stderr_tail(self) -> str:
        """Last lines the agent wrote to stderr."""
        return "\n".join(self._stderr_tail)

    async def _spawn(self) -> asyncio.subprocess.Process:
        try:
            # create_subprocess_exec passes args as array, no shell
            proc = await asyncio.create_subprocess_exec(
                self.spec.program,
                *self.spec.arguments,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=merged_env(self.spec.environment, self._base_env),
                cwd=self._cwd,
                limit=STREAM_LIMIT_BYTES,
            )
        except FileNotFoundError as exc:
            raise AgentSpawnError(
                self.agent, f"'{self.spec.program}' CLI not found",
            ) from exc
        except PermissionError as exc:
            raise AgentSpawnError(
                self.agent, f"'{self.spec.program}' is not executable",
            ) from exc
        logger.info(
            "Agent %s started: %s (pid=%s)",
            self.agent, self.spec.program, proc.pid,
        )
        return proc

    async def _drain_stderr(self, reader: asyncio.StreamReader) -> None:
        while True:
            raw = await reader.readline()
            if not raw:
                return
            text = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if text:
                self._stderr_tail.append(text)
                logger.debug("Agent %s stderr: %s", self.agent, text)

    async def events(self) -> AsyncIterator[ParsedEvent]:
        """Spawn the agent and yield events line by line until stdout closes."""
        proc = await self._spawn()
        self._process = proc
        stderr_task = asyncio.create_task(self._drain_stderr(proc.stderr))
        try:
            while True:
                raw = await proc.stdout.readline()
                if not raw:
                    break
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                for event in parse_event_line(self.agent, line, self._registry):
                    self.usage.record(event)
                    yield event

            await proc.wait()
            self.returncode = proc.returncode
        finally:
            if self.returncode is None:
                # Consumer stopped early or reading failed: the child must not outlive us
                await self.terminate()
                stderr_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await stderr_task

        if self.returncode == 0:
            logger.info("Agent %s exited cleanly", self.agent)
        else:
            logger.warning(
                "Agent %s exited with code %s", self.agent, self.returncode,
            )

    async def run(self) -> list[ParsedEvent]:
        """Consume the whole stream and return every event."""
        return [event async for event in self.events()]

    def raise_for_returncode(self) -> None:
        """Raise AgentExitError if the agent finished with a non-zero code."""
        if self.returncode not in (None, 0):
            raise AgentExitError(self.agent, self.returncode, self.stderr_tail)

    async def terminate(self, grace_seconds: float | None = None) -> None:
        """Stop the agent: SIGTERM, then SIGKILL after *grace_seconds*.

        Defaults to the grace period given at construction.
        """
        proc = self._process
        if proc is None or proc.returncode is not None:
            return
        try:
            proc.terminate()
            try:
                await asyncio.wait_for(
                    proc.wait(),
                    timeout=self._grace_seconds if grace_seconds is None else grace_seconds,
                )
            except asyncio.TimeoutError:
                proc.kill()
                await proc.wait()
            logger.info("Agent %s stopped (pid=%s)", self.agent, proc.pid)
        except ProcessLookupError:
            pass
