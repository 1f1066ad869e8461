"""Command construction for agent subprocesses.

Only the Claude CLI is driven through a subprocess for plan
requests; the invocation is locked to plan mode with every
mutating tool denied.
"""
from __future__ import annotations

import os
from collections.abc import Mapping

from .models import CommandSpec

_RESEARCH_TEMPLATE = """\
You are participating in a multi-agent research council. Your ONLY job is to PROPOSE a plan. You must NEVER implement it.

## CRITICAL RULES (READ CAREFULLY)

1. **NEVER write, edit, create, or delete any files.** Not even "just one small change." ZERO file modifications.
2. **NEVER use write/edit/bash tools.** You do not have permission. If you try, the tool will fail.
3. **NEVER execute code, run shell commands, or change any state.** No git commits, no package installs, nothing.
4. **DO NOT implement the solution.** Do not write code blocks intended to be saved to files. You are proposing a plan, not executing it.
5. **DO use read-only tools** (file reading, grep, glob, web search) to research and understand the codebase.

## YOUR TASK

Research the request below thoroughly, then return a **detailed implementation plan as markdown text** directly in your response. Your plan should include:

- Analysis of the current codebase and relevant files
- Step-by-step implementation strategy with specific file paths and line references
- Code snippets showing the proposed changes (clearly labeled as proposals)
- Potential risks, edge cases, or trade-offs
- Testing considerations

Remember: you are an advisor producing a written plan. Another agent will review and implement. Your output is ONLY markdown text in your response. Do NOT write anything to disk.

## USER REQUEST

{prompt}"""

# Order matters: flags, then the optional model, then the prompt.
CLAUDE_PLAN_FLAGS: tuple[str, ...] = (
    "--verbose",
    "--print",
    "--output-format", "stream-json",
    "--permission-mode", "plan",
    "--include-partial-messages",
    "--no-session-persistence",
    "--disallowedTools", "Write", "Edit", "NotebookEdit",
)


def wrap_prompt_for_research(prompt: str) -> str:
    """Embed *prompt* in the fixed read-only research instructions."""
    return _RESEARCH_TEMPLATE.replace("{prompt}", prompt)


def build_claude_command(
    prompt: str,
    model: str | None = None,
    *,
    command: str = "claude",
    env: Mapping[str, str] | None = None,
) -> CommandSpec:
    """Build the plan-only Claude CLI invocation.

    The wrapped prompt is always the final positional argument.
    ``env`` holds per-command overrides applied on top of the
    ambient environment by :func:`merged_env` at spawn time.
    """
    args = list(CLAUDE_PLAN_FLAGS)
    if model and model.strip():
        args.extend(["--model", model.strip()])
    args.append(wrap_prompt_for_research(prompt))
    return CommandSpec(program=command, arguments=tuple(args), environment=env or {})


def merged_env(
    overrides: Mapping[str, str] | None = None,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return *base* (default: a snapshot of ``os.environ``) with *overrides* on top."""
    env = dict(os.environ if base is None else base)
    if overrides:
        env.update(overrides)
    return env
