"""Tests for the Claude plan command builder and environment merging."""
from __future__ import annotations

import dataclasses
import os

import pytest

from concilium.engine.commands import (
    CLAUDE_PLAN_FLAGS,
    build_claude_command,
    merged_env,
    wrap_prompt_for_research,
)
from concilium.engine.models import CommandSpec


def test_flags_then_prompt_without_model():
    spec = build_claude_command("Add rate limiting to the API")

    assert spec.program == "claude"
    assert list(spec.arguments[:-1]) == list(CLAUDE_PLAN_FLAGS)
    assert spec.arguments[:4] == ("--verbose", "--print", "--output-format", "stream-json")
    assert "--model" not in spec.arguments
    assert spec.arguments[-1] == wrap_prompt_for_research("Add rate limiting to the API")


def test_model_is_inserted_before_prompt():
    spec = build_claude_command("Refactor auth", "claude-opus-4-6")

    args = list(spec.arguments)
    assert args[-3:-1] == ["--model", "claude-opus-4-6"]
    assert args.index("--model") > args.index("NotebookEdit")
    assert args[-1].endswith("Refactor auth")


def test_model_is_trimmed():
    spec = build_claude_command("x", "  claude-sonnet-4-5  ")

    assert "claude-sonnet-4-5" in spec.arguments


@pytest.mark.parametrize("model", [None, "", "   "])
def test_blank_model_is_omitted(model):
    spec = build_claude_command("x", model)

    assert "--model" not in spec.arguments
    assert len(spec.arguments) == len(CLAUDE_PLAN_FLAGS) + 1


def test_plan_mode_and_denied_tools():
    args = build_claude_command("x").arguments

    assert args[args.index("--permission-mode") + 1] == "plan"
    denied = args.index("--disallowedTools")
    assert args[denied + 1:denied + 4] == ("Write", "Edit", "NotebookEdit")
    assert "--include-partial-messages" in args
    assert "--no-session-persistence" in args


def test_wrapped_prompt_contains_request_verbatim():
    prompt = "Use {braces} and $vars\nacross lines"

    wrapped = wrap_prompt_for_research(prompt)

    assert wrapped.endswith("## USER REQUEST\n\n" + prompt)
    assert "NEVER write, edit, create, or delete any files" in wrapped
    assert wrapped.count(prompt) == 1


def test_custom_command_and_env():
    spec = build_claude_command(
        "x", command="/opt/claude/bin/claude", env={"ANTHROPIC_LOG": "debug"},
    )

    assert spec.program == "/opt/claude/bin/claude"
    assert dict(spec.environment) == {"ANTHROPIC_LOG": "debug"}
    assert spec.argv[0] == "/opt/claude/bin/claude"
    assert spec.argv[1:] == list(spec.arguments)


def test_command_spec_is_immutable():
    source_env = {"A": "1"}
    spec = CommandSpec("claude", ["--print"], source_env)
    source_env["A"] = "2"

    assert spec.arguments == ("--print",)
    assert spec.environment["A"] == "1"
    with pytest.raises(TypeError):
        spec.environment["B"] = "3"
    with pytest.raises(dataclasses.FrozenInstanceError):
        spec.program = "other"


class TestMergedEnv:
    def test_overrides_win(self):
        base = {"PATH": "/usr/bin", "HOME": "/home/me"}

        env = merged_env({"HOME": "/tmp/home", "EXTRA": "1"}, base)

        assert env == {"PATH": "/usr/bin", "HOME": "/tmp/home", "EXTRA": "1"}
        assert base == {"PATH": "/usr/bin", "HOME": "/home/me"}

    def test_defaults_to_process_environment(self, monkeypatch):
        monkeypatch.setenv("CONCILIUM_TEST_MARKER", "yes")

        env = merged_env()

        assert env["CONCILIUM_TEST_MARKER"] == "yes"

    def test_process_environment_not_mutated(self, monkeypatch):
        monkeypatch.delenv("CONCILIUM_TEST_OVERRIDE", raising=False)

        env = merged_env({"CONCILIUM_TEST_OVERRIDE": "1"})

        assert env["CONCILIUM_TEST_OVERRIDE"] == "1"
        assert "CONCILIUM_TEST_OVERRIDE" not in os.environ

    def test_empty_base_is_respected(self):
        assert merged_env({"A": "1"}, {}) == {"A": "1"}
