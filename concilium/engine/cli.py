"""CLI entry point for the normalization engine.

Usage:
    concilium-engine parse --agent claude captured.jsonl
    opencode run --format json "..." | concilium-engine parse --agent opencode
    concilium-engine plan "Add rate limiting to the API"
    concilium-engine plan --model claude-opus-4-6 --cwd ../service "Refactor auth"
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import shlex
import sys
from typing import IO, Iterable

from rich.console import Console

from concilium.shared.formatters.events import format_token_usage, render_event_rich

from .agent_stream import AgentStream
from .commands import build_claude_command
from .config import ConciliumConfig
from .errors import AgentSpawnError, ConfigError
from .models import AgentKind, ParsedEvent
from .parsers import StreamUsage, parse_event_line
from .yaml_config import load_yaml_config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="concilium-engine",
        description="Normalize coding-agent output into transcript events",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML config file (default: CONCILIUM_* env vars only)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    parse_cmd = sub.add_parser(
        "parse", help="Normalize captured agent output (file or stdin)",
    )
    parse_cmd.add_argument(
        "--agent", "-a",
        required=True,
        help=f"Agent identity ({', '.join(k.value for k in AgentKind)}, or any other name for plain text)",
    )
    parse_cmd.add_argument(
        "file",
        nargs="?",
        default=None,
        help="File with one output line per line (default: stdin)",
    )
    parse_cmd.add_argument(
        "--json",
        action="store_true",
        help="Print events as JSON lines instead of a rendered transcript",
    )

    plan_cmd = sub.add_parser(
        "plan", help="Ask Claude for a read-only research plan",
    )
    plan_cmd.add_argument("prompt", help="The request to research")
    plan_cmd.add_argument(
        "--model",
        default=None,
        help="Model override (default: from config)",
    )
    plan_cmd.add_argument(
        "--cwd",
        default=None,
        help="Working directory for the agent (default: current dir)",
    )
    plan_cmd.add_argument(
        "--print-command",
        action="store_true",
        help="Print the agent command line and exit without running it",
    )
    plan_cmd.add_argument(
        "--json",
        action="store_true",
        help="Print events as JSON lines instead of a rendered transcript",
    )
    return parser


def _load_config(path: str | None) -> ConciliumConfig:
    if path:
        return load_yaml_config(path)
    return ConciliumConfig.from_env()


class _EventPrinter:
    """Writes events either as Rich markup or as JSON lines."""

    def __init__(self, *, as_json: bool, out: IO[str] | None = None) -> None:
        self._as_json = as_json
        self._out = out or sys.stdout
        self._console = Console(file=self._out, highlight=False, soft_wrap=True)

    def emit(self, event: ParsedEvent) -> None:
        if self._as_json:
            self._out.write(json.dumps(event.to_dict(), ensure_ascii=False) + "\n")
        else:
            self._console.print(render_event_rich(event))

    def summary(self, usage: StreamUsage) -> None:
        if self._as_json or usage.latest is None:
            return
        cumulative = usage.cumulative is not None
        self._console.print(
            f"[bold]Usage:[/bold] {format_token_usage(usage.latest, cumulative=cumulative)}"
        )


def parse_lines(agent: str, lines: Iterable[str], printer: _EventPrinter) -> StreamUsage:
    """Normalize *lines* in order and print every resulting event."""
    usage = StreamUsage()
    for line in lines:
        for event in parse_event_line(agent, line.rstrip("\r\n")):
            usage.record(event)
            printer.emit(event)
    return usage


def _cmd_parse(args: argparse.Namespace) -> int:
    printer = _EventPrinter(as_json=args.json)
    if args.file:
        try:
            with open(args.file, encoding="utf-8", errors="replace") as handle:
                usage = parse_lines(args.agent, handle, printer)
        except OSError as exc:
            print(f"Error: cannot read {args.file}: {exc}", file=sys.stderr)
            return 1
    else:
        usage = parse_lines(args.agent, sys.stdin, printer)
    printer.summary(usage)
    return 0


async def _run_plan(
    stream: AgentStream,
    printer: _EventPrinter,
    grace_seconds: float,
) -> int:
    try:
        async for event in stream.events():
            printer.emit(event)
    except asyncio.CancelledError:
        await stream.terminate(grace_seconds)
        raise
    printer.summary(stream.usage)
    return stream.returncode or 0


def _cmd_plan(args: argparse.Namespace, config: ConciliumConfig) -> int:
    settings = config.agent_settings(AgentKind.CLAUDE.value)
    spec = build_claude_command(
        args.prompt,
        args.model or settings.model,
        command=settings.command or config.claude_command,
        env=settings.env,
    )
    if args.print_command:
        print(shlex.join(spec.argv))
        return 0

    stream = AgentStream(
        AgentKind.CLAUDE, spec,
        cwd=args.cwd,
        grace_seconds=config.terminate_grace_seconds,
    )
    printer = _EventPrinter(as_json=args.json)
    try:
        code = asyncio.run(_run_plan(stream, printer, config.terminate_grace_seconds))
    except AgentSpawnError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 127
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    if code != 0:
        tail = stream.stderr_tail
        print(
            f"Agent exited with code {code}" + (f":\n{tail}" if tail else ""),
            file=sys.stderr,
        )
    return code


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        config = _load_config(args.config)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    level = logging.DEBUG if args.verbose else getattr(
        logging, config.log_level, logging.INFO,
    )
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command == "parse":
        return _cmd_parse(args)
    return _cmd_plan(args, config)


if __name__ == "__main__":
    sys.exit(main())
