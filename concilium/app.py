"""Concilium launcher: opens the desktop shell for a project directory.

Usage:
    concilium              # launch with the current directory
    concilium <path>       # launch with a specific project path
    concilium --dev        # force development mode (Vite + HMR)
    concilium --version    # show version

A packaged binary wins over development mode unless --dev is
given. Packaged launches are fire-and-forget; development launches
inherit the terminal and forward the child's exit code.
"""

from __future__ import annotations

import argparse
import logging
import platform
import subprocess
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from concilium import __version__
from concilium.engine.config import ConciliumConfig
from concilium.engine.errors import LaunchError

logger = logging.getLogger(__name__)

_ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "ia32",
    "i686": "ia32",
}


def _electron_arch(machine: str | None = None) -> str:
    """Map the host machine name to Electron's arch naming."""
    raw = (machine if machine is not None else platform.machine()).lower()
    return _ARCH_ALIASES.get(raw, raw)


def find_packaged_binary(
    desktop_root: Path,
    app_name: str,
    *,
    system: str | None = None,
    arch: str | None = None,
) -> Path:
    """Path where electron-forge places the packaged app for this platform."""
    system = system or sys.platform
    arch = arch or _electron_arch()
    out_dir = desktop_root / "out"
    if system == "darwin":
        return (
            out_dir / f"{app_name}-darwin-{arch}" / f"{app_name}.app"
            / "Contents" / "MacOS" / app_name
        )
    if system.startswith("linux"):
        return out_dir / f"{app_name}-linux-{arch}" / app_name.lower()
    return out_dir / f"{app_name}-win32-{arch}" / f"{app_name}.exe"


def resolve_project_dir(raw_path: str | None) -> Path:
    """Resolve and validate the project directory argument."""
    project = Path(raw_path or Path.cwd()).expanduser().resolve()
    if not project.exists():
        raise LaunchError(f'"{project}" does not exist.')
    if not project.is_dir():
        raise LaunchError(f'"{project}" is not a directory.')
    return project


def launch(project: Path, config: ConciliumConfig, *, force_dev: bool = False) -> int:
    """Start the desktop shell for *project* and return the exit code to use."""
    desktop_root = Path(config.desktop_root)
    exec_path = find_packaged_binary(desktop_root, config.app_name)
    forge_bin = desktop_root / "node_modules" / ".bin" / "electron-forge"

    if exec_path.exists() and not force_dev:
        # Detached: the launcher neither waits for nor streams the app
        subprocess.Popen(
            [str(exec_path), f"--cwd={project}"],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        logger.info("Launched packaged binary %s for %s", exec_path, project)
        print(f"{config.app_name} launched for {project}")
        return 0

    if forge_bin.exists():
        logger.info("Starting development shell via %s for %s", forge_bin, project)
        child = subprocess.Popen(
            [str(forge_bin), "start", "--", f"--cwd={project}"],
            cwd=str(desktop_root),
        )
        try:
            code = child.wait()
        except KeyboardInterrupt:
            code = child.wait()
        logger.info("Development shell exited with code %s", code)
        # Negative means killed by a signal: there is no exit code to forward
        return code if code >= 0 else 0

    raise LaunchError(
        f"Could not find packaged binary at: {exec_path}\n"
        'Run "npm run build" first, or use "npm start" for development.'
    )


def _configure_logging(config: ConciliumConfig) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, config.log_level, logging.INFO))
    if not config.log_file:
        return
    log_path = Path(config.log_file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s [pid=%(process)d] %(message)s"
    )
    file_handler = RotatingFileHandler(
        log_path, maxBytes=2_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="concilium",
        description=f"Concilium v{__version__}: multi-LLM deliberation platform",
    )
    parser.add_argument(
        "path", nargs="?", default=None,
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "--dev", action="store_true",
        help="Force development mode (Vite + HMR)",
    )
    parser.add_argument(
        "--version", "-v", action="version", version=__version__,
    )
    args = parser.parse_args(argv)

    config = ConciliumConfig.from_env()
    _configure_logging(config)

    try:
        project = resolve_project_dir(args.path)
        return launch(project, config, force_dev=args.dev)
    except LaunchError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Error: failed to start {config.app_name}: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
