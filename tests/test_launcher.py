"""Tests for the desktop shell launcher."""
from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from concilium import __version__
from concilium.app import (
    _electron_arch,
    find_packaged_binary,
    launch,
    main,
    resolve_project_dir,
)
from concilium.engine.config import ConciliumConfig
from concilium.engine.errors import LaunchError


@pytest.fixture
def desktop(tmp_path):
    root = tmp_path / "desktop"
    root.mkdir()
    return root


@pytest.fixture
def project(tmp_path):
    path = tmp_path / "my-project"
    path.mkdir()
    return path


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("", encoding="utf-8")
    return path


def _packaged(desktop: Path) -> Path:
    return _touch(find_packaged_binary(desktop, "Concilium"))


def _forge(desktop: Path) -> Path:
    return _touch(desktop / "node_modules" / ".bin" / "electron-forge")


class TestFindPackagedBinary:
    def test_darwin(self, tmp_path):
        path = find_packaged_binary(tmp_path, "Concilium", system="darwin", arch="arm64")

        assert path == (
            tmp_path / "out" / "Concilium-darwin-arm64" / "Concilium.app"
            / "Contents" / "MacOS" / "Concilium"
        )

    def test_linux(self, tmp_path):
        path = find_packaged_binary(tmp_path, "Concilium", system="linux", arch="x64")

        assert path == tmp_path / "out" / "Concilium-linux-x64" / "concilium"

    def test_windows(self, tmp_path):
        path = find_packaged_binary(tmp_path, "Concilium", system="win32", arch="x64")

        assert path == tmp_path / "out" / "Concilium-win32-x64" / "Concilium.exe"

    @pytest.mark.parametrize(
        "machine,expected",
        [("x86_64", "x64"), ("AMD64", "x64"), ("aarch64", "arm64"), ("riscv64", "riscv64")],
    )
    def test_arch_names(self, machine, expected):
        assert _electron_arch(machine) == expected


class TestResolveProjectDir:
    def test_existing_directory(self, project):
        assert resolve_project_dir(str(project)) == project.resolve()

    def test_defaults_to_cwd(self, project, monkeypatch):
        monkeypatch.chdir(project)

        assert resolve_project_dir(None) == project.resolve()

    def test_missing_path(self, tmp_path):
        with pytest.raises(LaunchError, match="does not exist"):
            resolve_project_dir(str(tmp_path / "nope"))

    def test_file_is_not_a_directory(self, tmp_path):
        file_path = _touch(tmp_path / "notes.txt")

        with pytest.raises(LaunchError, match="is not a directory"):
            resolve_project_dir(str(file_path))


class TestLaunch:
    def test_packaged_binary_is_detached(self, desktop, project, capsys):
        exe = _packaged(desktop)
        _forge(desktop)
        config = ConciliumConfig(desktop_root=str(desktop))

        with patch("subprocess.Popen") as mock_popen:
            code = launch(project, config)

        assert code == 0
        args, kwargs = mock_popen.call_args
        assert args[0] == [str(exe), f"--cwd={project}"]
        assert kwargs["start_new_session"] is True
        assert kwargs["stdout"] == subprocess.DEVNULL
        mock_popen.return_value.wait.assert_not_called()
        assert f"Concilium launched for {project}" in capsys.readouterr().out

    def test_dev_flag_skips_packaged_binary(self, desktop, project):
        _packaged(desktop)
        forge = _forge(desktop)
        config = ConciliumConfig(desktop_root=str(desktop))
        child = MagicMock()
        child.wait.return_value = 0

        with patch("subprocess.Popen", return_value=child) as mock_popen:
            code = launch(project, config, force_dev=True)

        assert code == 0
        args, kwargs = mock_popen.call_args
        assert args[0] == [str(forge), "start", "--", f"--cwd={project}"]
        assert kwargs["cwd"] == str(desktop)
        child.wait.assert_called_once()

    def test_dev_mode_forwards_exit_code(self, desktop, project):
        _forge(desktop)
        config = ConciliumConfig(desktop_root=str(desktop))
        child = MagicMock()
        child.wait.return_value = 3

        with patch("subprocess.Popen", return_value=child):
            assert launch(project, config) == 3

    def test_dev_mode_signal_exit_is_zero(self, desktop, project):
        _forge(desktop)
        config = ConciliumConfig(desktop_root=str(desktop))
        child = MagicMock()
        child.wait.return_value = -15

        with patch("subprocess.Popen", return_value=child):
            assert launch(project, config) == 0

    def test_dev_mode_waits_through_interrupt(self, desktop, project):
        _forge(desktop)
        config = ConciliumConfig(desktop_root=str(desktop))
        child = MagicMock()
        child.wait.side_effect = [KeyboardInterrupt(), 130]

        with patch("subprocess.Popen", return_value=child):
            assert launch(project, config) == 130

    def test_nothing_to_launch(self, desktop, project):
        config = ConciliumConfig(desktop_root=str(desktop))

        with patch("subprocess.Popen") as mock_popen:
            with pytest.raises(LaunchError, match="Could not find packaged binary"):
                launch(project, config)

        mock_popen.assert_not_called()


class TestMain:
    @pytest.fixture(autouse=True)
    def _env(self, desktop, monkeypatch):
        monkeypatch.setenv("CONCILIUM_DESKTOP_ROOT", str(desktop))
        monkeypatch.delenv("CONCILIUM_LOG_FILE", raising=False)
        monkeypatch.delenv("CONCILIUM_APP_NAME", raising=False)

    def test_bad_path_exits_one(self, tmp_path, capsys):
        code = main([str(tmp_path / "missing")])

        assert code == 1
        assert "does not exist" in capsys.readouterr().err

    def test_missing_build_exits_one(self, project, capsys):
        code = main([str(project)])

        assert code == 1
        assert "Could not find packaged binary" in capsys.readouterr().err

    def test_launches_packaged(self, desktop, project):
        _packaged(desktop)

        with patch("subprocess.Popen") as mock_popen:
            assert main([str(project)]) == 0

        mock_popen.assert_called_once()

    def test_spawn_failure_exits_one(self, desktop, project, capsys):
        _packaged(desktop)

        with patch("subprocess.Popen", side_effect=PermissionError("denied")):
            assert main([str(project)]) == 1

        assert "failed to start Concilium" in capsys.readouterr().err

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out
