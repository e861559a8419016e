import io
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from pyenvman.log import EventLog
from pyenvman.models import EffectiveConfig


def _fake_run(cmd, **kwargs):
    """Stand-in for subprocess.run: `-m venv` lays out a minimal environment"""
    if "venv" in cmd:
        path = Path(cmd[-1])
        (path / "bin").mkdir(parents=True)
        (path / "bin" / "activate").write_text("# activate\n")
        (path / "bin" / "python").write_text("")
    return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


def make_env(path: Path) -> Path:
    """Create a directory that looks like a virtual environment"""
    (path / "bin").mkdir(parents=True)
    for script in ("activate", "activate.fish", "activate.csh", "python"):
        (path / "bin" / script).write_text("")
    return path


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Isolated $HOME so defaults never touch the real one"""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("SHELL", "/bin/bash")
    monkeypatch.delenv("PYENV_MANAGER_CONFIG", raising=False)
    return home


@pytest.fixture
def config(tmp_path):
    return EffectiveConfig(
        storage_path=tmp_path / "envs",
        log_file=tmp_path / "pyenvman.log",
        config_file=tmp_path / "config",
    )


@pytest.fixture
def make_log(config):
    """Factory for an EventLog echoing into a string buffer"""

    def _make(silent: bool = False) -> EventLog:
        console = Console(file=io.StringIO(), width=400, color_system=None)
        return EventLog(config.log_file, silent=silent, console=console)

    return _make


@pytest.fixture
def log(make_log):
    return make_log()


@pytest.fixture
def fake_venv():
    """Patch external processes; environment creation succeeds"""
    with patch("pyenvman.process.subprocess.run", side_effect=_fake_run) as mock_run:
        with patch(
            "pyenvman.environments.find_python", return_value="/usr/bin/python3"
        ):
            yield mock_run


@pytest.fixture
def existing_env(config):
    return make_env(config.storage_path / "foo")


def echoed(log: EventLog) -> str:
    return log.console.file.getvalue()


def logged(log: EventLog) -> str:
    return log.log_file.read_text() if log.log_file.exists() else ""
