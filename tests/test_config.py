from pathlib import Path

import pytest

from pyenvman.config import parse_config_text, parse_config_yaml, resolve_config
from pyenvman.models import Defaults

from conftest import echoed, logged


@pytest.fixture
def defaults(tmp_path):
    return Defaults(
        storage_path=tmp_path / "default-envs",
        log_file=tmp_path / "default.log",
        config_file=tmp_path / "cfg" / "config",
    )


def write_config(defaults, text):
    defaults.config_file.parent.mkdir(parents=True, exist_ok=True)
    defaults.config_file.write_text(text)


def test_defaults_only(defaults, log):
    config = resolve_config(defaults, log)

    assert config.storage_path == defaults.storage_path
    assert config.log_file == defaults.log_file


def test_file_beats_defaults(defaults, log, tmp_path):
    write_config(defaults, f"storagePath={tmp_path / 'file-envs'}\n")

    config = resolve_config(defaults, log)

    assert config.storage_path == tmp_path / "file-envs"
    assert config.log_file == defaults.log_file
    assert "Configuration loaded." in logged(log)


def test_cli_beats_file_and_defaults(defaults, log, tmp_path):
    write_config(defaults, f"storagePath={tmp_path / 'file-envs'}\n")

    config = resolve_config(defaults, log, storage_override=tmp_path / "cli-envs")

    assert config.storage_path == tmp_path / "cli-envs"


def test_empty_cli_override_is_ignored(defaults, log):
    config = resolve_config(defaults, log, storage_override="")

    assert config.storage_path == defaults.storage_path


def test_empty_file_value_is_ignored(defaults, log, tmp_path):
    write_config(defaults, f"storagePath=\nlogFilePath={tmp_path / 'file.log'}\n")

    config = resolve_config(defaults, log)

    assert config.storage_path == defaults.storage_path
    assert config.log_file == tmp_path / "file.log"


def test_missing_file_is_info_and_creates_directory(defaults, log):
    config = resolve_config(defaults, log)

    assert config.config_file == defaults.config_file
    assert defaults.config_file.parent.is_dir()
    assert not defaults.config_file.exists()
    assert "[INFO] Configuration file not found" in logged(log)


def test_unreadable_file_warns_and_uses_defaults(defaults, log):
    # A directory where the file should be cannot be read as a config file
    defaults.config_file.mkdir(parents=True)

    config = resolve_config(defaults, log)

    assert config.storage_path == defaults.storage_path
    assert "[WARNING]" in echoed(log)


def test_invalid_yaml_warns_and_uses_defaults(tmp_path, defaults, log):
    path = tmp_path / "config.yaml"
    path.write_text("storagePath: [unclosed\n")

    config = resolve_config(defaults, log, config_file=path)

    assert config.storage_path == defaults.storage_path
    assert "is not readable" in logged(log)


def test_yaml_config(tmp_path, defaults, log):
    path = tmp_path / "config.yml"
    path.write_text(f"storagePath: {tmp_path / 'yaml-envs'}\nunknown: 1\n")

    config = resolve_config(defaults, log, config_file=path)

    assert config.storage_path == tmp_path / "yaml-envs"
    assert config.config_file == path


def test_relative_and_home_paths_are_expanded(home, defaults, log):
    write_config(defaults, "storagePath=~/envs\n")

    config = resolve_config(defaults, log)

    assert config.storage_path == home / "envs"
    assert config.storage_path.is_absolute()


def test_parse_config_text():
    text = """
# pyenvman settings
export PYENV_STORAGE_PATH="/opt/envs"
logFilePath = '/var/log/pyenvman.log'
unknownKey=ignored
not a setting
"""
    assert parse_config_text(text) == {
        "storage_path": "/opt/envs",
        "log_file": "/var/log/pyenvman.log",
    }


def test_parse_config_text_later_lines_win():
    assert parse_config_text("storagePath=/a\nstoragePath=/b\n") == {
        "storage_path": "/b"
    }


def test_parse_config_yaml_requires_mapping():
    with pytest.raises(ValueError):
        parse_config_yaml("- just\n- a list\n")


def test_parse_config_yaml_empty():
    assert parse_config_yaml("") == {}


def test_env_var_redirects_config_file(home, monkeypatch, tmp_path):
    monkeypatch.setenv("PYENV_MANAGER_CONFIG", str(tmp_path / "custom.conf"))

    defaults = Defaults.from_environment()

    assert defaults.config_file == tmp_path / "custom.conf"
    assert defaults.storage_path == home / ".pyenvs"
    assert defaults.log_file == home / ".pyenv_manager.log"
