from pathlib import Path

import pytest

from pyenvman.errors import UserInputError
from pyenvman.paths import (
    activation_script,
    bin_dir,
    detect_shell,
    env_path,
    validate_env_name,
)


@pytest.mark.parametrize("name", ["foo", "my-env_1", "env.with.dots"])
def test_env_path_is_root_slash_name(name):
    """env_path is a plain concatenation and stable across calls"""
    root = "/srv/envs"
    assert str(env_path(name, root)) == f"{root}/{name}"
    assert env_path(name, root) == env_path(name, Path(root))


def test_env_path_does_no_io(tmp_path):
    missing_root = tmp_path / "does" / "not" / "exist"
    assert env_path("foo", missing_root) == missing_root / "foo"
    assert not missing_root.exists()


@pytest.mark.parametrize("name", ["", None, ".", "..", "a/b", "../escape", "a\\b", "a\0b"])
def test_validate_env_name_rejects(name):
    with pytest.raises(UserInputError):
        validate_env_name(name)


def test_validate_env_name_accepts_plain_names():
    assert validate_env_name("project-3.12") == "project-3.12"


@pytest.mark.parametrize(
    "shell,script",
    [
        ("bash", "activate"),
        ("zsh", "activate"),
        ("fish", "activate.fish"),
        ("csh", "activate.csh"),
        ("tcsh", "activate.csh"),
    ],
)
def test_activation_script_per_shell(shell, script):
    path = Path("/srv/envs/foo")
    assert activation_script(path, shell) == bin_dir(path) / script


def test_detect_shell(monkeypatch):
    monkeypatch.setenv("SHELL", "/usr/bin/fish")
    assert detect_shell() == "fish"
    monkeypatch.delenv("SHELL")
    assert detect_shell() == "bash"
