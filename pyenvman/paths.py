"""Mapping from environment names to filesystem locations"""

import os
import sys
from pathlib import Path
from typing import Optional, Union

from pyenvman.errors import UserInputError

FORBIDDEN_NAME_CHARS = ("/", "\\", "\0")

# Shell name -> activation script shipped by venv
ACTIVATION_SCRIPTS = {
    "fish": "activate.fish",
    "csh": "activate.csh",
    "tcsh": "activate.csh",
}
DEFAULT_ACTIVATION_SCRIPT = "activate"


def env_path(name: str, storage_root: Union[str, Path]) -> Path:
    """Path of environment ``name`` under ``storage_root``. Pure, no I/O."""
    return Path(storage_root) / name


def validate_env_name(name: Optional[str]) -> str:
    """Reject names that are empty or would escape the storage root"""
    if not name:
        raise UserInputError("Environment name must not be empty.")
    if name in (".", "..") or any(c in name for c in FORBIDDEN_NAME_CHARS):
        raise UserInputError(
            f"Invalid environment name '{name}': must be a single path segment."
        )
    return name


def bin_dir(path: Path) -> Path:
    """Directory holding the environment's executables"""
    return path / ("Scripts" if sys.platform == "win32" else "bin")


def python_executable(path: Path) -> Path:
    return bin_dir(path) / ("python.exe" if sys.platform == "win32" else "python")


def detect_shell() -> str:
    """Name of the user's shell, from $SHELL (default: bash)"""
    shell = os.environ.get("SHELL", "")
    return Path(shell).name if shell else "bash"


def activation_script(path: Path, shell: Optional[str] = None) -> Path:
    """Activation script of the environment for the given shell"""
    shell = shell or detect_shell()
    script = ACTIVATION_SCRIPTS.get(shell, DEFAULT_ACTIVATION_SCRIPT)
    return bin_dir(path) / script
