"""Data types shared across pyenvman"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class LogLevel(str, Enum):
    """Severity of a log entry"""

    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class RunOptions:
    """Global options collected from the command line"""

    silent: bool = False
    force: bool = False
    storage_path_override: Optional[Path] = None


@dataclass(frozen=True)
class EffectiveConfig:
    """Fully resolved configuration for one run"""

    storage_path: Path
    log_file: Path
    config_file: Path


@dataclass(frozen=True)
class Defaults:
    """Compiled-in defaults, the lowest configuration layer"""

    storage_path: Path
    log_file: Path
    config_file: Path

    @classmethod
    def from_environment(cls) -> "Defaults":
        home = Path.home()
        config_file = os.environ.get("PYENV_MANAGER_CONFIG")
        return cls(
            storage_path=home / ".pyenvs",
            log_file=home / ".pyenv_manager.log",
            config_file=(
                Path(config_file).expanduser()
                if config_file
                else home / ".config" / "pyenv_manager" / "config"
            ),
        )


@dataclass
class CommandResult:
    """Result of a command execution"""

    success: bool
    message: str = ""
    output: str = ""
