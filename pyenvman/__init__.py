from pyenvman.cli import __version__
from pyenvman.errors import (
    ExternalToolFailure,
    PreconditionError,
    PyEnvManagerError,
    UserInputError,
)
from pyenvman.models import CommandResult, EffectiveConfig, LogLevel, RunOptions
from pyenvman.paths import env_path

__all__ = [
    "__version__",
    "CommandResult",
    "EffectiveConfig",
    "ExternalToolFailure",
    "LogLevel",
    "PreconditionError",
    "PyEnvManagerError",
    "RunOptions",
    "UserInputError",
    "env_path",
]
