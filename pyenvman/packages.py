"""Installing into and exporting from an environment"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from pyenvman.errors import ExternalToolFailure, PreconditionError, UserInputError
from pyenvman.log import EventLog
from pyenvman.models import EffectiveConfig
from pyenvman.paths import bin_dir, env_path, python_executable, validate_env_name
from pyenvman.process import run_command

# Variables changed by activation; restored afterwards
ACTIVATION_VARS = ("VIRTUAL_ENV", "VIRTUAL_ENV_PROMPT", "PATH", "PYTHONHOME")


@contextmanager
def activated_environment(path: Path) -> Iterator[Path]:
    """Activate the environment at ``path`` for child processes of this one.

    Does what ``bin/activate`` does to the process environment and puts every
    touched variable back on exit, whether the body returns or raises.
    Yields the environment's bin directory.
    """
    saved = {key: os.environ.get(key) for key in ACTIVATION_VARS}
    env_bin = bin_dir(path)
    try:
        os.environ["VIRTUAL_ENV"] = str(path)
        os.environ["VIRTUAL_ENV_PROMPT"] = path.name
        os.environ["PATH"] = os.pathsep.join(
            p for p in (str(env_bin), saved["PATH"]) if p
        )
        os.environ.pop("PYTHONHOME", None)
        yield env_bin
    finally:
        for key, value in saved.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value


def _require_env(name: Optional[str], config: EffectiveConfig, hint: str = "") -> Path:
    validate_env_name(name)
    path = env_path(name, config.storage_path)
    if not path.is_dir():
        raise PreconditionError(
            f"Virtual environment '{name}' not found at {path}.{hint}"
        )
    return path


def install_requirements(
    name: Optional[str],
    requirements_file: Optional[Union[str, Path]],
    config: EffectiveConfig,
    log: EventLog,
) -> None:
    """Install the packages listed in ``requirements_file`` into ``name``"""
    if not name or not requirements_file:
        raise UserInputError(
            "Missing environment name or requirements file for 'install' command."
        )
    path = _require_env(name, config, " Please create it first.")

    requirements_file = Path(requirements_file)
    if not requirements_file.is_file():
        raise PreconditionError(f"Requirements file '{requirements_file}' not found.")

    log.info(
        f"Activating virtual environment '{name}' temporarily for package installation..."
    )
    with activated_environment(path):
        log.info(f"Installing packages from '{requirements_file}' into '{name}'...")
        result = run_command(
            [
                str(python_executable(path)),
                "-m",
                "pip",
                "install",
                "-r",
                str(requirements_file),
            ],
            log,
        )
        if not result.success:
            raise ExternalToolFailure(
                f"Failed to install packages from '{requirements_file}' "
                f"into '{name}': {result.message}."
            )
        log.success(
            f"Packages from '{requirements_file}' installed successfully into '{name}'."
        )
    log.info(f"Deactivated virtual environment '{name}' after installation.")


def export_requirements(
    name: Optional[str],
    output_file: Optional[Union[str, Path]],
    config: EffectiveConfig,
    log: EventLog,
) -> None:
    """Write the installed packages of ``name`` to ``output_file`` (pip freeze)"""
    if not name or not output_file:
        raise UserInputError(
            "Missing environment name or output file for 'export' command."
        )
    path = _require_env(name, config)
    output_file = Path(output_file)

    log.info(
        f"Activating virtual environment '{name}' temporarily for requirements export..."
    )
    with activated_environment(path):
        log.info(f"Exporting installed packages from '{name}' to '{output_file}'...")
        try:
            with open(output_file, "w", encoding="utf-8") as out:
                result = run_command(
                    [str(python_executable(path)), "-m", "pip", "freeze"],
                    log,
                    stdout=out,
                )
        except OSError as e:
            raise PreconditionError(
                f"Cannot write output file '{output_file}': {e}"
            ) from e
        if not result.success:
            raise ExternalToolFailure(
                f"Failed to export packages from '{name}' to '{output_file}': "
                f"{result.message}."
            )
        log.success(f"Packages from '{name}' exported successfully to '{output_file}'.")
    log.info(f"Deactivated virtual environment '{name}' after export.")
