"""Environment lifecycle: create, delete, list and activate.

An environment is nothing more than a directory under the storage root; its
presence is the only state. Creating an existing environment and deleting a
missing one are warnings, not errors, so every command is safe to repeat.
"""

import shlex
import shutil
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from pyenvman.errors import (
    ExternalToolFailure,
    PreconditionError,
    PyEnvManagerError,
    UserInputError,
)
from pyenvman.log import EventLog
from pyenvman.models import EffectiveConfig, LogLevel, RunOptions
from pyenvman.paths import activation_script, env_path, validate_env_name
from pyenvman.process import run_command


def find_python() -> Optional[str]:
    """Interpreter used to create environments"""
    return shutil.which("python3") or sys.executable or None


def _confirm(question: str, console: Console) -> bool:
    try:
        return Confirm.ask(question, default=False, console=console)
    except (EOFError, KeyboardInterrupt):
        console.print()
        return False


def create_env(name: Optional[str], config: EffectiveConfig, log: EventLog) -> bool:
    """Create environment ``name``. Returns False if it already existed."""
    if not name:
        raise UserInputError("Missing environment name for 'create' command.")
    validate_env_name(name)
    root = config.storage_path
    path = env_path(name, root)

    log.info(f"Attempting to create virtual environment: {name} in {root}")

    if path.is_dir():
        log.warning(
            f"Virtual environment '{name}' already exists at {path}. Skipping creation."
        )
        return False
    if path.exists():
        raise PreconditionError(f"Cannot create '{name}': {path} is not a directory.")

    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PreconditionError(
            f"Failed to create environment storage directory: {root} ({e})"
        ) from e

    python = find_python()
    if not python:
        raise PreconditionError("Python 3 not found. Please install Python 3 first.")
    log.info(f"Using Python interpreter: {python}")

    result = run_command([python, "-m", "venv", str(path)], log)
    if not result.success:
        message = f"Failed to create virtual environment '{name}': {result.message}."
        if path.exists():
            # Partial directories are not cleaned up
            message += f" A partially created directory may remain at {path}."
        raise ExternalToolFailure(message)

    log.success(f"Virtual environment '{name}' created successfully at {path}.")
    return True


def delete_env(
    name: Optional[str], config: EffectiveConfig, options: RunOptions, log: EventLog
) -> bool:
    """Delete environment ``name``. Returns True if it was removed.

    Asks for confirmation unless ``--force`` or ``--silent`` was given; silent
    mode assumes yes.
    """
    if not name:
        raise UserInputError("Missing environment name for 'delete' command.")
    validate_env_name(name)
    root = config.storage_path
    path = env_path(name, root)

    log.info(f"Attempting to delete virtual environment: {name} from {root}")

    if not path.is_dir():
        log.warning(
            f"Virtual environment '{name}' does not exist at {path}. Skipping deletion."
        )
        return False

    if options.force or options.silent:
        log.info(f"Proceeding with deletion of '{name}' (silent/force mode).")
    elif not _confirm(
        f"[yellow]Are you sure you want to delete '{escape(name)}'?[/]", log.console
    ):
        log.info(f"Deletion of '{name}' cancelled.")
        return False

    try:
        if path.is_symlink():
            path.unlink()
        else:
            shutil.rmtree(path)
    except OSError as e:
        raise PyEnvManagerError(
            f"Failed to delete virtual environment '{name}': {e}"
        ) from e

    log.success(f"Virtual environment '{name}' deleted successfully.")
    return True


def list_envs(config: EffectiveConfig, log: EventLog, console: Console) -> list[str]:
    """List environment names under the storage root"""
    root = config.storage_path
    log.info(f"Listing virtual environments in: {root}")

    if not root.is_dir():
        log.warning(
            f"Environment storage directory '{root}' does not exist. "
            "No virtual environments found."
        )
        return []

    try:
        names = sorted(
            p.name for p in root.iterdir() if p.is_dir() and not p.name.startswith(".")
        )
    except OSError as e:
        raise PreconditionError(f"Cannot read storage directory {root}: {e}") from e

    if names and not log.silent:
        table = Table(title="Virtual Environments", title_style="bold blue")
        table.add_column("Name", style="green")
        table.add_column("Path", style="cyan")
        for name in names:
            table.add_row(name, str(env_path(name, root)))
        console.print(table)

    if names:
        log.info(f"Total virtual environments: {len(names)}")
    else:
        log.info(f"No virtual environments found in '{root}'.")
    return names


def activate_env(
    name: Optional[str],
    config: EffectiveConfig,
    log: EventLog,
    console: Console,
    shell: Optional[str] = None,
) -> str:
    """Print the command that activates ``name`` in the caller's shell.

    This process cannot change its parent shell; the caller has to evaluate
    the printed line, e.g. ``source <(pyenvman activate NAME)``. Only that
    line goes to ``console``, everything else goes to the log.
    """
    if not name:
        raise UserInputError("Missing environment name for 'activate' command.")
    validate_env_name(name)
    path = env_path(name, config.storage_path)

    if not path.is_dir():
        raise PreconditionError(f"Virtual environment '{name}' not found at {path}.")

    script = activation_script(path, shell)
    if not script.is_file():
        raise PreconditionError(
            f"Activation script not found for '{name}' at {script}. "
            "Is it a valid virtual environment?"
        )

    command = f"source {shlex.quote(str(script))}"

    if not log.silent:
        log.console.print("[yellow]--- ATTENTION: IMPORTANT FOR ACTIVATION ---[/]")
        log.console.print(
            f"[yellow]To activate '{escape(name)}' in your CURRENT shell, "
            "you MUST evaluate the command below with 'source'.[/]"
        )
        log.console.print(
            f"[yellow]For example:[/] source <(pyenvman activate {escape(name)})"
        )
    console.print(command, markup=False, highlight=False, soft_wrap=True)
    log.record(LogLevel.INFO, f"Activation command for '{name}': {command}")
    return command
