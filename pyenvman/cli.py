"""
pyenvman - Manage named Python virtual environments

Environments live as subdirectories of one storage root. pyenvman creates,
deletes, lists and populates them, and prints the command that activates one
in your shell.
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Optional, Union

from cyclopts import App, CycloptsError, Parameter
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pyenvman.config import resolve_config
from pyenvman.environments import activate_env, create_env, delete_env, list_envs
from pyenvman.errors import PyEnvManagerError, UserInputError
from pyenvman.log import EventLog, err_console, show_log
from pyenvman.managers import check_python_update
from pyenvman.models import Defaults, EffectiveConfig, RunOptions
from pyenvman.packages import export_requirements, install_requirements

__version__ = "0.3.0"

# Initialize Rich console for colored output
console = Console()

app = App(
    name="pyenvman",
    help="""
[bold cyan]pyenvman[/] - Virtual environment manager

Create, delete, list and populate named Python virtual environments kept
under a single storage directory.

[dim]Global options (anywhere on the command line):[/]
  --path DIR   Override the environment storage path for this command
  --silent     Only show errors and essential output
  --force      Bypass confirmation prompts (e.g., for 'delete')
  --log        View the log file
  -h, --help   Display this help message
""",
    help_format="rich",
    version=__version__,
)

# Command tokens accepted as aliases of a registered command
COMMAND_ALIASES = {
    "-up": "check-update-python",
    "--up": "check-update-python",
}


@dataclass(frozen=True)
class RunContext:
    """Everything a command needs, built once per run"""

    config: EffectiveConfig
    options: RunOptions
    log: EventLog


@dataclass
class ParsedArgs:
    """Result of the global option scan"""

    options: RunOptions
    tokens: list[str] = field(default_factory=list)
    # "help", "log" or "version": handled without running a command
    action: Optional[str] = None


Context = Annotated[RunContext, Parameter(parse=False)]


# =============================================================================
# Global option parsing
# =============================================================================


def parse_global_options(argv: list[str]) -> ParsedArgs:
    """Separate global options from the command and its arguments.

    Options may appear before or after the command; ``--`` ends option
    scanning. ``-h/--help``, ``--log`` and ``--version`` stop the scan at once.

    Raises:
        UserInputError: unknown option or ``--path`` without a value
    """
    silent = False
    force = False
    storage_path: Optional[str] = None
    tokens: list[str] = []

    def options() -> RunOptions:
        return RunOptions(
            silent=silent,
            force=force,
            storage_path_override=Path(storage_path) if storage_path else None,
        )

    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--":
            tokens.extend(argv[i + 1 :])
            break
        if arg in ("-h", "--help"):
            return ParsedArgs(options(), tokens, action="help")
        if arg == "--log":
            return ParsedArgs(options(), tokens, action="log")
        if arg == "--version":
            return ParsedArgs(options(), tokens, action="version")

        if arg == "--silent":
            silent = True
        elif arg == "--force":
            force = True
        elif arg == "--path":
            if i + 1 >= len(argv):
                raise UserInputError("Option '--path' requires a value.")
            i += 1
            storage_path = argv[i]
        elif arg.startswith("--path="):
            storage_path = arg.split("=", 1)[1]
        elif arg in COMMAND_ALIASES:
            if tokens:
                raise UserInputError(
                    f"'{arg}' is a command and cannot follow '{tokens[0]}'."
                )
            tokens.append(COMMAND_ALIASES[arg])
        elif arg.startswith("-") and arg != "-":
            raise UserInputError(f"Unrecognized option '{arg}'.")
        else:
            tokens.append(arg)
        i += 1

    return ParsedArgs(options(), tokens)


# =============================================================================
# Help
# =============================================================================


def show_help(
    settings: Union[Defaults, EffectiveConfig], out: Console = console
) -> None:
    """Print the help page followed by the storage, log and config locations"""
    app.help_print([], console=out)

    table = Table(title="Locations", title_justify="left", show_header=False, box=None)
    table.add_column(style="magenta")
    table.add_column(style="cyan")
    table.add_row("Environment storage", str(settings.storage_path))
    table.add_row("Log file", str(settings.log_file))
    table.add_row("Configuration file", str(settings.config_file))
    out.print(table)

    out.print("\n[yellow]Examples:[/]")
    out.print("  pyenvman create myproject_env --path /var/py_envs --silent")
    out.print("  pyenvman install myproject_env requirements.txt")
    out.print(
        "  [green]source <(pyenvman activate myproject_env)[/]"
        "  (THIS IS CRUCIAL FOR ACTIVATION!)"
    )
    out.print("  pyenvman -up --silent")
    out.print("  pyenvman delete old_env --force")


# =============================================================================
# CLI Commands
# =============================================================================


@app.command
def create(
    name: Annotated[Optional[str], Parameter(help="Environment name")] = None,
    *,
    ctx: Context,
):
    """
    Create a new virtual environment.

    Does nothing (with a warning) if the environment already exists.

    [dim]Examples:[/]
      pyenvman create myproject_env
      pyenvman create myproject_env --path /var/py_envs
    """
    create_env(name, ctx.config, ctx.log)


@app.command
def delete(
    name: Annotated[Optional[str], Parameter(help="Environment name")] = None,
    *,
    ctx: Context,
):
    """
    Delete a virtual environment.

    Asks for confirmation unless --force or --silent is given.

    [dim]Examples:[/]
      pyenvman delete old_env
      pyenvman delete old_env --force
    """
    delete_env(name, ctx.config, ctx.options, ctx.log)


@app.command
def install(
    name: Annotated[Optional[str], Parameter(help="Environment name")] = None,
    requirements_file: Annotated[
        Optional[str], Parameter(help="Requirements file to install from")
    ] = None,
    *,
    ctx: Context,
):
    """
    Install packages from a requirements file into an environment.

    [dim]Examples:[/]
      pyenvman install myproject_env requirements.txt
    """
    install_requirements(name, requirements_file, ctx.config, ctx.log)


@app.command
def export(
    name: Annotated[Optional[str], Parameter(help="Environment name")] = None,
    output_file: Annotated[
        Optional[str], Parameter(help="File to write the package list to")
    ] = None,
    *,
    ctx: Context,
):
    """
    Export installed packages to a requirements file.

    [dim]Examples:[/]
      pyenvman export myproject_env requirements.txt
    """
    export_requirements(name, output_file, ctx.config, ctx.log)


@app.command(name="list")
def list_environments(*, ctx: Context):
    """
    List all virtual environments.

    [dim]Examples:[/]
      pyenvman list
      pyenvman list --path /var/py_envs
    """
    list_envs(ctx.config, ctx.log, console)


@app.command
def activate(
    name: Annotated[Optional[str], Parameter(help="Environment name")] = None,
    *,
    ctx: Context,
):
    """
    Display the command that activates a virtual environment.

    pyenvman cannot change your current shell; evaluate its output instead.

    [dim]Examples:[/]
      source <(pyenvman activate myproject_env)
    """
    activate_env(name, ctx.config, ctx.log, console)


@app.command(name="check-update-python")
def check_update_python(*, ctx: Context):
    """
    Check if the system's Python 3 installation has updates.

    Aliases: -up, --up

    [dim]Examples:[/]
      pyenvman check-update-python
      pyenvman -up --silent
    """
    check_python_update(ctx.log)


@app.command(name="help")
def help_command(*, ctx: Context):
    """
    Display this help message.
    """
    show_help(ctx.config)


# =============================================================================
# Dispatch
# =============================================================================


def dispatch(tokens: list[str], ctx: RunContext) -> None:
    """Run the command named by ``tokens[0]`` with the remaining tokens"""
    if not tokens:
        show_help(ctx.config)
        return

    command_name = tokens[0]
    if command_name.startswith("-") or command_name not in app:
        raise UserInputError(
            f"Unknown command: {command_name}. Use 'pyenvman --help' for usage."
        )

    try:
        command, bound, ignored = app.parse_args(
            tokens,
            console=console,
            error_console=err_console,
            print_error=False,
            exit_on_error=False,
        )
    except CycloptsError as e:
        raise UserInputError(str(e).strip()) from e

    extra = {"ctx": ctx} if "ctx" in ignored else {}
    command(*bound.args, **bound.kwargs, **extra)


def main(argv: Optional[list[str]] = None) -> int:
    """Run pyenvman and return the exit status"""
    argv = sys.argv[1:] if argv is None else list(argv)
    defaults = Defaults.from_environment()

    try:
        parsed = parse_global_options(argv)
    except UserInputError as e:
        # Not logged: the log location is not resolved yet
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        show_help(defaults, out=err_console)
        return 2

    if parsed.action == "help":
        show_help(defaults)
        return 0
    if parsed.action == "log":
        show_log(defaults.log_file, console)
        return 0
    if parsed.action == "version":
        app.version_print(console=console)
        return 0

    options = parsed.options
    log = EventLog(defaults.log_file, silent=options.silent)
    try:
        config = resolve_config(
            defaults, log, storage_override=options.storage_path_override
        )
        log = log.with_log_file(config.log_file)
        dispatch(parsed.tokens, RunContext(config=config, options=options, log=log))
    except PyEnvManagerError as e:
        log.error(str(e))
        return e.exit_code
    return 0


def run():
    """Entry point for the CLI"""
    raise SystemExit(main())


if __name__ == "__main__":
    run()
