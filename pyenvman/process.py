"""Running external tools"""

import shlex
import subprocess
from typing import IO, Optional

from rich.markup import escape

from pyenvman.log import EventLog
from pyenvman.models import CommandResult, LogLevel


def run_command(
    cmd: list[str],
    log: EventLog,
    *,
    stdout: Optional[IO[str]] = None,
    quiet: Optional[bool] = None,
    record: bool = True,
) -> CommandResult:
    """Execute a command and wait for it.

    Args:
        cmd: Command and arguments (no shell involved)
        log: Event log; the command line is always recorded
        stdout: File to redirect standard output into
        quiet: Capture output instead of streaming it to the terminal
            (default: the log's silent mode)
        record: Write captured output to the log file
    """
    quiet = log.silent if quiet is None else quiet
    cmd_str = shlex.join(cmd)

    log.record(LogLevel.INFO, f"$ {cmd_str}")
    if not log.silent:
        log.console.print(f"  [dim]$[/] {escape(cmd_str)}")

    if stdout is not None:
        out, err = stdout, (subprocess.PIPE if quiet else None)
    elif quiet:
        out, err = subprocess.PIPE, subprocess.STDOUT
    else:
        out = err = None

    try:
        result = subprocess.run(cmd, stdout=out, stderr=err, text=True, check=False)
    except OSError as e:
        return CommandResult(success=False, message=f"{cmd[0]}: {e}")

    captured = ""
    if out is subprocess.PIPE and result.stdout:
        captured += result.stdout
    if err is subprocess.PIPE and result.stderr:
        captured += result.stderr
    if captured and record:
        log.record_output(captured)

    if result.returncode != 0:
        return CommandResult(
            success=False,
            message=f"{cmd[0]} exited with status {result.returncode}",
            output=captured,
        )
    return CommandResult(success=True, output=captured)
