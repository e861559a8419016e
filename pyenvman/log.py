"""Append-only event log with conditional terminal echo.

Every event is written to a single plain-text log file as
``YYYY-MM-DD HH:MM:SS [LEVEL] message``. The file is opened in append mode
and closed again for each event, so several processes can share one log.
Terminal echo is skipped in silent mode, except for errors.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.markup import escape

from pyenvman.models import LogLevel

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVEL_STYLES = {
    LogLevel.INFO: "cyan",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red",
}

# Echo goes to stderr; stdout is reserved for output meant to be consumed,
# such as the activation command.
err_console = Console(stderr=True)


def format_entry(level: LogLevel, message: str, when: Optional[datetime] = None) -> str:
    """Format a single log line (without trailing newline)"""
    when = when or datetime.now()
    flat = " ".join(message.splitlines())
    return f"{when.strftime(TIMESTAMP_FORMAT)} [{level.value}] {flat}"


class EventLog:
    """Process-wide event sink: log file plus terminal echo"""

    def __init__(
        self,
        log_file: Union[str, Path],
        silent: bool = False,
        console: Optional[Console] = None,
    ):
        self.log_file = Path(log_file)
        self.silent = silent
        self.console = console or err_console
        self._write_failed = False

    def with_log_file(self, log_file: Union[str, Path]) -> "EventLog":
        """Return a log writing to ``log_file`` with the same echo settings"""
        return EventLog(log_file, silent=self.silent, console=self.console)

    def info(self, message: str) -> None:
        self.log(LogLevel.INFO, message)

    def success(self, message: str) -> None:
        self.log(LogLevel.SUCCESS, message)

    def warning(self, message: str) -> None:
        self.log(LogLevel.WARNING, message)

    def error(self, message: str) -> None:
        self.log(LogLevel.ERROR, message)

    def log(self, level: LogLevel, message: str) -> None:
        if level is LogLevel.ERROR or not self.silent:
            style = LEVEL_STYLES[level]
            self.console.print(f"[{style}]\\[{level.value}][/] {escape(message)}")
        self.record(level, message)

    def record(self, level: LogLevel, message: str) -> None:
        """Write an entry to the log file without echoing it"""
        line = format_entry(level, message) + "\n"
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            # Report once per run; a broken log must not abort the command
            if not self._write_failed:
                self._write_failed = True
                self.console.print(
                    f"[yellow]\\[WARNING][/] Cannot write log file "
                    f"{escape(str(self.log_file))}: {escape(str(e))}"
                )

    def record_output(self, output: str, level: LogLevel = LogLevel.INFO) -> None:
        """Record captured tool output, one entry per non-empty line"""
        for line in output.splitlines():
            if line.strip():
                self.record(level, line.rstrip())


def show_log(log_file: Union[str, Path], console: Console) -> bool:
    """Print the whole log file. Never gated by silent mode."""
    log_file = Path(log_file)
    console.print(f"[cyan]Displaying log file:[/] {escape(str(log_file))}")
    if not log_file.is_file():
        console.print(
            f"[yellow]\\[WARNING][/] Log file not found: {escape(str(log_file))}"
        )
        return False
    with open(log_file, encoding="utf-8", errors="replace") as f:
        console.print(f.read(), end="", markup=False, highlight=False)
    return True
