"""Host package managers, used to check for Python 3 updates"""

import shutil
from abc import ABC, abstractmethod
from typing import Optional

from pyenvman.log import EventLog
from pyenvman.process import run_command


class HostPackageManager(ABC):
    """Abstract base class for system package managers"""

    name: str
    tool: str
    # Command the user can run to update Python 3 manually
    update_hint: str = ""

    def is_available(self) -> bool:
        """Check if the package manager tool is available"""
        return shutil.which(self.tool) is not None

    @abstractmethod
    def check_python_update(self, log: EventLog) -> None:
        pass


class AptManager(HostPackageManager):
    """Debian/Ubuntu apt"""

    name = "apt"
    tool = "apt-get"
    update_hint = "sudo apt-get install python3"

    def upgradable_python(self, log: EventLog) -> Optional[list[str]]:
        """Upgradable python3 packages, or None if apt could not be queried"""
        # Refresh the package index when sudo needs no password
        run_command(["sudo", "-n", "apt-get", "update"], log, quiet=True, record=False)
        result = run_command(
            ["apt", "list", "--upgradable"], log, quiet=True, record=False
        )
        if not result.success:
            return None
        return [
            line.split("/", 1)[0]
            for line in result.output.splitlines()
            if line.startswith("python3/")
        ]

    def check_python_update(self, log: EventLog) -> None:
        log.info("Checking for available updates via apt...")
        upgradable = self.upgradable_python(log)
        if upgradable is None:
            log.warning("Could not query apt for upgradable packages.")
        elif upgradable:
            log.warning(
                f"An update for Python 3 ({', '.join(upgradable)}) is available "
                "in your apt repositories."
            )
            log.info(f"You can update by running: {self.update_hint}")
        else:
            log.success("Python 3 is up to date in your apt repositories.")


class DnfManager(HostPackageManager):
    """Fedora/RHEL dnf, or yum on older systems"""

    name = "dnf"
    tool = "dnf"
    update_hint = "sudo dnf update python3"

    def is_available(self) -> bool:
        if shutil.which("dnf"):
            return True
        if shutil.which("yum"):
            self.name = self.tool = "yum"
            self.update_hint = "sudo yum update python3"
            return True
        return False

    def check_python_update(self, log: EventLog) -> None:
        log.info(
            "Cannot automatically check for Python 3 updates on this system's "
            f"package manager ({self.name})."
        )
        log.info(f"Please use '{self.update_hint}' to check for updates manually.")


class PacmanManager(HostPackageManager):
    """Arch Linux pacman"""

    name = "pacman"
    tool = "pacman"
    update_hint = "sudo pacman -Syu python"

    def check_python_update(self, log: EventLog) -> None:
        log.info(
            "Cannot automatically check for Python 3 updates on this system's "
            f"package manager ({self.name})."
        )
        log.info(f"Please use '{self.update_hint}' to check for updates manually.")


def detect_host_manager() -> Optional[HostPackageManager]:
    """First available package manager, in order apt, dnf/yum, pacman"""
    for manager in (AptManager(), DnfManager(), PacmanManager()):
        if manager.is_available():
            return manager
    return None


def check_python_update(log: EventLog) -> None:
    """Report the installed Python 3 version and whether an update exists"""
    log.info("Checking Python 3 installation status...")
    python = shutil.which("python3")
    if not python:
        log.warning("Python 3 is not installed on this system.")
        return

    result = run_command([python, "--version"], log, quiet=True, record=False)
    if result.success:
        log.success(f"Current Python 3 version: {result.output.strip()}")
    else:
        log.warning(f"Could not determine the Python 3 version: {result.message}")

    manager = detect_host_manager()
    if manager is None:
        log.info(
            "Unable to determine system's package manager to check for Python 3 updates."
        )
        log.info(
            "Please consult your operating system's documentation for manual update checks."
        )
        return
    manager.check_python_update(log)
