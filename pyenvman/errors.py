"""Fatal error types.

Each of these aborts the current command: the CLI records the message as an
ERROR entry and exits with ``exit_code``. Recoverable conditions (a missing
config file, creating an environment that already exists) are not errors and
are reported as warnings instead.
"""


class PyEnvManagerError(Exception):
    """Base class for fatal pyenvman errors"""

    exit_code = 1


class UserInputError(PyEnvManagerError):
    """Missing or invalid arguments, unknown command"""


class PreconditionError(PyEnvManagerError):
    """A required environment or file is absent"""


class ExternalToolFailure(PyEnvManagerError):
    """An external process exited with a non-zero status"""
