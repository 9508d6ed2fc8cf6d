"""Exit statuses and exception classes.

Every fatal path of the supervisor ends in a distinct exit status so that
calling scripts can tell the failure classes apart.
"""

from __future__ import annotations

from enum import IntEnum

__all__ = [
    "ExitStatus",
    "SupervisorError",
    "ConfigurationError",
    "HandlerInstallError",
    "SpawnError",
    "ProcessWillNotDie",
]


class ExitStatus(IntEnum):
    """Exit statuses of the supervisor and of the forked child.

    - OK: child exited before the timeout, or escalation confirmed it gone
    - USAGE: command line error (missing arguments, unknown option)
    - BAD_TIMEOUT: timeout is not a positive finite number
    - HANDLER_INSTALL: SIGCHLD relay could not be installed
    - SPAWN: fork failed
    - CHILD_HANDLER_RESET: child could not reset SIGCHLD (child side)
    - EXEC_FAILED: child could not exec the command (child side)
    - EXEC_RETURNED: exec returned without raising (child side)
    - WILL_NOT_DIE: child survived SIGKILL
    """

    OK = 0
    USAGE = 1
    BAD_TIMEOUT = 2
    HANDLER_INSTALL = 3
    SPAWN = 4
    CHILD_HANDLER_RESET = 5
    EXEC_FAILED = 6
    EXEC_RETURNED = 7
    WILL_NOT_DIE = 9


class SupervisorError(Exception):
    """Base class for errors that terminate the supervisor.

    Attributes:
        exit_status: Status the program exits with
        message: One-line diagnostic (without program name)
    """

    exit_status: ExitStatus = ExitStatus.EXEC_RETURNED

    def __init__(self, message: str, exit_status: ExitStatus | None = None) -> None:
        self.message = message
        if exit_status is not None:
            self.exit_status = exit_status
        super().__init__(message)


class ConfigurationError(SupervisorError):
    """Invalid command line: bad timeout or missing command."""

    exit_status = ExitStatus.USAGE


class HandlerInstallError(SupervisorError):
    """The SIGCHLD notification could not be installed."""

    exit_status = ExitStatus.HANDLER_INSTALL


class SpawnError(SupervisorError):
    """The child process could not be created."""

    exit_status = ExitStatus.SPAWN


class ProcessWillNotDie(SupervisorError):
    """The child still exists after SIGKILL.

    Attributes:
        pid: Process that survived the escalation ladder
    """

    exit_status = ExitStatus.WILL_NOT_DIE

    def __init__(self, pid: int) -> None:
        self.pid = pid
        super().__init__(f"process {pid} will not die")
