"""Child side of the fork: replace the process image with the command.

Only ever called in the forked child. Nothing here returns into the
supervisor's code: every path ends in exec or ``os._exit`` so that no
interpreter teardown (atexit handlers, buffered stdio flushes, a test runner's
cleanup) runs twice.
"""

from __future__ import annotations

import os
import signal
from collections.abc import Sequence
from typing import NoReturn

from ..errors import ExitStatus

__all__ = ["launch_child"]


def _report(program: str, message: str) -> None:
    """Write one diagnostic line straight to fd 2."""
    line = f"{program}: child pid: {os.getpid()}: {message}\n"
    try:
        os.write(2, line.encode("utf-8", "replace"))
    except OSError:
        pass


def launch_child(argv: Sequence[str], program: str = "timeout-supervisor") -> NoReturn:
    """Exec ``argv`` in the current (forked) process.

    Steps:
    1. Reset SIGCHLD to the default disposition; the supervisor's relay was
       inherited through fork and must not run here
    2. Detach Python's signal wakeup fd (it is the parent's event loop socket)
    3. ``execvp(argv[0], argv)``, resolving the command through PATH

    Args:
        argv: Command vector, argv[0] is the executable
        program: Name used in diagnostics
    """
    try:
        try:
            signal.signal(signal.SIGCHLD, signal.SIG_DFL)
        except (OSError, ValueError) as e:
            _report(program, f"SIGCHLD sigaction failed: {e}")
            os._exit(ExitStatus.CHILD_HANDLER_RESET)

        try:
            signal.set_wakeup_fd(-1)
        except ValueError:
            # Not the main thread; nothing was registered from here.
            pass

        try:
            os.execvp(argv[0], list(argv))
        except OSError as e:
            _report(program, f"exec of {argv[0]} failed: {e.strerror or e}")
            os._exit(ExitStatus.EXEC_FAILED)

        _report(program, "fall thru exec code!")
        os._exit(ExitStatus.EXEC_RETURNED)
    except Exception as e:
        _report(program, f"unexpected error before exec: {type(e).__name__}: {e}")
        os._exit(ExitStatus.EXEC_RETURNED)
