"""Supervisor: run one command under a wall-clock deadline.

Flow of :meth:`Supervisor.supervise`:
1. Install the SIGCHLD relay (before fork, so no exit can be missed)
2. Fork; the child execs the command via :func:`launch_child`
3. Release the parent's stdin/stdout so pipeline readers see EOF
4. Race "child exited" against ``timeout + 1 tick``
5. On timeout, leave the relay and run the escalation ladder

Exactly one of the two outcomes completes for a run: either the relay reaps
the child before the deadline (CHILD_EXITED), or the deadline cancels the
wait and the ladder makes sure the child is gone (TIMED_OUT).
"""

from __future__ import annotations

import logging
import math
import os
import signal
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

import anyio

from ..config import DEFAULT_HZ
from ..errors import SpawnError
from .escalation import kill_child
from .exit_notifier import ChildExitNotifier
from .launcher import launch_child

__all__ = [
    "Outcome",
    "SupervisedProcess",
    "SupervisionResult",
    "Supervisor",
    "decode_wait_status",
]

logger = logging.getLogger(__name__)


class Outcome(Enum):
    """Which path ended the run."""

    CHILD_EXITED = "child_exited"
    TIMED_OUT = "timed_out"


def decode_wait_status(status: int | None) -> int | None:
    """Convert a raw wait status to a subprocess-style returncode.

    Exit code for a normal exit, negative signal number for a signal death,
    None when unknown.
    """
    if status is None:
        return None
    if os.WIFSIGNALED(status):
        return -os.WTERMSIG(status)
    if os.WIFEXITED(status):
        return os.WEXITSTATUS(status)
    return None


@dataclass
class SupervisedProcess:
    """The one child a supervisor is responsible for.

    Attributes:
        argv: Command vector (argv[0] is the executable)
        timeout: Seconds the command may run
        pid: Child pid; None before fork and after confirmed termination
    """

    argv: list[str]
    timeout: float
    pid: int | None = None


@dataclass(frozen=True)
class SupervisionResult:
    """What happened to a supervised command.

    Attributes:
        outcome: CHILD_EXITED or TIMED_OUT
        pid: Pid the child had
        wait_status: Raw wait status if the supervisor reaped the child
        signals_sent: Signals the escalation ladder delivered
        elapsed: Wall-clock seconds from fork to return
    """

    outcome: Outcome
    pid: int
    wait_status: int | None = None
    signals_sent: tuple[signal.Signals, ...] = field(default_factory=tuple)
    elapsed: float = 0.0

    @property
    def returncode(self) -> int | None:
        return decode_wait_status(self.wait_status)

    @property
    def timed_out(self) -> bool:
        return self.outcome is Outcome.TIMED_OUT


class Supervisor:
    """Runs a command and guarantees it is gone when ``supervise`` returns.

    Example:
        supervisor = Supervisor()
        result = await supervisor.supervise(2.0, ["sleep", "5"])
        assert result.outcome is Outcome.TIMED_OUT

    Attributes:
        tick: Scheduler tick in seconds (timeout padding, settle unit)
        release_stdio: Close the parent's fds 0 and 1 after fork
        program: Name used in child-side diagnostics
    """

    def __init__(
        self,
        *,
        tick: float = 1.0 / DEFAULT_HZ,
        release_stdio: bool = False,
        program: str = "timeout-supervisor",
    ) -> None:
        self.tick = tick
        self.release_stdio = release_stdio
        self.program = program
        self.process: SupervisedProcess | None = None

    @property
    def active(self) -> bool:
        return self.process is not None and self.process.pid is not None

    async def supervise(self, timeout: float, argv: Sequence[str]) -> SupervisionResult:
        """Run ``argv`` for at most ``timeout`` seconds.

        Args:
            timeout: Positive, finite number of seconds
            argv: Non-empty command vector

        Returns:
            SupervisionResult; the child no longer exists

        Raises:
            ValueError: Invalid timeout or empty argv
            RuntimeError: This supervisor already has an active child
            HandlerInstallError: SIGCHLD relay could not be installed
            SpawnError: fork failed
            ProcessWillNotDie: The child survived SIGKILL
        """
        if not argv:
            raise ValueError("argv must not be empty")
        if not (math.isfinite(timeout) and timeout > 0.0):
            raise ValueError(f"timeout must be > 0.0, got {timeout!r}")
        if self.active:
            raise RuntimeError("Supervisor already has an active child")

        process = SupervisedProcess(argv=list(argv), timeout=timeout)
        self.process = process

        try:
            with ChildExitNotifier() as notifier:
                pid = self._spawn(process.argv)
                process.pid = pid
                started = time.monotonic()

                if self.release_stdio:
                    self._release_stdio()

                deadline = timeout + self.tick
                logger.debug(f"Waiting up to {deadline:.3f}s for pid={pid}")
                try:
                    with anyio.move_on_after(deadline):
                        status = await notifier.wait_for_exit(pid)
                        logger.info(f"Child pid={pid} exited before timeout")
                        return SupervisionResult(
                            outcome=Outcome.CHILD_EXITED,
                            pid=pid,
                            wait_status=status,
                            elapsed=time.monotonic() - started,
                        )
                except BaseException:
                    # Cancelled from outside (or KeyboardInterrupt): the child
                    # must still be gone before the error propagates.
                    logger.warning(f"Supervision of pid={pid} interrupted, killing child")
                    with anyio.CancelScope(shield=True):
                        await kill_child(pid, tick=self.tick)
                    raise

            logger.info(f"Child pid={pid} exceeded {timeout}s, escalating")
            report = await kill_child(pid, tick=self.tick)
            return SupervisionResult(
                outcome=Outcome.TIMED_OUT,
                pid=pid,
                wait_status=report.wait_status,
                signals_sent=report.signals_sent,
                elapsed=time.monotonic() - started,
            )
        finally:
            process.pid = None
            self.process = None

    def _spawn(self, argv: list[str]) -> int:
        try:
            pid = os.fork()
        except OSError as e:
            raise SpawnError(f"parent: main: fork failed: {e.strerror or e}") from e
        if pid == 0:
            launch_child(argv, self.program)
        logger.debug(f"Forked child pid={pid} argv0={argv[0]}")
        return pid

    @staticmethod
    def _release_stdio() -> None:
        # os.close, not sys.stdout.close(): buffered data must not be flushed.
        for fd in (1, 0):
            try:
                os.close(fd)
            except OSError:
                pass
        logger.debug("Closed parent stdin/stdout")
