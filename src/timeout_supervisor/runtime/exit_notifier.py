"""SIGCHLD relay.

The asynchronous "child terminated" notification is turned into an ordinary
awaitable: an anyio signal receiver buffers every SIGCHLD delivered to the
process, and :meth:`ChildExitNotifier.wait_for_exit` reaps the supervised
child from normal async code. Nothing runs in signal-handler context besides
the event loop's own wakeup write.
"""

from __future__ import annotations

import logging
import os
import signal
from collections.abc import AsyncIterator
from contextlib import AbstractContextManager

import anyio

from ..errors import HandlerInstallError

__all__ = ["ChildExitNotifier", "reap"]

logger = logging.getLogger(__name__)

# Sentinel for "child still running"
_RUNNING = object()


def reap(pid: int) -> int | None | object:
    """Non-blocking reap of ``pid``.

    Returns:
        The raw wait status if the child exited, None if it was already
        reaped elsewhere, ``_RUNNING`` otherwise
    """
    try:
        reaped_pid, status = os.waitpid(pid, os.WNOHANG)
    except ChildProcessError:
        return None
    if reaped_pid == 0:
        return _RUNNING
    return status


class ChildExitNotifier:
    """Context manager relaying SIGCHLD into the event loop.

    Must be entered before the child is forked so that an exit between fork
    and the first wait cannot be missed. Leaving the context uninstalls the
    relay; the escalation ladder only runs after that.

    Example:
        with ChildExitNotifier() as notifier:
            pid = os.fork()
            ...
            status = await notifier.wait_for_exit(pid)
    """

    def __init__(self) -> None:
        self._receiver_cm: AbstractContextManager[AsyncIterator[signal.Signals]] | None = None
        self._signals: AsyncIterator[signal.Signals] | None = None

    def __enter__(self) -> "ChildExitNotifier":
        try:
            self._receiver_cm = anyio.open_signal_receiver(signal.SIGCHLD)
            self._signals = self._receiver_cm.__enter__()
        except (OSError, ValueError, RuntimeError, NotImplementedError) as e:
            self._receiver_cm = None
            raise HandlerInstallError(f"parent: main: SIGCHLD sigaction failed: {e}") from e
        logger.debug("SIGCHLD relay installed")
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._receiver_cm is not None:
            cm, self._receiver_cm = self._receiver_cm, None
            self._signals = None
            cm.__exit__(*exc_info)
            logger.debug("SIGCHLD relay removed")

    @property
    def installed(self) -> bool:
        return self._signals is not None

    async def wait_for_exit(self, pid: int) -> int | None:
        """Wait until ``pid`` has exited and reap it.

        SIGCHLD for other children, or for a stop/continue of this one, does
        not end the wait.

        Args:
            pid: Supervised child

        Returns:
            Raw wait status, or None if the child was reaped elsewhere
        """
        if self._signals is None:
            raise RuntimeError("ChildExitNotifier is not installed")

        status = reap(pid)
        if status is not _RUNNING:
            return status  # type: ignore[return-value]

        async for _signum in self._signals:
            status = reap(pid)
            if status is not _RUNNING:
                logger.debug(f"SIGCHLD: reaped child pid={pid}")
                return status  # type: ignore[return-value]
            logger.debug(f"SIGCHLD ignored, pid={pid} still running")

        raise RuntimeError("SIGCHLD receiver closed")
