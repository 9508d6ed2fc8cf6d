"""Termination escalation for a child that outlived its timeout.

The ladder is fixed: SIGINT, settle, SIGTERM, settle, SIGKILL. Every step
first re-checks liveness and stops as soon as the child is gone, so a
well-behaved child never sees more than the interrupt.

States:
    RUNNING -> INTERRUPTED -> TERMINATED -> KILLED -> CONFIRMED_DEAD
    any state -> CONFIRMED_DEAD when a probe finds the child gone
    KILLED -> STUCK when the child survives SIGKILL (fatal)
"""

from __future__ import annotations

import logging
import os
import signal
from dataclasses import dataclass
from enum import Enum

import anyio

from ..errors import ProcessWillNotDie

__all__ = [
    "ESCALATION_LADDER",
    "EscalationReport",
    "EscalationState",
    "EscalationStep",
    "KILL_CONFIRM_TICKS",
    "is_alive",
    "kill_child",
]

logger = logging.getLogger(__name__)

# Ticks to wait for a SIGKILLed child to become reapable before giving up
KILL_CONFIRM_TICKS = 10


class EscalationState(Enum):
    """Where the ladder stands for one child."""

    RUNNING = "running"
    INTERRUPTED = "interrupted"
    TERMINATED = "terminated"
    KILLED = "killed"
    CONFIRMED_DEAD = "confirmed_dead"
    STUCK = "stuck"


@dataclass(frozen=True)
class EscalationStep:
    """One rung of the ladder.

    Attributes:
        signum: Signal to deliver
        settle_ticks: Ticks to wait before the next liveness probe
        state: State entered once the signal was delivered
    """

    signum: signal.Signals
    settle_ticks: int
    state: EscalationState


ESCALATION_LADDER: tuple[EscalationStep, ...] = (
    EscalationStep(signal.SIGINT, 2, EscalationState.INTERRUPTED),
    EscalationStep(signal.SIGTERM, 2, EscalationState.TERMINATED),
    EscalationStep(signal.SIGKILL, 0, EscalationState.KILLED),
)


@dataclass(frozen=True)
class EscalationReport:
    """Result of :func:`kill_child`.

    Attributes:
        state: Final state (CONFIRMED_DEAD unless an error was raised)
        signals_sent: Signals delivered, in order
        wait_status: Raw wait status if the probe reaped the child
    """

    state: EscalationState
    signals_sent: tuple[signal.Signals, ...] = ()
    wait_status: int | None = None


class _Probe:
    """Liveness probe that remembers the wait status it reaped."""

    def __init__(self, pid: int) -> None:
        self.pid = pid
        self.wait_status: int | None = None

    def alive(self) -> bool:
        alive, status = is_alive(self.pid)
        if status is not None:
            self.wait_status = status
        return alive


def is_alive(pid: int) -> tuple[bool, int | None]:
    """Check whether ``pid`` still exists.

    Our own child is probed with ``waitpid(WNOHANG)`` so that a zombie is
    reaped instead of being reported alive. For any other process (or a
    child already reaped elsewhere) this falls back to ``kill(pid, 0)``.

    Args:
        pid: Process to probe

    Returns:
        Tuple of (alive, wait_status); wait_status is set only when this
        call reaped the child
    """
    try:
        reaped_pid, status = os.waitpid(pid, os.WNOHANG)
    except ChildProcessError:
        pass
    else:
        if reaped_pid == 0:
            return True, None
        return False, status

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False, None
    except PermissionError:
        # Exists, owned by someone else
        return True, None
    return True, None


def _send(pid: int, signum: signal.Signals) -> bool:
    """Deliver ``signum``; False if the process vanished meanwhile."""
    try:
        os.kill(pid, signum)
    except ProcessLookupError:
        return False
    logger.info(f"Sent {signum.name} to pid={pid}")
    return True


async def _confirm_dead(probe: _Probe, tick: float) -> bool:
    for _ in range(KILL_CONFIRM_TICKS):
        if not probe.alive():
            return True
        await anyio.sleep(tick)
    return not probe.alive()


async def kill_child(pid: int | None, *, tick: float) -> EscalationReport:
    """Make sure ``pid`` is gone, escalating from SIGINT to SIGKILL.

    Does nothing when no child was created or the pid is bogus (<= 1), and
    sends nothing when the child has already exited.

    Args:
        pid: Recorded child pid, or None
        tick: Length of one scheduler tick in seconds

    Returns:
        EscalationReport with state CONFIRMED_DEAD

    Raises:
        ProcessWillNotDie: The child still exists after SIGKILL
    """
    if pid is None or pid <= 1:
        return EscalationReport(EscalationState.CONFIRMED_DEAD)

    probe = _Probe(pid)
    sent: list[signal.Signals] = []
    state = EscalationState.RUNNING

    for step in ESCALATION_LADDER:
        if not probe.alive():
            logger.debug(f"Child pid={pid} gone in state {state.value}")
            return EscalationReport(
                EscalationState.CONFIRMED_DEAD, tuple(sent), probe.wait_status
            )
        if not _send(pid, step.signum):
            return EscalationReport(
                EscalationState.CONFIRMED_DEAD, tuple(sent), probe.wait_status
            )
        sent.append(step.signum)
        state = step.state
        if step.settle_ticks:
            await anyio.sleep(step.settle_ticks * tick)

    if await _confirm_dead(probe, tick):
        logger.debug(f"Child pid={pid} confirmed dead after {state.value}")
        return EscalationReport(
            EscalationState.CONFIRMED_DEAD, tuple(sent), probe.wait_status
        )

    logger.error(f"Child pid={pid} survived SIGKILL ({EscalationState.STUCK.value})")
    raise ProcessWillNotDie(pid)
