"""Runtime module: fork/exec, SIGCHLD relay and termination escalation.

POSIX only. The supervisor forks the command, waits for either its exit or
the deadline, and drives the SIGINT -> SIGTERM -> SIGKILL ladder on timeout.
"""

from __future__ import annotations

from .escalation import ESCALATION_LADDER, EscalationReport, EscalationState, kill_child
from .exit_notifier import ChildExitNotifier
from .launcher import launch_child
from .supervisor import Outcome, SupervisionResult, Supervisor

__all__ = [
    "ESCALATION_LADDER",
    "ChildExitNotifier",
    "EscalationReport",
    "EscalationState",
    "Outcome",
    "SupervisionResult",
    "Supervisor",
    "kill_child",
    "launch_child",
]
