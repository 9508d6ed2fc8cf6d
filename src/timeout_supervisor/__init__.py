"""timeout-supervisor - run a command under a wall-clock deadline.

Environment variables:
    TSUP_HZ: scheduler ticks per second (default 100)
    TSUP_TIMEOUT_STATUS: exit status after a timeout (default 0)
    TSUP_LOG_LEVEL: stderr log level (default WARNING)
    TSUP_LOG_DEBUG: DEBUG log to a temp file (default false)

Usage:
    timeout-supervisor 2.5 make test
"""

__version__ = "0.1.0"

from .app import main, run
from .runtime import Outcome, SupervisionResult, Supervisor

__all__ = ["__version__", "main", "run", "Outcome", "SupervisionResult", "Supervisor"]
