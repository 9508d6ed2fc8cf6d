"""Application entry point.

Wires the command line, configuration and logging to the supervisor and
turns every outcome into an exit status.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence

import anyio

from .cli import parse_args
from .config import Config, get_config
from .errors import ExitStatus, SupervisorError
from .runtime import Outcome, Supervisor

__all__ = ["run", "main", "configure_logging"]

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def report_fatal(program: str, error: SupervisorError) -> None:
    """Write the one-line diagnostic of a fatal error to stderr."""
    try:
        sys.stderr.write(f"{program}: {error.message}\n")
        sys.stderr.flush()
    except (OSError, ValueError):
        pass


def run(
    timeout: float,
    argv: Sequence[str],
    *,
    config: Config | None = None,
    program: str = "timeout-supervisor",
    release_stdio: bool = True,
) -> int:
    """Supervise ``argv`` for ``timeout`` seconds and return the exit status.

    Args:
        timeout: Positive, finite number of seconds
        argv: Command vector
        config: Configuration (default: from the environment)
        program: Name used in diagnostics
        release_stdio: Close our stdin/stdout after forking the child

    Returns:
        0 for an early exit, ``config.timeout_status`` after a timeout, or
        the status of the fatal error that stopped the supervisor
    """
    config = config or get_config()
    supervisor = Supervisor(tick=config.tick, release_stdio=release_stdio, program=program)

    try:
        result = anyio.run(supervisor.supervise, timeout, list(argv))
    except SupervisorError as e:
        logger.error(f"Supervisor failed: {e.message}")
        report_fatal(program, e)
        return int(e.exit_status)

    logger.debug(
        f"Run finished: outcome={result.outcome.value}, pid={result.pid}, "
        f"returncode={result.returncode}, "
        f"signals={[s.name for s in result.signals_sent]}, "
        f"elapsed={result.elapsed:.3f}s"
    )
    if result.outcome is Outcome.TIMED_OUT:
        return config.timeout_status
    return int(ExitStatus.OK)


def configure_logging(config: Config) -> None:
    """Configure logging the way ``main`` does.

    Default: stderr at ``config.log_level``. With TSUP_LOG_DEBUG: DEBUG to a
    temp file, keeping stderr free for the command's own diagnostics.
    """
    log_handlers: list[logging.Handler] = []

    if config.log_debug and config.log_file:
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(stderr_handler)
        log_level = config.log_level

    # Root logger (third-party libraries) stays at WARNING
    logging.basicConfig(level=logging.WARNING, handlers=log_handlers)
    logging.getLogger("timeout_supervisor").setLevel(log_level)


def main(argv: Sequence[str] | None = None) -> None:
    """Console script entry point."""
    program = os.path.basename(sys.argv[0]) or "timeout-supervisor"
    if program in ("__main__.py", "-m"):
        program = "timeout-supervisor"

    config = get_config()
    configure_logging(config)

    try:
        invocation = parse_args(argv, prog=program)
    except SupervisorError as e:
        report_fatal(program, e)
        sys.exit(int(e.exit_status))

    logger.debug(f"Starting: {config}, timeout={invocation.timeout}, argv={invocation.argv}")

    if invocation.dry_run:
        logger.info("Dry run, not starting the command")
        sys.exit(int(ExitStatus.OK))

    sys.exit(run(invocation.timeout, invocation.argv, config=config, program=program))


if __name__ == "__main__":
    main()
