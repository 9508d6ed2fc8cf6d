"""Command line parsing.

Usage:
    timeout-supervisor [-h] [-V] [-n] seconds cmd [arg ...]

Everything after ``cmd`` is passed to the command verbatim, including
arguments that look like options.
"""

from __future__ import annotations

import argparse
import math
import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import NoReturn

from . import __version__
from .errors import ConfigurationError, ExitStatus

__all__ = ["Invocation", "build_parser", "parse_args", "parse_timeout"]


@dataclass(frozen=True)
class Invocation:
    """Validated command line.

    Attributes:
        timeout: Seconds until the command is killed
        argv: Command vector
        dry_run: Validate only, do not run anything
    """

    timeout: float
    argv: list[str]
    dry_run: bool = False


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that exits with USAGE instead of argparse's 2."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(ExitStatus.USAGE, f"{self.prog}: error: {message}\n")


def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
    parser = _Parser(
        prog=prog or os.path.basename(sys.argv[0]) or "timeout-supervisor",
        description="Run a command and kill it if it does not finish in time.",
        epilog=(
            "On timeout the command gets SIGINT, then SIGTERM, then SIGKILL, "
            "with a short settle pause between them."
        ),
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="check the arguments and exit without running the command",
    )
    parser.add_argument("seconds", help="seconds until timeout (may be a float)")
    parser.add_argument("cmd", help="command to execute until timeout")
    parser.add_argument(
        "args",
        nargs=argparse.REMAINDER,
        help="optional args to the command",
    )
    return parser


def parse_timeout(value: str) -> float:
    """Parse the timeout argument.

    Raises:
        ConfigurationError: Not a number, not finite, or not > 0.0
    """
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigurationError(
            f"timeout must be > 0.0: {value!r} is not a number",
            ExitStatus.BAD_TIMEOUT,
        ) from None
    if not math.isfinite(timeout) or timeout <= 0.0:
        raise ConfigurationError("timeout must be > 0.0", ExitStatus.BAD_TIMEOUT)
    return timeout


def parse_args(argv: Sequence[str] | None = None, prog: str | None = None) -> Invocation:
    """Parse and validate the command line.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])
        prog: Program name for usage and diagnostics

    Returns:
        Invocation

    Raises:
        ConfigurationError: Invalid timeout
        SystemExit: Usage error, --help or --version
    """
    parser = build_parser(prog)
    ns = parser.parse_args(argv)
    timeout = parse_timeout(ns.seconds)
    return Invocation(timeout=timeout, argv=[ns.cmd, *ns.args], dry_run=ns.dry_run)
