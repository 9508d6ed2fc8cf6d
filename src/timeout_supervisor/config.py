"""Environment configuration.

Environment variables:
    TSUP_HZ: scheduler ticks per second
        - default 100 (one tick = 10ms)
        - clamped to 1..1000, invalid values fall back to the default
        - the timeout is padded by one tick, each escalation settle lasts two

    TSUP_TIMEOUT_STATUS: exit status when the command hit the timeout
        - default 0 (same as an early exit)
        - integer 0..255, invalid values fall back to the default

    TSUP_LOG_LEVEL: log level of the timeout_supervisor logger on stderr
        - DEBUG / INFO / WARNING (default) / ERROR

    TSUP_LOG_DEBUG: debug log to a file
        - true/1/yes/on = DEBUG log to a temp file instead of stderr
        - false/0/no = off (default)
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

__all__ = ["Config", "load_config", "get_config", "reload_config", "DEFAULT_HZ"]

DEFAULT_HZ = 100
MIN_HZ = 1
MAX_HZ = 1000

_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_hz(value: str | None) -> int:
    if not value:
        return DEFAULT_HZ
    try:
        hz = int(value)
    except ValueError:
        return DEFAULT_HZ
    return max(MIN_HZ, min(hz, MAX_HZ))


def _parse_exit_status(value: str | None) -> int:
    if not value:
        return 0
    try:
        status = int(value)
    except ValueError:
        return 0
    if not 0 <= status <= 255:
        return 0
    return status


def _parse_log_level(value: str | None) -> int:
    if not value:
        return logging.WARNING
    return _LOG_LEVELS.get(value.strip().upper(), logging.WARNING)


def _generate_log_file_path() -> str:
    """Build a timestamped log file path under the system temp directory."""
    log_dir = Path(tempfile.gettempdir()) / "timeout-supervisor"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"tsup_debug_{timestamp}_{os.getpid()}.log"

    return str(log_file.resolve())


@dataclass
class Config:
    """Supervisor configuration.

    Attributes:
        hz: Scheduler ticks per second
        timeout_status: Exit status of the timeout path
        log_level: Level of the package logger
        log_debug: Debug log to a temp file
        log_file: Log file path (set when log_debug is on)
    """

    hz: int = DEFAULT_HZ
    timeout_status: int = 0
    log_level: int = logging.WARNING
    log_debug: bool = False
    log_file: str | None = None

    @property
    def tick(self) -> float:
        """Length of one scheduler tick in seconds."""
        return 1.0 / self.hz

    def __repr__(self) -> str:
        return (
            f"Config(hz={self.hz}, "
            f"timeout_status={self.timeout_status}, "
            f"log_level={logging.getLevelName(self.log_level)}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def load_config() -> Config:
    """Load configuration from the environment."""
    log_debug = _parse_bool(os.environ.get("TSUP_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    return Config(
        hz=_parse_hz(os.environ.get("TSUP_HZ")),
        timeout_status=_parse_exit_status(os.environ.get("TSUP_TIMEOUT_STATUS")),
        log_level=_parse_log_level(os.environ.get("TSUP_LOG_LEVEL")),
        log_debug=log_debug,
        log_file=log_file,
    )


# Global instance, created on first use
_config: Config | None = None


def get_config() -> Config:
    """Return the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload the global configuration (used by tests)."""
    global _config
    _config = load_config()
    return _config
