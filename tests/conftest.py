"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
import time
from pathlib import Path

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Put src on the path for runs without an editable install
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

FIXTURES_DIR = PROJECT_ROOT / "tests" / "fixtures"
FAKE_CHILD_PATH = FIXTURES_DIR / "fake_child.py"


@pytest.fixture
def fake_child_path() -> Path:
    """Path to the fake child script."""
    return FAKE_CHILD_PATH


@pytest.fixture
def signal_log(tmp_path: Path) -> Path:
    """File the fake child writes received signal names to."""
    return tmp_path / "signals.log"


def read_signal_log(path: Path) -> list[str]:
    """Lines of a fake child signal log (empty if it was never written)."""
    if not path.exists():
        return []
    return [line for line in path.read_text(encoding="utf-8").splitlines() if line]


def wait_for_file(path: Path, timeout: float = 5.0) -> bool:
    """Poll until ``path`` exists."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if path.exists():
            return True
        time.sleep(0.01)
    return path.exists()
