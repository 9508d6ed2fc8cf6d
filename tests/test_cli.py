"""Command line parsing tests."""

from __future__ import annotations

import pytest

from timeout_supervisor import __version__
from timeout_supervisor.cli import Invocation, parse_args, parse_timeout
from timeout_supervisor.errors import ConfigurationError, ExitStatus


class TestParseTimeout:
    """The seconds argument."""

    @pytest.mark.parametrize("value, expected", [("2", 2.0), ("0.25", 0.25), ("1e-3", 0.001)])
    def test_valid(self, value: str, expected: float):
        assert parse_timeout(value) == expected

    @pytest.mark.parametrize("value", ["0", "0.0", "-1", "-0.5", "abc", "", "nan", "inf"])
    def test_invalid(self, value: str):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_timeout(value)
        assert exc_info.value.exit_status == ExitStatus.BAD_TIMEOUT
        assert "timeout must be > 0.0" in exc_info.value.message


class TestParseArgs:
    """Full command lines."""

    def test_command_and_args(self):
        invocation = parse_args(["2.5", "sleep", "5"], prog="tsup")
        assert invocation == Invocation(timeout=2.5, argv=["sleep", "5"], dry_run=False)

    def test_command_without_args(self):
        assert parse_args(["1", "true"]).argv == ["true"]

    def test_command_options_are_not_ours(self):
        """Options after the command belong to the command."""
        invocation = parse_args(["1", "ls", "-l", "-n", "--version"])
        assert invocation.argv == ["ls", "-l", "-n", "--version"]
        assert invocation.dry_run is False

    def test_dry_run(self):
        assert parse_args(["-n", "1", "true"]).dry_run is True
        assert parse_args(["--dry-run", "1", "true"]).dry_run is True

    def test_negative_timeout_is_a_timeout_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_args(["-1", "true"])
        assert exc_info.value.exit_status == ExitStatus.BAD_TIMEOUT

    @pytest.mark.parametrize("argv", [[], ["5"], ["-x", "5", "true"]])
    def test_usage_error(self, argv, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(argv, prog="tsup")
        assert exc_info.value.code == ExitStatus.USAGE
        assert "usage: tsup" in capsys.readouterr().err

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["--version"], prog="tsup")
        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == f"tsup {__version__}"

    def test_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(["-h"], prog="tsup")
        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "seconds" in out
        assert "SIGKILL" in out
