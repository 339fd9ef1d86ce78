"""Tests for the testjars command line interface."""

import argparse
import logging
from unittest.mock import patch

import pytest

from testjars.cli.base import parse_system_property, setup_logging
from testjars.core.config import get_settings
from testjars.cli.main import SUBCOMMANDS, main


@pytest.fixture(autouse=True)
def _reset_logging(reset_structlog):
    yield


class TestMain:
    """Tests for subcommand dispatch."""

    def test_no_arguments_prints_usage(self, capsys):
        """Usage lists every subcommand."""
        assert main([]) == 0
        output = capsys.readouterr().out
        for name in SUBCOMMANDS:
            assert name in output

    def test_version(self, capsys):
        """--version prints the package version."""
        from testjars import __version__

        assert main(["--version"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        """Unknown commands exit with status 2."""
        assert main(["explode"]) == 2
        assert "Unknown command 'explode'" in capsys.readouterr().out


class TestParseSystemProperty:
    """Tests for -D KEY=VALUE parsing."""

    def test_key_value(self):
        """Values may contain '='."""
        assert parse_system_property("a=b=c") == ("a", "b=c")

    def test_bare_key(self):
        """A bare key maps to an empty value."""
        assert parse_system_property("flag") == ("flag", "")

    def test_empty_key(self):
        """A missing key is an argument error."""
        with pytest.raises(argparse.ArgumentTypeError):
            parse_system_property("=value")


class TestCommandSubcommand:
    """Tests for 'testjars command'."""

    def test_prints_command_line(self, fake_java, capsys):
        """The command line is printed without launching."""
        code = main(
            [
                "command",
                "--java",
                str(fake_java),
                "-m",
                "example.Main",
                "-D",
                "spring.profiles.active=test",
                "--debug",
                "--no-suspend",
            ]
        )
        output = capsys.readouterr().out
        assert code == 0
        assert output.startswith(str(fake_java))
        assert "suspend=n" in output
        assert "-Dspring.profiles.active=test" in output
        assert "-Dserver.port=0" in output
        assert output.strip().endswith("example.Main")

    def test_missing_classpath_file(self, fake_java, temp_dir, capsys):
        """Resolution errors are reported with a non-zero exit code."""
        code = main(
            ["command", "--java", str(fake_java), "-cp", str(temp_dir / "missing.jar")]
        )
        assert code == 1
        assert "missing.jar" in capsys.readouterr().out


class TestRunSubcommand:
    """Tests for 'testjars run'."""

    def test_reports_port_and_exit(self, fake_java, capsys):
        """The discovered port and the exit code are printed."""
        code = main(
            ["run", "--java", str(fake_java), "-D", "fake.mode=write-and-exit", "--timeout", "20"]
        )
        output = capsys.readouterr().out
        assert code == 0
        assert "port 12345" in output
        assert "exited with code 0" in output

    def test_failure_before_port(self, fake_java, capsys):
        """A child that dies early gives a non-zero exit code."""
        code = main(["run", "--java", str(fake_java), "-D", "fake.mode=fail"])
        assert code == 1
        assert "exited with code 3" in capsys.readouterr().out


class TestLoggingSettings:
    """Tests for logging configured from settings."""

    def test_level_from_environment(self, fake_java, monkeypatch):
        """TESTJARS_LOGGING__LOG_LEVEL sets the CLI log level."""
        monkeypatch.setenv("TESTJARS_LOGGING__LOG_LEVEL", "ERROR")
        get_settings(force_reload=True)

        assert main(["command", "--java", str(fake_java)]) == 0
        assert logging.root.level == logging.ERROR

    def test_verbose_overrides_level(self, fake_java, monkeypatch):
        """-v forces DEBUG whatever the configured level."""
        monkeypatch.setenv("TESTJARS_LOGGING__LOG_LEVEL", "ERROR")
        get_settings(force_reload=True)

        assert main(["command", "--java", str(fake_java), "-v"]) == 0
        assert logging.root.level == logging.DEBUG

    @pytest.mark.parametrize(("log_format", "json_format"), [("json", True), ("console", False)])
    def test_format_from_environment(self, monkeypatch, log_format, json_format):
        """TESTJARS_LOGGING__LOG_FORMAT selects the renderer."""
        monkeypatch.setenv("TESTJARS_LOGGING__LOG_FORMAT", log_format)
        get_settings(force_reload=True)

        with patch("testjars.cli.base.configure_logging") as configure:
            setup_logging()

        configure.assert_called_once_with(log_level="INFO", json_format=json_format)
