"""Tests for testjars.core.config module."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from testjars.core.config import HarnessSettings, LoggingConfig, get_settings


class TestHarnessSettings:
    """Tests for HarnessSettings."""

    def test_defaults(self):
        """Defaults match the port file contract."""
        settings = HarnessSettings()
        assert settings.port_file_property == "PORTFILE"
        assert settings.port_property == "server.port"
        assert settings.port_timeout_seconds == 120.0
        assert settings.debug_port == 5005
        assert settings.debug_suspend is True
        assert settings.resource_packages == ["testjars.resources"]
        assert settings.logging.log_format == "console"

    def test_environment_override(self, monkeypatch):
        """TESTJARS_ variables override defaults."""
        monkeypatch.setenv("TESTJARS_PORT_TIMEOUT_SECONDS", "30")
        monkeypatch.setenv("TESTJARS_DEBUG_PORT", "8000")
        monkeypatch.setenv("TESTJARS_LOGGING__LOG_LEVEL", "DEBUG")
        settings = HarnessSettings()
        assert settings.port_timeout_seconds == 30.0
        assert settings.debug_port == 8000
        assert settings.logging.log_level.value == "DEBUG"

    def test_unbounded_timeout(self):
        """A None timeout waits forever."""
        assert HarnessSettings(port_timeout_seconds=None).port_timeout_seconds is None

    @pytest.mark.parametrize("field, value", [
        ("port_timeout_seconds", 0),
        ("debug_port", 70000),
        ("port_file_property", ""),
    ])
    def test_validation(self, field, value):
        """Out of range values are rejected."""
        with pytest.raises(ValidationError):
            HarnessSettings(**{field: value})

    def test_log_format_validation(self):
        """Only json and console are accepted."""
        assert LoggingConfig(log_format="JSON").log_format == "json"
        with pytest.raises(ValidationError):
            LoggingConfig(log_format="xml")

    def test_get_settings_singleton(self):
        """get_settings caches until reloaded."""
        first = get_settings()
        assert get_settings() is first
        assert get_settings(force_reload=True) is not first


class TestResolveJavaExecutable:
    """Tests for locating the java executable."""

    def test_explicit_setting(self):
        """The setting wins."""
        assert HarnessSettings(java_executable=Path("/opt/jdk/bin/java")).resolve_java_executable() == str(
            Path("/opt/jdk/bin/java")
        )

    def test_java_home(self, temp_dir, monkeypatch):
        """JAVA_HOME/bin/java is used when present."""
        java = temp_dir / "bin" / "java"
        java.parent.mkdir()
        java.write_text("")
        monkeypatch.setenv("JAVA_HOME", str(temp_dir))
        assert HarnessSettings().resolve_java_executable() == str(java)

    def test_path_lookup(self, monkeypatch):
        """Falls back to java on PATH."""
        monkeypatch.delenv("JAVA_HOME", raising=False)
        monkeypatch.setattr("shutil.which", lambda name: "/usr/bin/java")
        assert HarnessSettings().resolve_java_executable() == "/usr/bin/java"
