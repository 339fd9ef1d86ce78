"""Configuration Management - Harness Settings.

Provides environment-aware configuration with validation. Every setting can
be overridden with a ``TESTJARS_`` prefixed environment variable or a
``.env`` file, e.g. ``TESTJARS_PORT_TIMEOUT_SECONDS=30``.
"""

import os
import shutil
from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

#: System property naming the file the child writes its port to
DEFAULT_PORT_FILE_PROPERTY = "PORTFILE"

#: System property requesting the listener port (``0`` = ephemeral)
DEFAULT_PORT_PROPERTY = "server.port"

#: Conventional JDWP listening port
DEFAULT_DEBUG_PORT = 5005


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: str = Field(default="console", description="Log format: json or console")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only json and console renderers exist."""
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v


class HarnessSettings(BaseSettings):
    """Main harness settings.

    Loads from environment variables and .env file.

    Usage:
        from testjars.core.config import get_settings
        settings = get_settings()
    """

    model_config = SettingsConfigDict(
        env_prefix="TESTJARS_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    java_executable: Path | None = Field(
        default=None,
        description="Executable used to launch children (default: JAVA_HOME or PATH)",
    )
    port_file_property: str = Field(
        default=DEFAULT_PORT_FILE_PROPERTY,
        min_length=1,
        description="System property carrying the port file path",
    )
    port_property: str = Field(
        default=DEFAULT_PORT_PROPERTY,
        min_length=1,
        description="System property requesting the listener port",
    )
    port_timeout_seconds: Annotated[float, Field(gt=0)] | None = Field(
        default=120.0,
        description="Maximum time to wait for a port, None waits forever",
    )
    termination_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Grace period before a child is killed"
    )
    debug_port: int = Field(
        default=DEFAULT_DEBUG_PORT, ge=1, le=65535, description="JDWP listening port"
    )
    debug_suspend: bool = Field(
        default=True, description="Suspend the child until a debugger attaches"
    )
    resource_packages: list[str] = Field(
        default_factory=lambda: ["testjars.resources"],
        description="Packages searched, in order, for bundled resources",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def resolve_java_executable(self) -> str | None:
        """Find the executable used to launch children.

        Order: ``java_executable`` setting, ``$JAVA_HOME/bin/java``, ``java``
        on ``PATH``.

        Returns:
            Absolute path to the executable, or None if none was found

        """
        if self.java_executable is not None:
            return str(self.java_executable)

        java_home = os.environ.get("JAVA_HOME")
        if java_home:
            name = "java.exe" if os.name == "nt" else "java"
            candidate = Path(java_home) / "bin" / name
            if candidate.is_file():
                return str(candidate)

        return shutil.which("java")


# Global settings instance (singleton pattern)
_settings: HarnessSettings | None = None


def get_settings(force_reload: bool = False) -> HarnessSettings:
    """Get harness settings (singleton).

    Args:
        force_reload: Force reload settings from environment

    Returns:
        HarnessSettings instance

    """
    global _settings
    if _settings is None or force_reload:
        _settings = HarnessSettings()
    return _settings
