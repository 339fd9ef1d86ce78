"""Process Harness Types.

Dataclasses and type definitions shared by the command line builder, the
process supervisor and the port watcher.
"""

from __future__ import annotations

import os
import shlex
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from testjars.core.config import DEFAULT_DEBUG_PORT
from testjars.core.exceptions import InvalidArgumentError


class ProcessState(Enum):
    """Lifecycle of a supervised child process."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED_SUCCESS = "completed_success"
    COMPLETED_FAILURE = "completed_failure"

    @property
    def is_completed(self) -> bool:
        return self in (ProcessState.COMPLETED_SUCCESS, ProcessState.COMPLETED_FAILURE)


class PortWatchState(Enum):
    """Progress of a port discovery wait."""

    AWAITING_FILE = "awaiting_file"
    FILE_EXISTS_BUT_EMPTY = "file_exists_but_empty"
    PORT_AVAILABLE = "port_available"
    FAILED = "failed"


@dataclass(frozen=True)
class CommandLineSpec:
    """An executable plus its ordered argument vector.

    Attributes:
        executable: Path to the program to run.
        arguments: Arguments passed after the executable.

    """

    executable: str
    arguments: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.executable:
            raise InvalidArgumentError("executable cannot be empty")
        object.__setattr__(self, "arguments", tuple(self.arguments))

    @property
    def argv(self) -> list[str]:
        """Full argument vector, as handed to ``subprocess.Popen``."""
        return [self.executable, *self.arguments]

    def __str__(self) -> str:
        return shlex.join(self.argv)


@dataclass(frozen=True)
class DebugConfig:
    """JDWP debug agent configuration for the child.

    Attributes:
        enabled: Whether the agent argument is added at all.
        port: Port the agent listens on.
        suspend: Hold the child at startup until a debugger attaches.

    """

    enabled: bool = False
    port: int = DEFAULT_DEBUG_PORT
    suspend: bool = True

    def __post_init__(self) -> None:
        if not 0 < self.port <= 65535:
            raise InvalidArgumentError(f"Invalid debug port {self.port}")

    def agent_argument(self) -> str:
        """The ``-agentlib:jdwp=...`` argument."""
        suspend = "y" if self.suspend else "n"
        return (
            "-agentlib:jdwp=transport=dt_socket,server=y,"
            f"suspend={suspend},address=*:{self.port}"
        )


@dataclass
class PortFile:
    """The file a child is contracted to write its bound port to.

    Attributes:
        path: Absolute path of the (not yet existing) port file.

    """

    path: Path = field(default_factory=lambda: PortFile.reserve_path())

    def __post_init__(self) -> None:
        self.path = Path(self.path).absolute()

    @staticmethod
    def reserve_path(directory: Path | None = None) -> Path:
        """Pick a unique port file path in the temp directory.

        The name is reserved by creating the file securely and then removing
        it, so the child is the one that creates it.
        """
        fd, name = tempfile.mkstemp(
            prefix="application-", suffix=".port", dir=directory
        )
        os.close(fd)
        os.unlink(name)
        return Path(name)

    def exists(self) -> bool:
        return self.path.exists()

    def remove(self) -> None:
        """Delete the port file if the child created it."""
        self.path.unlink(missing_ok=True)

    def __str__(self) -> str:
        return str(self.path)


__all__ = [
    "CommandLineSpec",
    "DebugConfig",
    "PortFile",
    "PortWatchState",
    "ProcessState",
]
