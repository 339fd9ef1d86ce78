"""Port Discovery Watcher.

Waits for a child process to publish the port it bound by writing it to a
port file. The parent directory of the port file is watched with watchdog;
any event there wakes the waiter, which re-reads the file. The first read
happens only after the watch is active so that a port written in between
is never missed.

States:
    AWAITING_FILE -> FILE_EXISTS_BUT_EMPTY -> PORT_AVAILABLE
    any -> FAILED (corrupt content, timeout or cancellation)
"""

from __future__ import annotations

import re
import threading
import time
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from testjars.core.config import get_settings
from testjars.core.exceptions import (
    PortDiscoveryCancelledError,
    PortDiscoveryError,
    PortDiscoveryTimeoutError,
    PortFileCorruptError,
)
from testjars.core.harness.types import PortFile, PortWatchState
from testjars.utils.logger import get_logger

logger = get_logger(__name__)

_PORT_PATTERN = re.compile(r"[+-]?[0-9]+")

# Marks a timeout that should come from settings rather than "wait forever"
FROM_SETTINGS = object()


class _ChangeHandler(FileSystemEventHandler):
    """Wakes the waiter on any change in the watched directory."""

    def __init__(self, changed: threading.Event) -> None:
        super().__init__()
        self._changed = changed

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._changed.set()


class PortDiscoveryWatcher:
    """Blocks until a port file holds a port.

    Args:
        port_file: Port file to wait for
        timeout: Seconds to wait before giving up; None waits until
            cancelled. Defaults to the ``port_timeout_seconds`` setting.

    Example:
        >>> watcher = PortDiscoveryWatcher(PortFile())
        >>> port = watcher.get_application_port()

    """

    def __init__(self, port_file: PortFile | Path | str, timeout: object = FROM_SETTINGS) -> None:
        if not isinstance(port_file, PortFile):
            port_file = PortFile(Path(port_file))
        self.port_file = port_file
        if timeout is FROM_SETTINGS:
            timeout = get_settings().port_timeout_seconds
        self.timeout: float | None = timeout  # type: ignore[assignment]
        self._lock = threading.Lock()
        self._changed = threading.Event()
        self._state = PortWatchState.AWAITING_FILE
        self._cancel_reason: str | None = None

    @property
    def state(self) -> PortWatchState:
        with self._lock:
            return self._state

    def _set_state(self, state: PortWatchState) -> None:
        with self._lock:
            self._state = state

    def cancel(self, reason: str = "cancelled") -> None:
        """Stop waiting; the waiter makes one final read before giving up.

        Safe to call from any thread, any number of times.
        """
        with self._lock:
            if self._cancel_reason is None:
                self._cancel_reason = reason
        self._changed.set()

    def _read_port(self) -> int | None:
        """Read the port file.

        Returns:
            The port, or None while the file is missing or blank

        Raises:
            PortFileCorruptError: If the content is not an integer
            PortDiscoveryError: If the port file cannot be read

        """
        try:
            content = self.port_file.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            self._set_state(PortWatchState.AWAITING_FILE)
            return None
        except UnicodeDecodeError as ex:
            self._set_state(PortWatchState.FAILED)
            raise PortFileCorruptError(
                f"Port file {self.port_file} is not valid text",
                error_code="PORT_FILE_CORRUPT",
                context={"port_file": str(self.port_file)},
            ) from ex
        except OSError as ex:
            self._set_state(PortWatchState.FAILED)
            raise PortDiscoveryError(
                f"Unable to read port file {self.port_file}",
                error_code="PORT_FILE_UNREADABLE",
                context={"port_file": str(self.port_file), "error": str(ex)},
            ) from ex

        if not content:
            self._set_state(PortWatchState.FILE_EXISTS_BUT_EMPTY)
            return None

        if not _PORT_PATTERN.fullmatch(content):
            self._set_state(PortWatchState.FAILED)
            raise PortFileCorruptError(
                f"Port file {self.port_file} does not contain a port",
                error_code="PORT_FILE_CORRUPT",
                context={"port_file": str(self.port_file), "content": content},
            )

        self._set_state(PortWatchState.PORT_AVAILABLE)
        return int(content)

    def get_application_port(self) -> int:
        """Block until the child has written its port.

        Returns:
            The port read from the port file

        Raises:
            PortFileCorruptError: If the port file content is not an integer
            PortDiscoveryTimeoutError: If the timeout elapsed first
            PortDiscoveryCancelledError: If ``cancel`` was called first
            PortDiscoveryError: If the directory could not be watched or the
                port file could not be read

        """
        directory = self.port_file.path.parent
        observer = Observer()
        try:
            if not directory.is_dir():
                raise FileNotFoundError(f"No such directory: '{directory}'")
            observer.schedule(_ChangeHandler(self._changed), str(directory), recursive=False)
            observer.start()
        except OSError as ex:
            self._set_state(PortWatchState.FAILED)
            raise PortDiscoveryError(
                f"Unable to watch {directory}",
                error_code="WATCH_FAILED",
                context={"directory": str(directory)},
            ) from ex

        logger.debug("Waiting for port file", port_file=str(self.port_file))
        deadline = None if self.timeout is None else time.monotonic() + self.timeout
        try:
            while True:
                self._changed.clear()
                port = self._read_port()
                if port is not None:
                    logger.debug("Port discovered", port=port)
                    return port

                with self._lock:
                    reason = self._cancel_reason
                if reason is not None:
                    self._set_state(PortWatchState.FAILED)
                    raise PortDiscoveryCancelledError(
                        f"Stopped waiting for port file {self.port_file}: {reason}",
                        error_code="PORT_WAIT_CANCELLED",
                        context={"port_file": str(self.port_file), "reason": reason},
                    )

                remaining = None
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        self._set_state(PortWatchState.FAILED)
                        raise PortDiscoveryTimeoutError(
                            f"No port written to {self.port_file} "
                            f"within {self.timeout} seconds",
                            error_code="PORT_TIMEOUT",
                            context={"port_file": str(self.port_file)},
                        )
                self._changed.wait(remaining)
        finally:
            observer.stop()
            observer.join()
