"""Process Registry - guaranteed destruction of child processes.

Every child spawned by a harness is registered here at the moment it is
spawned. The registry is shared by all harnesses of a test run and is shut
down explicitly by whoever owns the run (the pytest plugin's session
fixture, the CLI), terminating anything still alive.
"""

from __future__ import annotations

import atexit
import subprocess
import threading
from collections.abc import Sequence
from typing import Any

import psutil

from testjars.core.config import get_settings
from testjars.utils.logger import get_logger

logger = get_logger(__name__)


def terminate_process_tree(process: subprocess.Popen[Any], timeout: float) -> None:
    """Terminate a process and all of its children, then kill survivors.

    The root is signalled and reaped through its Popen object so that a
    completion observer blocked in ``Popen.wait()`` still sees the real
    return code.

    Args:
        process: Root process
        timeout: Grace period after SIGTERM before SIGKILL

    """
    try:
        children = psutil.Process(process.pid).children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        children = []

    for child in children:
        try:
            child.terminate()
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            logger.debug("child process already gone or inaccessible", error=str(e))

    try:
        process.terminate()
        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait(timeout=timeout)
    except ProcessLookupError as e:
        logger.debug("main process already gone", pid=process.pid, error=str(e))

    _, alive = psutil.wait_procs(children, timeout=timeout)
    for survivor in alive:
        try:
            survivor.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            logger.debug("survivor process already gone or inaccessible", error=str(e))

    logger.debug("terminated process tree", pid=process.pid, children_count=len(children))


class ProcessRegistry:
    """Lock-protected set of live child processes.

    Args:
        termination_timeout: Grace period before children are killed,
            defaults to the ``termination_timeout_seconds`` setting

    """

    def __init__(self, termination_timeout: float | None = None) -> None:
        if termination_timeout is None:
            termination_timeout = get_settings().termination_timeout_seconds
        self.termination_timeout = termination_timeout
        self._lock = threading.Lock()
        self._processes: list[subprocess.Popen[Any]] = []
        self._exit_hook_installed = False

    def spawn(self, argv: Sequence[str], **popen_kwargs: Any) -> subprocess.Popen[Any]:
        """Start a process and register it before anyone else can observe it.

        Raises:
            OSError: If the operating system could not start the process

        """
        with self._lock:
            process = subprocess.Popen(list(argv), **popen_kwargs)
            self._processes.append(process)
        logger.debug("registered process", pid=process.pid)
        return process

    def register_process(self, process: subprocess.Popen[Any]) -> None:
        with self._lock:
            if process not in self._processes:
                self._processes.append(process)

    def unregister_process(self, process: subprocess.Popen[Any]) -> bool:
        """Forget a process without terminating it.

        Returns:
            True if the process was registered

        """
        with self._lock:
            if process in self._processes:
                self._processes.remove(process)
                return True
            return False

    def __len__(self) -> int:
        with self._lock:
            return len(self._processes)

    def __contains__(self, process: object) -> bool:
        with self._lock:
            return process in self._processes

    def destroy(self, process: subprocess.Popen[Any]) -> None:
        """Unregister and forcibly terminate one process."""
        self.unregister_process(process)
        if process.poll() is None:
            terminate_process_tree(process, self.termination_timeout)

    def shutdown_all(self) -> list[Exception]:
        """Terminate every registered process, continuing past failures.

        Returns:
            Errors raised while terminating individual processes

        """
        with self._lock:
            processes, self._processes = self._processes, []

        errors: list[Exception] = []
        for process in processes:
            try:
                if process.poll() is None:
                    terminate_process_tree(process, self.termination_timeout)
            except Exception as e:
                logger.warning("error destroying process", pid=process.pid, error=str(e))
                errors.append(e)
        if processes:
            logger.debug("registry shut down", count=len(processes))
        return errors

    def shutdown_on_exit(self) -> None:
        """Opt in to ``shutdown_all`` when the interpreter exits."""
        with self._lock:
            if self._exit_hook_installed:
                return
            self._exit_hook_installed = True
        atexit.register(self.shutdown_all)

    def __enter__(self) -> ProcessRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown_all()


_default_registry: ProcessRegistry | None = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> ProcessRegistry:
    """Registry used by harnesses that were not given one (singleton)."""
    global _default_registry
    with _default_registry_lock:
        if _default_registry is None:
            _default_registry = ProcessRegistry()
        return _default_registry
