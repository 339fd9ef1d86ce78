"""Process Supervisor.

Starts one child process from a CommandLineSpec, registers it for guaranteed
destruction and observes its completion from a background thread.

States:
    NOT_STARTED -> RUNNING -> COMPLETED_SUCCESS | COMPLETED_FAILURE

A spawn failure moves straight from NOT_STARTED to COMPLETED_FAILURE and is
recorded as a ProcessSpawnError; a non-zero exit is recorded as a
ProcessFailureError. Either stays available through ``failure`` so that
whoever asks next (usually the port wait) sees it.
"""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import IO, Any

from testjars.core.exceptions import (
    ProcessError,
    ProcessFailureError,
    ProcessSpawnError,
)
from testjars.core.harness.process_registry import (
    ProcessRegistry,
    get_default_registry,
)
from testjars.core.harness.types import CommandLineSpec, ProcessState
from testjars.utils.logger import get_logger

logger = get_logger(__name__)

CompletionListener = Callable[["ProcessSupervisor"], None]


class ProcessSupervisor:
    """Supervises a single child process.

    Args:
        command_line: Invocation to run
        registry: Registry that guarantees destruction, defaults to the
            process-wide registry
        stdout: Passed to ``subprocess.Popen``; None inherits the parent's
        stderr: Passed to ``subprocess.Popen``; None inherits the parent's
        env: Environment for the child, None inherits the parent's
        cwd: Working directory for the child

    """

    def __init__(
        self,
        command_line: CommandLineSpec,
        registry: ProcessRegistry | None = None,
        stdout: int | IO[Any] | None = None,
        stderr: int | IO[Any] | None = None,
        env: Mapping[str, str] | None = None,
        cwd: str | Path | None = None,
    ) -> None:
        self.command_line = command_line
        self.registry = registry if registry is not None else get_default_registry()
        self._popen_kwargs: dict[str, Any] = {
            "stdout": stdout,
            "stderr": stderr,
            "env": dict(env) if env is not None else None,
            "cwd": cwd,
        }
        self._condition = threading.Condition()
        self._state = ProcessState.NOT_STARTED
        self._process: subprocess.Popen[Any] | None = None
        self._exit_code: int | None = None
        self._failure: ProcessError | None = None
        self._destroyed = False
        self._listeners: list[CompletionListener] = []

    @property
    def state(self) -> ProcessState:
        with self._condition:
            return self._state

    @property
    def pid(self) -> int | None:
        with self._condition:
            return self._process.pid if self._process else None

    @property
    def exit_code(self) -> int | None:
        with self._condition:
            return self._exit_code

    @property
    def failure(self) -> ProcessError | None:
        """Why the process failed, once it has."""
        with self._condition:
            return self._failure

    def start(self) -> None:
        """Spawn the process; calling it again is a no-op.

        Raises:
            ProcessSpawnError: If the operating system could not launch it

        """
        with self._condition:
            if self._state is not ProcessState.NOT_STARTED:
                return
            self._state = ProcessState.RUNNING

        logger.debug("Executing command", argv=self.command_line.argv)
        try:
            process = self.registry.spawn(self.command_line.argv, **self._popen_kwargs)
        except OSError as ex:
            failure = ProcessSpawnError(
                f"Failed to run the command: {ex}",
                error_code="SPAWN_FAILED",
                context={"executable": self.command_line.executable},
            )
            self._complete(None, failure)
            raise failure from ex

        with self._condition:
            self._process = process

        observer = threading.Thread(
            target=self._observe,
            args=(process,),
            name=f"testjars-process-{process.pid}",
            daemon=True,
        )
        observer.start()
        logger.info("Process started", pid=process.pid)

    def _observe(self, process: subprocess.Popen[Any]) -> None:
        exit_code = process.wait()
        self.registry.unregister_process(process)
        failure = None
        if exit_code != 0:
            failure = ProcessFailureError(
                f"Process {process.pid} exited with code {exit_code}",
                exit_code=exit_code,
                context={"pid": process.pid},
            )
        self._complete(exit_code, failure)

    def _complete(self, exit_code: int | None, failure: ProcessError | None) -> None:
        with self._condition:
            self._exit_code = exit_code
            self._failure = failure
            self._state = (
                ProcessState.COMPLETED_FAILURE if failure else ProcessState.COMPLETED_SUCCESS
            )
            listeners, self._listeners = self._listeners, []
            destroyed = self._destroyed
            self._condition.notify_all()

        if failure is not None and not destroyed:
            logger.warning("Process failed", exit_code=exit_code, error=failure.message)
        else:
            logger.debug("Process completed", exit_code=exit_code)

        for listener in listeners:
            try:
                listener(self)
            except Exception as ex:
                logger.warning("Completion listener failed", error=str(ex))

    def add_completion_listener(self, listener: CompletionListener) -> None:
        """Call ``listener(self)`` once the process completes.

        A listener added after completion is called immediately.
        """
        with self._condition:
            if not self._state.is_completed:
                self._listeners.append(listener)
                return
        listener(self)

    def remove_completion_listener(self, listener: CompletionListener) -> None:
        with self._condition:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def wait_for_completion(self, timeout: float | None = None) -> bool:
        """Block until the process has completed.

        Returns:
            True if it completed, False if the timeout expired first

        """
        with self._condition:
            return self._condition.wait_for(lambda: self._state.is_completed, timeout)

    def destroy(self) -> None:
        """Forcibly terminate the process tree. Never raises."""
        with self._condition:
            process = self._process
            self._destroyed = True
        if process is None:
            return
        try:
            self.registry.destroy(process)
        except Exception as ex:
            logger.warning("Error destroying process", pid=process.pid, error=str(ex))
