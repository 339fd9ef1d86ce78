"""Tests for testjars.core.harness.supervisor module."""

import sys
import threading

import pytest

from testjars.core.exceptions import ProcessFailureError, ProcessSpawnError
from testjars.core.harness import (
    CommandLineSpec,
    ProcessState,
    ProcessSupervisor,
    get_default_registry,
)


def python(code: str) -> CommandLineSpec:
    return CommandLineSpec(sys.executable, ("-c", code))


class TestProcessSupervisor:
    """Tests for ProcessSupervisor."""

    def test_uses_given_empty_registry(self, registry):
        """An empty registry passed in is the one the child is tracked by."""
        assert len(registry) == 0
        supervisor = ProcessSupervisor(python("import time; time.sleep(30)"), registry=registry)
        assert supervisor.registry is registry

        supervisor.start()
        try:
            assert len(registry) == 1
        finally:
            supervisor.destroy()

    def test_defaults_to_shared_registry(self):
        """Without a registry the module default is used."""
        supervisor = ProcessSupervisor(python("pass"))
        assert supervisor.registry is get_default_registry()

    def test_successful_exit(self, registry):
        """Exit code 0 completes successfully."""
        supervisor = ProcessSupervisor(python("pass"), registry=registry)
        assert supervisor.state is ProcessState.NOT_STARTED

        supervisor.start()

        assert supervisor.wait_for_completion(timeout=10)
        assert supervisor.state is ProcessState.COMPLETED_SUCCESS
        assert supervisor.exit_code == 0
        assert supervisor.failure is None

    def test_failed_exit(self, registry):
        """A non-zero exit is recorded as ProcessFailureError."""
        supervisor = ProcessSupervisor(python("raise SystemExit(7)"), registry=registry)
        supervisor.start()

        assert supervisor.wait_for_completion(timeout=10)
        assert supervisor.state is ProcessState.COMPLETED_FAILURE
        assert isinstance(supervisor.failure, ProcessFailureError)
        assert supervisor.failure.exit_code == 7
        assert supervisor.exit_code == 7

    def test_completed_process_is_unregistered(self, registry):
        """The registry forgets processes once they exit."""
        supervisor = ProcessSupervisor(python("pass"), registry=registry)
        supervisor.start()
        supervisor.wait_for_completion(timeout=10)
        assert len(registry) == 0

    def test_spawn_failure(self, registry, temp_dir):
        """An executable that cannot run is a distinct failure."""
        supervisor = ProcessSupervisor(
            CommandLineSpec(str(temp_dir / "missing-java")), registry=registry
        )
        with pytest.raises(ProcessSpawnError) as info:
            supervisor.start()

        assert isinstance(info.value.__cause__, OSError)
        assert supervisor.state is ProcessState.COMPLETED_FAILURE
        assert supervisor.failure is info.value
        assert supervisor.exit_code is None
        assert supervisor.wait_for_completion(timeout=0)

    def test_start_is_idempotent(self, registry):
        """Starting twice launches a single process."""
        supervisor = ProcessSupervisor(python("import time; time.sleep(30)"), registry=registry)
        supervisor.start()
        pid = supervisor.pid
        supervisor.start()
        assert supervisor.pid == pid
        assert len(registry) == 1
        supervisor.destroy()

    def test_listener_called_on_completion(self, registry):
        """Completion listeners are called once with the supervisor."""
        called = threading.Event()
        seen = []

        def listener(completed):
            seen.append(completed.exit_code)
            called.set()

        supervisor = ProcessSupervisor(python("raise SystemExit(2)"), registry=registry)
        supervisor.add_completion_listener(listener)
        supervisor.start()

        assert called.wait(timeout=10)
        assert seen == [2]

    def test_listener_added_after_completion_runs_immediately(self, registry):
        """Late listeners do not miss the completion."""
        supervisor = ProcessSupervisor(python("pass"), registry=registry)
        supervisor.start()
        supervisor.wait_for_completion(timeout=10)

        seen = []
        supervisor.add_completion_listener(seen.append)
        assert seen == [supervisor]

    def test_removed_listener_not_called(self, registry):
        """Removed listeners are not notified."""
        seen = []
        supervisor = ProcessSupervisor(python("pass"), registry=registry)
        supervisor.add_completion_listener(seen.append)
        supervisor.remove_completion_listener(seen.append)
        supervisor.start()
        supervisor.wait_for_completion(timeout=10)
        assert seen == []

    def test_failing_listener_does_not_break_others(self, registry):
        """An exception in one listener is logged and the rest still run."""
        called = threading.Event()

        def broken(completed):
            raise RuntimeError("listener bug")

        supervisor = ProcessSupervisor(python("pass"), registry=registry)
        supervisor.add_completion_listener(broken)
        supervisor.add_completion_listener(lambda completed: called.set())
        supervisor.start()

        assert called.wait(timeout=10)

    def test_wait_times_out_while_running(self, registry):
        """wait_for_completion returns False while the process runs."""
        supervisor = ProcessSupervisor(python("import time; time.sleep(30)"), registry=registry)
        supervisor.start()
        try:
            assert supervisor.wait_for_completion(timeout=0.1) is False
            assert supervisor.state is ProcessState.RUNNING
        finally:
            supervisor.destroy()

    def test_destroy_terminates(self, registry):
        """destroy() terminates the process, which then completes."""
        supervisor = ProcessSupervisor(python("import time; time.sleep(30)"), registry=registry)
        supervisor.start()

        supervisor.destroy()

        assert supervisor.wait_for_completion(timeout=10)
        assert supervisor.state is ProcessState.COMPLETED_FAILURE
        assert len(registry) == 0

    def test_destroy_before_start(self, registry):
        """destroy() without a process does nothing."""
        ProcessSupervisor(python("pass"), registry=registry).destroy()
