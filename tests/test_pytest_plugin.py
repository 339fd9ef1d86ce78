"""Tests for the testjars pytest plugin fixtures."""

from testjars.core.harness import ExecHarness, ProcessRegistry, ProcessState


class TestFixtures:
    """Tests for process_registry and exec_harness."""

    def test_process_registry_is_shared(self, process_registry):
        """The session registry is a ProcessRegistry."""
        assert isinstance(process_registry, ProcessRegistry)

    def test_exec_harness_uses_session_registry(self, exec_harness, process_registry, fake_java):
        """Harnesses from the factory register with the session registry."""
        harness = exec_harness(lambda builder: builder.executable(fake_java))
        assert isinstance(harness, ExecHarness)
        assert harness.registry is process_registry
        assert harness.get_port() == 12345
        assert harness.state is ProcessState.RUNNING

    def test_exec_harness_without_configure(self, exec_harness):
        """The factory works without a configure callable."""
        harness = exec_harness()
        assert harness.state is ProcessState.NOT_STARTED
