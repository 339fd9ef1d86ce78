"""pytest plugin providing harness fixtures.

Registered through the ``pytest11`` entry point, so installing testjars
makes the fixtures available to every test suite.

Fixtures:
    process_registry: session-wide registry; every child still alive at the
        end of the session is terminated
    exec_harness: factory building harnesses that are stopped at teardown

Example:
    def test_greeting(exec_harness):
        harness = exec_harness(lambda b: b.classpath(lambda cp: cp.files("app.jar")))
        port = harness.get_port()
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any

import pytest

from testjars.core.harness import ExecHarness, ExecHarnessBuilder, ProcessRegistry
from testjars.utils.logger import get_logger

logger = get_logger(__name__)

HarnessFactory = Callable[..., ExecHarness]


def pytest_configure(config: pytest.Config) -> None:
    """Register the testjars marker."""
    config.addinivalue_line(
        "markers", "testjars: mark test as launching JVM applications"
    )


@pytest.fixture(scope="session")
def process_registry() -> Generator[ProcessRegistry, None, None]:
    """Registry shared by every harness of the session.

    Yields:
        ProcessRegistry shut down when the session ends
    """
    registry = ProcessRegistry()
    yield registry
    errors = registry.shutdown_all()
    for error in errors:
        logger.warning("Error shutting down process", error=str(error))


@pytest.fixture
def exec_harness(
    process_registry: ProcessRegistry,
) -> Generator[HarnessFactory, None, None]:
    """Build harnesses that are stopped when the test finishes.

    The factory takes an optional ``configure(builder)`` callable and returns
    the built, not yet started, harness.

    Yields:
        Harness factory
    """
    harnesses: list[ExecHarness] = []

    def factory(configure: Callable[[ExecHarnessBuilder], Any] | None = None) -> ExecHarness:
        builder = ExecHarnessBuilder().registry(process_registry)
        if configure is not None:
            configure(builder)
        harness = builder.build()
        harnesses.append(harness)
        return harness

    yield factory

    for harness in reversed(harnesses):
        harness.stop()
