"""Process Harness Package.

Launches a JVM application as a child process, waits for it to publish the
port it bound and tears everything down again.

Example usage:
    from testjars.core.harness import ExecHarnessBuilder

    harness = ExecHarnessBuilder().classpath(lambda cp: cp.files("app.jar")).build()
    with harness:
        port = harness.get_port()
"""

from testjars.core.harness.command_line import CommandLineBuilder
from testjars.core.harness.harness import ExecHarness, ExecHarnessBuilder
from testjars.core.harness.launcher import (
    GENERIC_MAIN_CLASSNAME,
    LauncherDetector,
    LaunchStrategy,
)
from testjars.core.harness.port_watcher import PortDiscoveryWatcher
from testjars.core.harness.process_registry import (
    ProcessRegistry,
    get_default_registry,
    terminate_process_tree,
)
from testjars.core.harness.supervisor import ProcessSupervisor
from testjars.core.harness.types import (
    CommandLineSpec,
    DebugConfig,
    PortFile,
    PortWatchState,
    ProcessState,
)

__all__ = [
    "GENERIC_MAIN_CLASSNAME",
    "CommandLineBuilder",
    "CommandLineSpec",
    "DebugConfig",
    "ExecHarness",
    "ExecHarnessBuilder",
    "LaunchStrategy",
    "LauncherDetector",
    "PortDiscoveryWatcher",
    "PortFile",
    "PortWatchState",
    "ProcessRegistry",
    "ProcessState",
    "ProcessSupervisor",
    "get_default_registry",
    "terminate_process_tree",
]
