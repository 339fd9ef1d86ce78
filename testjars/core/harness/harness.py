"""Exec Harness - launch a JVM application and discover its port.

The harness composes the classpath, builds the command line, supervises the
child process and waits for it to publish its port. ``stop()`` reclaims
every resource it created: the process tree, classpath temp directories and
the port file.

Example:
    >>> harness = (
    ...     ExecHarnessBuilder()
    ...     .classpath(lambda cp: cp.files("build/libs/app.jar"))
    ...     .add_system_properties({"spring.profiles.active": "test"})
    ...     .build()
    ... )
    >>> with harness:
    ...     port = harness.get_port()

"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import IO, Any

from testjars.core.classpath import Classpath, ExtractedResourceEntry, ResourceLoader
from testjars.core.config import HarnessSettings, get_settings
from testjars.core.exceptions import (
    InvalidArgumentError,
    PortDiscoveryCancelledError,
    ProcessFailureError,
)
from testjars.core.harness.command_line import CommandLineBuilder
from testjars.core.harness.launcher import GENERIC_MAIN_CLASSNAME
from testjars.core.harness.port_watcher import FROM_SETTINGS, PortDiscoveryWatcher
from testjars.core.harness.process_registry import ProcessRegistry, get_default_registry
from testjars.core.harness.supervisor import ProcessSupervisor
from testjars.core.harness.types import CommandLineSpec, PortFile, ProcessState
from testjars.core.properties import DynamicProperty
from testjars.utils.logger import get_logger

logger = get_logger(__name__)

#: Bundled resource put on every classpath unless removed
DEFAULT_FACTORIES_RESOURCE = "classpath-entries/META-INF/spring.factories"

APPLICATION_CONFIG_EXTENSIONS = ("yml", "yaml", "properties")


class ExecHarness:
    """A configured, startable child application.

    Instances are normally created with ExecHarnessBuilder.

    Args:
        classpath: Classpath owned by this harness
        command_line_builder: Configured command line builder
        registry: Registry the child is registered with
        port_timeout: Seconds to wait for the port, None waits until the
            process exits. Defaults to the ``port_timeout_seconds`` setting.
        stdout: Passed to the child, None inherits
        stderr: Passed to the child, None inherits
        env: Child environment, None inherits
        cwd: Child working directory

    """

    def __init__(
        self,
        classpath: Classpath,
        command_line_builder: CommandLineBuilder,
        registry: ProcessRegistry | None = None,
        port_timeout: object = FROM_SETTINGS,
        stdout: int | IO[Any] | None = None,
        stderr: int | IO[Any] | None = None,
        env: Mapping[str, str] | None = None,
        cwd: str | Path | None = None,
    ) -> None:
        self.classpath = classpath
        self.command_line_builder = command_line_builder
        self.registry = registry if registry is not None else get_default_registry()
        self.port_timeout = port_timeout
        self.port_file = PortFile()
        self._process_options: dict[str, Any] = {
            "stdout": stdout,
            "stderr": stderr,
            "env": env,
            "cwd": cwd,
        }
        self._lock = threading.RLock()
        self._command_line: CommandLineSpec | None = None
        self._supervisor: ProcessSupervisor | None = None
        self._port: int | None = None
        self._stopped = False

    @property
    def command_line(self) -> CommandLineSpec:
        """The child's invocation; resolves the classpath on first access.

        Raises:
            ResolutionError: If a classpath entry cannot be resolved
            InvalidArgumentError: If no executable can be found

        """
        with self._lock:
            if self._command_line is None:
                self._command_line = self.command_line_builder.build(
                    self.classpath.build(), self.port_file
                )
            return self._command_line

    @property
    def supervisor(self) -> ProcessSupervisor | None:
        return self._supervisor

    @property
    def state(self) -> ProcessState:
        supervisor = self._supervisor
        return supervisor.state if supervisor else ProcessState.NOT_STARTED

    def start(self) -> ProcessSupervisor:
        """Launch the child; calling it again is a no-op.

        Returns:
            The supervisor of the child

        Raises:
            ResolutionError: If a classpath entry cannot be resolved
            ProcessSpawnError: If the child could not be launched

        """
        with self._lock:
            if self._supervisor is not None:
                return self._supervisor
            if self._stopped:
                raise InvalidArgumentError("Harness has been stopped")
            command_line = self.command_line
            self._supervisor = ProcessSupervisor(
                command_line, registry=self.registry, **self._process_options
            )
            supervisor = self._supervisor
        logger.info(
            "Starting application",
            argv=command_line.argv,
            port_file=str(self.port_file),
        )
        supervisor.start()
        return supervisor

    def get_port(self, timeout: object = FROM_SETTINGS) -> int:
        """Start the child if needed and wait for the port it bound.

        Args:
            timeout: Seconds to wait, None waits until the process exits;
                defaults to the harness port timeout

        Returns:
            The application's port

        Raises:
            ProcessSpawnError: If the child could not be launched
            ProcessFailureError: If the child exited before writing a port
            PortFileCorruptError: If the port file content is not a port
            PortDiscoveryTimeoutError: If the timeout elapsed first
            PortDiscoveryError: If the port file could not be watched or read
            InvalidArgumentError: If the harness has been stopped

        """
        with self._lock:
            if self._stopped:
                raise InvalidArgumentError("Harness has been stopped")
            if self._port is not None:
                return self._port
        supervisor = self.start()

        watcher = PortDiscoveryWatcher(
            self.port_file, timeout=self.port_timeout if timeout is FROM_SETTINGS else timeout
        )

        def on_completion(completed: ProcessSupervisor) -> None:
            watcher.cancel(f"process exited with code {completed.exit_code}")

        supervisor.add_completion_listener(on_completion)
        try:
            port = watcher.get_application_port()
        except PortDiscoveryCancelledError as ex:
            failure = supervisor.failure or ProcessFailureError(
                "Process exited before writing its port",
                exit_code=supervisor.exit_code,
                context={"port_file": str(self.port_file)},
            )
            raise failure from ex
        finally:
            supervisor.remove_completion_listener(on_completion)

        with self._lock:
            if not self._stopped:
                self._port = port
        logger.info("Application available", port=port)
        return port

    def dynamic_property(self, name: str, template: str = "{port}") -> DynamicProperty:
        """A property whose value is derived from the port when requested.

        Args:
            name: Property name
            template: ``str.format`` template receiving ``port``

        """
        return DynamicProperty(name, lambda: template.format(port=self.get_port()))

    def wait_for_completion(self, timeout: float | None = None) -> bool:
        """Block until the child exits; False if not started or timed out."""
        supervisor = self._supervisor
        if supervisor is None:
            return False
        return supervisor.wait_for_completion(timeout)

    def destroy(self) -> None:
        """Forcibly terminate the child's process tree."""
        supervisor = self._supervisor
        if supervisor is not None:
            supervisor.destroy()

    def stop(self) -> None:
        """Destroy the child and remove everything the harness created.

        Never raises; secondary failures are logged. Idempotent.
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._port = None

        self.destroy()
        for error in self.classpath.cleanup():
            logger.debug("Classpath cleanup error", error=str(error))
        try:
            self.port_file.remove()
        except OSError as ex:
            logger.warning(
                "Failed to delete port file", port_file=str(self.port_file), error=str(ex)
            )
        logger.debug("Harness stopped", port_file=str(self.port_file))

    close = stop

    def __enter__(self) -> ExecHarness:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


class ExecHarnessBuilder:
    """Fluent configuration for an ExecHarness.

    Args:
        settings: Settings to use, defaults to ``get_settings()``
        loader: Where bundled resources are looked up, defaults to the
            ``resource_packages`` setting

    """

    def __init__(
        self, settings: HarnessSettings | None = None, loader: ResourceLoader | None = None
    ) -> None:
        self.settings = settings or get_settings()
        self._loader = loader or ResourceLoader(self.settings.resource_packages)
        self._classpath = Classpath().entries(
            ExtractedResourceEntry(
                DEFAULT_FACTORIES_RESOURCE, "META-INF/spring.factories", loader=self._loader
            )
        )
        self._command_line = CommandLineBuilder(self.settings)
        self._registry: ProcessRegistry | None = None
        self._port_timeout: float | None = self.settings.port_timeout_seconds
        self._process_options: dict[str, Any] = {}
        self._object: ExecHarness | None = None

    def executable(self, executable: str | Path) -> ExecHarnessBuilder:
        self._command_line.executable(executable)
        return self

    def main_class(self, main_class: str) -> ExecHarnessBuilder:
        self._command_line.main_class(main_class)
        return self

    def use_generic_main(self) -> ExecHarnessBuilder:
        """Skip launcher detection and start the generic application main."""
        return self.main_class(GENERIC_MAIN_CLASSNAME)

    def classpath(self, configure: Callable[[Classpath], Any]) -> ExecHarnessBuilder:
        """Customize the classpath, e.g. ``lambda cp: cp.files("app.jar")``."""
        configure(self._classpath)
        return self

    def system_properties(
        self, configure: Callable[[dict[str, str]], Any]
    ) -> ExecHarnessBuilder:
        """Customize the system properties dictionary in place."""
        configure(self._command_line.system_properties)
        return self

    def add_system_properties(self, properties: Mapping[str, str]) -> ExecHarnessBuilder:
        self._command_line.add_system_properties(properties)
        return self

    def debug(
        self, enabled: bool = True, port: int | None = None, suspend: bool | None = None
    ) -> ExecHarnessBuilder:
        self._command_line.debug(enabled=enabled, port=port, suspend=suspend)
        return self

    def name(self, name: str) -> ExecHarnessBuilder:
        """Add ``testjars/<name>/application.*`` resources that are bundled.

        Each of ``application.yml``, ``application.yaml`` and
        ``application.properties`` found under the name is extracted to the
        classpath root.
        """
        if not name:
            raise InvalidArgumentError("name cannot be empty")
        for extension in APPLICATION_CONFIG_EXTENSIONS:
            entry = ExtractedResourceEntry(
                f"testjars/{name}/application.{extension}",
                f"application.{extension}",
                loader=self._loader,
            )
            if entry.exists():
                logger.debug("Adding application config", resource=entry.source_name)
                self._classpath.entries(entry)
        return self

    def registry(self, registry: ProcessRegistry) -> ExecHarnessBuilder:
        self._registry = registry
        return self

    def port_timeout(self, timeout: float | None) -> ExecHarnessBuilder:
        """Seconds to wait for the port; None waits until the process exits."""
        self._port_timeout = timeout
        return self

    def output(
        self,
        stdout: int | IO[Any] | None = None,
        stderr: int | IO[Any] | None = None,
    ) -> ExecHarnessBuilder:
        """Redirect the child's output streams."""
        self._process_options.update(stdout=stdout, stderr=stderr)
        return self

    def environment(
        self, env: Mapping[str, str] | None = None, cwd: str | Path | None = None
    ) -> ExecHarnessBuilder:
        self._process_options.update(env=env, cwd=cwd)
        return self

    def build(self) -> ExecHarness:
        return ExecHarness(
            self._classpath,
            self._command_line,
            registry=self._registry,
            port_timeout=self._port_timeout,
            **self._process_options,
        )

    def get_object(self) -> ExecHarness:
        """Build and start a harness once, returning the same one afterwards."""
        if self._object is None:
            harness = self.build()
            try:
                harness.start()
            except Exception:
                harness.stop()
                raise
            self._object = harness
        return self._object
