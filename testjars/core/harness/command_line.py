"""Command Line Builder.

Turns harness configuration into the child's invocation:

    <java> [-agentlib:jdwp=...] -D<key>=<value>... -classpath <cp> <main class>

Two system properties are always present: the port file path, under the
configured port file key, and the listener port, ``0`` unless the caller set
one explicitly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from testjars.core.config import HarnessSettings, get_settings
from testjars.core.exceptions import InvalidArgumentError
from testjars.core.harness.launcher import LauncherDetector
from testjars.core.harness.types import CommandLineSpec, DebugConfig, PortFile


class CommandLineBuilder:
    """Builds a CommandLineSpec for a child JVM.

    Usage:
        builder = CommandLineBuilder().main_class("example.Main")
        builder.add_system_properties({"spring.profiles.active": "test"})
        spec = builder.build(classpath.build(), PortFile())
    """

    def __init__(self, settings: HarnessSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self._executable: str | None = None
        self._system_properties: dict[str, str] = {}
        self._debug = DebugConfig(
            enabled=False,
            port=self.settings.debug_port,
            suspend=self.settings.debug_suspend,
        )
        self._main_class: str | None = None
        self._detector = LauncherDetector()

    def executable(self, executable: str | Path) -> CommandLineBuilder:
        if executable is None:
            raise InvalidArgumentError("executable cannot be None")
        self._executable = str(executable)
        return self

    @property
    def system_properties(self) -> dict[str, str]:
        """Caller-supplied system properties; mutate to configure."""
        return self._system_properties

    def add_system_properties(self, properties: Mapping[str, str]) -> CommandLineBuilder:
        self._system_properties.update({str(k): str(v) for k, v in properties.items()})
        return self

    def debug(
        self,
        enabled: bool = True,
        port: int | None = None,
        suspend: bool | None = None,
    ) -> CommandLineBuilder:
        """Configure the JDWP agent; unset values keep their defaults."""
        self._debug = DebugConfig(
            enabled=enabled,
            port=self._debug.port if port is None else port,
            suspend=self._debug.suspend if suspend is None else suspend,
        )
        return self

    @property
    def debug_config(self) -> DebugConfig:
        return self._debug

    def main_class(self, main_class: str) -> CommandLineBuilder:
        """Set the entry point, bypassing launcher detection.

        Raises:
            InvalidArgumentError: If main_class is None or empty

        """
        if not main_class:
            raise InvalidArgumentError("mainClass cannot be null")
        self._main_class = main_class
        return self

    def launcher_detector(self, detector: LauncherDetector) -> CommandLineBuilder:
        if detector is None:
            raise InvalidArgumentError("detector cannot be None")
        self._detector = detector
        return self

    def resolve_executable(self) -> str:
        """The configured executable, else the Java found from settings.

        Raises:
            InvalidArgumentError: If no executable could be found

        """
        executable = self._executable or self.settings.resolve_java_executable()
        if not executable:
            raise InvalidArgumentError(
                "No java executable found. Set TESTJARS_JAVA_EXECUTABLE or "
                "JAVA_HOME, or configure the executable explicitly"
            )
        return executable

    def system_property_arguments(self, port_file: PortFile) -> list[str]:
        properties = dict(self._system_properties)
        properties[self.settings.port_file_property] = str(port_file.path)
        properties.setdefault(self.settings.port_property, "0")
        return [f"-D{key}={value}" for key, value in sorted(properties.items())]

    def build(self, classpath: str, port_file: PortFile) -> CommandLineSpec:
        """Assemble the invocation.

        Args:
            classpath: Already-resolved, path-separator joined classpath
            port_file: Port file the child must write to

        Returns:
            Immutable command line

        """
        main_class = self._main_class or self._detector.detect(
            [path for path in classpath.split(os.pathsep) if path]
        )
        arguments: list[str] = []
        if self._debug.enabled:
            arguments.append(self._debug.agent_argument())
        arguments.extend(self.system_property_arguments(port_file))
        arguments.extend(["-classpath", classpath, main_class])
        return CommandLineSpec(self.resolve_executable(), tuple(arguments))
