"""Run Subcommand for testjars.

Launches an application, prints the port it bound and keeps it running until
it exits or the user interrupts it.
"""

from __future__ import annotations

import argparse

from testjars.cli.base import HarnessCommand
from testjars.core.harness import get_default_registry
from testjars.core.harness.port_watcher import FROM_SETTINGS


class RunCommand(HarnessCommand):
    """Launch an application and report its port."""

    @property
    def name(self) -> str:
        return "run"

    @property
    def description(self) -> str:
        return "Launch an application and print the port it is listening on"

    @property
    def epilog(self) -> str:
        return """
Examples:
  # Launch a Spring Boot fat jar
  testjars run -cp build/libs/app.jar

  # Launch with a profile and a debugger listening on 5005
  testjars run -cp build/libs/app.jar -D spring.profiles.active=test --debug --no-suspend
"""

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        super().configure_parser(parser)
        parser.add_argument(
            "--timeout",
            type=float,
            metavar="SEC",
            help="Seconds to wait for the port (default: TESTJARS_PORT_TIMEOUT_SECONDS)",
        )

    def run(self, args: argparse.Namespace) -> int:
        registry = get_default_registry()
        registry.shutdown_on_exit()
        harness = self.create_builder(args).registry(registry).build()
        try:
            port = harness.get_port(
                timeout=FROM_SETTINGS if args.timeout is None else args.timeout
            )
            print(f"[+] Application listening on port {port}")
            print("[i] Press Ctrl+C to stop")
            try:
                harness.wait_for_completion()
            except KeyboardInterrupt:
                print("\n[i] Stopping application")
                return 0
        finally:
            harness.stop()

        exit_code = harness.supervisor.exit_code if harness.supervisor else None
        print(f"[i] Application exited with code {exit_code}")
        return 0 if exit_code == 0 else 1


def main(argv: list[str] | None = None) -> int:
    return RunCommand().main(argv)
