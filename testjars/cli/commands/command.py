"""Command Subcommand for testjars.

Prints the command line an application would be launched with, without
launching it. Useful for running the application by hand or in a debugger.
"""

from __future__ import annotations

import argparse

from testjars.cli.base import HarnessCommand


class CommandCommand(HarnessCommand):
    """Print the launch command line."""

    @property
    def name(self) -> str:
        return "command"

    @property
    def description(self) -> str:
        return "Print the command line an application would be launched with"

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        super().configure_parser(parser)
        parser.add_argument(
            "--keep",
            action="store_true",
            help="Keep extracted classpath resources so the command can be run",
        )

    def run(self, args: argparse.Namespace) -> int:
        harness = self.create_builder(args).build()
        try:
            print(harness.command_line)
        finally:
            if not args.keep:
                harness.stop()
        return 0


def main(argv: list[str] | None = None) -> int:
    return CommandCommand().main(argv)
