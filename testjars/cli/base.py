"""Base classes for CLI subcommands.

Provides common patterns for argument parsing, error handling, and dispatch,
plus the options shared by every command that configures a harness.
"""

from __future__ import annotations

import argparse
import traceback
from abc import ABC, abstractmethod

from testjars.core.config import get_settings
from testjars.core.exceptions import HarnessError
from testjars.core.harness import ExecHarnessBuilder
from testjars.utils.logger import configure_logging


class SubcommandBase(ABC):
    """Abstract base class for CLI subcommands.

    Example:
        class MyCommand(SubcommandBase):
            @property
            def name(self) -> str:
                return "my-cmd"

            @property
            def description(self) -> str:
                return "My custom command"

            def configure_parser(self, parser: argparse.ArgumentParser) -> None:
                parser.add_argument("--input", required=True)

            def run(self, args: argparse.Namespace) -> int:
                print(f"Processing: {args.input}")
                return 0

    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Command name (e.g., 'run', 'command')."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description for help text."""
        ...

    @property
    def epilog(self) -> str:
        """Optional epilog with examples. Override to add examples."""
        return ""

    @abstractmethod
    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        """Add arguments to the parser.

        Args:
            parser: The argument parser to configure.

        """
        ...

    @abstractmethod
    def run(self, args: argparse.Namespace) -> int:
        """Execute the command.

        Args:
            args: Parsed command-line arguments.

        Returns:
            Exit code: 0 for success, 1 for failure.

        """
        ...

    def create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog=f"testjars {self.name}",
            description=self.description,
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self.epilog if self.epilog else None,
        )
        self.configure_parser(parser)
        return parser

    def main(self, argv: list[str] | None = None) -> int:
        """Standard entry point with error handling.

        Args:
            argv: Command-line arguments. If None, uses sys.argv[1:].

        Returns:
            Exit code: 0 for success, 1 for failure.

        """
        parser = self.create_parser()
        args = parser.parse_args(argv)
        setup_logging(getattr(args, "verbose", False))
        try:
            return self.run(args)
        except HarnessError as e:
            print(f"[-] {e.message}")
            if getattr(args, "verbose", False):
                traceback.print_exc()
            return 1


def setup_logging(verbose: bool = False) -> None:
    """Configure logging from the ``logging`` settings; verbose forces DEBUG."""
    settings = get_settings().logging
    configure_logging(
        log_level="DEBUG" if verbose else settings.log_level.value,
        json_format=settings.log_format == "json",
    )


def parse_system_property(value: str) -> tuple[str, str]:
    """Parse ``key=value``; a bare ``key`` maps to an empty value."""
    key, _, prop = value.partition("=")
    if not key:
        raise argparse.ArgumentTypeError(f"Invalid system property '{value}'")
    return key, prop


class HarnessCommand(SubcommandBase):
    """A subcommand that builds an ExecHarness from command line options."""

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "-cp",
            "--classpath",
            action="append",
            default=[],
            metavar="PATH",
            help="Jar, zip, war or directory to put on the classpath (repeatable)",
        )
        parser.add_argument(
            "-s",
            "--scan",
            action="append",
            default=[],
            metavar="PACKAGE",
            help="Importable package whose resources are put on the classpath",
        )
        parser.add_argument(
            "-m", "--main-class", metavar="CLASS", help="Main class (default: detected)"
        )
        parser.add_argument(
            "-D",
            dest="system_properties",
            action="append",
            default=[],
            type=parse_system_property,
            metavar="KEY=VALUE",
            help="System property passed to the application (repeatable)",
        )
        parser.add_argument("--java", metavar="EXE", help="Java executable")
        parser.add_argument("-n", "--name", help="Add bundled testjars/<name>/application.* config")

        debug_group = parser.add_argument_group("debugging", "JDWP debug agent")
        debug_group.add_argument(
            "--debug", action="store_true", help="Start the JDWP debug agent"
        )
        debug_group.add_argument(
            "--debug-port", type=int, metavar="PORT", help="JDWP port (default: 5005)"
        )
        debug_group.add_argument(
            "--no-suspend",
            action="store_true",
            help="Do not wait for a debugger to attach",
        )

        parser.add_argument(
            "-v", "--verbose", action="store_true", help="Enable verbose logging output"
        )

    def create_builder(self, args: argparse.Namespace) -> ExecHarnessBuilder:
        """Translate parsed options into a configured builder."""
        builder = ExecHarnessBuilder()
        if args.java:
            builder.executable(args.java)
        if args.main_class:
            builder.main_class(args.main_class)

        def configure(classpath):
            classpath.files(*args.classpath)
            for package in args.scan:
                classpath.scan(package)

        builder.classpath(configure)
        if args.name:
            builder.name(args.name)
        builder.add_system_properties(dict(args.system_properties))
        if args.debug:
            builder.debug(
                port=args.debug_port,
                suspend=False if args.no_suspend else None,
            )
        return builder
