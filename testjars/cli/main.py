"""testjars - Command Line Interface

Dispatches to subcommands:
    testjars run      launch an application and print its port
    testjars command  print the launch command line
"""

from __future__ import annotations

import importlib
import sys

from testjars import __version__

# name -> (module, description); modules are imported on first use
SUBCOMMANDS = {
    "run": ("testjars.cli.commands.run", "Launch an application and print its port"),
    "command": ("testjars.cli.commands.command", "Print the launch command line"),
}


def print_usage() -> None:
    print(f"testjars v{__version__} - run JVM applications as test collaborators\n")
    print("Usage: testjars <command> [options]\n")
    print("Commands:")
    for name, (_, description) in SUBCOMMANDS.items():
        print(f"  {name:<10} {description}")
    print("\nRun 'testjars <command> --help' for command options.")


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``testjars`` console script.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code of the subcommand

    """
    if argv is None:
        argv = sys.argv[1:]

    if not argv or argv[0] in ("-h", "--help"):
        print_usage()
        return 0
    if argv[0] == "--version":
        print(f"testjars v{__version__}")
        return 0

    command, *rest = argv
    if command not in SUBCOMMANDS:
        print(f"[-] Unknown command '{command}'")
        print_usage()
        return 2

    module = importlib.import_module(SUBCOMMANDS[command][0])
    return module.main(rest)


if __name__ == "__main__":
    sys.exit(main())
