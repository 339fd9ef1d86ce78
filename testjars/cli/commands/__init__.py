"""CLI Subcommand modules.

Each module implements a subcommand for the testjars CLI.
Subcommands are lazily loaded by main.py based on the SUBCOMMANDS registry.
"""

__all__ = ["command", "run"]
