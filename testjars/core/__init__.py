"""Core harness functionality.

This module contains the classpath composition, process supervision and
port discovery components, plus configuration and the exception hierarchy.
"""

from .exceptions import (
    HarnessError,
    InvalidArgumentError,
    PortDiscoveryError,
    ProcessError,
    ResolutionError,
)

__all__ = [
    "HarnessError",
    "InvalidArgumentError",
    "PortDiscoveryError",
    "ProcessError",
    "ResolutionError",
]
