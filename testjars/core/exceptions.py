"""Custom exceptions for the process harness.

This module defines the exception hierarchy for testjars, providing
detailed error information and categorization.
"""

from typing import Any


class HarnessError(Exception):
    """Base exception for harness operations.

    Attributes:
        message: Human-readable error description
        error_code: Optional error code for categorization
        context: Additional context information

    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}


class InvalidArgumentError(HarnessError, ValueError):
    """Raised when harness configuration is null or invalid."""

    pass


class ResolutionError(HarnessError):
    """Raised when a classpath entry cannot be resolved to paths."""

    pass


class MissingFileError(ResolutionError):
    """Raised when a file classpath entry does not exist at resolve time."""

    pass


class ResourceNotFoundError(ResolutionError):
    """Raised when a bundled resource to extract is absent."""

    pass


class PortDiscoveryError(HarnessError):
    """Raised when the application port could not be discovered."""

    pass


class PortFileCorruptError(PortDiscoveryError):
    """Raised when the port file holds non-blank, non-numeric content."""

    pass


class PortDiscoveryTimeoutError(PortDiscoveryError):
    """Raised when no port was written before the configured timeout."""

    pass


class PortDiscoveryCancelledError(PortDiscoveryError):
    """Raised when the wait for a port is cancelled, e.g. the process died."""

    pass


class ProcessError(HarnessError):
    """Base class for child process failures."""

    pass


class ProcessSpawnError(ProcessError):
    """Raised when the operating system fails to launch the child."""

    pass


class ProcessFailureError(ProcessError):
    """Raised when the child exited before publishing its port.

    Attributes:
        exit_code: Exit code reported by the operating system

    """

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code="PROCESS_FAILED", context=context)
        self.exit_code = exit_code
