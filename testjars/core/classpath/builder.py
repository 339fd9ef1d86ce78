"""Classpath assembly.

Collects classpath entries in load order and joins their resolved paths into
the single string passed to ``-classpath``. Entries added first win when two
entries provide the same resource.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator
from pathlib import Path
from types import ModuleType

from testjars.core.classpath.entries import (
    ClasspathEntry,
    FileEntry,
    RecursiveScanEntry,
)
from testjars.utils.logger import get_logger

logger = get_logger(__name__)


class Classpath:
    """Ordered classpath entries plus ownership of their temp directories.

    Usage:
        classpath = Classpath().files("app.jar").entries(
            ExtractedResourceEntry("testjars/app/application.yml", "application.yml")
        )
        argument = classpath.build()
        ...
        classpath.cleanup()
    """

    def __init__(self, entries: Iterable[ClasspathEntry] = ()) -> None:
        self._entries: list[ClasspathEntry] = list(entries)

    def entries(self, *entries: ClasspathEntry) -> Classpath:
        """Append entries in call order."""
        self._entries.extend(entries)
        return self

    def files(self, *paths: str | Path) -> Classpath:
        """Append archives or directories already on disk."""
        self._entries.extend(FileEntry(path) for path in paths)
        return self

    def scan(self, package: str | ModuleType) -> Classpath:
        """Recursively add the resources of an importable package."""
        self._entries.append(RecursiveScanEntry.for_package(package))
        return self

    @property
    def classpath(self) -> list[ClasspathEntry]:
        """The entries, in load order."""
        return self._entries

    def __iter__(self) -> Iterator[ClasspathEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def resolve(self) -> list[str]:
        """Resolve every entry in order and flatten the results."""
        paths: list[str] = []
        for entry in self._entries:
            paths.extend(entry.resolve())
        return paths

    def build(self) -> str:
        """Join the resolved paths with the platform path separator.

        Raises:
            ResolutionError: From the first entry that cannot be resolved

        """
        return os.pathsep.join(self.resolve())

    def cleanup(self) -> list[Exception]:
        """Clean up every entry, continuing past failures.

        Returns:
            Errors raised by individual entries, in entry order

        """
        errors: list[Exception] = []
        for entry in self._entries:
            try:
                entry.cleanup()
            except Exception as ex:
                logger.warning("Failed to clean up classpath entry", entry=repr(entry), error=str(ex))
                errors.append(ex)
        return errors
