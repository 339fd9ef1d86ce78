"""Classpath entries.

A classpath entry is one source of runnable material for the child process.
Every entry resolves to an ordered list of absolute filesystem paths;
entries that materialize resources own a temporary directory that lives
until ``cleanup()`` is called.

Variants:
- FileEntry: a jar/zip/war archive or a directory already on disk
- ExtractedResourceEntry: a single bundled resource copied into a temp dir
- RecursiveScanEntry: every bundled resource below a directory, copied
- ExternalResolvedEntry: paths produced by an external resolver
"""

from __future__ import annotations

import shutil
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from types import ModuleType

from testjars.core.classpath.resources import ResourceLoader
from testjars.core.exceptions import (
    InvalidArgumentError,
    MissingFileError,
    ResolutionError,
    ResourceNotFoundError,
)
from testjars.utils.logger import get_logger

logger = get_logger(__name__)

ARCHIVE_EXTENSIONS = (".jar", ".zip", ".war")

TEMP_DIR_PREFIX = "classpath-"


class ClasspathEntry(ABC):
    """A source of classpath paths."""

    @abstractmethod
    def resolve(self) -> list[str]:
        """Resolve to absolute filesystem paths, in classpath order."""

    def cleanup(self) -> None:
        """Remove temporary resources created by ``resolve()``."""


class FileEntry(ClasspathEntry):
    """An archive or directory that already exists on disk.

    Args:
        path: Directory, or file ending in ``.jar``, ``.zip`` or ``.war``

    Raises:
        InvalidArgumentError: If path is neither a directory nor an archive

    """

    def __init__(self, path: str | Path) -> None:
        if path is None:
            raise InvalidArgumentError("path cannot be None")
        self.path = Path(path)
        if not self.path.is_dir() and not self.path.name.lower().endswith(
            ARCHIVE_EXTENSIONS
        ):
            raise InvalidArgumentError(
                f"File must be an archive or directory '{self.path.absolute()}'",
                context={"path": str(self.path)},
            )

    def resolve(self) -> list[str]:
        """Return the canonical path, if it currently exists.

        Raises:
            MissingFileError: If nothing exists at the path

        """
        if not self.path.exists():
            raise MissingFileError(
                f"Could not find file to add to the classpath '{self.path.absolute()}'",
                context={"path": str(self.path)},
            )
        return [str(self.path.resolve())]

    def __repr__(self) -> str:
        return f"FileEntry({str(self.path)!r})"


class _TempDirEntry(ClasspathEntry):
    """Owns a temp directory created on first resolution."""

    def __init__(self) -> None:
        self._classpath: Path | None = None

    @property
    def classpath(self) -> Path | None:
        """Temp directory holding the materialized resources, if any."""
        return self._classpath

    def cleanup(self) -> None:
        if self._classpath is None:
            return
        directory, self._classpath = self._classpath, None
        shutil.rmtree(directory)
        logger.debug("Removed classpath directory", path=str(directory))


def _copy_resource(resource: Traversable, destination: Path) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    with resource.open("rb") as source, open(destination, "wb") as target:
        shutil.copyfileobj(source, target)


class ExtractedResourceEntry(_TempDirEntry):
    """A single bundled resource, extracted to its classpath location.

    Args:
        source_name: Name of the bundled resource, e.g. ``testjars/app/application.yml``
        destination_relative_path: Where the resource lands relative to the
            classpath root, e.g. ``application.yml``
        loader: Resource lookup; defaults to the configured resource packages

    """

    def __init__(
        self,
        source_name: str,
        destination_relative_path: str,
        loader: ResourceLoader | None = None,
    ) -> None:
        super().__init__()
        if not source_name or not destination_relative_path:
            raise InvalidArgumentError(
                "source_name and destination_relative_path cannot be empty"
            )
        self.source_name = source_name
        self.destination_relative_path = destination_relative_path
        self.loader = loader or ResourceLoader()

    @classmethod
    def for_resource(
        cls, name: str, loader: ResourceLoader | None = None
    ) -> ExtractedResourceEntry:
        """Extract a resource to the same relative path it is bundled under."""
        return cls(name, name, loader=loader)

    def exists(self) -> bool:
        """Check whether the source resource is present, without extracting."""
        return self.loader.exists(self.source_name)

    def resolve(self) -> list[str]:
        if self._classpath is None:
            resource = self.loader.find(self.source_name)
            if resource is None:
                raise ResourceNotFoundError(
                    f"Could not find resource '{self.source_name}'",
                    context={"resource": self.source_name},
                )
            classpath = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
            try:
                _copy_resource(resource, classpath / self.destination_relative_path)
            except OSError as ex:
                shutil.rmtree(classpath, ignore_errors=True)
                raise ResolutionError(
                    f"Failed to copy '{self.source_name}' to "
                    f"'{self.destination_relative_path}'",
                    context={"resource": self.source_name},
                ) from ex
            self._classpath = classpath
            logger.debug(
                "Extracted resource",
                resource=self.source_name,
                destination=str(classpath / self.destination_relative_path),
            )
        return [str(self._classpath.resolve())]

    def __repr__(self) -> str:
        return (
            f"ExtractedResourceEntry({self.source_name!r}, "
            f"{self.destination_relative_path!r})"
        )


def _strip_base_dir(base_dir: str) -> Callable[[str], str]:
    prefix = base_dir.strip("/") + "/"

    def rename(name: str) -> str:
        if prefix == "/":
            return name
        index = name.rfind(prefix)
        return name[index + len(prefix) :] if index > -1 else name

    return rename


class RecursiveScanEntry(_TempDirEntry):
    """Every bundled resource below a directory, copied into a temp dir.

    Args:
        base_dir: Slash-separated resource directory to scan recursively
        rename: Maps a resource name to its classpath-relative destination.
            Defaults to stripping everything up to ``base_dir/``.
        loader: Resource lookup; defaults to the configured resource packages

    """

    def __init__(
        self,
        base_dir: str,
        rename: Callable[[str], str] | None = None,
        loader: ResourceLoader | None = None,
    ) -> None:
        super().__init__()
        if base_dir is None:
            raise InvalidArgumentError("base_dir cannot be None")
        self.base_dir = base_dir.strip("/")
        self.rename = rename or _strip_base_dir(self.base_dir)
        self.loader = loader or ResourceLoader()
        self._resolved = False

    @property
    def pattern(self) -> str:
        """Glob-style pattern this entry matches."""
        return f"{self.base_dir}/**" if self.base_dir else "**"

    @classmethod
    def for_package(cls, package: str | ModuleType) -> RecursiveScanEntry:
        """Scan an importable package, keeping its dotted path as directories.

        ``for_package("example.authserver")`` copies ``example/authserver/...``.
        """
        name = package if isinstance(package, str) else package.__name__
        package_path = name.replace(".", "/")
        return cls(
            "",
            rename=lambda resource: f"{package_path}/{resource}",
            loader=ResourceLoader([resources.files(name)]),
        )

    def resolve(self) -> list[str]:
        """Copy the matching resources on first call.

        Returns:
            ``[temp dir]``, or ``[]`` when no resource matched

        """
        if not self._resolved:
            self._classpath = self._create_classpath()
            self._resolved = True
        return [str(self._classpath.resolve())] if self._classpath else []

    def _create_classpath(self) -> Path | None:
        found = self.loader.scan(self.base_dir)
        if not found:
            logger.debug("No resources matched", pattern=self.pattern)
            return None

        logger.debug("Found resources", count=len(found), pattern=self.pattern)
        classpath = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
        try:
            for name, resource in found:
                path = self.rename(name)
                if path.endswith("/") or not resource.is_file():
                    continue
                destination = classpath / path
                logger.debug("Copying resource", resource=path, destination=str(destination))
                _copy_resource(resource, destination)
        except OSError as ex:
            shutil.rmtree(classpath, ignore_errors=True)
            raise ResolutionError(
                f"Failed to copy resources for {self.pattern}",
                context={"pattern": self.pattern},
            ) from ex
        return classpath

    def cleanup(self) -> None:
        super().cleanup()
        self._resolved = False

    def __repr__(self) -> str:
        return f"RecursiveScanEntry({self.pattern!r})"


Resolver = Callable[[str], Sequence[str | Path]]


class ExternalResolvedEntry(ClasspathEntry):
    """Paths produced by a resolver outside the harness, e.g. a Maven lookup.

    Args:
        coordinate: Identifies what to resolve, e.g. ``group:artifact:version``
        resolver: Called with the coordinate, returns absolute paths

    """

    def __init__(self, coordinate: str, resolver: Resolver) -> None:
        if not coordinate:
            raise InvalidArgumentError("coordinate cannot be empty")
        if resolver is None:
            raise InvalidArgumentError("resolver cannot be None")
        self.coordinate = coordinate
        self.resolver = resolver
        self._paths: list[str] | None = None

    def resolve(self) -> list[str]:
        """Delegate to the resolver once and cache its answer.

        Raises:
            ResolutionError: Wrapping whatever the resolver raised

        """
        if self._paths is None:
            try:
                resolved = self.resolver(self.coordinate)
            except Exception as ex:
                message = f"Error resolving artifact {self.coordinate}"
                logger.debug(message, error=str(ex))
                raise ResolutionError(
                    message, context={"coordinate": self.coordinate}
                ) from ex
            self._paths = [str(Path(path).absolute()) for path in resolved]
        return list(self._paths)

    def __repr__(self) -> str:
        return f"ExternalResolvedEntry({self.coordinate!r})"
