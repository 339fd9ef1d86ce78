"""Resolvers for ExternalResolvedEntry.

Only the local Maven repository is consulted; downloading artifacts and
walking their dependency graphs is left to a real build tool.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from testjars.core.classpath.entries import ExternalResolvedEntry, Resolver
from testjars.core.exceptions import InvalidArgumentError, MissingFileError


@dataclass(frozen=True)
class MavenCoordinate:
    """``group:artifact[:extension[:classifier]]:version``"""

    group_id: str
    artifact_id: str
    version: str
    extension: str = "jar"
    classifier: str | None = None

    @classmethod
    def parse(cls, coordinate: str) -> MavenCoordinate:
        """Parse a colon-separated coordinate.

        Raises:
            InvalidArgumentError: If the coordinate has the wrong shape

        """
        parts = coordinate.split(":") if coordinate else []
        if len(parts) < 3 or len(parts) > 5 or not all(parts):
            raise InvalidArgumentError(
                f"Bad artifact coordinates {coordinate}, expected format is "
                "<groupId>:<artifactId>[:<extension>[:<classifier>]]:<version>"
            )
        group_id, artifact_id = parts[0], parts[1]
        version = parts[-1]
        extension = parts[2] if len(parts) >= 4 else "jar"
        classifier = parts[3] if len(parts) == 5 else None
        return cls(group_id, artifact_id, version, extension, classifier)

    def repository_path(self) -> Path:
        """Path of the artifact relative to a Maven repository root."""
        suffix = f"-{self.classifier}" if self.classifier else ""
        file_name = f"{self.artifact_id}-{self.version}{suffix}.{self.extension}"
        return Path(*self.group_id.split("."), self.artifact_id, self.version, file_name)


def default_local_repository() -> Path:
    """``~/.m2/repository``"""
    return Path.home() / ".m2" / "repository"


def local_maven_resolver(repository: Path | None = None) -> Resolver:
    """Build a resolver that looks coordinates up in a local Maven repository.

    Args:
        repository: Repository root, defaults to ``~/.m2/repository``

    Returns:
        Callable mapping a coordinate to a single-element path list

    """
    root = repository or default_local_repository()

    def resolve(coordinate: str) -> list[str]:
        artifact = root / MavenCoordinate.parse(coordinate).repository_path()
        if not artifact.is_file():
            raise MissingFileError(
                f"Artifact {coordinate} not found in local repository {root}",
                context={"coordinate": coordinate, "path": str(artifact)},
            )
        return [str(artifact.absolute())]

    return resolve


def maven_entry(coordinate: str, repository: Path | None = None) -> ExternalResolvedEntry:
    """Classpath entry for an artifact already present in the local repository."""
    return ExternalResolvedEntry(coordinate, local_maven_resolver(repository))
