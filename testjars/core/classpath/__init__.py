"""Classpath Package.

Composes heterogeneous sources of runnable material into the single
``-classpath`` argument of a child JVM.

Example usage:
    from testjars.core.classpath import Classpath, ExtractedResourceEntry

    classpath = Classpath().files("build/libs/app.jar").entries(
        ExtractedResourceEntry("testjars/app/application.yml", "application.yml")
    )
    argument = classpath.build()
    classpath.cleanup()
"""

from testjars.core.classpath.builder import Classpath
from testjars.core.classpath.entries import (
    ARCHIVE_EXTENSIONS,
    ClasspathEntry,
    ExternalResolvedEntry,
    ExtractedResourceEntry,
    FileEntry,
    RecursiveScanEntry,
)
from testjars.core.classpath.resolvers import (
    MavenCoordinate,
    local_maven_resolver,
    maven_entry,
)
from testjars.core.classpath.resources import ResourceLoader

__all__ = [
    "ARCHIVE_EXTENSIONS",
    "Classpath",
    "ClasspathEntry",
    "ExternalResolvedEntry",
    "ExtractedResourceEntry",
    "FileEntry",
    "MavenCoordinate",
    "RecursiveScanEntry",
    "ResourceLoader",
    "local_maven_resolver",
    "maven_entry",
]
