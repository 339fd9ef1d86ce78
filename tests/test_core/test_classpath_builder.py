"""Tests for Classpath assembly, ResourceLoader and the Maven resolver."""

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from testjars.core.classpath import (
    Classpath,
    ClasspathEntry,
    MavenCoordinate,
    ResourceLoader,
    local_maven_resolver,
    maven_entry,
)
from testjars.core.exceptions import (
    InvalidArgumentError,
    MissingFileError,
    ResolutionError,
)

RESOURCES = Path(__file__).parent.parent / "resources"


class StaticEntry(ClasspathEntry):
    """Entry resolving to fixed paths."""

    def __init__(self, *paths):
        self.paths = list(paths)
        self.cleaned = False

    def resolve(self):
        return list(self.paths)

    def cleanup(self):
        self.cleaned = True


class TestClasspath:
    """Tests for the Classpath builder."""

    def test_empty_classpath(self):
        """No entries build to an empty string."""
        assert Classpath().build() == ""

    def test_joins_with_path_separator(self, temp_dir, app_jar):
        """Paths are joined with the platform separator in entry order."""
        classpath = Classpath().files(app_jar, temp_dir)
        assert classpath.build() == os.pathsep.join(
            [str(app_jar.resolve()), str(temp_dir.resolve())]
        )

    @settings(max_examples=50)
    @given(
        st.lists(
            st.lists(st.from_regex(r"/[a-z]{1,8}", fullmatch=True), max_size=3),
            max_size=6,
        )
    )
    def test_preserves_entry_and_path_order(self, groups):
        """Resolution flattens entries in order, keeping each entry's order."""
        classpath = Classpath([StaticEntry(*group) for group in groups])
        expected = [path for group in groups for path in group]
        assert classpath.resolve() == expected
        assert classpath.build() == os.pathsep.join(expected)

    def test_entries_appends(self):
        """entries() appends in call order and returns the classpath."""
        first, second = StaticEntry("/a"), StaticEntry("/b")
        classpath = Classpath().entries(first).entries(second)
        assert list(classpath) == [first, second]
        assert len(classpath) == 2
        assert classpath.classpath == [first, second]

    def test_first_failure_propagates(self):
        """A resolution failure stops the build."""
        failing = MagicMock(spec=ClasspathEntry)
        failing.resolve.side_effect = ResolutionError("boom")
        with pytest.raises(ResolutionError, match="boom"):
            Classpath([StaticEntry("/a"), failing]).build()

    def test_cleanup_continues_past_failures(self):
        """Every entry is cleaned up even if an earlier one fails."""
        first = StaticEntry("/a")
        failing = MagicMock(spec=ClasspathEntry)
        failing.cleanup.side_effect = OSError("busy")
        last = StaticEntry("/c")

        errors = Classpath([first, failing, last]).cleanup()

        assert first.cleaned
        failing.cleanup.assert_called_once()
        assert last.cleaned
        assert len(errors) == 1
        assert isinstance(errors[0], OSError)

    def test_scan_adds_package_entry(self):
        """scan() adds a recursive scan of the package."""
        classpath = Classpath().scan("testjars.resources")
        try:
            [root] = classpath.resolve()
            assert Path(root, "testjars", "resources").is_dir()
        finally:
            classpath.cleanup()


class TestResourceLoader:
    """Tests for ResourceLoader."""

    def test_find_in_directory_root(self):
        """Resources are found below directory roots."""
        loader = ResourceLoader([RESOURCES])
        resource = loader.find("testjars/app/application.yml")
        assert resource is not None
        assert "context-path" in resource.read_text()

    def test_find_missing(self):
        """Missing names return None."""
        assert ResourceLoader([RESOURCES]).find("nope/none.txt") is None

    def test_directories_are_not_resources(self):
        """find() only returns files."""
        assert ResourceLoader([RESOURCES]).find("scan") is None

    def test_unimportable_package_is_skipped(self):
        """A package root that cannot be imported is ignored."""
        loader = ResourceLoader(["testjars_missing_package", RESOURCES])
        assert loader.exists("scan/one.txt")

    def test_default_roots_from_settings(self):
        """The bundled resource package is searched by default."""
        assert ResourceLoader().roots == ["testjars.resources"]

    def test_scan_marks_directories(self):
        """Directories are reported with a trailing slash, files without."""
        names = [name for name, _ in ResourceLoader([RESOURCES]).scan("scan")]
        assert names == ["scan/nested/", "scan/nested/two.txt", "scan/one.txt"]


class TestMavenCoordinate:
    """Tests for Maven coordinate parsing and local resolution."""

    def test_parse_three_parts(self):
        """group:artifact:version defaults to a jar."""
        coordinate = MavenCoordinate.parse("org.example:app:1.0")
        assert coordinate == MavenCoordinate("org.example", "app", "1.0")
        assert coordinate.repository_path() == Path(
            "org", "example", "app", "1.0", "app-1.0.jar"
        )

    def test_parse_classifier(self):
        """Extension and classifier sit between artifact and version."""
        coordinate = MavenCoordinate.parse("org.example:app:war:exec:1.0")
        assert coordinate.repository_path().name == "app-1.0-exec.war"

    @pytest.mark.parametrize("value", ["", "a:b", "a::1", "a:b:c:d:e:f"])
    def test_parse_rejects_bad_coordinates(self, value):
        """Malformed coordinates are rejected."""
        with pytest.raises(InvalidArgumentError):
            MavenCoordinate.parse(value)

    def test_local_resolver_finds_artifact(self, temp_dir):
        """Artifacts present in the repository resolve to their path."""
        artifact = temp_dir / "org" / "example" / "app" / "1.0" / "app-1.0.jar"
        artifact.parent.mkdir(parents=True)
        artifact.write_bytes(b"")

        assert local_maven_resolver(temp_dir)("org.example:app:1.0") == [
            str(artifact.absolute())
        ]

    def test_local_resolver_missing_artifact(self, temp_dir):
        """A missing artifact raises MissingFileError."""
        with pytest.raises(MissingFileError):
            local_maven_resolver(temp_dir)("org.example:app:1.0")

    def test_maven_entry_wraps_failures(self, temp_dir):
        """Through an entry, resolver failures become ResolutionError."""
        entry = maven_entry("org.example:app:1.0", temp_dir)
        with pytest.raises(ResolutionError, match="Error resolving artifact org.example:app:1.0"):
            entry.resolve()
