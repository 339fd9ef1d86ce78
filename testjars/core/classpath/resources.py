"""Bundled resource lookup.

Resources are addressed by slash-separated names (``app/config.yml``) and
searched for across an ordered list of roots, the way a classloader searches
its classpath: the first root holding a name wins. A root is an importable
package name (resolved through :mod:`importlib.resources`) or a directory.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path

from testjars.core.config import get_settings
from testjars.utils.logger import get_logger

logger = get_logger(__name__)

ResourceRoot = str | Path | Traversable

_SKIPPED_DIRECTORIES = frozenset({"__pycache__"})


def _split(name: str) -> list[str]:
    return [part for part in name.replace("\\", "/").split("/") if part]


def _descend(root: Traversable, name: str) -> Traversable:
    node = root
    for part in _split(name):
        node = node.joinpath(part)
    return node


class ResourceLoader:
    """Finds bundled resources across an ordered list of roots.

    Args:
        roots: Package names or directories to search, highest precedence
            first. Defaults to the ``resource_packages`` setting.

    """

    def __init__(self, roots: Sequence[ResourceRoot] | None = None) -> None:
        if roots is None:
            roots = get_settings().resource_packages
        self.roots = list(roots)

    def _traversables(self) -> Iterator[Traversable]:
        for root in self.roots:
            if isinstance(root, str):
                try:
                    yield resources.files(root)
                except ModuleNotFoundError:
                    logger.debug("Resource package not importable", package=root)
            else:
                yield root

    def find(self, name: str) -> Traversable | None:
        """Return the first resource called ``name``, or None."""
        for root in self._traversables():
            candidate = _descend(root, name)
            if candidate.is_file():
                return candidate
        return None

    def exists(self, name: str) -> bool:
        """Check whether a resource is present without reading it."""
        return self.find(name) is not None

    def scan(self, base_dir: str) -> list[tuple[str, Traversable]]:
        """Enumerate every resource below ``base_dir`` in every root.

        Directory nodes are reported with a trailing ``/`` so callers can skip
        them. Names already found in an earlier root are not repeated.

        Args:
            base_dir: Slash-separated directory name, ``""`` for the root

        Returns:
            ``(name, resource)`` pairs with names relative to the root

        """
        prefix = "/".join(_split(base_dir))
        seen: set[str] = set()
        found: list[tuple[str, Traversable]] = []
        for root in self._traversables():
            base = _descend(root, prefix)
            if not base.is_dir():
                continue
            for name, node in _walk(base, prefix):
                if name not in seen:
                    seen.add(name)
                    found.append((name, node))
        return found


def _walk(directory: Traversable, prefix: str) -> Iterator[tuple[str, Traversable]]:
    for child in sorted(directory.iterdir(), key=lambda node: node.name):
        name = f"{prefix}/{child.name}" if prefix else child.name
        if child.is_dir():
            if child.name in _SKIPPED_DIRECTORIES:
                continue
            yield f"{name}/", child
            yield from _walk(child, name)
        else:
            yield name, child
