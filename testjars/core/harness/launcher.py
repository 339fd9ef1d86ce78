"""Launcher detection.

When no main class is configured the child is started through whichever
fat-jar launcher is present on its classpath. Each known launcher is a
LaunchStrategy that can report on its own whether it is available; the
detector tries them in priority order and falls back to a generic
application entry point when none is found.
"""

from __future__ import annotations

import zipfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from testjars.utils.logger import get_logger

logger = get_logger(__name__)

SPRING_BOOT_32_PLUS_LAUNCHER_CLASSNAME = "org.springframework.boot.loader.launch.JarLauncher"
SPRING_BOOT_PRE_32_LAUNCHER_CLASSNAME = "org.springframework.boot.loader.JarLauncher"
GENERIC_MAIN_CLASSNAME = (
    "org.springframework.experimental.boot.server.exec.imports."
    "GenericSpringBootApplicationMain"
)


@dataclass(frozen=True)
class LaunchStrategy:
    """A named entry point that may or may not be on the classpath.

    Attributes:
        main_class: Fully qualified class name passed as the main class.
        description: What kind of packaging this strategy launches.

    """

    main_class: str
    description: str

    @property
    def class_resource(self) -> str:
        """Resource name of the class file, e.g. ``org/example/Main.class``."""
        return self.main_class.replace(".", "/") + ".class"

    def is_available(self, classpath: Sequence[str]) -> bool:
        """Check the directories and archives of a resolved classpath."""
        resource = self.class_resource
        for entry in classpath:
            path = Path(entry)
            if path.is_dir():
                if (path / resource).is_file():
                    return True
            elif zipfile.is_zipfile(path):
                with zipfile.ZipFile(path) as archive:
                    if resource in archive.namelist():
                        return True
        return False


SPRING_BOOT_32_PLUS = LaunchStrategy(
    SPRING_BOOT_32_PLUS_LAUNCHER_CLASSNAME, "Spring Boot >= 3.2 fat jar"
)
SPRING_BOOT_PRE_32 = LaunchStrategy(
    SPRING_BOOT_PRE_32_LAUNCHER_CLASSNAME, "Spring Boot < 3.2 fat jar"
)

DEFAULT_STRATEGIES: tuple[LaunchStrategy, ...] = (SPRING_BOOT_32_PLUS, SPRING_BOOT_PRE_32)


class LauncherDetector:
    """Pick the main class for a classpath.

    Args:
        strategies: Strategies in priority order
        fallback: Main class used when no strategy is available

    """

    def __init__(
        self,
        strategies: Sequence[LaunchStrategy] = DEFAULT_STRATEGIES,
        fallback: str = GENERIC_MAIN_CLASSNAME,
    ) -> None:
        self.strategies = tuple(strategies)
        self.fallback = fallback

    def detect(self, classpath: Sequence[str]) -> str:
        """Return the main class of the first available strategy."""
        for strategy in self.strategies:
            logger.debug(
                "Trying launch strategy",
                description=strategy.description,
                main_class=strategy.main_class,
            )
            if strategy.is_available(classpath):
                logger.debug("Launching as", description=strategy.description)
                return strategy.main_class
        logger.debug("No fat jar launcher found, using fallback", main_class=self.fallback)
        return self.fallback
