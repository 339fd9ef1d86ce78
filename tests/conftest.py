"""
Pytest configuration and shared fixtures for testjars tests.
"""

import stat
import sys
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from testjars.core import config
from testjars.core.harness import ProcessRegistry

# Stands in for a JVM: understands -D arguments and honours the port file
# contract. Behaviour is selected with fake.* system properties.
FAKE_JAVA = """#!{python}
import json
import os
import sys
import time

props = {{}}
for arg in sys.argv[1:]:
    if arg.startswith("-D"):
        key, _, value = arg[2:].partition("=")
        props[key] = value

if "fake.argv" in props:
    with open(props["fake.argv"], "w") as f:
        json.dump(sys.argv[1:], f)

mode = props.get("fake.mode", "serve")
if mode == "fail":
    sys.exit(int(props.get("fake.exit-code", "3")))
if mode == "exit":
    sys.exit(0)

time.sleep(float(props.get("fake.delay", "0")))
port_file = props["PORTFILE"]
with open(port_file + ".tmp", "w") as f:
    f.write(props.get("fake.port", "12345"))
os.replace(port_file + ".tmp", port_file)

if mode == "write-and-exit":
    sys.exit(0)
while True:
    time.sleep(0.1)
"""


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch) -> Generator[None, None, None]:
    """Give every test settings built from a clean environment."""
    for name in ("TESTJARS_JAVA_EXECUTABLE", "TESTJARS_PORT_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    config._settings = None
    yield
    config._settings = None


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files.

    Yields:
        Path to temporary directory that will be cleaned up after test
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def reset_structlog():
    """Reset structlog configuration after each test."""
    import logging

    import structlog

    yield

    structlog.reset_defaults()
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)


@pytest.fixture
def fake_java(temp_dir: Path) -> Path:
    """Create an executable that behaves like a JVM writing its port.

    Returns:
        Path to the executable script
    """
    if sys.platform == "win32":
        pytest.skip("fake java relies on a shebang line")
    script = temp_dir / "java"
    script.write_text(FAKE_JAVA.format(python=sys.executable))
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def registry() -> Generator[ProcessRegistry, None, None]:
    """Registry whose children are terminated after the test."""
    with ProcessRegistry(termination_timeout=2.0) as process_registry:
        yield process_registry


@pytest.fixture
def app_jar(temp_dir: Path) -> Path:
    """An empty file with a jar extension."""
    jar = temp_dir / "app.jar"
    jar.write_bytes(b"")
    return jar
