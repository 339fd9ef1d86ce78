"""
testjars - run JVM applications as test collaborators.

This package launches applications from jars, directories and bundled
resources as child processes, discovers the port each one bound and
guarantees the processes are gone when the test run ends.
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

from testjars.core.classpath import Classpath
from testjars.core.exceptions import HarnessError
from testjars.core.harness import ExecHarness, ExecHarnessBuilder, ProcessRegistry
from testjars.core.properties import DynamicProperty

__all__ = [
    "__version__",
    "__license__",
    "Classpath",
    "DynamicProperty",
    "ExecHarness",
    "ExecHarnessBuilder",
    "HarnessError",
    "ProcessRegistry",
]
