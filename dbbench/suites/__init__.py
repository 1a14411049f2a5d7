"""
Backend benchmark suites package.
Each suite implements the BenchmarkSuite interface.
"""

from .base import BenchmarkSuite, SuiteError, ConfigurationError, SetupError
from .sqlite import SqliteSuite
from .mariadb import MariadbSuite
from .cache import RedisSuite
from .compare import CompareSuite

# Registry of available suites, in run-all order
SUITES = {
    "sqlite": SqliteSuite,
    "mariadb": MariadbSuite,
    "redis": RedisSuite,
    "compare": CompareSuite,
}

# Suites executed by run-all
DEFAULT_SUITES = ["sqlite", "mariadb", "redis"]


def get_suite(name: str, **kwargs) -> BenchmarkSuite:
    """
    Get a suite instance by name.

    Args:
        name: Suite name (e.g., 'sqlite', 'redis')
        **kwargs: Workload overrides passed to the suite constructor

    Returns:
        Suite instance

    Raises:
        ValueError: If suite is not found
    """
    suite_class = SUITES.get(name.lower())
    if not suite_class:
        available = ", ".join(SUITES.keys())
        raise ValueError(f"Unknown suite: {name}. Available: {available}")

    return suite_class(**kwargs)


def list_suites() -> list:
    """List all available suite names."""
    return list(SUITES.keys())


__all__ = [
    "BenchmarkSuite",
    "SuiteError",
    "ConfigurationError",
    "SetupError",
    "SqliteSuite",
    "MariadbSuite",
    "RedisSuite",
    "CompareSuite",
    "get_suite",
    "list_suites",
    "SUITES",
    "DEFAULT_SUITES",
]
