"""
Base suite interface for backend benchmarks.
All suites must implement this interface.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional

from ..benchmark.metrics import BenchmarkResult, BenchmarkRun
from ..config import Config

logger = logging.getLogger(__name__)

SCHEMA_ROW_NAME = "test_name"


class BenchmarkSuite(ABC):
    """
    Abstract base class for backend benchmark suites.

    A suite benchmarks the same operations with two or more client
    libraries against one backend. Each benchmark function opens its own
    connection, seeds it, times the operation and closes it again.

    Example:
        class MySuite(BenchmarkSuite):
            name = "mysuite"

            def run(self):
                # Implementation
                pass
    """

    # Suite identification
    name: str = "base"
    display_name: str = "Base Suite"
    title: str = "Benchmark Results"
    result_stem: str = "base"

    # Libraries under test; the baseline column is printed last
    libraries: List[str] = []
    baseline_library: Optional[str] = None

    # Printed when the backend cannot be reached
    setup_hint: str = ""

    def __init__(
        self,
        iterations: Optional[int] = None,
        warmup: Optional[int] = None,
        seed_rows: Optional[int] = None,
    ):
        """
        Initialize suite with configuration.

        Args:
            iterations: Timed repetitions per benchmark (default: Config.ITERATIONS)
            warmup: Untimed repetitions per benchmark (default: Config.WARMUP)
            seed_rows: Rows/keys seeded before read benchmarks (default: Config.SEED_ROWS)
        """
        self.iterations = self._default_iterations() if iterations is None else iterations
        self.warmup = Config.WARMUP if warmup is None else warmup
        self.destructive_warmup = min(self.warmup, Config.DESTRUCTIVE_WARMUP)
        self.seed_rows = Config.SEED_ROWS if seed_rows is None else seed_rows

        self.config = self._load_config()
        self._validate_config()

    def _default_iterations(self) -> int:
        return Config.ITERATIONS

    @abstractmethod
    def _load_config(self) -> Dict[str, Any]:
        """
        Load suite-specific configuration.

        Returns:
            Dictionary containing backend configuration
        """
        pass

    def _validate_config(self) -> None:
        """
        Validate the workload settings.
        Raises ConfigurationError if validation fails.
        """
        if self.iterations <= 0:
            raise ConfigurationError(f"iterations must be positive, got {self.iterations}")
        if self.warmup < 0:
            raise ConfigurationError(f"warmup must be non-negative, got {self.warmup}")
        if self.seed_rows <= 0:
            raise ConfigurationError(f"seed_rows must be positive, got {self.seed_rows}")

    @abstractmethod
    def run(self) -> List[BenchmarkResult]:
        """
        Run every benchmark of the suite, one after another.

        Returns:
            Results in collection order
        """
        pass

    def check_connection(self) -> bool:
        """
        Probe the backend once.

        Returns:
            True if the backend accepted a connection
        """
        return True

    def health_check(self) -> bool:
        """
        Check if the backend is reachable.

        Returns:
            True if the backend is healthy, False otherwise
        """
        try:
            return self.check_connection()
        except Exception as e:
            logger.debug(f"{self.name} health check failed: {e}")
            return False

    def _record(
        self,
        results: List[BenchmarkResult],
        operation: str,
        library: str,
        run: BenchmarkRun,
    ) -> None:
        results.append(BenchmarkResult.from_run(operation, library, run))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name})>"


class SuiteError(Exception):
    """Base exception for suite errors."""
    pass


class ConfigurationError(SuiteError):
    """Raised when suite configuration is invalid."""
    pass


class SetupError(SuiteError):
    """Raised when a backend cannot be reached or prepared."""
    pass
