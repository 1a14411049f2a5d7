"""
Benchmark runner for executing timed operation loops.
"""

import inspect
import time
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional

from .metrics import BenchmarkRun, BenchmarkResult

if TYPE_CHECKING:
    from ..suites.base import BenchmarkSuite

logger = logging.getLogger(__name__)

DEFAULT_WARMUP = 100


def _validate(iterations: int, warmup: int) -> None:
    if iterations <= 0:
        raise ValueError(f"iterations must be positive, got {iterations}")
    if warmup < 0:
        raise ValueError(f"warmup must be non-negative, got {warmup}")


def _call(fn: Callable[[], Any]) -> None:
    result = fn()
    if inspect.isawaitable(result):
        # Close the coroutine so it doesn't warn about never being awaited
        if inspect.iscoroutine(result):
            result.close()
        raise TypeError(
            "benchmark() got an async operation; use benchmark_async() instead"
        )


def benchmark(
    name: str,
    fn: Callable[[], Any],
    iterations: int,
    warmup: int = DEFAULT_WARMUP,
) -> BenchmarkRun:
    """
    Time a blocking operation.

    Runs ``fn`` ``warmup`` times untimed, then ``iterations`` times
    back to back between two monotonic clock readings. Exceptions raised
    by ``fn`` are not caught: the run is aborted and nothing is returned.

    Args:
        name: Label used in log output
        fn: Zero-argument callable performing one unit of work
        iterations: Number of timed repetitions (must be positive)
        warmup: Number of untimed repetitions before measuring

    Returns:
        BenchmarkRun with duration and derived throughput
    """
    _validate(iterations, warmup)

    logger.debug(f"{name}: warmup x{warmup}")
    for _ in range(warmup):
        _call(fn)

    logger.debug(f"{name}: timing x{iterations}")
    start = time.perf_counter()
    for _ in range(iterations):
        _call(fn)
    end = time.perf_counter()

    run = BenchmarkRun.from_duration(iterations, (end - start) * 1000)
    logger.info(f"{name}: {run.ops_per_second:.2f} ops/sec ({run.duration:.2f}ms)")
    return run


async def benchmark_async(
    name: str,
    fn: Callable[[], Awaitable[Any]],
    iterations: int,
    warmup: int = DEFAULT_WARMUP,
) -> BenchmarkRun:
    """
    Time an async operation.

    Same contract as :func:`benchmark`, but every call is awaited to
    completion before the next one starts, so the duration is the serial
    latency sum rather than overlapped throughput.

    Args:
        name: Label used in log output
        fn: Zero-argument coroutine function performing one unit of work
        iterations: Number of timed repetitions (must be positive)
        warmup: Number of untimed repetitions before measuring

    Returns:
        BenchmarkRun with duration and derived throughput
    """
    _validate(iterations, warmup)

    logger.debug(f"{name}: warmup x{warmup}")
    for _ in range(warmup):
        await fn()

    logger.debug(f"{name}: timing x{iterations}")
    start = time.perf_counter()
    for _ in range(iterations):
        await fn()
    end = time.perf_counter()

    run = BenchmarkRun.from_duration(iterations, (end - start) * 1000)
    logger.info(f"{name}: {run.ops_per_second:.2f} ops/sec ({run.duration:.2f}ms)")
    return run


class SuiteRunner:
    """
    Run several benchmark suites one after another.

    Suites never overlap, so libraries sharing a backend server do not
    compete for it. The first failing suite stops the whole run.

    Example:
        runner = SuiteRunner()
        runner.add_suite(SqliteSuite())
        runner.add_suite(RedisSuite())

        results = runner.run_all()
    """

    def __init__(self, save: bool = True):
        """
        Initialize suite runner.

        Args:
            save: Persist each suite's results after it finishes
        """
        self.save = save
        self.suites: List["BenchmarkSuite"] = []
        self.results: Dict[str, List[BenchmarkResult]] = {}

        self._on_suite_start: Optional[Callable[[int, int, "BenchmarkSuite"], None]] = None

    def add_suite(self, suite: "BenchmarkSuite") -> "SuiteRunner":
        """Add a suite to run."""
        self.suites.append(suite)
        return self

    def on_suite_start(self, callback: Callable[[int, int, "BenchmarkSuite"], None]) -> "SuiteRunner":
        """
        Set suite start callback.

        Args:
            callback: Function(position, total, suite) called before each suite
        """
        self._on_suite_start = callback
        return self

    def run_all(self, reporter=None) -> Dict[str, List[BenchmarkResult]]:
        """
        Run every registered suite in order.

        Args:
            reporter: Reporter used to print (and optionally save) results

        Returns:
            Dictionary mapping suite name to its results
        """
        total = len(self.suites)
        logger.info(f"Running {total} suites")

        for position, suite in enumerate(self.suites, start=1):
            if self._on_suite_start:
                self._on_suite_start(position, total, suite)

            logger.info(f"Suite {position}/{total}: {suite.display_name}")
            try:
                results = suite.run()
            except Exception as e:
                logger.error(f"Suite {suite.name} failed: {e}")
                raise

            self.results[suite.name] = results

            if reporter is not None:
                reporter.print_results(results, suite.title, baseline=suite.baseline_library)
                if self.save:
                    reporter.save_results(results, suite.result_stem)

        return self.results

