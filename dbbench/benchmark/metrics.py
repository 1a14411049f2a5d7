"""
Metrics and aggregation for benchmark results.
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Any, Iterable

# Non-finite floats are persisted as strings; float() parses them back
INFINITY = "Infinity"


def json_number(value: float) -> Any:
    """Make a float safe for strict JSON writers."""
    if math.isinf(value):
        return INFINITY if value > 0 else f"-{INFINITY}"
    return value


@dataclass(frozen=True)
class BenchmarkRun:
    """
    Timing of one fixed-size benchmark loop.

    All times are in milliseconds and cover the timed loop only,
    never the warmup phase.
    """
    iterations: int
    duration: float
    ops_per_second: float
    avg_time_per_op: float

    @classmethod
    def from_duration(cls, iterations: int, duration: float) -> "BenchmarkRun":
        """
        Derive throughput metrics from an iteration count and duration.

        Args:
            iterations: Number of timed repetitions (must be positive)
            duration: Total wall-clock time of the timed loop in ms

        Returns:
            BenchmarkRun with ops/sec and average time per op
        """
        if iterations <= 0:
            raise ValueError(f"iterations must be positive, got {iterations}")
        if duration < 0:
            raise ValueError(f"duration must be non-negative, got {duration}")

        if duration == 0:
            ops_per_second = math.inf
        else:
            ops_per_second = iterations / duration * 1000

        return cls(
            iterations=iterations,
            duration=duration,
            ops_per_second=ops_per_second,
            avg_time_per_op=duration / iterations,
        )


@dataclass(frozen=True)
class BenchmarkResult:
    """
    A benchmark run labelled with the operation and library it measured.

    This is the unit that gets printed, compared and persisted.
    """
    operation: str
    library: str
    iterations: int
    duration: float
    ops_per_second: float
    avg_time_per_op: float

    @classmethod
    def from_run(cls, operation: str, library: str, run: BenchmarkRun) -> "BenchmarkResult":
        """Wrap a BenchmarkRun with its operation and library labels."""
        return cls(
            operation=operation,
            library=library,
            iterations=run.iterations,
            duration=run.duration,
            ops_per_second=run.ops_per_second,
            avg_time_per_op=run.avg_time_per_op,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "operation": self.operation,
            "library": self.library,
            "iterations": self.iterations,
            "duration": self.duration,
            "opsPerSecond": json_number(self.ops_per_second),
            "avgTimePerOp": self.avg_time_per_op,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BenchmarkResult":
        """Rebuild a result from its serialized form."""
        return cls(
            operation=data["operation"],
            library=data["library"],
            iterations=int(data["iterations"]),
            duration=float(data["duration"]),
            ops_per_second=float(data["opsPerSecond"]),
            avg_time_per_op=float(data["avgTimePerOp"]),
        )


@dataclass(frozen=True)
class OperationSummary:
    """Fastest/slowest comparison for one operation."""
    fastest: str
    fastest_ops: float
    slowest: str
    slowest_ops: float
    speedup_multiplier: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "fastest": self.fastest,
            "fastestOps": json_number(self.fastest_ops),
            "slowest": self.slowest,
            "slowestOps": json_number(self.slowest_ops),
            "speedupMultiplier": json_number(self.speedup_multiplier),
        }


def _ratio(numerator: float, denominator: float) -> float:
    if numerator == denominator:
        return 1.0
    if denominator == 0:
        return math.inf
    return numerator / denominator


def group_and_rank(results: Iterable[BenchmarkResult]) -> Dict[str, List[BenchmarkResult]]:
    """
    Group results by operation and rank each group by throughput.

    Operations keep the order in which they were first seen. Inside a
    group results are sorted by descending ops/sec; the sort is stable,
    so ties keep their encounter order. The input is not modified.

    Args:
        results: Benchmark results in collection order

    Returns:
        Mapping of operation label to its ranked results
    """
    grouped: Dict[str, List[BenchmarkResult]] = {}
    for result in results:
        grouped.setdefault(result.operation, []).append(result)

    return {
        operation: sorted(group, key=lambda r: r.ops_per_second, reverse=True)
        for operation, group in grouped.items()
    }


def speedup(ranked: List[BenchmarkResult]) -> float:
    """Fastest over second-fastest ops/sec; 1.0 for a single entry."""
    if len(ranked) < 2:
        return 1.0
    return _ratio(ranked[0].ops_per_second, ranked[1].ops_per_second)


def row_speedup(ranked: List[BenchmarkResult]) -> float:
    """Fastest over slowest ops/sec; 1.0 for a single entry."""
    if len(ranked) < 2:
        return 1.0
    return _ratio(ranked[0].ops_per_second, ranked[-1].ops_per_second)


def summarize(results: Iterable[BenchmarkResult]) -> Dict[str, OperationSummary]:
    """
    Build the per-operation comparison summary.

    Args:
        results: Benchmark results in collection order

    Returns:
        Mapping of operation label to OperationSummary
    """
    summary: Dict[str, OperationSummary] = {}

    for operation, ranked in group_and_rank(results).items():
        fastest = ranked[0]
        slowest = ranked[-1]
        summary[operation] = OperationSummary(
            fastest=fastest.library,
            fastest_ops=fastest.ops_per_second,
            slowest=slowest.library,
            slowest_ops=slowest.ops_per_second,
            speedup_multiplier=speedup(ranked),
        )

    return summary
