"""
Benchmark execution and reporting package.
"""

from .runner import benchmark, benchmark_async, SuiteRunner, DEFAULT_WARMUP
from .metrics import BenchmarkRun, BenchmarkResult, OperationSummary, group_and_rank, summarize
from .reporter import Reporter

__all__ = [
    "benchmark",
    "benchmark_async",
    "SuiteRunner",
    "DEFAULT_WARMUP",
    "BenchmarkRun",
    "BenchmarkResult",
    "OperationSummary",
    "group_and_rank",
    "summarize",
    "Reporter",
]
