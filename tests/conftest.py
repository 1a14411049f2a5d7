"""Shared fixtures for the benchmark harness tests."""

import io

import pytest
from rich.console import Console

from dbbench.benchmark.metrics import BenchmarkResult
from dbbench.benchmark.reporter import Reporter


def make_result(operation: str, library: str, ops: float, iterations: int = 1000) -> BenchmarkResult:
    """Build a result whose duration matches the requested ops/sec."""
    duration = iterations / ops * 1000
    return BenchmarkResult(
        operation=operation,
        library=library,
        iterations=iterations,
        duration=duration,
        ops_per_second=ops,
        avg_time_per_op=duration / iterations,
    )


@pytest.fixture
def sample_results():
    return [
        make_result("INSERT", "sqlite3", 200.0),
        make_result("INSERT", "apsw", 100.0),
        make_result("SELECT", "sqlite3", 300.0),
        make_result("SELECT", "apsw", 600.0),
    ]


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def reporter(tmp_path, console):
    return Reporter(output_dir=tmp_path / "results", console=console)
