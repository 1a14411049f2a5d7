"""Tests for the timed benchmark loops and the suite runner."""

import asyncio
import math
from typing import Any, Dict, List

import pytest

from dbbench.benchmark.metrics import BenchmarkResult, BenchmarkRun
from dbbench.benchmark.runner import SuiteRunner, benchmark, benchmark_async
from dbbench.suites.base import BenchmarkSuite


class Counter:
    def __init__(self, fail_on: int = 0):
        self.calls = 0
        self.fail_on = fail_on

    def __call__(self):
        self.calls += 1
        if self.calls == self.fail_on:
            raise RuntimeError(f"boom on call {self.calls}")


# ── benchmark() ────────────────────────────────────────────────────────────


@pytest.mark.parametrize("iterations", [1, 7, 250])
def test_calls_operation_exactly_iterations_times_without_warmup(iterations):
    counter = Counter()
    run = benchmark("count", counter, iterations, warmup=0)
    assert counter.calls == iterations
    assert run.iterations == iterations


def test_warmup_calls_are_not_counted_as_iterations():
    counter = Counter()
    run = benchmark("count", counter, 20, warmup=5)
    assert counter.calls == 25
    assert run.iterations == 20


def test_derived_metrics_are_exact():
    run = benchmark("noop", lambda: sum(range(50)), 500, warmup=0)
    assert run.duration >= 0
    assert run.avg_time_per_op == run.duration / run.iterations
    if run.duration > 0:
        assert run.ops_per_second == run.iterations / run.duration * 1000


def test_zero_duration_gives_infinite_throughput():
    run = BenchmarkRun.from_duration(10, 0.0)
    assert math.isinf(run.ops_per_second)
    assert run.avg_time_per_op == 0.0


@pytest.mark.parametrize("iterations", [0, -1])
def test_non_positive_iterations_are_rejected_before_running(iterations):
    counter = Counter()
    with pytest.raises(ValueError):
        benchmark("bad", counter, iterations, warmup=0)
    assert counter.calls == 0


def test_negative_warmup_is_rejected():
    with pytest.raises(ValueError):
        benchmark("bad", Counter(), 10, warmup=-1)


def test_failure_in_timed_loop_propagates():
    counter = Counter(fail_on=3)
    with pytest.raises(RuntimeError, match="call 3"):
        benchmark("fails", counter, 10, warmup=0)
    assert counter.calls == 3


def test_failure_in_warmup_propagates():
    counter = Counter(fail_on=2)
    with pytest.raises(RuntimeError):
        benchmark("fails", counter, 10, warmup=5)
    assert counter.calls == 2


def test_blocking_runner_rejects_async_operations():
    async def op():
        return None

    with pytest.raises(TypeError, match="benchmark_async"):
        benchmark("async", op, 3, warmup=0)


# ── benchmark_async() ──────────────────────────────────────────────────────


def test_async_runner_counts_calls_and_runs_serially():
    state = {"calls": 0, "in_flight": 0, "max_in_flight": 0}

    async def op():
        state["calls"] += 1
        state["in_flight"] += 1
        state["max_in_flight"] = max(state["max_in_flight"], state["in_flight"])
        await asyncio.sleep(0)
        state["in_flight"] -= 1

    run = asyncio.run(benchmark_async("async", op, 30, warmup=3))

    assert state["calls"] == 33
    assert state["max_in_flight"] == 1
    assert run.iterations == 30
    assert run.avg_time_per_op == run.duration / run.iterations


def test_async_failure_propagates():
    calls = []

    async def op():
        calls.append(1)
        if len(calls) == 3:
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(benchmark_async("async", op, 10, warmup=0))
    assert len(calls) == 3


def test_async_runner_rejects_zero_iterations():
    async def op():
        return None

    with pytest.raises(ValueError):
        asyncio.run(benchmark_async("async", op, 0))


# ── SuiteRunner ────────────────────────────────────────────────────────────


class FakeSuite(BenchmarkSuite):
    name = "fake"
    display_name = "Fake"
    title = "Fake Results"
    result_stem = "fake"
    baseline_library = "slow"

    def __init__(self, name: str, log: List[str], fail: bool = False):
        self.name = name
        self.log = log
        self.fail = fail
        super().__init__(iterations=5, warmup=0)

    def _load_config(self) -> Dict[str, Any]:
        return {}

    def run(self) -> List[BenchmarkResult]:
        self.log.append(self.name)
        if self.fail:
            raise ConnectionError(f"{self.name} unreachable")
        run = benchmark(self.name, lambda: None, self.iterations, self.warmup)
        return [BenchmarkResult.from_run("OP", "fast", run)]


class RecordingReporter:
    def __init__(self):
        self.printed = []
        self.saved = []

    def print_results(self, results, title, baseline=None):
        self.printed.append((title, baseline, len(results)))

    def save_results(self, results, filename):
        self.saved.append(filename)


def test_suite_runner_runs_suites_in_order_and_reports():
    log: List[str] = []
    reporter = RecordingReporter()
    runner = SuiteRunner().add_suite(FakeSuite("a", log)).add_suite(FakeSuite("b", log))

    started = []
    runner.on_suite_start(lambda position, total, suite: started.append((position, total, suite.name)))
    results = runner.run_all(reporter)

    assert log == ["a", "b"]
    assert started == [(1, 2, "a"), (2, 2, "b")]
    assert list(results) == ["a", "b"]
    assert reporter.printed == [("Fake Results", "slow", 1), ("Fake Results", "slow", 1)]
    assert reporter.saved == ["fake", "fake"]


def test_suite_runner_stops_at_first_failure():
    log: List[str] = []
    runner = SuiteRunner(save=False)
    runner.add_suite(FakeSuite("a", log))
    runner.add_suite(FakeSuite("b", log, fail=True))
    runner.add_suite(FakeSuite("c", log))

    reporter = RecordingReporter()
    with pytest.raises(ConnectionError):
        runner.run_all(reporter)

    assert log == ["a", "b"]
    assert list(runner.results) == ["a"]
    assert reporter.saved == []
