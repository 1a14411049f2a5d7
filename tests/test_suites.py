"""Tests for the suite registry and the suites that need no server."""

import asyncio
import sqlite3
import types

import pytest

from dbbench.benchmark.metrics import BenchmarkRun
from dbbench.suites import (
    DEFAULT_SUITES,
    SUITES,
    CompareSuite,
    ConfigurationError,
    MariadbSuite,
    RedisSuite,
    SetupError,
    SqliteSuite,
    get_suite,
    list_suites,
)
from dbbench.suites import compare as compare_suite
from dbbench.suites import mariadb as mariadb_suite
from dbbench.suites import sqlite as sqlite_suite
from dbbench.suites.cache import connect_sync
from dbbench.suites.compare import remove_database

# Nothing listens on port 1, so connecting fails immediately
UNREACHABLE_REDIS = "redis://127.0.0.1:1"


# ── Registry ───────────────────────────────────────────────────────────────


def test_registry_lists_every_backend():
    assert list_suites() == ["sqlite", "mariadb", "redis", "compare"]
    assert set(DEFAULT_SUITES) <= set(SUITES)


def test_get_suite_is_case_insensitive_and_forwards_overrides():
    suite = get_suite("SQLite", iterations=7, warmup=2, seed_rows=3)
    assert isinstance(suite, SqliteSuite)
    assert (suite.iterations, suite.warmup, suite.seed_rows) == (7, 2, 3)


def test_get_suite_rejects_unknown_names():
    with pytest.raises(ValueError, match="Unknown suite"):
        get_suite("postgres")


@pytest.mark.parametrize("overrides", [{"iterations": 0}, {"warmup": -1}, {"seed_rows": 0}])
def test_invalid_workload_settings_are_rejected(overrides):
    with pytest.raises(ConfigurationError):
        SqliteSuite(**overrides)


def test_destructive_warmup_never_exceeds_warmup():
    assert SqliteSuite(warmup=0).destructive_warmup == 0
    assert SqliteSuite(warmup=500).destructive_warmup == 10


def test_compare_suite_uses_its_own_iteration_default():
    from dbbench.config import Config

    assert CompareSuite().iterations == Config.COMPARE_ITERATIONS
    assert CompareSuite(iterations=5).iterations == 5


def test_every_suite_declares_its_baseline_among_its_libraries():
    for suite_class in SUITES.values():
        assert suite_class.baseline_library in suite_class.libraries


# ── SQLite ─────────────────────────────────────────────────────────────────


def test_sqlite_suite_runs_every_operation_for_both_libraries():
    results = SqliteSuite(iterations=5, warmup=1, seed_rows=20).run()

    assert [(r.operation, r.library) for r in results] == [
        ("INSERT", "sqlite3"), ("INSERT", "apsw"),
        ("SELECT", "sqlite3"), ("SELECT", "apsw"),
        ("UPDATE", "sqlite3"), ("UPDATE", "apsw"),
        ("DELETE", "sqlite3"), ("DELETE", "apsw"),
    ]
    for result in results:
        assert result.iterations == 5
        assert result.avg_time_per_op == result.duration / 5


def test_sqlite_suite_health_check():
    assert SqliteSuite().health_check() is True


# ── SQLite vs Redis ────────────────────────────────────────────────────────


def test_remove_database_deletes_wal_and_shm(tmp_path):
    db = tmp_path / "bench.db"
    for path in (db, tmp_path / "bench.db-wal", tmp_path / "bench.db-shm"):
        path.write_text("")

    remove_database(db)
    remove_database(db)

    assert list(tmp_path.iterdir()) == []


def test_compare_sqlite_benchmarks_clean_up_their_file(tmp_path):
    suite = CompareSuite(iterations=5, warmup=1, seed_rows=10)
    suite.config["sqlite_file"] = str(tmp_path / "compare.db")

    write = suite.benchmark_sqlite_write()
    read = suite.benchmark_sqlite_read()

    assert write.iterations == read.iterations == 5
    assert list(tmp_path.iterdir()) == []


# ── Unreachable servers ────────────────────────────────────────────────────


def test_redis_connect_failure_is_a_setup_error():
    with pytest.raises(SetupError, match="Cannot connect to Redis"):
        connect_sync(UNREACHABLE_REDIS)


def test_redis_suite_setup_failure_aborts_run():
    suite = RedisSuite(iterations=3, warmup=0)
    suite.config["url"] = UNREACHABLE_REDIS

    assert suite.health_check() is False
    with pytest.raises(SetupError):
        suite.run()


def test_mariadb_setup_failure_is_a_setup_error():
    suite = MariadbSuite(iterations=3, warmup=0)
    suite.config.update({"host": "127.0.0.1", "port": 1})

    assert suite.health_check() is False
    with pytest.raises(SetupError, match="Cannot connect to MariaDB"):
        suite.run()


# ── Setup failures ─────────────────────────────────────────────────────────


class TrackingConnection(sqlite3.Connection):
    closed = False

    def close(self):
        self.closed = True
        super().close()


@pytest.fixture
def opened_sqlite(monkeypatch):
    """Make the sqlite suites open connections that remember being closed."""
    opened = []

    def connect(*args, **kwargs):
        conn = sqlite3.connect(*args, factory=TrackingConnection, **kwargs)
        opened.append(conn)
        return conn

    fake_module = types.SimpleNamespace(connect=connect, Error=sqlite3.Error)
    monkeypatch.setattr(sqlite_suite, "sqlite3", fake_module)
    monkeypatch.setattr(compare_suite, "sqlite3", fake_module)
    return opened


def test_failed_schema_setup_closes_the_connection(opened_sqlite, monkeypatch):
    monkeypatch.setattr(sqlite_suite, "CREATE_TABLE", "CREATE TABLE broken (")

    with pytest.raises(sqlite3.Error):
        SqliteSuite(iterations=3, warmup=0).benchmark_sqlite3_insert()
    assert [conn.closed for conn in opened_sqlite] == [True]


def test_failed_seed_closes_the_connection(opened_sqlite, monkeypatch):
    def broken_seed(self, conn):
        raise RuntimeError("seed failed")

    monkeypatch.setattr(SqliteSuite, "_seed_sqlite3", broken_seed)

    with pytest.raises(RuntimeError, match="seed failed"):
        SqliteSuite(iterations=3, warmup=0).benchmark_sqlite3_select()
    assert [conn.closed for conn in opened_sqlite] == [True]


def test_failed_compare_setup_removes_the_database_file(opened_sqlite, monkeypatch, tmp_path):
    monkeypatch.setattr(compare_suite, "CREATE_TABLE", "CREATE TABLE broken (")
    suite = CompareSuite(iterations=3, warmup=0)
    suite.config["sqlite_file"] = str(tmp_path / "compare.db")

    with pytest.raises(sqlite3.Error):
        suite.benchmark_sqlite_write()
    assert opened_sqlite[0].closed
    assert list(tmp_path.iterdir()) == []


def test_mariadb_creates_the_database_outside_the_event_loop(monkeypatch):
    calls = []

    def ensure_database(self):
        try:
            asyncio.get_running_loop()
            calls.append("inside loop")
        except RuntimeError:
            calls.append("no loop")

    def fake_sync(self, label, sql, params, seed):
        return BenchmarkRun.from_duration(self.iterations, 1.0)

    async def fake_async(self, label, sql, params, seed):
        return BenchmarkRun.from_duration(self.iterations, 1.0)

    monkeypatch.setattr(MariadbSuite, "ensure_database", ensure_database)
    monkeypatch.setattr(MariadbSuite, "_run_sync", fake_sync)
    monkeypatch.setattr(MariadbSuite, "_run_async", fake_async)

    results = MariadbSuite(iterations=3, warmup=0).run()

    assert calls == ["no loop"]
    assert len(results) == 8


def test_mariadb_async_setup_does_no_blocking_ddl(monkeypatch):
    calls = []

    async def unreachable(**kwargs):
        raise OSError("connection refused")

    monkeypatch.setattr(MariadbSuite, "ensure_database", lambda self: calls.append(1))
    monkeypatch.setattr(mariadb_suite.aiomysql, "create_pool", unreachable)

    with pytest.raises(SetupError, match="Cannot connect to MariaDB"):
        asyncio.run(MariadbSuite(iterations=3, warmup=0)._setup_async())
    assert calls == []
