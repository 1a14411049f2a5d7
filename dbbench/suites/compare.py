"""
Cross-backend suite: a file-backed SQLite table vs Redis for plain
key/value writes and reads.
"""

import asyncio
import logging
import random
import sqlite3
from pathlib import Path
from typing import Dict, Any, List

from .base import BenchmarkSuite
from .cache import REDIS_ASYNCIO, REDIS_PY, connect_async, connect_sync
from ..benchmark.metrics import BenchmarkResult, BenchmarkRun
from ..benchmark.runner import benchmark, benchmark_async
from ..benchmark.utils import random_value
from ..config import Config

logger = logging.getLogger(__name__)

SQLITE_FILE = "sqlite3 (file)"

CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS benchmark_test (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      key TEXT NOT NULL,
      value TEXT NOT NULL,
      created_at INTEGER DEFAULT (strftime('%s', 'now'))
    )
"""
INSERT_SQL = "INSERT INTO benchmark_test (key, value) VALUES (?, ?)"
SELECT_SQL = "SELECT value FROM benchmark_test WHERE key = ?"


def remove_database(path: Path) -> None:
    """Delete a SQLite file together with its WAL and shared-memory files."""
    for candidate in (path, Path(f"{path}-wal"), Path(f"{path}-shm")):
        candidate.unlink(missing_ok=True)


class CompareSuite(BenchmarkSuite):
    """
    SQLite (file, WAL) vs Redis comparison.

    WRITE is an INSERT vs a SET, READ a keyed SELECT vs a GET.
    """

    name = "compare"
    display_name = "SQLite vs Redis"
    title = "SQLite (File) vs Redis Benchmark Results"
    result_stem = "compare_sqlite_redis"
    libraries = [SQLITE_FILE, REDIS_PY, REDIS_ASYNCIO]
    baseline_library = REDIS_ASYNCIO
    setup_hint = "Make sure Redis server is running (redis-server) and REDIS_URL is correct"

    def _default_iterations(self) -> int:
        return Config.COMPARE_ITERATIONS

    def _load_config(self) -> Dict[str, Any]:
        """Load comparison configuration from environment."""
        return Config.get_compare_config()

    @property
    def database_path(self) -> Path:
        return Path(self.config["sqlite_file"])

    def check_connection(self) -> bool:
        connect_sync(self.config["redis_url"]).close()
        return True

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _setup_sqlite(self) -> sqlite3.Connection:
        remove_database(self.database_path)

        conn = sqlite3.connect(self.database_path, isolation_level=None)
        try:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")
            conn.execute(CREATE_TABLE)
        except sqlite3.Error:
            self._teardown_sqlite(conn)
            raise
        return conn

    def _teardown_sqlite(self, conn: sqlite3.Connection) -> None:
        conn.close()
        remove_database(self.database_path)

    # ------------------------------------------------------------------
    # WRITE
    # ------------------------------------------------------------------

    def benchmark_sqlite_write(self) -> BenchmarkRun:
        conn = self._setup_sqlite()
        try:
            return benchmark(
                "sqlite3 INSERT",
                lambda: conn.execute(INSERT_SQL, (f"key_{random.random()}", f"value_{random.random()}")),
                self.iterations,
                self.warmup,
            )
        finally:
            self._teardown_sqlite(conn)

    def benchmark_redis_write(self) -> BenchmarkRun:
        client = connect_sync(self.config["redis_url"])
        try:
            client.flushdb()
            return benchmark(
                "redis-py SET",
                lambda: client.set(f"key_{random.random()}", f"value_{random.random()}"),
                self.iterations,
                self.warmup,
            )
        finally:
            client.close()

    async def benchmark_async_redis_write(self) -> BenchmarkRun:
        client = await connect_async(self.config["redis_url"])
        try:
            await client.flushdb()
            return await benchmark_async(
                "redis-py asyncio SET",
                lambda: client.set(f"key_{random.random()}", f"value_{random.random()}"),
                self.iterations,
                self.warmup,
            )
        finally:
            await client.aclose()

    # ------------------------------------------------------------------
    # READ
    # ------------------------------------------------------------------

    def benchmark_sqlite_read(self) -> BenchmarkRun:
        conn = self._setup_sqlite()
        try:
            conn.executemany(INSERT_SQL, ((f"key_{i}", f"value_{i}") for i in range(self.seed_rows)))
            return benchmark(
                "sqlite3 SELECT",
                lambda: conn.execute(SELECT_SQL, (f"key_{random_value(self.seed_rows)}",)).fetchone(),
                self.iterations,
                self.warmup,
            )
        finally:
            self._teardown_sqlite(conn)

    def benchmark_redis_read(self) -> BenchmarkRun:
        client = connect_sync(self.config["redis_url"])
        try:
            client.flushdb()
            for i in range(self.seed_rows):
                client.set(f"key_{i}", f"value_{i}")
            return benchmark(
                "redis-py GET",
                lambda: client.get(f"key_{random_value(self.seed_rows)}"),
                self.iterations,
                self.warmup,
            )
        finally:
            client.close()

    async def benchmark_async_redis_read(self) -> BenchmarkRun:
        client = await connect_async(self.config["redis_url"])
        try:
            await client.flushdb()
            for i in range(self.seed_rows):
                await client.set(f"key_{i}", f"value_{i}")
            return await benchmark_async(
                "redis-py asyncio GET",
                lambda: client.get(f"key_{random_value(self.seed_rows)}"),
                self.iterations,
                self.warmup,
            )
        finally:
            await client.aclose()

    # ------------------------------------------------------------------
    # Suite
    # ------------------------------------------------------------------

    def run(self) -> List[BenchmarkResult]:
        """Run WRITE and READ for SQLite and both Redis clients."""
        logger.info("Starting SQLite vs Redis comparison")
        results: List[BenchmarkResult] = []

        for operation, suffix in (("WRITE", "write"), ("READ", "read")):
            logger.info(f"Running {operation} tests...")
            self._record(results, operation, SQLITE_FILE, getattr(self, f"benchmark_sqlite_{suffix}")())
            self._record(results, operation, REDIS_PY, getattr(self, f"benchmark_redis_{suffix}")())
            self._record(
                results,
                operation,
                REDIS_ASYNCIO,
                asyncio.run(getattr(self, f"benchmark_async_redis_{suffix}")()),
            )

        return results
