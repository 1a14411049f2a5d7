"""
Embedded SQLite suite: the standard library's sqlite3 driver vs apsw.
"""

import sqlite3
import logging
from typing import Dict, Any, List

import apsw

from .base import BenchmarkSuite, SCHEMA_ROW_NAME
from ..benchmark.metrics import BenchmarkResult, BenchmarkRun
from ..benchmark.runner import benchmark
from ..benchmark.utils import random_value
from ..config import Config

logger = logging.getLogger(__name__)

CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS benchmark_test (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      name TEXT NOT NULL,
      value INTEGER NOT NULL,
      created_at INTEGER DEFAULT (strftime('%s', 'now'))
    )
"""
INSERT_SQL = "INSERT INTO benchmark_test (name, value) VALUES (?, ?)"
SELECT_SQL = "SELECT * FROM benchmark_test WHERE value = ?"
UPDATE_SQL = "UPDATE benchmark_test SET value = ? WHERE id = ?"
DELETE_SQL = "DELETE FROM benchmark_test WHERE id = ?"
CLEAR_SQL = "DELETE FROM benchmark_test"

SQLITE3 = "sqlite3"
APSW = "apsw"


class SqliteSuite(BenchmarkSuite):
    """
    SQLite INSERT/SELECT/UPDATE/DELETE benchmark.

    Both libraries use a fresh in-memory database per benchmark, in
    autocommit mode, with the same table and parameters.
    """

    name = "sqlite"
    display_name = "SQLite"
    title = "SQLite Benchmark Results (sqlite3 vs apsw)"
    result_stem = "sqlite"
    libraries = [SQLITE3, APSW]
    baseline_library = APSW
    setup_hint = "SQLite needs no server; make sure the apsw package is installed"

    def _load_config(self) -> Dict[str, Any]:
        """Load SQLite configuration from environment."""
        return Config.get_sqlite_config()

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def _open_sqlite3(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.config["database"], isolation_level=None)
        try:
            conn.execute(CREATE_TABLE)
            conn.execute(CLEAR_SQL)
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    def _open_apsw(self) -> apsw.Connection:
        conn = apsw.Connection(self.config["database"])
        try:
            conn.cursor().execute(CREATE_TABLE)
            conn.cursor().execute(CLEAR_SQL)
        except apsw.Error:
            conn.close()
            raise
        return conn

    def _seed_sqlite3(self, conn: sqlite3.Connection) -> None:
        conn.executemany(INSERT_SQL, ((f"name_{i}", i) for i in range(self.seed_rows)))

    def _seed_apsw(self, conn: apsw.Connection) -> None:
        with conn:
            conn.cursor().executemany(INSERT_SQL, [(f"name_{i}", i) for i in range(self.seed_rows)])

    # ------------------------------------------------------------------
    # INSERT
    # ------------------------------------------------------------------

    def benchmark_sqlite3_insert(self) -> BenchmarkRun:
        conn = self._open_sqlite3()
        try:
            return benchmark(
                "sqlite3 INSERT",
                lambda: conn.execute(INSERT_SQL, (SCHEMA_ROW_NAME, random_value(1000))),
                self.iterations,
                self.warmup,
            )
        finally:
            conn.close()

    def benchmark_apsw_insert(self) -> BenchmarkRun:
        conn = self._open_apsw()
        try:
            cursor = conn.cursor()
            return benchmark(
                "apsw INSERT",
                lambda: cursor.execute(INSERT_SQL, (SCHEMA_ROW_NAME, random_value(1000))),
                self.iterations,
                self.warmup,
            )
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # SELECT
    # ------------------------------------------------------------------

    def benchmark_sqlite3_select(self) -> BenchmarkRun:
        conn = self._open_sqlite3()
        try:
            self._seed_sqlite3(conn)
            return benchmark(
                "sqlite3 SELECT",
                lambda: conn.execute(SELECT_SQL, (random_value(self.seed_rows),)).fetchone(),
                self.iterations,
                self.warmup,
            )
        finally:
            conn.close()

    def benchmark_apsw_select(self) -> BenchmarkRun:
        conn = self._open_apsw()
        try:
            self._seed_apsw(conn)
            cursor = conn.cursor()
            return benchmark(
                "apsw SELECT",
                lambda: next(cursor.execute(SELECT_SQL, (random_value(self.seed_rows),)), None),
                self.iterations,
                self.warmup,
            )
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # UPDATE
    # ------------------------------------------------------------------

    def benchmark_sqlite3_update(self) -> BenchmarkRun:
        conn = self._open_sqlite3()
        try:
            self._seed_sqlite3(conn)
            return benchmark(
                "sqlite3 UPDATE",
                lambda: conn.execute(
                    UPDATE_SQL, (random_value(1000), random_value(self.seed_rows) + 1)
                ),
                self.iterations,
                self.warmup,
            )
        finally:
            conn.close()

    def benchmark_apsw_update(self) -> BenchmarkRun:
        conn = self._open_apsw()
        try:
            self._seed_apsw(conn)
            cursor = conn.cursor()
            return benchmark(
                "apsw UPDATE",
                lambda: cursor.execute(
                    UPDATE_SQL, (random_value(1000), random_value(self.seed_rows) + 1)
                ),
                self.iterations,
                self.warmup,
            )
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # DELETE
    # ------------------------------------------------------------------

    def benchmark_sqlite3_delete(self) -> BenchmarkRun:
        conn = self._open_sqlite3()

        # Insert and delete a row on each iteration
        def insert_then_delete():
            row_id = conn.execute(INSERT_SQL, ("test", 123)).lastrowid
            conn.execute(DELETE_SQL, (row_id,))

        try:
            return benchmark(
                "sqlite3 DELETE", insert_then_delete, self.iterations, self.destructive_warmup
            )
        finally:
            conn.close()

    def benchmark_apsw_delete(self) -> BenchmarkRun:
        conn = self._open_apsw()
        cursor = conn.cursor()

        def insert_then_delete():
            cursor.execute(INSERT_SQL, ("test", 123))
            cursor.execute(DELETE_SQL, (conn.last_insert_rowid(),))

        try:
            return benchmark(
                "apsw DELETE", insert_then_delete, self.iterations, self.destructive_warmup
            )
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Suite
    # ------------------------------------------------------------------

    def run(self) -> List[BenchmarkResult]:
        """Run INSERT, SELECT, UPDATE and DELETE for both libraries."""
        logger.info("Starting SQLite benchmark")
        results: List[BenchmarkResult] = []

        for operation in ("INSERT", "SELECT", "UPDATE", "DELETE"):
            logger.info(f"Running {operation} tests...")
            suffix = operation.lower()
            self._record(results, operation, SQLITE3, getattr(self, f"benchmark_sqlite3_{suffix}")())
            self._record(results, operation, APSW, getattr(self, f"benchmark_apsw_{suffix}")())

        return results
