"""
MariaDB / MySQL server suite: PyMySQL (blocking) vs aiomysql (asyncio pool).
"""

import asyncio
import logging
from typing import Dict, Any, List

import aiomysql
import pymysql

from .base import BenchmarkSuite, SetupError, SCHEMA_ROW_NAME
from ..benchmark.metrics import BenchmarkResult, BenchmarkRun
from ..benchmark.runner import benchmark, benchmark_async
from ..benchmark.utils import random_value
from ..config import Config

logger = logging.getLogger(__name__)

CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS benchmark_test (
      id INT AUTO_INCREMENT PRIMARY KEY,
      name VARCHAR(255) NOT NULL,
      value INT NOT NULL,
      created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""
TRUNCATE_SQL = "TRUNCATE TABLE benchmark_test"
INSERT_SQL = "INSERT INTO benchmark_test (name, value) VALUES (%s, %s)"
SELECT_SQL = "SELECT * FROM benchmark_test WHERE value = %s LIMIT 1"
UPDATE_SQL = "UPDATE benchmark_test SET value = %s WHERE id = %s"
DELETE_SQL = "DELETE FROM benchmark_test WHERE id = %s"

PYMYSQL = "PyMySQL"
AIOMYSQL = "aiomysql"

# Errors raised by both drivers when the server cannot be reached
CONNECT_ERRORS = (pymysql.err.OperationalError, OSError)


class MariadbSuite(BenchmarkSuite):
    """
    MariaDB INSERT/SELECT/UPDATE/DELETE benchmark.

    PyMySQL runs every statement on one blocking connection. aiomysql
    acquires a pooled connection for every statement, the way an async
    application would.

    Configuration (via environment variables):
        - MARIADB_HOST, MARIADB_PORT: Server address
        - MARIADB_USER, MARIADB_PASSWORD: Credentials
        - MARIADB_DATABASE: Database to create and use
    """

    name = "mariadb"
    display_name = "MariaDB"
    title = "MariaDB Benchmark Results (PyMySQL vs aiomysql)"
    result_stem = "mariadb"
    libraries = [PYMYSQL, AIOMYSQL]
    baseline_library = AIOMYSQL
    setup_hint = (
        "1. Make sure MariaDB server is running\n"
        "2. Check connection details in .env file\n"
        "3. Make sure the user may create the configured database"
    )

    def _load_config(self) -> Dict[str, Any]:
        """Load MariaDB configuration from environment."""
        return Config.get_mariadb_config()

    def _connect_args(self) -> Dict[str, Any]:
        return {
            "host": self.config["host"],
            "port": self.config["port"],
            "user": self.config["user"],
            "password": self.config["password"],
            "autocommit": True,
        }

    def _connect(self, database: bool = True) -> pymysql.connections.Connection:
        args = self._connect_args()
        if database:
            args["database"] = self.config["database"]
        try:
            return pymysql.connect(**args)
        except CONNECT_ERRORS as e:
            raise SetupError(
                f"Cannot connect to MariaDB at {self.config['host']}:{self.config['port']}: {e}"
            ) from e

    def check_connection(self) -> bool:
        conn = self._connect(database=False)
        conn.ping()
        conn.close()
        return True

    def ensure_database(self) -> None:
        """Create the benchmark database if it is missing."""
        conn = self._connect(database=False)
        try:
            with conn.cursor() as cursor:
                cursor.execute(f"CREATE DATABASE IF NOT EXISTS `{self.config['database']}`")
        finally:
            conn.close()

    def _setup_sync(self) -> pymysql.connections.Connection:
        conn = self._connect()
        try:
            with conn.cursor() as cursor:
                cursor.execute(CREATE_TABLE)
                cursor.execute(TRUNCATE_SQL)
        except pymysql.err.Error:
            conn.close()
            raise
        return conn

    async def _setup_async(self) -> aiomysql.Pool:
        try:
            pool = await aiomysql.create_pool(db=self.config["database"], **self._connect_args())
        except CONNECT_ERRORS as e:
            raise SetupError(
                f"Cannot connect to MariaDB at {self.config['host']}:{self.config['port']}: {e}"
            ) from e

        try:
            async with pool.acquire() as conn:
                async with conn.cursor() as cursor:
                    await cursor.execute(CREATE_TABLE)
                    await cursor.execute(TRUNCATE_SQL)
        except pymysql.err.Error:
            await self._close_pool(pool)
            raise
        return pool

    async def _close_pool(self, pool: aiomysql.Pool) -> None:
        pool.close()
        await pool.wait_closed()

    def _seed_data(self) -> List[tuple]:
        return [(f"name_{i}", i) for i in range(self.seed_rows)]

    # ------------------------------------------------------------------
    # Blocking client
    # ------------------------------------------------------------------

    def _run_sync(self, label: str, sql: str, params, seed: bool) -> BenchmarkRun:
        conn = self._setup_sync()
        try:
            with conn.cursor() as cursor:
                if seed:
                    cursor.executemany(INSERT_SQL, self._seed_data())

                def execute():
                    cursor.execute(sql, params())
                    cursor.fetchall()

                return benchmark(label, execute, self.iterations, self.warmup)
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Async pool
    # ------------------------------------------------------------------

    async def _run_async(self, label: str, sql: str, params, seed: bool) -> BenchmarkRun:
        pool = await self._setup_async()
        try:
            if seed:
                async with pool.acquire() as conn:
                    async with conn.cursor() as cursor:
                        await cursor.executemany(INSERT_SQL, self._seed_data())

            async def execute():
                async with pool.acquire() as conn:
                    async with conn.cursor() as cursor:
                        await cursor.execute(sql, params())
                        await cursor.fetchall()

            return await benchmark_async(label, execute, self.iterations, self.warmup)
        finally:
            await self._close_pool(pool)

    # ------------------------------------------------------------------
    # Suite
    # ------------------------------------------------------------------

    def _plan(self) -> List[tuple]:
        """(operation, sql, params factory, seed table first) per benchmark."""
        seeded = self.seed_rows
        return [
            ("INSERT", INSERT_SQL, lambda: (SCHEMA_ROW_NAME, random_value(1000)), False),
            ("SELECT", SELECT_SQL, lambda: (random_value(seeded),), True),
            ("UPDATE", UPDATE_SQL, lambda: (random_value(1000), random_value(seeded) + 1), True),
            ("DELETE", DELETE_SQL, lambda: (random_value(seeded) + 1,), True),
        ]

    def run(self) -> List[BenchmarkResult]:
        """Run INSERT, SELECT, UPDATE and DELETE for both drivers."""
        logger.info("Starting MariaDB benchmark")
        results: List[BenchmarkResult] = []
        # Blocking DDL, done once before any event loop starts
        self.ensure_database()

        for operation, sql, params, seed in self._plan():
            logger.info(f"Running {operation} tests...")
            run = self._run_sync(f"{PYMYSQL} {operation}", sql, params, seed)
            self._record(results, operation, PYMYSQL, run)

            run = asyncio.run(self._run_async(f"{AIOMYSQL} {operation}", sql, params, seed))
            self._record(results, operation, AIOMYSQL, run)

        return results
