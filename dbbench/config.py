"""
Configuration management for the database client benchmark.
Loads settings from environment variables and .env file.
"""

import os
from pathlib import Path
from typing import Dict, Any
from dotenv import load_dotenv

# Load .env file from project root
PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")


class Config:
    """Central configuration management."""

    # ==========================================================================
    # Benchmark Settings
    # ==========================================================================
    ITERATIONS: int = int(os.getenv("BENCH_ITERATIONS", "10000"))
    COMPARE_ITERATIONS: int = int(os.getenv("BENCH_COMPARE_ITERATIONS", "100000"))
    WARMUP: int = int(os.getenv("BENCH_WARMUP", "100"))
    DESTRUCTIVE_WARMUP: int = int(os.getenv("BENCH_DESTRUCTIVE_WARMUP", "10"))
    SEED_ROWS: int = int(os.getenv("BENCH_SEED_ROWS", "1000"))

    # Readiness checks (connection probes only, never benchmark operations)
    CONNECT_RETRIES: int = int(os.getenv("CONNECT_RETRIES", "5"))
    CONNECT_DELAY: float = float(os.getenv("CONNECT_DELAY", "1.0"))

    # Output directory
    RESULTS_DIR: Path = Path(os.getenv("RESULTS_DIR", str(Path.cwd() / "results")))

    # ==========================================================================
    # Backend Configurations
    # ==========================================================================

    @classmethod
    def get_sqlite_config(cls) -> Dict[str, Any]:
        """Get embedded SQLite configuration."""
        return {
            "database": os.getenv("SQLITE_DATABASE", ":memory:"),
            "compare_file": os.getenv("SQLITE_COMPARE_FILE", "bench_compare.db"),
        }

    @classmethod
    def get_mariadb_config(cls) -> Dict[str, Any]:
        """Get MariaDB / MySQL server configuration."""
        return {
            "host": os.getenv("MARIADB_HOST", "localhost"),
            "port": int(os.getenv("MARIADB_PORT", "3306")),
            "user": os.getenv("MARIADB_USER", "root"),
            "password": os.getenv("MARIADB_PASSWORD", ""),
            "database": os.getenv("MARIADB_DATABASE", "benchmark_db"),
        }

    @classmethod
    def get_redis_config(cls) -> Dict[str, Any]:
        """Get Redis configuration."""
        return {
            "url": os.getenv("REDIS_URL", "redis://localhost:6379"),
            "receive_timeout": float(os.getenv("REDIS_RECEIVE_TIMEOUT", "5.0")),
        }

    @classmethod
    def get_compare_config(cls) -> Dict[str, Any]:
        """Get configuration for the SQLite vs Redis comparison."""
        return {
            "sqlite_file": cls.get_sqlite_config()["compare_file"],
            "redis_url": cls.get_redis_config()["url"],
        }
