"""
Redis cache and pub/sub suite: the blocking redis-py client vs its asyncio client.
"""

import asyncio
import itertools
import logging
import random
from typing import Dict, Any, List

import redis
import redis.asyncio as aioredis
from redis.asyncio.retry import Retry as AsyncRetry
from redis.backoff import NoBackoff
from redis.retry import Retry

from .base import BenchmarkSuite, SetupError
from .channel import AsyncMessageChannel, MessageChannel
from ..benchmark.metrics import BenchmarkResult, BenchmarkRun
from ..benchmark.runner import benchmark, benchmark_async
from ..benchmark.utils import random_value
from ..config import Config

logger = logging.getLogger(__name__)

REDIS_PY = "redis-py"
REDIS_ASYNCIO = "redis-py asyncio"

PUBLISH_CHANNEL = "test_channel"
SUBSCRIBE_CHANNEL = "bench_channel"
SUB_UNSUB_ITERATIONS = 100


def connect_sync(url: str) -> redis.Redis:
    """
    Open a blocking client and make sure the server answers.

    Failed commands are never retried, so a broken call aborts the run.
    """
    client = redis.Redis.from_url(url, decode_responses=True, retry=Retry(NoBackoff(), 0))
    try:
        client.ping()
    except redis.exceptions.ConnectionError as e:
        client.close()
        raise SetupError(f"Cannot connect to Redis at {url}: {e}") from e
    return client


async def connect_async(url: str) -> aioredis.Redis:
    """Open an asyncio client and make sure the server answers."""
    client = aioredis.Redis.from_url(url, decode_responses=True, retry=AsyncRetry(NoBackoff(), 0))
    try:
        await client.ping()
    except redis.exceptions.ConnectionError as e:
        await client.aclose()
        raise SetupError(f"Cannot connect to Redis at {url}: {e}") from e
    return client


class RedisSuite(BenchmarkSuite):
    """
    Redis cache and pub/sub benchmark.

    Cache: SET, GET (seeded keys), DEL (set + del per iteration).
    Pub/Sub: PUBLISH, SUB/UNSUB of a fresh channel, and SUBSCRIBE
    (publish one message and block until the subscriber receives it).
    """

    name = "redis"
    display_name = "Redis"
    title = "Redis Benchmark Results (redis-py vs redis-py asyncio)"
    result_stem = "redis"
    libraries = [REDIS_PY, REDIS_ASYNCIO]
    baseline_library = REDIS_ASYNCIO
    setup_hint = "Make sure Redis server is running (redis-server) and REDIS_URL is correct"

    def _load_config(self) -> Dict[str, Any]:
        """Load Redis configuration from environment."""
        return Config.get_redis_config()

    @property
    def url(self) -> str:
        return self.config["url"]

    def check_connection(self) -> bool:
        client = connect_sync(self.url)
        client.close()
        return True

    def _setup_sync(self) -> redis.Redis:
        client = connect_sync(self.url)
        try:
            # Clean data for testing
            client.flushdb()
        except redis.exceptions.RedisError:
            client.close()
            raise
        return client

    async def _setup_async(self) -> aioredis.Redis:
        client = await connect_async(self.url)
        try:
            await client.flushdb()
        except redis.exceptions.RedisError:
            await client.aclose()
            raise
        return client

    # ------------------------------------------------------------------
    # Cache operations
    # ------------------------------------------------------------------

    def benchmark_sync_set(self) -> BenchmarkRun:
        client = self._setup_sync()
        try:
            return benchmark(
                "redis-py SET",
                lambda: client.set(f"key_{random.random()}", f"value_{random.random()}"),
                self.iterations,
                self.warmup,
            )
        finally:
            client.close()

    async def benchmark_async_set(self) -> BenchmarkRun:
        client = await self._setup_async()
        try:
            return await benchmark_async(
                "redis-py asyncio SET",
                lambda: client.set(f"key_{random.random()}", f"value_{random.random()}"),
                self.iterations,
                self.warmup,
            )
        finally:
            await client.aclose()

    def benchmark_sync_get(self) -> BenchmarkRun:
        client = self._setup_sync()
        try:
            for i in range(self.seed_rows):
                client.set(f"test_key_{i}", f"test_value_{i}")
            return benchmark(
                "redis-py GET",
                lambda: client.get(f"test_key_{random_value(self.seed_rows)}"),
                self.iterations,
                self.warmup,
            )
        finally:
            client.close()

    async def benchmark_async_get(self) -> BenchmarkRun:
        client = await self._setup_async()
        try:
            for i in range(self.seed_rows):
                await client.set(f"test_key_{i}", f"test_value_{i}")
            return await benchmark_async(
                "redis-py asyncio GET",
                lambda: client.get(f"test_key_{random_value(self.seed_rows)}"),
                self.iterations,
                self.warmup,
            )
        finally:
            await client.aclose()

    def benchmark_sync_del(self) -> BenchmarkRun:
        client = self._setup_sync()

        def set_then_del():
            key = f"temp_key_{random.random()}"
            client.set(key, "temp_value")
            client.delete(key)

        try:
            return benchmark("redis-py DEL", set_then_del, self.iterations, self.destructive_warmup)
        finally:
            client.close()

    async def benchmark_async_del(self) -> BenchmarkRun:
        client = await self._setup_async()

        async def set_then_del():
            key = f"temp_key_{random.random()}"
            await client.set(key, "temp_value")
            await client.delete(key)

        try:
            return await benchmark_async(
                "redis-py asyncio DEL", set_then_del, self.iterations, self.destructive_warmup
            )
        finally:
            await client.aclose()

    # ------------------------------------------------------------------
    # Pub/Sub operations
    # ------------------------------------------------------------------

    def benchmark_sync_publish(self) -> BenchmarkRun:
        client = self._setup_sync()
        try:
            return benchmark(
                "redis-py PUBLISH",
                lambda: client.publish(PUBLISH_CHANNEL, f"message_{random.random()}"),
                self.iterations,
                self.warmup,
            )
        finally:
            client.close()

    async def benchmark_async_publish(self) -> BenchmarkRun:
        client = await self._setup_async()
        try:
            return await benchmark_async(
                "redis-py asyncio PUBLISH",
                lambda: client.publish(PUBLISH_CHANNEL, f"message_{random.random()}"),
                self.iterations,
                self.warmup,
            )
        finally:
            await client.aclose()

    def benchmark_sync_sub_unsub(self) -> BenchmarkRun:
        client = self._setup_sync()
        counter = itertools.count()

        def subscribe_unsubscribe():
            channel = MessageChannel(
                client.pubsub(), f"test_channel_{next(counter)}", self.config["receive_timeout"]
            )
            channel.open()
            channel.close()

        try:
            return benchmark(
                "redis-py SUB/UNSUB", subscribe_unsubscribe, min(self.iterations, SUB_UNSUB_ITERATIONS), 0
            )
        finally:
            client.close()

    async def benchmark_async_sub_unsub(self) -> BenchmarkRun:
        client = await self._setup_async()
        counter = itertools.count()

        async def subscribe_unsubscribe():
            channel = AsyncMessageChannel(
                client.pubsub(), f"test_channel_{next(counter)}", self.config["receive_timeout"]
            )
            await channel.open()
            await channel.close()

        try:
            return await benchmark_async(
                "redis-py asyncio SUB/UNSUB",
                subscribe_unsubscribe,
                min(self.iterations, SUB_UNSUB_ITERATIONS),
                0,
            )
        finally:
            await client.aclose()

    def benchmark_sync_subscribe(self) -> BenchmarkRun:
        publisher = self._setup_sync()
        channel = MessageChannel(
            publisher.pubsub(), SUBSCRIBE_CHANNEL, self.config["receive_timeout"]
        )
        counter = itertools.count()

        def publish_and_receive():
            publisher.publish(SUBSCRIBE_CHANNEL, f"msg_{next(counter)}")
            channel.receive()

        try:
            channel.open()
            return benchmark(
                "redis-py SUBSCRIBE", publish_and_receive, self.iterations, self.destructive_warmup
            )
        finally:
            channel.close()
            publisher.close()

    async def benchmark_async_subscribe(self) -> BenchmarkRun:
        publisher = await self._setup_async()
        channel = AsyncMessageChannel(
            publisher.pubsub(), SUBSCRIBE_CHANNEL, self.config["receive_timeout"]
        )
        counter = itertools.count()

        async def publish_and_receive():
            await publisher.publish(SUBSCRIBE_CHANNEL, f"msg_{next(counter)}")
            await channel.receive()

        try:
            await channel.open()
            return await benchmark_async(
                "redis-py asyncio SUBSCRIBE",
                publish_and_receive,
                self.iterations,
                self.destructive_warmup,
            )
        finally:
            await channel.close()
            await publisher.aclose()

    # ------------------------------------------------------------------
    # Suite
    # ------------------------------------------------------------------

    def run(self) -> List[BenchmarkResult]:
        """Run cache and pub/sub benchmarks for both clients."""
        logger.info("Starting Redis benchmark")
        results: List[BenchmarkResult] = []

        plan = [
            ("Cache SET", "set"),
            ("Cache GET", "get"),
            ("Cache DEL", "del"),
            ("Pub/Sub PUBLISH", "publish"),
            ("Pub/Sub SUB/UNSUB", "sub_unsub"),
            ("Pub/Sub SUBSCRIBE", "subscribe"),
        ]

        for operation, suffix in plan:
            logger.info(f"Running {operation} tests...")
            self._record(results, operation, REDIS_PY, getattr(self, f"benchmark_sync_{suffix}")())
            self._record(
                results,
                operation,
                REDIS_ASYNCIO,
                asyncio.run(getattr(self, f"benchmark_async_{suffix}")()),
            )

        return results
