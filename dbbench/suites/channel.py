"""
Blocking-receive channels over Redis pub/sub.

The redis clients deliver pub/sub traffic through ``get_message``; these
wrappers turn a subscription into a channel whose ``receive`` blocks on
the connection until a message arrives or the deadline passes.
"""

import time
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_RECEIVE_TIMEOUT = 5.0


class ChannelTimeout(TimeoutError):
    """Raised when no message arrives before the receive deadline."""
    pass


def _is_message(message: Optional[dict]) -> bool:
    return message is not None and message.get("type") in ("message", "pmessage")


def _is_confirmation(message: Optional[dict], kind: str) -> bool:
    return message is not None and message.get("type") == kind


class MessageChannel:
    """
    Channel over a blocking redis-py ``PubSub`` object.

    Example:
        with MessageChannel(client.pubsub(), "bench_channel") as channel:
            client.publish("bench_channel", "hello")
            data = channel.receive()
    """

    def __init__(self, pubsub: Any, name: str, timeout: float = DEFAULT_RECEIVE_TIMEOUT):
        """
        Args:
            pubsub: redis-py PubSub instance (owned by the channel)
            name: Channel name to subscribe to
            timeout: Default receive deadline in seconds
        """
        self.pubsub = pubsub
        self.name = name
        self.timeout = timeout

    def _next(self, kind: Optional[str], timeout: Optional[float]) -> dict:
        deadline = time.monotonic() + (self.timeout if timeout is None else timeout)
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ChannelTimeout(f"No {kind or 'message'} on {self.name!r} before deadline")
            message = self.pubsub.get_message(timeout=remaining)
            if kind is None and _is_message(message):
                return message
            if kind is not None and _is_confirmation(message, kind):
                return message

    def open(self) -> "MessageChannel":
        """Subscribe and wait until the server confirms the subscription."""
        self.pubsub.subscribe(self.name)
        self._next("subscribe", None)
        return self

    def receive(self, timeout: Optional[float] = None) -> Any:
        """
        Block until the next published message arrives.

        Args:
            timeout: Deadline in seconds (default: the channel timeout)

        Returns:
            The message payload

        Raises:
            ChannelTimeout: If nothing arrives in time
        """
        return self._next(None, timeout)["data"]

    def close(self) -> None:
        """Unsubscribe and release the pub/sub connection."""
        try:
            self.pubsub.unsubscribe(self.name)
        finally:
            self.pubsub.close()

    def __enter__(self) -> "MessageChannel":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class AsyncMessageChannel:
    """
    Channel over a ``redis.asyncio`` ``PubSub`` object.

    Example:
        async with AsyncMessageChannel(client.pubsub(), "bench_channel") as channel:
            await client.publish("bench_channel", "hello")
            data = await channel.receive()
    """

    def __init__(self, pubsub: Any, name: str, timeout: float = DEFAULT_RECEIVE_TIMEOUT):
        self.pubsub = pubsub
        self.name = name
        self.timeout = timeout

    async def _next(self, kind: Optional[str], timeout: Optional[float]) -> dict:
        deadline = time.monotonic() + (self.timeout if timeout is None else timeout)
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise ChannelTimeout(f"No {kind or 'message'} on {self.name!r} before deadline")
            message = await self.pubsub.get_message(timeout=remaining)
            if kind is None and _is_message(message):
                return message
            if kind is not None and _is_confirmation(message, kind):
                return message

    async def open(self) -> "AsyncMessageChannel":
        """Subscribe and wait until the server confirms the subscription."""
        await self.pubsub.subscribe(self.name)
        await self._next("subscribe", None)
        return self

    async def receive(self, timeout: Optional[float] = None) -> Any:
        """Await the next published message payload."""
        message = await self._next(None, timeout)
        return message["data"]

    async def close(self) -> None:
        """Unsubscribe and release the pub/sub connection."""
        try:
            await self.pubsub.unsubscribe(self.name)
        finally:
            await self.pubsub.aclose()

    async def __aenter__(self) -> "AsyncMessageChannel":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
