"""
Utility functions for benchmark module.
Separated to avoid circular imports.
"""

import os
import random
import socket
import platform
import time
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


def get_machine_info() -> Dict[str, str]:
    """
    Get machine information for report context.

    Returns:
        Dictionary with machine details including:
        - hostname: Machine hostname
        - platform: OS platform info
        - python: Interpreter implementation and version
        - cpu_count: Number of logical CPUs
    """
    return {
        "hostname": socket.gethostname(),
        "platform": f"{platform.system()} {platform.release()}",
        "python": f"{platform.python_implementation()} {platform.python_version()}",
        "cpu_count": str(os.cpu_count() or "unknown"),
    }


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-02T03:04:05.678Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def timestamp_slug(timestamp: str) -> str:
    """
    Make an ISO-8601 timestamp safe inside file names.

    Colons and periods are replaced by hyphens.
    Example: 2025-01-02T03:04:05.678Z -> 2025-01-02T03-04-05-678Z
    """
    return timestamp.replace(":", "-").replace(".", "-")


def random_value(upper: int) -> int:
    """Random integer in [0, upper)."""
    return random.randrange(upper)


def wait_for_connection(
    check: Callable[[], bool],
    max_retries: int = 5,
    delay: float = 1.0,
) -> bool:
    """
    Wait for a backend to accept connections.

    Only readiness probes are retried here, never benchmark operations.

    Args:
        check: Probe returning True once the backend is reachable
        max_retries: Number of probe attempts
        delay: Seconds to sleep after a failed attempt

    Returns:
        True if a probe succeeded, False after all attempts failed
    """
    for attempt in range(1, max_retries + 1):
        try:
            if check():
                return True
        except Exception as e:
            logger.debug(f"Connection check {attempt}/{max_retries} failed: {e}")
        if attempt < max_retries:
            time.sleep(delay)
    return False
