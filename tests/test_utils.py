"""Tests for benchmark utilities."""

from datetime import datetime, timezone

from dbbench.benchmark.utils import (
    get_machine_info,
    iso_timestamp,
    random_value,
    timestamp_slug,
    wait_for_connection,
)


def test_iso_timestamp_is_utc_with_milliseconds():
    moment = datetime(2025, 3, 4, 5, 6, 7, 891234, tzinfo=timezone.utc)
    assert iso_timestamp(moment) == "2025-03-04T05:06:07.891Z"


def test_timestamp_slug_replaces_colons_and_periods():
    assert timestamp_slug("2025-03-04T05:06:07.891Z") == "2025-03-04T05-06-07-891Z"


def test_random_value_stays_in_range():
    assert all(0 <= random_value(10) < 10 for _ in range(200))


def test_machine_info_keys():
    assert set(get_machine_info()) == {"hostname", "platform", "python", "cpu_count"}


def test_wait_for_connection_retries_failed_probes():
    attempts = []

    def probe():
        attempts.append(1)
        if len(attempts) == 1:
            raise ConnectionRefusedError("not yet")
        return len(attempts) == 3

    assert wait_for_connection(probe, max_retries=5, delay=0) is True
    assert len(attempts) == 3


def test_wait_for_connection_gives_up():
    attempts = []

    def probe():
        attempts.append(1)
        return False

    assert wait_for_connection(probe, max_retries=4, delay=0) is False
    assert len(attempts) == 4
