import time
from datetime import datetime, timedelta, timezone

import pytest

from zapkit.timing import initialize, sleep, time_to_millis, timeout


@pytest.mark.parametrize(
    "moment, stamp",
    [
        (datetime.fromtimestamp(0, timezone.utc), 0),
        (datetime.fromtimestamp(1, timezone.utc), 1000),
        (datetime.fromtimestamp(0, timezone.utc) + timedelta(seconds=1, milliseconds=500), 1500),
    ],
)
def test_time_to_millis(moment, stamp):
    assert time_to_millis(moment) == stamp


def test_time_to_millis_truncates_toward_zero_before_epoch():
    moment = datetime.fromtimestamp(0, timezone.utc) - timedelta(microseconds=500)
    assert time_to_millis(moment) == 0


def test_initialize_scales_and_restores():
    base = timedelta(seconds=2)
    restore = initialize("3")
    try:
        assert timeout(base) == timedelta(seconds=6)
    finally:
        restore()
    assert timeout(base) == base


def test_initialize_rejects_bad_factor():
    with pytest.raises(ValueError):
        initialize("not-a-number")
    assert timeout(timedelta(seconds=1)) == timedelta(seconds=1)


def test_sleep_uses_scaled_duration():
    restore = initialize("0")
    try:
        scaled = timeout(timedelta(seconds=10))
        started = time.monotonic()
        sleep(timedelta(seconds=10))
        elapsed = time.monotonic() - started
    finally:
        restore()
    assert scaled == timedelta(0)
    assert elapsed < 1.0