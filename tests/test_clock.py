import threading
from datetime import datetime, timedelta, timezone

import pytest

from zapkit.clock import DEFAULT_CLOCK, MockClock, SystemClock, Ticker


def test_system_clock_new_ticker():
    ticker = DEFAULT_CLOCK.new_ticker(timedelta(milliseconds=1))
    try:
        ticks = [ticker.get(timeout=2) for _ in range(3)]
    finally:
        ticker.stop()
    assert all(t is not None for t in ticks)
    assert ticks == sorted(ticks)


def test_system_clock_now_is_aware_and_current():
    before = datetime.now(timezone.utc)
    now = SystemClock().now()
    after = datetime.now(timezone.utc)
    assert now.tzinfo is not None
    assert before <= now <= after


def test_mock_clock_new_ticker():
    clock = MockClock()
    start = clock.now()
    ticker = clock.new_ticker(timedelta(microseconds=1))
    ticks = []
    lock = threading.Lock()

    def consume():
        for tick in ticker:
            with lock:
                ticks.append(tick)

    thread = threading.Thread(target=consume)
    thread.start()
    try:
        clock.add(timedelta(microseconds=2))
        with lock:
            observed = list(ticks)
    finally:
        ticker.stop()
        thread.join(timeout=5)
    assert observed == [
        start + timedelta(microseconds=1),
        start + timedelta(microseconds=2),
    ]
    assert clock.now() == start + timedelta(microseconds=2)
    assert not thread.is_alive()


def test_mock_clock_now_advances():
    clock = MockClock()
    start = clock.now()
    clock.add(timedelta(seconds=5))
    assert clock.now() - start == timedelta(seconds=5)


def test_mock_clock_starts_at_epoch():
    assert MockClock().now() == datetime.fromtimestamp(0, timezone.utc)


def test_unconsumed_ticks_keep_only_first():
    clock = MockClock()
    start = clock.now()
    ticker = clock.new_ticker(timedelta(seconds=1))
    clock.add(timedelta(seconds=2))
    assert ticker.get(timeout=0) == start + timedelta(seconds=1)
    assert ticker.get(timeout=0) is None


def test_stopped_ticker_gets_no_ticks():
    clock = MockClock()
    ticker = clock.new_ticker(timedelta(seconds=1))
    ticker.stop()
    clock.add(timedelta(seconds=3))
    assert ticker.get(timeout=0) is None
    assert ticker.stopped is True


def test_ticker_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        Ticker(timedelta(0))
    with pytest.raises(ValueError):
        MockClock().new_ticker(-1)