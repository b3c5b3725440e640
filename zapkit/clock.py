"""Sources of time and tickers: the system clock and a controllable mock."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional, Union

Interval = Union[timedelta, float, int]

# How long a mock clock waits for a consumer to take each tick.
_HANDOFF_TIMEOUT = 0.1


def _as_timedelta(value: Interval) -> timedelta:
    if isinstance(value, timedelta):
        return value
    return timedelta(seconds=value)


def _as_interval(value: Interval) -> timedelta:
    interval = _as_timedelta(value)
    if interval <= timedelta(0):
        raise ValueError("non-positive interval for new_ticker")
    return interval


class Ticker:
    """Delivers clock ticks; at most one undelivered tick is held, later ones are dropped."""

    def __init__(self, interval: Interval) -> None:
        self.interval = _as_interval(interval)
        self._cond = threading.Condition()
        self._pending: Optional[datetime] = None
        self._stopped = False
        self._waiters = 0

    @property
    def stopped(self) -> bool:
        with self._cond:
            return self._stopped

    def get(self, timeout: Optional[float] = None) -> Optional[datetime]:
        """Wait for the next tick; None if the ticker stopped or the wait timed out."""
        with self._cond:
            self._waiters += 1
            self._cond.notify_all()
            try:
                self._cond.wait_for(
                    lambda: self._pending is not None or self._stopped, timeout
                )
            finally:
                self._waiters -= 1
            moment, self._pending = self._pending, None
            return moment

    def __iter__(self) -> Iterator[datetime]:
        while True:
            moment = self.get()
            if moment is None:
                return
            yield moment

    def stop(self) -> None:
        """Stop the ticker; no further ticks are delivered."""
        with self._cond:
            self._stopped = True
            self._cond.notify_all()

    def _tick(self, moment: datetime) -> None:
        with self._cond:
            if self._stopped:
                return
            if self._pending is None:
                self._pending = moment
                self._cond.notify_all()

    def _wait_handoff(self, timeout: float) -> None:
        with self._cond:
            self._cond.wait_for(
                lambda: self._stopped or (self._pending is None and self._waiters > 0),
                timeout,
            )

    def _wait_stopped(self, timeout: float) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._stopped, timeout)


def _run_system_ticker(ticker: Ticker) -> None:
    period = ticker.interval.total_seconds()
    deadline = time.monotonic() + period
    while True:
        remaining = max(0.0, deadline - time.monotonic())
        if ticker._wait_stopped(remaining):
            return
        ticker._tick(datetime.now().astimezone())
        deadline += period
        now = time.monotonic()
        if deadline < now:
            deadline = now + period


class SystemClock:
    """A clock backed by the system time."""

    def now(self) -> datetime:
        """Return the current local time."""
        return datetime.now().astimezone()

    def new_ticker(self, interval: Interval) -> Ticker:
        """Return a ticker that ticks every ``interval`` in real time."""
        ticker = Ticker(interval)
        thread = threading.Thread(target=_run_system_ticker, args=(ticker,), daemon=True)
        thread.start()
        return ticker


DEFAULT_CLOCK = SystemClock()


@dataclass
class _Scheduled:
    ticker: Ticker
    next: datetime


class MockClock:
    """A clock whose time only moves when ``add`` is called."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._now = datetime.fromtimestamp(0, timezone.utc)
        self._schedule: list[_Scheduled] = []

    def now(self) -> datetime:
        """Return the mock's current time."""
        with self._lock:
            return self._now

    def new_ticker(self, interval: Interval) -> Ticker:
        """Return a ticker driven by this mock clock."""
        ticker = Ticker(interval)
        with self._lock:
            self._schedule.append(_Scheduled(ticker, self._now + ticker.interval))
        return ticker

    def add(self, delta: Interval) -> None:
        """Move time forward by ``delta``, firing every tick that falls due."""
        delta = _as_timedelta(delta)
        with self._lock:
            target = self._now + delta
        while True:
            with self._lock:
                self._schedule = [s for s in self._schedule if not s.ticker.stopped]
                due = min(
                    (s for s in self._schedule if s.next <= target),
                    key=lambda s: s.next,
                    default=None,
                )
                if due is None:
                    self._now = target
                    return
                self._now = due.next
                due.next += due.ticker.interval
                moment = self._now
            due.ticker._tick(moment)
            due.ticker._wait_handoff(_HANDOFF_TIMEOUT)