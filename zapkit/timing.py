"""Time helpers and scalable test timeouts."""

from __future__ import annotations

import functools
import logging
import os
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, TypeVar, Union

_EPOCH = datetime.fromtimestamp(0, timezone.utc)

D = TypeVar("D", timedelta, float, int)


class _TimeoutScale:
    """Holds the factor by which test timeouts are scaled."""

    def __init__(self) -> None:
        self.factor = 1.0

    def set(self, factor: float) -> None:
        self.factor = factor


_SCALE = _TimeoutScale()


def time_to_millis(moment: datetime) -> int:
    """Milliseconds since the Unix epoch, truncated toward zero."""
    if moment.tzinfo is None:
        moment = moment.astimezone()
    delta = moment - _EPOCH
    micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    millis = abs(micros) // 1000
    return millis if micros >= 0 else -millis


def timeout(base: D) -> Union[timedelta, float]:
    """Scale ``base`` by the configured timeout factor."""
    return base * _SCALE.factor


def sleep(base: Union[timedelta, float, int]) -> None:
    """Sleep for ``base`` scaled by the configured timeout factor."""
    scaled = timeout(base)
    seconds = scaled.total_seconds() if isinstance(scaled, timedelta) else scaled
    time.sleep(seconds)


def initialize(factor: str) -> Callable[[], None]:
    """Set the timeout scale from text and return a function that undoes it."""
    value = float(factor)
    original = _SCALE.factor
    _SCALE.set(value)
    return functools.partial(_SCALE.set, original)


_env_scale = os.environ.get("TEST_TIMEOUT_SCALE", "")
if _env_scale:
    initialize(_env_scale)
    logging.getLogger(__name__).info("Scaling timeouts by %sx.", _SCALE.factor)