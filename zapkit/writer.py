"""Opening log destinations by URL and combining write-syncers."""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterable, Optional

from zapkit import sink as _sink


class OpenSinksError(OSError):
    """Raised when one or more sinks could not be opened."""

    def __init__(self, failures: Iterable[tuple[str, BaseException]]) -> None:
        self.failures = list(failures)
        message = "; ".join(f'open sink "{path}": {err}' for path, err in self.failures)
        super().__init__(message)

    @property
    def errors(self) -> list[BaseException]:
        """The underlying errors, in the order the paths were given."""
        return [err for _, err in self.failures]

    def __str__(self) -> str:
        return self.args[0]


def _raise_all(errors: list[BaseException]) -> None:
    if not errors:
        return
    if len(errors) == 1:
        raise errors[0]
    raise OSError("; ".join(str(err) for err in errors)) from errors[0]


class _Discard:
    """Accepts and drops every write, counting bytes and syncs."""

    def __init__(self) -> None:
        self.discarded = 0
        self.syncs = 0

    def write(self, data: bytes) -> int:
        self.discarded += len(data)
        return len(data)

    def sync(self) -> None:
        """Nothing is buffered; only record that a sync was asked for."""
        self.syncs += 1


class MultiWriteSyncer:
    """Duplicates writes and syncs to every wrapped write-syncer."""

    def __init__(self, writers: Iterable[Any]) -> None:
        self.writers = tuple(writers)

    def write(self, data: bytes) -> int:
        errors: list[BaseException] = []
        for writer in self.writers:
            try:
                written = writer.write(data)
            except Exception as exc:  # noqa: BLE001 - every writer still gets the data
                errors.append(exc)
                continue
            if written is not None and written < len(data):
                errors.append(OSError("short write"))
        _raise_all(errors)
        return len(data)

    def sync(self) -> None:
        errors: list[BaseException] = []
        for writer in self.writers:
            try:
                writer.sync()
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)
        _raise_all(errors)


class LockedWriteSyncer:
    """Serializes writes and syncs to a wrapped write-syncer."""

    def __init__(self, ws: Any) -> None:
        self.ws = ws
        self._lock = threading.Lock()

    def write(self, data: bytes) -> Optional[int]:
        with self._lock:
            return self.ws.write(data)

    def sync(self) -> None:
        with self._lock:
            self.ws.sync()


def combine_write_syncers(*writers: Any) -> Any:
    """Combine write-syncers into one locked write-syncer; with none, discard writes."""
    if not writers:
        return _Discard()
    return LockedWriteSyncer(MultiWriteSyncer(writers))


def open_paths(
    *paths: str, registry: Optional[_sink.SinkRegistry] = None
) -> tuple[Any, Callable[[], None]]:
    """Open every path or URL and return a combined writer and a function closing them.

    Raises OpenSinksError, after closing what was opened, if any of them fails.
    """
    registry = registry if registry is not None else _sink.DEFAULT_REGISTRY
    sinks: list[Any] = []
    failures: list[tuple[str, BaseException]] = []

    def close() -> None:
        for opened in sinks:
            try:
                opened.close()
            except Exception:  # noqa: BLE001 - closing is best effort
                continue

    for path in paths:
        try:
            sinks.append(registry.new_sink(path))
        except Exception as exc:  # noqa: BLE001 - collected and reported together
            failures.append((path, exc))

    if failures:
        close()
        raise OpenSinksError(failures) from failures[0][1]

    return combine_write_syncers(*sinks), close