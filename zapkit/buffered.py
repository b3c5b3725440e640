"""A write-syncer that buffers writes in memory and flushes them periodically."""

from __future__ import annotations

import threading
from datetime import timedelta
from typing import Any, Optional, Protocol, Union

from zapkit.clock import DEFAULT_CLOCK, Ticker

DEFAULT_BUFFER_SIZE = 256 * 1024
DEFAULT_FLUSH_INTERVAL = timedelta(seconds=30)

# Size used when a negative size is requested.
_FALLBACK_BUFFER_SIZE = 4096


class WriteSyncer(Protocol):
    """Anything that accepts bytes and can flush them to durable storage."""

    def write(self, data: bytes) -> Optional[int]: ...

    def sync(self) -> None: ...


class _SyncAdapter:
    """Gives a plain writer a ``sync`` method that flushes it if it can."""

    def __init__(self, writer: Any) -> None:
        self._writer = writer

    def write(self, data: bytes) -> Optional[int]:
        return self._writer.write(data)

    def sync(self) -> None:
        flush = getattr(self._writer, "flush", None)
        if flush is not None:
            flush()


def add_sync(writer: Any) -> WriteSyncer:
    """Return ``writer`` as a write-syncer, adding a ``sync`` method if it lacks one."""
    if callable(getattr(writer, "sync", None)) and callable(getattr(writer, "write", None)):
        return writer
    return _SyncAdapter(writer)


def _raise_combined(errors: list[BaseException]) -> None:
    if not errors:
        return
    if len(errors) == 1:
        raise errors[0]
    message = "; ".join(str(err) for err in errors)
    raise OSError(message) from errors[0]


class BufferedWriteSyncer:
    """Buffers writes and hands them to ``ws`` when the buffer fills or on a timer.

    It is safe for concurrent use. Call ``stop`` (or use it as a context
    manager) when it is no longer needed, so that buffered data is flushed.
    """

    def __init__(
        self,
        ws: WriteSyncer,
        size: int = 0,
        flush_interval: Union[timedelta, float, int] = 0,
        clock: Any = None,
    ) -> None:
        self.ws = ws
        self.size = size
        self.flush_interval = flush_interval
        self.clock = clock

        self._lock = threading.Lock()
        self._initialized = False
        self._stopped = False
        self._buf = bytearray()
        self._capacity = 0
        self._err: Optional[BaseException] = None
        self._ticker: Optional[Ticker] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _initialize(self) -> None:
        size = self.size or DEFAULT_BUFFER_SIZE
        self._capacity = size if size > 0 else _FALLBACK_BUFFER_SIZE

        interval = self.flush_interval or DEFAULT_FLUSH_INTERVAL
        if self.clock is None:
            self.clock = DEFAULT_CLOCK

        self._ticker = self.clock.new_ticker(interval)
        self._initialized = True
        self._thread = threading.Thread(target=self._flush_loop, daemon=True)
        self._thread.start()

    def _available(self) -> int:
        return self._capacity - len(self._buf)

    def _flush(self) -> Optional[BaseException]:
        """Hand the buffer to the wrapped writer; errors are sticky."""
        if self._err is not None:
            return self._err
        if not self._buf:
            return None
        pending = len(self._buf)
        err: Optional[BaseException] = None
        try:
            written = self.ws.write(bytes(self._buf))
        except Exception as exc:  # noqa: BLE001 - any writer failure is stored
            err = exc
            written = 0
        if written is None:
            written = pending
        if written < pending and err is None:
            err = OSError("short write")
        if err is not None:
            if written > 0:
                del self._buf[:written]
            self._err = err
            return err
        self._buf.clear()
        return None

    def _buffer_write(self, data: bytes) -> int:
        view = memoryview(data)
        total = 0
        while len(view) > self._available() and self._err is None:
            if not self._buf:
                # Large write with an empty buffer goes straight through.
                try:
                    written = self.ws.write(bytes(view))
                except Exception as exc:  # noqa: BLE001
                    self._err = exc
                    written = 0
                if written is None:
                    written = len(view)
                if written == 0 and self._err is None:
                    self._err = OSError("short write")
            else:
                written = self._available()
                self._buf.extend(view[:written])
                self._flush()
            total += written
            view = view[written:]
        if self._err is not None:
            raise self._err
        self._buf.extend(view)
        return total + len(view)

    def write(self, data: Union[bytes, bytearray, str]) -> int:
        """Buffer ``data``; it reaches the wrapped writer when the buffer fills or on flush."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        data = bytes(data)
        with self._lock:
            if not self._initialized:
                self._initialize()
            # Avoid flushing a partial write: empty the buffer first if the
            # new data doesn't fit and there is something already buffered.
            if len(data) > self._available() and self._buf:
                err = self._flush()
                if err is not None:
                    raise err
            return self._buffer_write(data)

    def sync(self) -> None:
        """Flush buffered data and sync the wrapped writer."""
        with self._lock:
            errors: list[BaseException] = []
            if self._initialized:
                err = self._flush()
                if err is not None:
                    errors.append(err)
            try:
                self.ws.sync()
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)
        _raise_combined(errors)

    def _flush_loop(self) -> None:
        ticker = self._ticker
        assert ticker is not None
        while not self._stop_event.is_set():
            if ticker.get() is None or self._stop_event.is_set():
                return
            try:
                self.sync()
            except Exception:  # noqa: BLE001
                # Errors stay recorded and surface from sync or stop.
                pass

    def stop(self) -> None:
        """Stop the background flusher and flush any remaining data."""
        thread: Optional[threading.Thread] = None
        with self._lock:
            if self._initialized:
                if self._stopped:
                    return
                self._stopped = True
                assert self._ticker is not None
                self._ticker.stop()
                self._stop_event.set()
                thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self.sync()

    def __enter__(self) -> "BufferedWriteSyncer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()