"""Log destinations opened from URLs, with a registry of factories per scheme."""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Callable, Optional
from urllib.parse import SplitResult, urlsplit

SCHEME_FILE = "file"

SinkFactory = Callable[[SplitResult], Any]


class SinkNotFoundError(LookupError):
    """Raised when no sink factory is registered for a URL's scheme."""

    def __init__(self, scheme: str) -> None:
        super().__init__(f'no sink found for scheme "{scheme}"')
        self.scheme = scheme


class NopCloserSink:
    """Wraps a write-syncer with a ``close`` that leaves it open."""

    def __init__(self, ws: Any) -> None:
        self.ws = ws
        self.closed = False

    def write(self, data: bytes) -> Optional[int]:
        return self.ws.write(data)

    def sync(self) -> None:
        self.ws.sync()

    def close(self) -> None:
        """Mark the sink closed without closing the wrapped writer."""
        self.closed = True


class _StandardStream:
    """Writes bytes to the process's current stdout or stderr."""

    def __init__(self, name: str) -> None:
        self._name = name

    def _stream(self) -> Any:
        return sys.stdout if self._name == "stdout" else sys.stderr

    def write(self, data: bytes) -> int:
        stream = self._stream()
        binary = getattr(stream, "buffer", None)
        if binary is not None:
            stream.flush()
            binary.write(data)
        else:
            stream.write(bytes(data).decode("utf-8", errors="replace"))
        return len(data)

    def sync(self) -> None:
        stream = self._stream()
        stream.flush()
        binary = getattr(stream, "buffer", None)
        if binary is not None:
            binary.flush()


class _FileSink:
    """An append-only file opened for writing."""

    def __init__(self, path: str) -> None:
        self.name = path
        self._file = open(path, "ab", buffering=0)

    def write(self, data: bytes) -> int:
        return self._file.write(data)

    def sync(self) -> None:
        os.fsync(self._file.fileno())

    def close(self) -> None:
        self._file.close()


def normalize_scheme(scheme: str) -> str:
    """Lowercase a URL scheme and check it against RFC 3986, section 3.1."""
    text = scheme.lower()
    if not text or not ("a" <= text[0] <= "z"):
        raise ValueError("must start with a letter")
    for char in text[1:]:
        if "a" <= char <= "z" or "0" <= char <= "9" or char in ".+-":
            continue
        raise ValueError(f"may not contain {char!r}")
    return text


def _split_host_port(netloc: str) -> tuple[str, str]:
    hostinfo = netloc.rpartition("@")[2]
    if hostinfo.startswith("["):
        end = hostinfo.find("]")
        if end < 0:
            return hostinfo[1:], ""
        rest = hostinfo[end + 1 :]
        return hostinfo[1:end], rest[1:] if rest.startswith(":") else ""
    if ":" in hostinfo:
        host, _, port = hostinfo.rpartition(":")
        return host, port
    return hostinfo, ""


def _parse_url(raw_url: str) -> SplitResult:
    if raw_url.startswith(":"):
        raise ValueError("missing protocol scheme")
    return urlsplit(raw_url)


class SinkRegistry:
    """Maps URL schemes to the factories that open sinks for them."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._factories: dict[str, SinkFactory] = {}
        self._open_file: Callable[[str], Any] = _FileSink
        self.register_sink(SCHEME_FILE, self._new_file_sink_from_url)

    def register_sink(self, scheme: str, factory: SinkFactory) -> None:
        """Register ``factory`` for ``scheme``; raises ValueError if that is not possible."""
        with self._lock:
            if scheme == "":
                raise ValueError("can't register a sink factory for empty string")
            try:
                normalized = normalize_scheme(scheme)
            except ValueError as exc:
                raise ValueError(f'"{scheme}" is not a valid scheme: {exc}') from exc
            if normalized in self._factories:
                raise ValueError(
                    f'sink factory already registered for scheme "{normalized}"'
                )
            self._factories[normalized] = factory

    def new_sink(self, raw_url: str) -> Any:
        """Open the sink that ``raw_url`` names."""
        if os.path.isabs(raw_url):
            return self._new_file_sink_from_path(raw_url)
        try:
            parts = _parse_url(raw_url)
        except ValueError as exc:
            raise ValueError(f'can\'t parse "{raw_url}" as a URL: {exc}') from exc
        if not parts.scheme:
            parts = parts._replace(scheme=SCHEME_FILE)
        with self._lock:
            factory = self._factories.get(parts.scheme)
        if factory is None:
            raise SinkNotFoundError(parts.scheme)
        return factory(parts)

    def _new_file_sink_from_url(self, parts: SplitResult) -> Any:
        shown = parts.geturl()
        if "@" in parts.netloc:
            raise ValueError(f"user and password not allowed with file URLs: got {shown}")
        if parts.fragment:
            raise ValueError(f"fragments not allowed with file URLs: got {shown}")
        if parts.query:
            raise ValueError(f"query parameters not allowed with file URLs: got {shown}")
        host, port = _split_host_port(parts.netloc)
        if port:
            raise ValueError(f"ports not allowed with file URLs: got {shown}")
        if host and host != "localhost":
            raise ValueError(
                f"file URLs must leave host empty or use localhost: got {shown}"
            )
        return self._new_file_sink_from_path(parts.path)

    def _new_file_sink_from_path(self, path: str) -> Any:
        if path in ("stdout", "stderr"):
            return NopCloserSink(_StandardStream(path))
        return self._open_file(path)


DEFAULT_REGISTRY = SinkRegistry()


def register_sink(scheme: str, factory: SinkFactory) -> None:
    """Register a factory for all sinks with ``scheme`` in the default registry."""
    DEFAULT_REGISTRY.register_sink(scheme, factory)