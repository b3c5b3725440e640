"""Logging levels, level enablers and a thread-safe changeable level."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Union


class Level(IntEnum):
    """A logging priority; higher levels are more important."""

    DEBUG = -1
    INFO = 0
    WARN = 1
    ERROR = 2
    DPANIC = 3
    PANIC = 4
    FATAL = 5

    def __str__(self) -> str:
        return self.name.lower()

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)

    @classmethod
    def parse(cls, text: Union[str, bytes]) -> "Level":
        """Parse a lowercase or all-caps level name; the empty string means INFO."""
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("utf-8", errors="replace")
        if text == "":
            return cls.INFO
        level = _BY_NAME.get(text)
        if level is None:
            raise ValueError(f'unrecognized level: "{text}"')
        return level

    def enabled(self, level: int) -> bool:
        """Report whether ``level`` is at or above this level."""
        return level >= self

    def marshal_text(self) -> bytes:
        """Return the level's name as bytes."""
        return str(self).encode("ascii")


_BY_NAME: dict[str, Level] = {}
for _level in Level:
    _BY_NAME[_level.name.lower()] = _level
    _BY_NAME[_level.name] = _level


@dataclass(frozen=True)
class LevelEnablerFunc:
    """A level enabler backed by a function."""

    func: Callable[[Level], bool]

    def enabled(self, level: Level) -> bool:
        """Call the wrapped function."""
        return bool(self.func(level))


class AtomicLevel:
    """A logging level that can be read and changed safely from any thread."""

    def __init__(self, level: Level = Level.INFO) -> None:
        self._lock = threading.Lock()
        self._level = Level(level)

    def enabled(self, level: Level) -> bool:
        """Report whether ``level`` is enabled at the current level."""
        return self.level().enabled(level)

    def level(self) -> Level:
        """Return the minimum enabled level."""
        with self._lock:
            return self._level

    def set_level(self, level: Level) -> None:
        """Change the minimum enabled level."""
        new_level = Level(level)
        with self._lock:
            self._level = new_level

    def unmarshal_text(self, text: Union[str, bytes]) -> None:
        """Set the level from its text form; raises ValueError if unrecognized."""
        self.set_level(Level.parse(text))

    def marshal_text(self) -> bytes:
        """Return the current level's text form."""
        return self.level().marshal_text()

    def __str__(self) -> str:
        return str(self.level())

    def __repr__(self) -> str:
        return f"AtomicLevel({self.level()!s})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AtomicLevel):
            return NotImplemented
        return self.level() == other.level()

    __hash__ = None  # type: ignore[assignment]


def new_atomic_level_at(level: Level) -> AtomicLevel:
    """Create an AtomicLevel set to ``level``."""
    return AtomicLevel(level)


def parse_atomic_level(text: Union[str, bytes]) -> AtomicLevel:
    """Create an AtomicLevel from a lowercase or all-caps level name."""
    return AtomicLevel(Level.parse(text))