"""Capturing and formatting stack traces."""

from __future__ import annotations

import os
import sys
from enum import Enum
from traceback import FrameSummary
from types import FrameType
from typing import Iterable

_EMPTY_FRAME = FrameSummary("", 0, "", lookup_line=False)


class StackDepth(Enum):
    """How much of the call stack to capture."""

    FIRST = 0
    FULL = 1


class Stacktrace:
    """Captured frames, innermost first, read one at a time with ``next``."""

    def __init__(self, frames: Iterable[FrameSummary]) -> None:
        self._frames = list(frames)
        self._pos = 0

    def count(self) -> int:
        """Total number of frames; unaffected by ``next``."""
        return len(self._frames)

    def next(self) -> tuple[FrameSummary, bool]:
        """Return the next frame and whether more frames follow it."""
        if self._pos >= len(self._frames):
            return _EMPTY_FRAME, False
        frame = self._frames[self._pos]
        self._pos += 1
        return frame, self._pos < len(self._frames)


def _summarize(frame: FrameType) -> FrameSummary:
    code = frame.f_code
    module = os.path.splitext(os.path.basename(code.co_filename))[0] or "?"
    return FrameSummary(
        code.co_filename, frame.f_lineno, f"{module}.{code.co_name}", lookup_line=False
    )


def capture_stacktrace(skip: int = 0, depth: StackDepth = StackDepth.FIRST) -> Stacktrace:
    """Capture the stack; ``skip=0`` starts at the caller of this function."""
    try:
        frame: FrameType | None = sys._getframe(skip + 1)
    except ValueError:
        return Stacktrace([])
    frames = []
    while frame is not None:
        frames.append(_summarize(frame))
        if depth is StackDepth.FIRST:
            break
        frame = frame.f_back
    return Stacktrace(frames)


class StackFormatter:
    """Formats frames as ``function`` lines followed by tab-indented ``file:line``."""

    def __init__(self) -> None:
        self._parts: list[str] = []

    def format_stack(self, stack: Stacktrace) -> None:
        """Format all remaining frames except the outermost one."""
        frame, more = stack.next()
        while more:
            self.format_frame(frame)
            frame, more = stack.next()

    def format_frame(self, frame: FrameSummary) -> None:
        """Format a single frame."""
        if self._parts:
            self._parts.append("\n")
        self._parts.append(f"{frame.name}\n\t{frame.filename}:{frame.lineno}")

    def getvalue(self) -> str:
        """Return everything formatted so far."""
        return "".join(self._parts)


def take_stacktrace(skip: int = 0) -> str:
    """Return the formatted stack of the caller, skipping ``skip`` more frames."""
    stack = capture_stacktrace(skip + 1, StackDepth.FULL)
    formatter = StackFormatter()
    formatter.format_stack(stack)
    return formatter.getvalue()