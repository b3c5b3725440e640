"""Process termination that tests can replace with a recording stub."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable


def _system_exit(code: int) -> None:
    sys.exit(code)


_exit: Callable[[int], None] = _system_exit


def exit_with(code: int) -> None:
    """Terminate the process with ``code``, or record the call if stubbed."""
    _exit(code)


@dataclass
class StubbedExit:
    """A recording replacement for process exit."""

    exited: bool = False
    code: int = 0
    _prev: Callable[[int], None] = field(default=_system_exit, repr=False, compare=False)

    def _record(self, code: int) -> None:
        self.exited = True
        self.code = code

    def unstub(self) -> None:
        """Restore the exit function that was active before stubbing."""
        global _exit
        _exit = self._prev

    def __enter__(self) -> "StubbedExit":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unstub()


def stub() -> StubbedExit:
    """Replace process exit with a recording stub and return it."""
    global _exit
    stubbed = StubbedExit(_prev=_exit)
    _exit = stubbed._record
    return stubbed


def with_stub(func: Callable[[], object]) -> StubbedExit:
    """Run ``func`` with exit stubbed and return the stub that was used."""
    stubbed = stub()
    try:
        func()
    finally:
        stubbed.unstub()
    return stubbed