"""Write-syncers for inspecting and provoking log output in tests."""

from __future__ import annotations

from typing import Optional, Union


class Syncer:
    """Records calls to ``sync`` and can be made to fail them."""

    def __init__(self) -> None:
        self._error: Optional[BaseException] = None
        self._called = False

    def set_error(self, error: Optional[BaseException]) -> None:
        """Set the error that ``sync`` will raise."""
        self._error = error

    def sync(self) -> None:
        """Record the call, then raise the configured error if there is one."""
        self._called = True
        if self._error is not None:
            raise self._error

    def called(self) -> bool:
        """Report whether ``sync`` was called."""
        return self._called


class Discarder(Syncer):
    """Accepts and discards every write."""

    def write(self, data: bytes) -> int:
        return len(data)


class FailWriter(Syncer):
    """Fails every write."""

    def write(self, data: bytes) -> int:
        raise OSError("failed")


class ShortWriter(Syncer):
    """Never fails, but always writes one byte less than it is given."""

    def write(self, data: bytes) -> int:
        return len(data) - 1


class Buffer(Syncer):
    """Collects writes in memory, with helpers to read them back as text."""

    def __init__(self) -> None:
        super().__init__()
        self._data = bytearray()

    def write(self, data: Union[bytes, str]) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._data.extend(data)
        return len(data)

    def getvalue(self) -> str:
        """Return everything written so far, decoded as text."""
        return self._data.decode("utf-8", errors="replace")

    def lines(self) -> list[str]:
        """Return the contents split on newlines, without the part after the last one."""
        return self.getvalue().split("\n")[:-1]

    def stripped(self) -> str:
        """Return the contents with trailing newlines removed."""
        return self.getvalue().rstrip("\n")