"""Stream helpers for lazily joining entry contents."""

from __future__ import annotations

import io
from collections.abc import Iterable
from typing import BinaryIO

from jarsmith.jar.entries import ByteSupplier


class JoinedStream(io.RawIOBase):
    """Read-only stream over the ordered concatenation of several suppliers.

    Each supplier is opened only when the previous one is exhausted and is
    closed as soon as it has been drained, so the joined bytes are never
    held in memory all at once.
    """

    def __init__(self, suppliers: Iterable[ByteSupplier]) -> None:
        super().__init__()
        self._pending = iter(list(suppliers))
        self._current: BinaryIO | None = None

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # type: ignore[no-untyped-def]
        view = memoryview(buffer)
        if not len(view):
            return 0
        while True:
            if self._current is None:
                supplier = next(self._pending, None)
                if supplier is None:
                    return 0
                self._current = supplier()
            chunk = self._current.read(len(view))
            if chunk:
                n = len(chunk)
                view[:n] = chunk
                return n
            self._current.close()
            self._current = None

    def close(self) -> None:
        if self._current is not None:
            self._current.close()
            self._current = None
        super().close()


def join_suppliers(suppliers: Iterable[ByteSupplier]) -> ByteSupplier:
    """Return a supplier whose streams yield every supplier's bytes in order."""
    frozen = list(suppliers)

    def _open() -> BinaryIO:
        return io.BufferedReader(JoinedStream(frozen))

    return _open
