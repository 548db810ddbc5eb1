"""LogBus for publishing log records to in-process subscribers.

Subscribers either follow one level name or every record (``level_name=None``).
Publishing is fail-safe: a subscriber that raises never breaks a build.
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable, Iterator
from dataclasses import dataclass

Subscriber = Callable[["LogRecord"], None]


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str


class LogBus:
    def __init__(self) -> None:
        self._subscribers: list[tuple[str | None, Subscriber]] = []

    def subscribe(self, cb: Subscriber, level_name: str | None = None) -> None:
        """Register ``cb`` for records of ``level_name`` (all records when None)."""
        self._subscribers.append((level_name, cb))

    def unsubscribe(self, cb: Subscriber, level_name: str | None = None) -> None:
        with contextlib.suppress(ValueError):
            self._subscribers.remove((level_name, cb))

    def publish(self, record: LogRecord) -> None:
        for level_name, cb in list(self._subscribers):
            if level_name is None or level_name == record.level_name:
                self._invoke(cb, record)

    def clear(self) -> None:
        self._subscribers.clear()

    @contextlib.contextmanager
    def capture(self, level_name: str | None = None) -> Iterator[list[LogRecord]]:
        """Collect records published while the block runs."""
        records: list[LogRecord] = []
        self.subscribe(records.append, level_name)
        try:
            yield records
        finally:
            self.unsubscribe(records.append, level_name)

    def _invoke(self, cb: Subscriber, record: LogRecord) -> None:
        try:
            cb(record)
        except Exception:
            # Never route through the core logger here (recursion).
            msg = "LogBus subscriber raised; suppressed.\n" + traceback.format_exc()
            with contextlib.suppress(Exception):
                sys.stderr.write(msg)


_LOG_BUS: LogBus | None = None


def get_log_bus() -> LogBus:
    global _LOG_BUS
    if _LOG_BUS is None:
        _LOG_BUS = LogBus()
    return _LOG_BUS
