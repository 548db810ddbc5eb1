"""Listeners observe duplicate resolution decisions while a jar is written.

Listeners are purely informational; nothing they do feeds back into which
entries survive.
"""

from __future__ import annotations

from collections.abc import Sequence

from jarsmith.core.logging import get_logger
from jarsmith.jar.entries import Entry


class Listener:
    """Base listener; every callback is a no-op."""

    def on_skip(self, original: Entry | None, skipped: Sequence[Entry]) -> None:
        """Entries are being skipped.

        Args:
            original: The entry retained in preference to ``skipped``, or None
                when the whole group is excluded
            skipped: The entries being dropped
        """

    def on_replace(self, originals: Sequence[Entry], replacement: Entry) -> None:
        """Original entries are being replaced by a subsequently added entry."""

    def on_concat(self, name: str, entries: Sequence[Entry]) -> None:
        """Entries at ``name`` are being concatenated, in the given order."""

    def on_write(self, entry: Entry) -> None:
        """A non-duplicate entry is accepted for writing."""


NOOP_LISTENER = Listener()


class LoggingListener(Listener):
    """Reports every decision through the jarsmith logger.

    Plain writes are logged at debug level, duplicate decisions at verbose.
    """

    def __init__(self, logger_name: str = "jarsmith.listener") -> None:
        self._log = get_logger(logger_name)

    def on_skip(self, original: Entry | None, skipped: Sequence[Entry]) -> None:
        dropped = ", ".join(e.identify() for e in skipped)
        if original is None:
            self._log.verbose(f"Excluded: {dropped}")
        else:
            self._log.verbose(f"Skipped duplicate(s) {dropped}; keeping {original.identify()}")

    def on_replace(self, originals: Sequence[Entry], replacement: Entry) -> None:
        replaced = ", ".join(e.identify() for e in originals)
        self._log.verbose(f"Replaced {replaced} with {replacement.identify()}")

    def on_concat(self, name: str, entries: Sequence[Entry]) -> None:
        joined = ", ".join(e.identify() for e in entries)
        self._log.verbose(f"Concatenated {len(entries)} entries at {name}: {joined}")

    def on_write(self, entry: Entry) -> None:
        self._log.debug(f"Writing {entry.jar_path} from {entry.identify()}")


class RecordingListener(Listener):
    """Keeps every notification in order; handy for embedding tools and tests."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object, object]] = []

    def on_skip(self, original: Entry | None, skipped: Sequence[Entry]) -> None:
        self.events.append(("skip", original, list(skipped)))

    def on_replace(self, originals: Sequence[Entry], replacement: Entry) -> None:
        self.events.append(("replace", list(originals), replacement))

    def on_concat(self, name: str, entries: Sequence[Entry]) -> None:
        self.events.append(("concat", name, list(entries)))

    def on_write(self, entry: Entry) -> None:
        self.events.append(("write", entry, None))

    def of_kind(self, kind: str) -> list[tuple[str, object, object]]:
        return [event for event in self.events if event[0] == kind]
