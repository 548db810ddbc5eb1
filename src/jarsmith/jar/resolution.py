"""Reduce each candidate group of the index to at most one surviving entry."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from jarsmith.core.errors import DuplicateEntryError
from jarsmith.jar.duplicates import DuplicateAction, DuplicateHandler
from jarsmith.jar.entries import Entry, NamedInput
from jarsmith.jar.indexer import EntryIndex
from jarsmith.jar.listener import Listener
from jarsmith.jar.sources import MemorySource
from jarsmith.jar.streams import join_suppliers


def compile_skip_patterns(
    patterns: Iterable[str | re.Pattern[str]],
) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p) for p in patterns)


def is_excluded(jar_path: str, skip_patterns: Sequence[re.Pattern[str]]) -> bool:
    return any(p.search(jar_path) is not None for p in skip_patterns)


def concat_entry(jar_path: str, entries: Sequence[Entry]) -> Entry:
    """A synthetic in-memory entry streaming every candidate's bytes in order."""
    supplier = join_suppliers(entry.contents.supplier for entry in entries)
    return Entry(NamedInput(MemorySource(), jar_path, supplier), jar_path)


def resolve_group(
    jar_path: str,
    candidates: Sequence[Entry],
    handler: DuplicateHandler,
    skip_patterns: Sequence[re.Pattern[str]],
    listener: Listener,
) -> Entry | None:
    """Pick the single entry written at ``jar_path``, or None if it is excluded.

    Raises:
        DuplicateEntryError: If the action for a duplicated path is THROW
    """
    if is_excluded(jar_path, skip_patterns):
        listener.on_skip(None, candidates)
        return None

    if len(candidates) < 2:
        (entry,) = candidates
        listener.on_write(entry)
        return entry

    action = handler.action_for(jar_path)
    if action is DuplicateAction.SKIP:
        original = candidates[0]
        listener.on_skip(original, candidates[1:])
        return original

    if action is DuplicateAction.REPLACE:
        replacement = candidates[-1]
        listener.on_replace(candidates[:-1], replacement)
        return replacement

    if action is DuplicateAction.CONCAT:
        concatenated = concat_entry(jar_path, candidates)
        listener.on_concat(jar_path, candidates)
        return concatenated

    if action is DuplicateAction.THROW:
        # Always the second scheduled candidate, whatever the group size.
        raise DuplicateEntryError(candidates[1])

    raise ValueError(f"Unrecognized DuplicateAction {action!r}")


def resolve_entries(
    index: EntryIndex,
    handler: DuplicateHandler,
    skip_patterns: Sequence[re.Pattern[str]],
    listener: Listener,
) -> list[Entry]:
    """Resolve every group of ``index``.

    Groups are visited in first-arrival order of their paths; each group's
    outcome depends only on its own candidates.
    """
    survivors: list[Entry] = []
    for jar_path, candidates in index.items():
        entry = resolve_group(jar_path, candidates, handler, skip_patterns, listener)
        if entry is not None:
            survivors.append(entry)
    return survivors
