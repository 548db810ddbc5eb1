"""Deferred additions and the index they produce at write time.

Scheduling an addition only records a command. ``build_index`` runs every
command in scheduling order and returns, per destination path, the candidate
entries competing for it in arrival order. Entries of a pre-existing target
archive arrive before anything scheduled.
"""

from __future__ import annotations

import os
import zipfile
from collections.abc import Iterator, Sequence
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from jarsmith.core.errors import IndexingError
from jarsmith.core.logging import get_logger
from jarsmith.jar.codec import ArchiveReader, list_members
from jarsmith.jar.entries import (
    ByteSupplier,
    Entry,
    NamedInput,
    file_supplier,
    split_jar_path,
)
from jarsmith.jar.manifest import MANIFEST_NAME
from jarsmith.jar.sources import ArchiveSource, DirectorySource

_log = get_logger(__name__)

EntryIndex = dict[str, list[Entry]]


@dataclass(frozen=True)
class AddContents:
    """Add in-memory (or otherwise supplied) contents at ``jar_path``."""

    contents: NamedInput
    jar_path: str


@dataclass(frozen=True)
class AddPath:
    """Add a single file, or a directory tree rooted at ``jar_path``."""

    path: Path
    jar_path: str


@dataclass(frozen=True)
class AddArchive:
    """Add every non-directory, non-manifest member of an existing archive."""

    path: Path


Addition = AddContents | AddPath | AddArchive


@dataclass
class IndexResult:
    entries: EntryIndex = field(default_factory=dict)
    prior_manifest: NamedInput | None = None


def relpath_components(full_path: Path, relative_to: Path) -> list[str]:
    """Components of ``full_path`` relative to ``relative_to``.

    The longest common leading run of components is dropped; every component
    of ``relative_to`` left unmatched becomes one leading '..'.
    """
    base = list(relative_to.parts)
    path = list(full_path.parts)
    common = 0
    for base_part, path_part in zip(base, path):
        if base_part != path_part:
            break
        common += 1
    return [".."] * (len(base) - common) + path[common:]


def walk_files(directory: Path) -> Iterator[Path]:
    """Yield every file under ``directory``, depth first, in sorted name order."""
    with os.scandir(directory) as it:
        children = sorted(it, key=lambda e: e.name)
    for child in children:
        child_path = Path(child.path)
        if child.is_dir():
            yield from walk_files(child_path)
        else:
            yield child_path


def _put(index: EntryIndex, contents: NamedInput, jar_path: str) -> None:
    index.setdefault(jar_path, []).append(Entry(contents, jar_path))


def _member_supplier(reader: ArchiveReader, name: str) -> ByteSupplier:
    def _open() -> BinaryIO:
        return reader.open_member(name)

    return _open


def _register_reader(resources: ExitStack, path: Path) -> ArchiveReader:
    reader = ArchiveReader(path)
    resources.callback(reader.close)
    return reader


def _index_path(index: EntryIndex, addition: AddPath) -> None:
    if addition.path.is_dir():
        source = DirectorySource(addition.path)
        base = split_jar_path(addition.jar_path)
        count = 0
        for child in walk_files(addition.path):
            rel = relpath_components(child, addition.path)
            entry_name = "/".join(rel)
            jar_path = "/".join(base + rel)
            if entry_name == MANIFEST_NAME or jar_path == MANIFEST_NAME:
                _log.debug(f"Skipping manifest {source.identify(entry_name)}")
                continue
            _put(index, NamedInput(source, entry_name, file_supplier(child)), jar_path)
            count += 1
        _log.debug(f"Indexed {count} file(s) from directory {addition.path}")
    else:
        _put(index, NamedInput.of_file(addition.path), addition.jar_path)


def _index_archive(index: EntryIndex, path: Path, resources: ExitStack) -> None:
    try:
        members = list_members(path)
    except (OSError, zipfile.BadZipFile) as e:
        raise IndexingError(path, e) from e

    reader = _register_reader(resources, path)
    source = ArchiveSource(path)
    for member in members:
        if member.is_dir or member.name == MANIFEST_NAME:
            continue
        contents = NamedInput(source, member.name, _member_supplier(reader, member.name))
        _put(index, contents, member.name)
    _log.debug(f"Indexed {len(members)} member(s) of {path}")


def _index_target(result: IndexResult, target: Path, resources: ExitStack) -> None:
    try:
        members = list_members(target)
    except (OSError, zipfile.BadZipFile) as e:
        raise IndexingError(target, e) from e

    reader = _register_reader(resources, target)
    source = ArchiveSource(target)
    for member in members:
        contents = NamedInput(source, member.name, _member_supplier(reader, member.name))
        if member.name == MANIFEST_NAME:
            result.prior_manifest = contents
        elif not member.is_dir:
            _put(result.entries, contents, member.name)
    _log.debug(f"Indexed {len(members)} member(s) of existing target {target}")


def build_index(
    target: Path,
    additions: Sequence[Addition],
    resources: ExitStack,
) -> IndexResult:
    """Materialize the candidate index for one write.

    Args:
        target: The jar being written; a non-empty file there is indexed first
        additions: Scheduled additions, in scheduling order
        resources: Cleanup stack owned by the write call; every archive read
            handle is registered on it

    Raises:
        IndexingError: If the target or an added archive cannot be enumerated
    """
    result = IndexResult()
    if target.is_file() and target.stat().st_size > 0:
        _index_target(result, target, resources)

    for addition in additions:
        if isinstance(addition, AddContents):
            _put(result.entries, addition.contents, addition.jar_path)
        elif isinstance(addition, AddPath):
            _index_path(result.entries, addition)
        elif isinstance(addition, AddArchive):
            _index_archive(result.entries, addition.path, resources)
        else:
            raise TypeError(f"Unrecognized addition {addition!r}")
    return result
