"""JarBuilder: create or update a jar from many sources.

Example:
    with JarBuilder(Path("out.jar")) as builder:
        builder.add_bytes(b"hi", "a/b.txt")
        builder.add(Path("build/classes"), "")
        builder.add_jar(Path("lib/dep.jar"))
        builder.write(DuplicateHandler.skip_duplicates_concat_well_known_metadata())

Additions are only recorded when scheduled; sources are read when
``write()`` runs, so files and archives passed in must stay in place until
then. If the target already holds a jar, its entries take part in the write
ahead of every scheduled addition.
"""

from __future__ import annotations

import io
import os
import re
from contextlib import ExitStack
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

from jarsmith.core.errors import ReservedPathError
from jarsmith.core.logging import get_logger
from jarsmith.jar.duplicates import DuplicateAction, DuplicateHandler
from jarsmith.jar.entries import (
    ByteSupplier,
    NamedInput,
    bytes_supplier,
    normalize_jar_path,
    require_entry_path,
)
from jarsmith.jar.indexer import AddArchive, AddContents, Addition, AddPath, build_index
from jarsmith.jar.listener import NOOP_LISTENER, Listener
from jarsmith.jar.manifest import MANIFEST_NAME, Manifest, default_manifest_bytes
from jarsmith.jar.resolution import compile_skip_patterns, resolve_entries
from jarsmith.jar.sources import MemorySource
from jarsmith.jar.writer import atomic_jar

_log = get_logger(__name__)

ManifestOverride = Manifest | os.PathLike[str] | str | NamedInput


def _manifest_supplier(manifest: Manifest) -> ByteSupplier:
    def _open() -> BinaryIO:
        return io.BytesIO(manifest.to_bytes())

    return _open


def _parsed_manifest_supplier(contents: NamedInput) -> ByteSupplier:
    """Parse (and so validate) the override each time it is opened."""

    def _open() -> BinaryIO:
        with contents.open() as stream:
            manifest = Manifest.read(stream, origin=contents.identify())
        return io.BytesIO(manifest.to_bytes())

    return _open


class JarBuilder:
    """A utility that can create or update jar archives with special handling of
    duplicate entries.

    Not thread-safe; schedule additions and write from one thread.
    """

    def __init__(
        self,
        target: os.PathLike[str] | str,
        listener: Listener | None = None,
        *,
        tmp_dir: os.PathLike[str] | str | None = None,
    ) -> None:
        """Create a builder that writes scheduled additions to ``target``.

        If ``target`` does not exist a new jar is created at its path.

        Args:
            target: The jar file to write
            listener: Observer of duplicate resolution; defaults to a no-op
            tmp_dir: Scratch directory for the temporary jar; defaults to the
                target's directory
        """
        self.target = Path(target)
        self.listener = listener if listener is not None else NOOP_LISTENER
        self.tmp_dir = Path(tmp_dir) if tmp_dir is not None else None
        self._additions: list[Addition] = []
        self._manifest: ByteSupplier | None = None
        self._resources = ExitStack()

    def __enter__(self) -> JarBuilder:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release any archive handles still held."""
        self._resources.close()

    def add_bytes(self, contents: bytes | ByteSupplier, jar_path: str) -> JarBuilder:
        """Schedule ``contents`` for the entry at ``jar_path``.

        Parent directory entries are created on write in the spirit of
        ``mkdir -p``.

        Args:
            contents: The entry bytes, or a callable returning a fresh binary
                stream each time it is called
            jar_path: The path of the entry to add
        """
        jar_path = self._checked_entry_path(jar_path)
        supplier = bytes_supplier(contents) if isinstance(contents, bytes) else contents
        contents_input = NamedInput(MemorySource(), jar_path, supplier)
        self._additions.append(AddContents(contents_input, jar_path))
        return self

    def add(self, path: os.PathLike[str] | str, jar_path: str) -> JarBuilder:
        """Schedule a file at ``jar_path``, or a directory's subtree rooted there.

        A directory's own META-INF/MANIFEST.MF is never added; use
        use_custom_manifest() for that.
        """
        path = Path(path)
        if path.is_dir():
            jar_path = normalize_jar_path(jar_path)
        else:
            jar_path = self._checked_entry_path(jar_path)
        self._additions.append(AddPath(path, jar_path))
        return self

    def add_jar(self, path: os.PathLike[str] | str) -> JarBuilder:
        """Schedule every entry of an existing jar save its manifest and directories."""
        self._additions.append(AddArchive(Path(path)))
        return self

    def use_custom_manifest(self, manifest: ManifestOverride) -> JarBuilder:
        """Register the manifest to use for the written jar.

        Args:
            manifest: A Manifest, a path to a manifest file, raw manifest
                text, or a NamedInput supplying manifest bytes. Text and file
                contents are parsed when the jar is written.
        """
        if isinstance(manifest, Manifest):
            self._manifest = _manifest_supplier(manifest)
        elif isinstance(manifest, NamedInput):
            self._manifest = _parsed_manifest_supplier(manifest)
        elif isinstance(manifest, str):
            text = NamedInput(MemorySource(), MANIFEST_NAME, bytes_supplier(manifest.encode()))
            self._manifest = _parsed_manifest_supplier(text)
        elif isinstance(manifest, os.PathLike):
            self._manifest = _parsed_manifest_supplier(NamedInput.of_file(Path(manifest)))
        else:
            raise TypeError(f"Unsupported manifest override: {type(manifest).__name__}")
        return self

    def write(
        self,
        handler: DuplicateHandler | None = None,
        *skip_patterns: str | re.Pattern[str],
    ) -> Path:
        """Create the jar at the target path applying the scheduled additions.

        Args:
            handler: Handler for duplicate entries; skips duplicates by default
            skip_patterns: Regexes matching entry paths to exclude entirely

        Returns:
            The path of the jar that was written

        Raises:
            IndexingError: If the target or an added jar cannot be read
            DuplicateEntryError: If the action for a duplicate path is THROW
            ManifestFormatError: If a custom manifest does not parse
            ArchiveCreationError: If writing or moving the jar fails
        """
        if handler is None:
            handler = DuplicateHandler.always(DuplicateAction.SKIP)
        patterns = compile_skip_patterns(skip_patterns)

        with self._resources:
            index = build_index(self.target, self._additions, self._resources)
            _log.verbose(
                f"Indexed {sum(len(g) for g in index.entries.values())} candidate(s) "
                f"for {len(index.entries)} path(s)"
            )
            entries = resolve_entries(index.entries, handler, patterns, self.listener)

            manifest = self._manifest
            if manifest is None and index.prior_manifest is not None:
                manifest = index.prior_manifest.supplier
            if manifest is None:
                manifest = bytes_supplier(default_manifest_bytes())

            with atomic_jar(self.target, self.tmp_dir) as writer:
                writer.write(MANIFEST_NAME, manifest)
                for entry in entries:
                    writer.write(entry.jar_path, entry.contents.supplier)

        _log.info(f"Wrote {self.target} ({len(entries)} entries)")
        return self.target

    def _checked_entry_path(self, jar_path: str) -> str:
        jar_path = require_entry_path(jar_path)
        if jar_path == MANIFEST_NAME:
            raise ReservedPathError(jar_path)
        return jar_path
