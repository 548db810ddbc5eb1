"""Sources identify where a jar entry's bytes come from.

A source is used only for diagnostics: ``name()`` gives a stable label for
the origin and ``identify(member)`` a fully qualified label for one member.
Neither performs I/O.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

MEMORY_LABEL = "<memory>"


class Source:
    """Identifies a source for jar entries."""

    def name(self) -> str:
        """Returns a name for this source."""
        raise NotImplementedError

    def identify(self, name: str) -> str:
        """Identifies a member of this source."""
        raise NotImplementedError


@dataclass(frozen=True)
class FileSource(Source):
    """A single loose file; the only member it can identify is the file itself."""

    path: Path

    def name(self) -> str:
        return str(self.path)

    def identify(self, name: str) -> str:
        if name != str(self.path):
            raise ValueError(f"Cannot identify any entry name save for {self.path}")
        return str(self.path)


@dataclass(frozen=True)
class DirectorySource(Source):
    """Members of a directory tree, named relative to the tree root."""

    directory: Path

    def name(self) -> str:
        return str(self.directory)

    def identify(self, name: str) -> str:
        return os.path.join(str(self.directory), name)


@dataclass(frozen=True)
class ArchiveSource(Source):
    """Members of an existing jar/zip archive."""

    archive: Path

    def name(self) -> str:
        return str(self.archive)

    def identify(self, name: str) -> str:
        return f"{self.archive}!{name}"


@dataclass(frozen=True, eq=False)
class MemorySource(Source):
    """In-memory content; every instance is distinct."""

    def name(self) -> str:
        return MEMORY_LABEL

    def identify(self, name: str) -> str:
        return f"{MEMORY_LABEL}!{name}"

    def __repr__(self) -> str:
        return f"MemorySource(@{id(self):x})"
