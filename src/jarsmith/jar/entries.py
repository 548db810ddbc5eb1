"""Jar entries and the lazy byte suppliers behind them."""

from __future__ import annotations

import io
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from jarsmith.core.errors import InvalidEntryPathError
from jarsmith.jar.sources import FileSource, MemorySource, Source

ByteSupplier = Callable[[], BinaryIO]
"""Zero-argument callable returning a fresh binary stream each time it is called."""


def bytes_supplier(data: bytes) -> ByteSupplier:
    def _open() -> BinaryIO:
        return io.BytesIO(data)

    return _open


def file_supplier(path: Path) -> ByteSupplier:
    def _open() -> BinaryIO:
        return open(path, "rb")

    return _open


def normalize_jar_path(jar_path: str) -> str:
    """Canonicalize a destination path to '/' separators with no leading '/'."""
    return str(jar_path).replace("\\", "/").lstrip("/")


def split_jar_path(jar_path: str) -> list[str]:
    """Split a destination path into its non-empty components."""
    return [part for part in jar_path.split("/") if part]


def require_entry_path(jar_path: str) -> str:
    norm = normalize_jar_path(jar_path)
    if not split_jar_path(norm):
        raise InvalidEntryPathError(
            f"Invalid jar entry path: {jar_path!r}",
            "Entry paths must name at least one path component",
        )
    if norm.endswith("/"):
        raise InvalidEntryPathError(
            f"Invalid jar entry path: {jar_path!r}",
            "Directory entries are created from file paths; drop the trailing '/'",
        )
    return norm


@dataclass(frozen=True)
class NamedInput:
    """A byte supplier labelled with the source and member name it reads."""

    source: Source
    name: str
    supplier: ByteSupplier

    def open(self) -> BinaryIO:
        return self.supplier()

    def identify(self) -> str:
        return self.source.identify(self.name)

    @classmethod
    def of_bytes(cls, data: bytes, name: str) -> NamedInput:
        return cls(MemorySource(), name, bytes_supplier(data))

    @classmethod
    def of_file(cls, path: Path) -> NamedInput:
        return cls(FileSource(path), str(path), file_supplier(path))


@dataclass(frozen=True)
class Entry:
    """Represents an entry to be added to a jar.

    The entry carries no bytes; ``open()`` pulls them from the underlying
    supplier on demand.
    """

    contents: NamedInput
    jar_path: str

    @property
    def source(self) -> Source:
        """The source that contains the entry."""
        return self.contents.source

    @property
    def name(self) -> str:
        """The name of the entry within its source."""
        return self.contents.name

    def open(self) -> BinaryIO:
        return self.contents.open()

    def identify(self) -> str:
        return self.contents.identify()
