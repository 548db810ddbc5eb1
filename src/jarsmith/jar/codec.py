"""Zip container access: enumerate members of an existing archive and append
entries to a new one.

This is the only module that talks to ``zipfile``. Output is deterministic:
every record carries a fixed timestamp and fixed permissions.
"""

from __future__ import annotations

import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
_FILE_MODE = 0o100644
_DIR_MODE = 0o040755
_MSDOS_DIR_FLAG = 0x10
_COPY_BUFSIZE = 64 * 1024


@dataclass(frozen=True)
class ArchiveMember:
    """One named member of an existing archive."""

    name: str
    is_dir: bool


def list_members(path: Path) -> list[ArchiveMember]:
    """Enumerate the members of the archive at ``path`` in central directory order.

    Raises:
        OSError: If the file cannot be read
        zipfile.BadZipFile: If the file is not a zip archive
    """
    with zipfile.ZipFile(path) as zf:
        return [ArchiveMember(name=info.filename, is_dir=info.is_dir()) for info in zf.infolist()]


class ArchiveReader:
    """Lazily opened read handle over an existing archive.

    The underlying ZipFile is opened on the first ``open_member`` call and
    stays open until ``close()``, so member streams can be pulled at any time
    in between.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._zip: zipfile.ZipFile | None = None
        self._closed = False

    def open_member(self, name: str) -> BinaryIO:
        if self._closed:
            raise ValueError(f"Archive reader for {self.path} is closed")
        if self._zip is None:
            self._zip = zipfile.ZipFile(self.path)
        return self._zip.open(name)

    def close(self) -> None:
        self._closed = True
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    @property
    def is_open(self) -> bool:
        return self._zip is not None


def _file_info(name: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(filename=name, date_time=FIXED_DATE_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = _FILE_MODE << 16
    return info


def _dir_info(name: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(filename=name, date_time=FIXED_DATE_TIME)
    info.compress_type = zipfile.ZIP_STORED
    info.external_attr = (_DIR_MODE << 16) | _MSDOS_DIR_FLAG
    return info


class ArchiveWriter:
    """Append-only writer for a new archive."""

    def __init__(self, out: BinaryIO) -> None:
        self._zip = zipfile.ZipFile(out, "w", compression=zipfile.ZIP_DEFLATED)

    def write_directory(self, name: str) -> None:
        """Append a directory record; ``name`` must end with '/'."""
        self._zip.writestr(_dir_info(name), b"")

    def write_entry(self, name: str, stream: BinaryIO) -> None:
        """Append a file record whose bytes are copied from ``stream``."""
        with self._zip.open(_file_info(name), "w", force_zip64=True) as dst:
            shutil.copyfileobj(stream, dst, _COPY_BUFSIZE)

    def close(self) -> None:
        self._zip.close()
