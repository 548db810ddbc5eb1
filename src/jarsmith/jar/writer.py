"""Streaming jar writer with parent directory synthesis and atomic replacement."""

from __future__ import annotations

import contextlib
import os
import stat
import tempfile
import zipfile
from collections.abc import Iterator
from pathlib import Path

from jarsmith.core.errors import ArchiveCreationError
from jarsmith.core.logging import get_logger
from jarsmith.jar.codec import ArchiveWriter
from jarsmith.jar.entries import ByteSupplier, split_jar_path

_log = get_logger(__name__)


def _jar_mode(target: Path) -> int:
    """Mode for the written jar: the existing target's, else 0o666 under the umask."""
    try:
        return stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def _fsync_dir(path: Path) -> None:
    # Best-effort on platforms without O_DIRECTORY.
    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY
    try:
        fd = os.open(path, flags)
    except OSError:
        return
    try:
        with contextlib.suppress(OSError):
            os.fsync(fd)
    finally:
        os.close(fd)


class JarWriter:
    """Writes entries in call order, emitting each ancestor directory once.

    The set of emitted directories lives as long as this writer, which is
    one write of one jar.
    """

    def __init__(self, archive: ArchiveWriter) -> None:
        self._archive = archive
        self._directories: set[tuple[str, ...]] = set()
        self.entries_written = 0

    @property
    def directories(self) -> frozenset[tuple[str, ...]]:
        return frozenset(self._directories)

    def write(self, jar_path: str, contents: ByteSupplier) -> None:
        self._ensure_parent_dirs(jar_path)
        with contents() as stream:
            self._archive.write_entry(jar_path, stream)
        self.entries_written += 1

    def _ensure_parent_dirs(self, jar_path: str) -> None:
        parents = split_jar_path(jar_path)[:-1]
        for depth in range(1, len(parents) + 1):
            ancestry = tuple(parents[:depth])
            if ancestry not in self._directories:
                self._directories.add(ancestry)
                self._archive.write_directory("/".join(ancestry) + "/")


@contextlib.contextmanager
def atomic_jar(target: Path, tmp_dir: Path | None = None) -> Iterator[JarWriter]:
    """Yield a JarWriter over a temp file that replaces ``target`` on success.

    The temp file lives in ``tmp_dir`` (default: the target's directory) and
    is removed on any failure, leaving ``target`` untouched.

    Raises:
        ArchiveCreationError: If streaming an entry or the final move fails
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    scratch = tmp_dir if tmp_dir is not None else target.parent
    scratch.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=scratch)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w+b") as out:
            archive = ArchiveWriter(out)
            writer = JarWriter(archive)
            try:
                try:
                    yield writer
                except BaseException:
                    # The temp file is discarded; only release the zip handle.
                    with contextlib.suppress(Exception):
                        archive.close()
                    raise
                archive.close()
            except (OSError, zipfile.BadZipFile) as e:
                raise ArchiveCreationError(f"Problem writing jar {target}: {e}") from e
            out.flush()
            os.fsync(out.fileno())

        try:
            os.chmod(tmp_path, _jar_mode(target))
        except OSError as e:
            raise ArchiveCreationError(f"Problem setting permissions on {tmp_path}: {e}") from e

        try:
            os.replace(tmp_path, target)
        except OSError as e:
            raise ArchiveCreationError(
                f"Problem moving created jar from {tmp_path} to {target}: {e}",
                "Keep archive.tmp_dir on the same filesystem as the target",
            ) from e
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            tmp_path.unlink()
        raise

    _fsync_dir(target.parent)
    _log.debug(
        f"Moved {tmp_path.name} onto {target} "
        f"({writer.entries_written} entries, {len(writer.directories)} directories)"
    )
