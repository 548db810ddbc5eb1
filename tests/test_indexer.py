"""Tests for write-time indexing of scheduled additions."""

from contextlib import ExitStack
from pathlib import Path

import pytest
from conftest import make_jar

from jarsmith.core.errors import IndexingError
from jarsmith.jar.entries import NamedInput
from jarsmith.jar.indexer import (
    AddArchive,
    AddContents,
    AddPath,
    build_index,
    relpath_components,
    walk_files,
)
from jarsmith.jar.sources import ArchiveSource, DirectorySource, FileSource


@pytest.mark.parametrize(
    ("full", "base", "expected"),
    [
        ("/a/b/c", "/a/b", ["c"]),
        ("/a/b/c/d.txt", "/a/b", ["c", "d.txt"]),
        ("/a/b", "/a/b", []),
        ("/a/x", "/a/b/c", ["..", "..", "x"]),
        ("/a/b", "/a/b/c", [".."]),
    ],
)
def test_relpath_components(full: str, base: str, expected: list[str]) -> None:
    assert relpath_components(Path(full), Path(base)) == expected


def _tree(root: Path, files: dict[str, bytes]) -> Path:
    for rel, data in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return root


def test_walk_files_is_depth_first_in_name_order(tmp_path: Path) -> None:
    root = _tree(tmp_path / "tree", {"c": b"", "b/z": b"", "a.txt": b"", "b/a": b""})

    walked = [p.relative_to(root).as_posix() for p in walk_files(root)]

    assert walked == ["a.txt", "b/a", "b/z", "c"]


def test_target_entries_arrive_before_additions(tmp_path: Path) -> None:
    target = make_jar(tmp_path / "out.jar", {"x": b"old"}, manifest=b"Manifest-Version: 1.0\r\n")
    added = NamedInput.of_bytes(b"new", "x")

    with ExitStack() as resources:
        result = build_index(target, [AddContents(added, "x")], resources)

        assert [e.contents.name for e in result.entries["x"]] == ["x", "x"]
        first, second = result.entries["x"]
        assert first.source == ArchiveSource(target)
        assert second.contents is added
        assert result.prior_manifest is not None
        assert "META-INF/MANIFEST.MF" not in result.entries
        with result.prior_manifest.open() as stream:
            assert stream.read() == b"Manifest-Version: 1.0\r\n"


def test_missing_or_empty_target_is_not_indexed(tmp_path: Path) -> None:
    empty = tmp_path / "empty.jar"
    empty.touch()

    with ExitStack() as resources:
        assert build_index(tmp_path / "missing.jar", [], resources).entries == {}
        assert build_index(empty, [], resources).entries == {}


def test_directory_addition_is_rooted_at_jar_path(tmp_path: Path) -> None:
    root = _tree(
        tmp_path / "classes",
        {"com/A.class": b"A", "META-INF/MANIFEST.MF": b"ignored", "b.txt": b"b"},
    )

    with ExitStack() as resources:
        result = build_index(tmp_path / "out.jar", [AddPath(root, "lib")], resources)

    assert list(result.entries) == ["lib/b.txt", "lib/com/A.class"]
    (entry,) = result.entries["lib/com/A.class"]
    assert entry.source == DirectorySource(root)
    assert entry.name == "com/A.class"


def test_file_addition_keeps_its_destination(tmp_path: Path) -> None:
    path = _tree(tmp_path, {"notes.txt": b"n"}) / "notes.txt"

    with ExitStack() as resources:
        result = build_index(tmp_path / "out.jar", [AddPath(path, "docs/n.txt")], resources)

    (entry,) = result.entries["docs/n.txt"]
    assert entry.source == FileSource(path)
    assert entry.identify() == str(path)


def test_archive_addition_skips_directories_and_manifest(tmp_path: Path) -> None:
    dep = make_jar(
        tmp_path / "dep.jar",
        {"a/": b"", "a/b.txt": b"b"},
        manifest=b"Manifest-Version: 1.0\r\n",
    )

    with ExitStack() as resources:
        result = build_index(tmp_path / "out.jar", [AddArchive(dep)], resources)
        assert list(result.entries) == ["a/b.txt"]
        with result.entries["a/b.txt"][0].open() as stream:
            assert stream.read() == b"b"
    assert result.prior_manifest is None


def test_unreadable_archive_raises_indexing_error(tmp_path: Path) -> None:
    bogus = tmp_path / "bogus.jar"
    bogus.write_bytes(b"not a zip")

    with ExitStack() as resources, pytest.raises(IndexingError) as exc_info:
        build_index(tmp_path / "out.jar", [AddArchive(bogus)], resources)

    assert exc_info.value.jar_path == bogus
    assert "Problem indexing jar at" in str(exc_info.value)
