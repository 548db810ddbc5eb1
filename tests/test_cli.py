"""Tests for the jarsmith command line."""

from pathlib import Path

import pytest
from conftest import jar_names, read_jar

from jarsmith import __version__
from jarsmith.cli import main
from jarsmith.core.log_bus import get_log_bus


@pytest.fixture
def no_config(tmp_path: Path) -> list[str]:
    return ["--config", str(tmp_path / "none.yaml")]


def _file(tmp_path: Path, rel: str, data: bytes) -> Path:
    path = tmp_path / "inputs" / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def test_builds_jar_from_files_dirs_and_jars(
    tmp_path: Path, target: Path, jar_factory, no_config: list[str]
) -> None:
    notes = _file(tmp_path, "notes.txt", b"n")
    _file(tmp_path, "classes/com/A.class", b"A")
    dep = jar_factory("dep.jar", {"lib/x.txt": b"x"})

    code = main(
        [
            str(target),
            "--add",
            str(notes),
            "--add",
            f"{tmp_path / 'inputs' / 'classes'}",
            "--add-jar",
            str(dep),
            *no_config,
        ]
    )

    assert code == 0
    contents = read_jar(target)
    assert contents["notes.txt"] == b"n"
    assert contents["com/A.class"] == b"A"
    assert contents["lib/x.txt"] == b"x"
    assert jar_names(target)[:2] == ["META-INF/", "META-INF/MANIFEST.MF"]


def test_explicit_destination(tmp_path: Path, target: Path, no_config: list[str]) -> None:
    notes = _file(tmp_path, "notes.txt", b"n")

    assert main([str(target), "--add", f"{notes}=docs/readme.txt", *no_config]) == 0

    assert read_jar(target)["docs/readme.txt"] == b"n"


@pytest.mark.parametrize(("jar_first", "expected"), [(True, b"file"), (False, b"jar")])
def test_additions_keep_command_line_order(
    tmp_path: Path,
    target: Path,
    jar_factory,
    no_config: list[str],
    jar_first: bool,
    expected: bytes,
) -> None:
    dep = jar_factory("dep.jar", {"x.txt": b"jar"})
    loose = _file(tmp_path, "x.txt", b"file")
    add_jar = ["--add-jar", str(dep)]
    add_file = ["--add", f"{loose}=x.txt"]
    ordered = add_jar + add_file if jar_first else add_file + add_jar

    code = main([str(target), *ordered, "--default-action", "replace", *no_config])

    assert code == 0
    assert read_jar(target)["x.txt"] == expected


def test_policy_and_exclude(target: Path, jar_factory, no_config: list[str]) -> None:
    one = jar_factory("one.jar", {"META-INF/services/S": b"a\n", "junk.tmp": b"j"})
    two = jar_factory("two.jar", {"META-INF/services/S": b"b\n"})

    code = main(
        [
            str(target),
            "--add-jar",
            str(one),
            "--add-jar",
            str(two),
            "--policy",
            "^META-INF/services/=concat",
            "--exclude",
            r"\.tmp$",
            *no_config,
        ]
    )

    assert code == 0
    contents = read_jar(target)
    assert contents["META-INF/services/S"] == b"a\nb\n"
    assert "junk.tmp" not in contents


def test_custom_manifest(tmp_path: Path, target: Path, no_config: list[str]) -> None:
    manifest = _file(tmp_path, "MANIFEST.MF", b"Manifest-Version: 1.0\nMain-Class: Main\n")

    assert main([str(target), "--manifest", str(manifest), *no_config]) == 0

    assert read_jar(target)["META-INF/MANIFEST.MF"] == (
        b"Manifest-Version: 1.0\r\nMain-Class: Main\r\n\r\n"
    )


def test_duplicate_throw_exits_1(
    tmp_path: Path,
    target: Path,
    jar_factory,
    no_config: list[str],
    capsys: pytest.CaptureFixture[str],
) -> None:
    dep = jar_factory("dep.jar", {"x.txt": b"jar"})
    loose = _file(tmp_path, "x.txt", b"file")

    code = main(
        [
            str(target),
            "--add-jar",
            str(dep),
            "--add",
            f"{loose}=x.txt",
            "--default-action",
            "throw",
            *no_config,
        ]
    )

    assert code == 1
    assert "Detected a duplicate entry for x.txt" in capsys.readouterr().err
    assert not target.exists()


def test_invalid_policy_exits_1(target: Path, no_config: list[str]) -> None:
    assert main([str(target), "--policy", "no-separator", *no_config]) == 1


def test_verbose_reports_decisions(
    tmp_path: Path, target: Path, jar_factory, no_config: list[str]
) -> None:
    dep = jar_factory("dep.jar", {"x.txt": b"jar"})
    loose = _file(tmp_path, "x.txt", b"file")

    with get_log_bus().capture("VERBOSE") as records:
        code = main(
            [str(target), "-v", "--add-jar", str(dep), "--add", f"{loose}=x.txt", *no_config]
        )

    assert code == 0
    assert any("Skipped duplicate(s)" in r.plain for r in records)


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["out.jar", "--default-action", "merge"],
        ["out.jar", "-q", "-v"],
    ],
)
def test_usage_errors_exit_2(argv: list[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)

    assert exc_info.value.code == 2


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])

    assert exc_info.value.code == 0
    assert capsys.readouterr().out.strip() == f"jarsmith {__version__}"


def test_source_path_may_contain_equals(tmp_path: Path, target: Path, no_config: list[str]) -> None:
    odd = _file(tmp_path, "k=v.txt", b"kv")

    assert main([str(target), "--add", f"{odd}=conf/kv.txt", *no_config]) == 0

    assert read_jar(target)["conf/kv.txt"] == b"kv"
