"""Tests for the manifest model."""

import io

import pytest

from jarsmith.core.errors import ManifestFormatError
from jarsmith.jar.builder import JarBuilder
from jarsmith.jar.manifest import (
    DEFAULT_CREATED_BY,
    MAX_LINE_BYTES,
    Attributes,
    Manifest,
    default_manifest_bytes,
)


def test_default_manifest_bytes() -> None:
    assert default_manifest_bytes() == (
        b"Manifest-Version: 1.0\r\nCreated-By: jarsmith.jar.builder.JarBuilder\r\n\r\n"
    )


def test_created_by_names_the_builder() -> None:
    assert DEFAULT_CREATED_BY == f"{JarBuilder.__module__}.{JarBuilder.__qualname__}"


def test_read_main_attributes_and_sections() -> None:
    raw = (
        b"Manifest-Version: 1.0\r\n"
        b"Main-Class: com.example.Main\r\n"
        b"\r\n"
        b"Name: com/example/Main.class\r\n"
        b"Sealed: true\r\n"
        b"\r\n"
    )

    manifest = Manifest.read(raw)

    assert dict(manifest.main_attributes) == {
        "Manifest-Version": "1.0",
        "Main-Class": "com.example.Main",
    }
    assert list(manifest.entries) == ["com/example/Main.class"]
    assert manifest.entries["com/example/Main.class"]["sealed"] == "true"


def test_read_accepts_lf_and_missing_final_newline() -> None:
    manifest = Manifest.read(io.BytesIO(b"Manifest-Version: 1.0\nCreated-By: me"))

    assert manifest.main_attributes["Created-By"] == "me"


def test_read_joins_continuation_lines() -> None:
    raw = b"Manifest-Version: 1.0\r\nClass-Path: a.jar b\r\n .jar c.jar\r\n\r\n"

    manifest = Manifest.read(raw)

    assert manifest.main_attributes["Class-Path"] == "a.jar b.jar c.jar"


@pytest.mark.parametrize(
    ("raw", "fragment"),
    [
        (b" continued\r\n", "misplaced continuation"),
        (b"Manifest-Version 1.0\r\n", "invalid header field"),
        (b"Manifest-Version: 1.0\r\n\r\nSealed: true\r\n", "does not start with 'Name:'"),
        (b"Key: \xff\xfe\r\n", "not UTF-8"),
        (b"Bad Name: x\r\n", "Invalid manifest header name"),
        (b"Key: " + b"x" * 600 + b"\r\n", "too long"),
    ],
)
def test_read_rejects_malformed_input(raw: bytes, fragment: str) -> None:
    with pytest.raises(ManifestFormatError) as exc_info:
        Manifest.read(raw, origin="custom.mf")

    message = str(exc_info.value)
    assert "Invalid manifest from custom.mf" in message
    assert fragment in message


def test_write_puts_version_first() -> None:
    manifest = Manifest({"Created-By": "me", "Manifest-Version": "1.0"})

    assert manifest.to_bytes() == b"Manifest-Version: 1.0\r\nCreated-By: me\r\n\r\n"


def test_write_signature_version_first_without_manifest_version() -> None:
    manifest = Manifest({"Created-By": "me", "Signature-Version": "1.0"})

    assert manifest.to_bytes().startswith(b"Signature-Version: 1.0\r\n")


def test_write_sections_after_main() -> None:
    manifest = Manifest(
        {"Manifest-Version": "1.0"},
        {"a/B.class": Attributes({"Sealed": "true"})},
    )

    assert manifest.to_bytes() == (
        b"Manifest-Version: 1.0\r\n\r\nName: a/B.class\r\nSealed: true\r\n\r\n"
    )


def test_long_values_wrap_at_72_bytes() -> None:
    manifest = Manifest({"Manifest-Version": "1.0", "Long": "x" * 100})

    data = manifest.to_bytes()
    lines = data.split(b"\r\n")

    assert all(len(line) <= MAX_LINE_BYTES for line in lines)
    assert lines[1] == b"Long: " + b"x" * 66
    assert lines[2] == b" " + b"x" * 34
    assert Manifest.read(data) == manifest


def test_wrapping_never_splits_utf8_sequences() -> None:
    manifest = Manifest({"K": "é" * 40})

    data = manifest.to_bytes()
    lines = [line for line in data.split(b"\r\n") if line]

    assert len(lines) == 2
    for line in lines:
        assert len(line) <= MAX_LINE_BYTES
        line.decode("utf-8")
    assert Manifest.read(data).main_attributes["K"] == "é" * 40


def test_attributes_are_case_insensitive_and_keep_first_spelling() -> None:
    attrs = Attributes()
    attrs["Main-Class"] = "A"
    attrs["MAIN-CLASS"] = "B"

    assert list(attrs) == ["Main-Class"]
    assert attrs["main-class"] == "B"
    assert "main-CLASS" in attrs
    assert attrs == Attributes({"main-class": "B"})


def test_attributes_reject_invalid_header_names() -> None:
    with pytest.raises(ManifestFormatError):
        Attributes()["has space"] = "x"
