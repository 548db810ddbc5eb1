"""Jar manifest model: parsing and writing META-INF/MANIFEST.MF.

The text format is a sequence of sections separated by blank lines. The
first (main) section holds archive-wide attributes; every following section
starts with a ``Name:`` header naming the entry it describes. Each header is
``Key: value``; a line starting with a single space continues the previous
value. Written lines never exceed 72 bytes.
"""

from __future__ import annotations

import functools
import io
import re
from collections.abc import Iterator, MutableMapping
from typing import BinaryIO

from jarsmith.core.errors import ManifestFormatError

MANIFEST_NAME = "META-INF/MANIFEST.MF"

MANIFEST_VERSION = "Manifest-Version"
SIGNATURE_VERSION = "Signature-Version"
CREATED_BY = "Created-By"
NAME = "Name"

# Generator tag written into manifests this package creates.
DEFAULT_CREATED_BY = "jarsmith.jar.builder.JarBuilder"

MAX_LINE_BYTES = 72
# Longest physical line accepted on read, terminator excluded.
MAX_READ_LINE_BYTES = 511

_HEADER_NAME_RE = re.compile(r"^[A-Za-z0-9_-]{1,70}$")
_LINE_SPLIT_RE = re.compile(rb"\r\n|\r|\n")


def _check_header_name(name: str) -> str:
    if not _HEADER_NAME_RE.match(name):
        raise ManifestFormatError(f"Invalid manifest header name: {name!r}")
    return name


class Attributes(MutableMapping[str, str]):
    """Ordered attribute mapping with case-insensitive header names.

    The spelling of the first insertion is kept for output.
    """

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self._data: dict[str, tuple[str, str]] = {}
        if items:
            for key, value in items.items():
                self[key] = value

    def __getitem__(self, key: str) -> str:
        return self._data[key.lower()][1]

    def __setitem__(self, key: str, value: str) -> None:
        _check_header_name(key)
        low = key.lower()
        spelled = self._data[low][0] if low in self._data else key
        self._data[low] = (spelled, str(value))

    def __delitem__(self, key: str) -> None:
        del self._data[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return (spelled for spelled, _value in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Attributes):
            return NotImplemented
        return {k: v for k, (_s, v) in self._data.items()} == {
            k: v for k, (_s, v) in other._data.items()
        }

    def __repr__(self) -> str:
        return f"Attributes({dict(self.items())!r})"


class Manifest:
    """A parsed jar manifest."""

    def __init__(
        self,
        main_attributes: Attributes | dict[str, str] | None = None,
        entries: dict[str, Attributes] | None = None,
    ) -> None:
        if isinstance(main_attributes, Attributes):
            self.main_attributes = main_attributes
        else:
            self.main_attributes = Attributes(main_attributes)
        self.entries: dict[str, Attributes] = dict(entries or {})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Manifest):
            return NotImplemented
        return self.main_attributes == other.main_attributes and self.entries == other.entries

    def __repr__(self) -> str:
        return f"Manifest(main={self.main_attributes!r}, entries={self.entries!r})"

    @classmethod
    def read(cls, data: bytes | BinaryIO, *, origin: str = MANIFEST_NAME) -> Manifest:
        """Parse manifest bytes.

        Args:
            data: Raw manifest bytes or a binary stream positioned at them
            origin: Label used in error messages

        Raises:
            ManifestFormatError: If the bytes are not a valid manifest
        """
        raw = data if isinstance(data, bytes) else data.read()
        lines = _LINE_SPLIT_RE.split(raw)
        if lines and lines[-1] == b"":
            lines.pop()

        sections: list[list[tuple[str, str]]] = [[]]
        current: list[tuple[str, str]] = sections[0]
        for lineno, line in enumerate(lines, start=1):
            if len(line) > MAX_READ_LINE_BYTES:
                raise ManifestFormatError(f"Invalid manifest from {origin}: line {lineno} too long")
            if not line:
                if current:
                    current = []
                    sections.append(current)
                continue
            if line.startswith(b" "):
                if not current:
                    raise ManifestFormatError(
                        f"Invalid manifest from {origin}: misplaced continuation line {lineno}"
                    )
                key, value = current[-1]
                current[-1] = (key, value + _decode(line[1:], origin, lineno))
                continue
            key_raw, sep, value_raw = line.partition(b": ")
            if not sep:
                raise ManifestFormatError(
                    f"Invalid manifest from {origin}: invalid header field on line {lineno}"
                )
            current.append((_decode(key_raw, origin, lineno), _decode(value_raw, origin, lineno)))

        if not sections[-1]:
            sections.pop()

        manifest = cls()
        for index, headers in enumerate(sections):
            if index == 0:
                attrs = manifest.main_attributes
                pairs = headers
            else:
                if headers[0][0].lower() != NAME.lower():
                    raise ManifestFormatError(
                        f"Invalid manifest from {origin}: section does not start with 'Name:'"
                    )
                attrs = manifest.entries.setdefault(headers[0][1], Attributes())
                pairs = headers[1:]
            for key, value in pairs:
                try:
                    attrs[key] = value
                except ManifestFormatError as e:
                    raise ManifestFormatError(f"Invalid manifest from {origin}: {e.message}") from e
        return manifest

    def write(self, out: BinaryIO) -> None:
        """Write this manifest in the jar manifest text format."""
        main = self.main_attributes
        for version_key in (MANIFEST_VERSION, SIGNATURE_VERSION):
            if version_key in main:
                _write_header(out, version_key, main[version_key])
                break
        else:
            version_key = ""
        for key, value in main.items():
            if version_key and key.lower() == version_key.lower():
                continue
            _write_header(out, key, value)
        out.write(b"\r\n")

        for entry_name, attrs in self.entries.items():
            _write_header(out, NAME, entry_name)
            for key, value in attrs.items():
                _write_header(out, key, value)
            out.write(b"\r\n")

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.write(buf)
        return buf.getvalue()


def _decode(raw: bytes, origin: str, lineno: int) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ManifestFormatError(
            f"Invalid manifest from {origin}: line {lineno} is not UTF-8"
        ) from e


def _write_header(out: BinaryIO, key: str, value: str) -> None:
    line = f"{key}: {value}".encode()
    first = True
    while line:
        # Continuation lines spend one byte on the leading space.
        limit = MAX_LINE_BYTES if first else MAX_LINE_BYTES - 1
        cut = min(limit, len(line))
        # Never split a multi-byte UTF-8 sequence.
        while cut < len(line) and (line[cut] & 0xC0) == 0x80:
            cut -= 1
        if not first:
            out.write(b" ")
        out.write(line[:cut] + b"\r\n")
        line = line[cut:]
        first = False


@functools.cache
def default_manifest_bytes() -> bytes:
    """Bytes of the manifest used when no other manifest is available."""
    return Manifest({MANIFEST_VERSION: "1.0", CREATED_BY: DEFAULT_CREATED_BY}).to_bytes()
