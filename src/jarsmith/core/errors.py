"""Error handling with friendly messages."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from jarsmith.jar.entries import Entry, NamedInput


class JarsmithError(Exception):
    """Base exception for all jarsmith errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(JarsmithError):
    """Configuration error."""

    pass


class JarBuilderError(JarsmithError):
    """A problem encountered while building up a jar's contents for writing out."""

    pass


class ArchiveCreationError(JarBuilderError):
    """A problem writing out a jar."""

    pass


class ManifestFormatError(JarBuilderError):
    """A custom manifest could not be parsed."""

    pass


class IndexingError(JarBuilderError):
    """A pre-existing jar could not be opened or enumerated."""

    def __init__(self, jar_path: Path | str, cause: BaseException) -> None:
        self.jar_path = jar_path
        self.cause = cause
        super().__init__(
            f"Problem indexing jar at {jar_path}: {cause}",
            "Check that the file exists and is a valid zip archive",
        )


class ReservedPathError(JarBuilderError):
    """Ordinary content was scheduled at the manifest's reserved path."""

    def __init__(self, jar_path: str) -> None:
        self.jar_path = jar_path
        super().__init__(
            f"Cannot add an entry at reserved path '{jar_path}'",
            "A custom manifest entry should be added via use_custom_manifest()",
        )


class InvalidEntryPathError(JarBuilderError):
    """A destination path is empty or otherwise unusable."""

    pass


class DuplicateEntryError(JarsmithError):
    """A duplicate jar entry is being rejected."""

    def __init__(self, entry: Entry) -> None:
        self.entry = entry
        super().__init__(
            f"Detected a duplicate entry for {entry.jar_path}",
            "Use a SKIP, REPLACE or CONCAT policy for this path, or exclude it",
        )

    @property
    def path(self) -> str:
        """The duplicated destination path."""
        return self.entry.jar_path

    @property
    def source(self) -> NamedInput:
        """The contents of the rejected duplicate entry."""
        return self.entry.contents
