"""Ambient services shared by jarsmith: errors, logging and configuration."""

from jarsmith.core.config import ConfigResolver, LoggingPolicy
from jarsmith.core.errors import (
    ArchiveCreationError,
    ConfigError,
    DuplicateEntryError,
    IndexingError,
    InvalidEntryPathError,
    JarBuilderError,
    JarsmithError,
    ManifestFormatError,
    ReservedPathError,
)
from jarsmith.core.logging import VerbosityLevel, get_logger, set_colors, set_verbosity

__all__ = [
    # Config
    "ConfigResolver",
    "LoggingPolicy",
    # Errors
    "JarsmithError",
    "JarBuilderError",
    "ArchiveCreationError",
    "ConfigError",
    "DuplicateEntryError",
    "IndexingError",
    "InvalidEntryPathError",
    "ManifestFormatError",
    "ReservedPathError",
    # Logging
    "VerbosityLevel",
    "get_logger",
    "set_colors",
    "set_verbosity",
]
