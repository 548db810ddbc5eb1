"""Jar assembly: indexing, duplicate resolution and atomic writing."""

from jarsmith.jar.builder import JarBuilder
from jarsmith.jar.duplicates import DuplicateAction, DuplicateHandler, DuplicatePolicy
from jarsmith.jar.entries import Entry, NamedInput
from jarsmith.jar.listener import NOOP_LISTENER, Listener, LoggingListener, RecordingListener
from jarsmith.jar.manifest import MANIFEST_NAME, Attributes, Manifest
from jarsmith.jar.sources import ArchiveSource, DirectorySource, FileSource, MemorySource, Source

__all__ = [
    "JarBuilder",
    "DuplicateAction",
    "DuplicateHandler",
    "DuplicatePolicy",
    "Entry",
    "NamedInput",
    "Listener",
    "LoggingListener",
    "RecordingListener",
    "NOOP_LISTENER",
    "MANIFEST_NAME",
    "Attributes",
    "Manifest",
    "Source",
    "FileSource",
    "DirectorySource",
    "ArchiveSource",
    "MemorySource",
]
