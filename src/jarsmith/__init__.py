"""jarsmith - assemble jars from files, directories, other jars and bytes."""

__version__ = "1.0.0"

from jarsmith.core.errors import (
    ArchiveCreationError,
    DuplicateEntryError,
    IndexingError,
    JarBuilderError,
    JarsmithError,
    ManifestFormatError,
)
from jarsmith.jar import (
    MANIFEST_NAME,
    DuplicateAction,
    DuplicateHandler,
    DuplicatePolicy,
    JarBuilder,
    Listener,
    Manifest,
    NamedInput,
)

__all__ = [
    "__version__",
    "JarBuilder",
    "DuplicateAction",
    "DuplicateHandler",
    "DuplicatePolicy",
    "Listener",
    "Manifest",
    "NamedInput",
    "MANIFEST_NAME",
    "JarsmithError",
    "JarBuilderError",
    "ArchiveCreationError",
    "DuplicateEntryError",
    "IndexingError",
    "ManifestFormatError",
]
