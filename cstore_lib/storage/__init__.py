"""Storage abstraction package for C-Store."""
from pathlib import Path
from typing import Optional

from .base import StorageBackend
from .directory import NamespaceDirectory
from .document_backend import DocumentStorageBackend
from .errors import BackendUnavailableError, MalformedDataError, StorageError
from .indexed_backend import IndexedStorageBackend
from .serializer import JSONSerializer, Serializer

BACKENDS = ("document", "indexed")


def create_storage(
    backend: str = "document",
    data_dir: str | Path = "data",
    document_file: str = "data.json",
    database_file: str = "data.db",
    serializer: Optional[Serializer] = None,
) -> StorageBackend:
    """Build an unopened storage backend by name.

    `document` keeps `<data_dir>/<document_file>`; `indexed` keeps
    `<data_dir>/<database_file>`. The caller owns the result and must
    `open()` it before use and `close()` it at shutdown.
    """
    name = (backend or "").strip().lower()
    if name == "document":
        return DocumentStorageBackend(Path(data_dir) / document_file, serializer=serializer)
    if name == "indexed":
        return IndexedStorageBackend(Path(data_dir) / database_file, serializer=serializer)
    raise ValueError(f"unknown storage backend {backend!r}; expected one of {', '.join(BACKENDS)}")


__all__ = [
    "BACKENDS",
    "StorageBackend",
    "DocumentStorageBackend",
    "IndexedStorageBackend",
    "NamespaceDirectory",
    "JSONSerializer",
    "Serializer",
    "StorageError",
    "MalformedDataError",
    "BackendUnavailableError",
    "create_storage",
]
