"""Storage backend that keeps the whole dataset in one JSON document.

The document is a JSON object keyed by namespace; each namespace maps keys
to arbitrary JSON values. Every operation performs a full
read-decode-mutate-encode-write cycle, so every cycle is serialized by a
single lock covering the whole document. Writes go to a temporary file
which is fsynced and then renamed over the document.
"""
from __future__ import annotations
import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .base import StorageBackend
from .errors import BackendUnavailableError, MalformedDataError
from .serializer import Serializer, json_codec

logger = logging.getLogger(__name__)

Document = Dict[str, Dict[str, Any]]


class DocumentStorageBackend(StorageBackend):
    """Backend that targets a single on-disk JSON document.

    Parameters
    - file_path: path of the document. Created empty on `open` if missing;
      an empty file is read as an empty dataset.
    - serializer: value codec, JSON by default.
    """

    name = "document"

    def __init__(self, file_path: str | Path, serializer: Optional[Serializer] = None) -> None:
        self.file_path = Path(file_path)
        self._codec = serializer or json_codec
        self._lock = threading.RLock()
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        with self._lock:
            if self._open:
                return
            try:
                self.file_path.parent.mkdir(parents=True, exist_ok=True)
                self.file_path.touch(exist_ok=True)
            except OSError as e:
                logger.error("Cannot open document %s: %s", self.file_path, e)
                raise BackendUnavailableError(f"cannot open {self.file_path}: {e}") from e
            self._open = True
            logger.info("Document storage opened at %s", self.file_path)

    def close(self) -> None:
        with self._lock:
            if self._open:
                logger.info("Document storage closed at %s", self.file_path)
            self._open = False

    def _ensure_open(self) -> None:
        if not self._open:
            raise BackendUnavailableError(f"document storage {self.file_path} is not open")

    def _load(self) -> Document:
        self._ensure_open()
        try:
            with open(self.file_path, "rb") as f:
                raw = f.read()
        except OSError as e:
            logger.error("Failed to read %s: %s", self.file_path, e)
            raise BackendUnavailableError(f"cannot read {self.file_path}: {e}") from e
        logger.debug("Document storage loaded %s (%d bytes)", self.file_path, len(raw))
        try:
            data = self._codec.decode(raw)
        except MalformedDataError:
            logger.error("Document %s is corrupt", self.file_path)
            raise
        if not isinstance(data, dict):
            raise MalformedDataError(f"{self.file_path}: top level must be an object, got {type(data).__name__}")
        for namespace, entries in data.items():
            if not isinstance(entries, dict):
                raise MalformedDataError(f"{self.file_path}: namespace {namespace!r} is not an object")
        return data

    def _store(self, data: Document) -> None:
        # Encode before touching the disk so an unencodable value leaves the
        # current document intact.
        payload = self._codec.encode(data).encode("utf-8")
        tmp = self.file_path.with_suffix(self.file_path.suffix + ".tmp")
        try:
            with open(tmp, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            tmp.replace(self.file_path)
        except OSError as e:
            logger.error("Failed to write %s: %s", self.file_path, e)
            try:
                tmp.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning("Could not remove %s: %s", tmp, cleanup_error)
            raise BackendUnavailableError(f"cannot write {self.file_path}: {e}") from e

    def _mutate(self, change: Callable[[Document], bool]) -> None:
        """Run one locked load-mutate-store cycle.

        `change` edits the document in place and returns True when it
        modified anything; unchanged documents are not rewritten.
        """
        with self._lock:
            data = self._load()
            if change(data):
                self._store(data)

    def set(self, namespace: str, key: str, value: Any) -> None:
        def change(data: Document) -> bool:
            data.setdefault(namespace, {})[key] = value
            return True

        self._mutate(change)
        logger.debug("Set %s/%s", namespace, key)

    def get_value(self, namespace: str, key: str, default: Any = None) -> Any:
        with self._lock:
            data = self._load()
        return data.get(namespace, {}).get(key, default)

    def get_namespace(self, namespace: str) -> Dict[str, Any]:
        with self._lock:
            data = self._load()
        return dict(data.get(namespace, {}))

    def delete(self, namespace: str, key: str) -> None:
        def change(data: Document) -> bool:
            entries = data.get(namespace)
            if entries is None or key not in entries:
                return False
            del entries[key]
            # Prune namespaces as soon as they become empty.
            if not entries:
                del data[namespace]
            return True

        self._mutate(change)
        logger.debug("Deleted %s/%s", namespace, key)

    def delete_namespace(self, namespace: str) -> None:
        def change(data: Document) -> bool:
            return data.pop(namespace, None) is not None

        self._mutate(change)
        logger.debug("Deleted namespace %s", namespace)

    def list_namespaces(self) -> List[str]:
        with self._lock:
            data = self._load()
        return sorted(ns for ns, entries in data.items() if entries)

    def count_keys(self, namespace: str) -> int:
        with self._lock:
            data = self._load()
        return len(data.get(namespace, {}))
