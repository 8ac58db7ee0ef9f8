"""Namespace directory: which namespaces exist and how many keys each holds.

Nothing is stored separately; every answer is derived from the backend.
"""
from __future__ import annotations
import logging
from typing import Dict, List

from .base import StorageBackend

logger = logging.getLogger(__name__)


class NamespaceDirectory:
    def __init__(self, storage: StorageBackend) -> None:
        self._storage = storage

    def namespaces(self) -> List[str]:
        return self._storage.list_namespaces()

    def count(self, namespace: str) -> int:
        return self._storage.count_keys(namespace)

    def summary(self) -> Dict[str, int]:
        """Return `{namespace: key_count}` in namespace order."""
        out = {ns: self._storage.count_keys(ns) for ns in self._storage.list_namespaces()}
        logger.debug("Directory summary: %d namespaces", len(out))
        return out
