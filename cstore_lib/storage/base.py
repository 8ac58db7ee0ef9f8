"""Storage backend interface definitions.

Defines the StorageBackend abstract class used by the application to
persist and retrieve namespaced values. Both implementations honour the
same contract: absence is a return value, never an exception, and a
namespace exists exactly as long as it holds at least one key.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

# Marker for "no key given" so `get(ns)` can be told apart from `get(ns, None)`.
_NAMESPACE = object()


class StorageBackend(ABC):
    """Abstract namespaced key-value backend.

    Implementations own their persistent medium: `open` acquires it and
    `close` releases it. Implementations must be thread-safe.
    """

    #: Short name used by configuration and the health endpoint.
    name: str = "abstract"

    @abstractmethod
    def open(self) -> None:
        """Acquire the persistent medium, creating it if missing."""

    @abstractmethod
    def close(self) -> None:
        """Release the persistent medium. Safe to call more than once."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True between `open` and `close`."""

    @abstractmethod
    def set(self, namespace: str, key: str, value: Any) -> None:
        """Insert or overwrite `value` under `namespace`/`key`."""

    def get(self, namespace: str, key: Any = _NAMESPACE, default: Any = None) -> Any:
        """Return the value under `namespace`/`key`, or `default` if absent.

        When `key` is omitted, return a dict of every entry in the namespace
        (empty for a namespace that does not exist).
        """
        if key is _NAMESPACE:
            return self.get_namespace(namespace)
        return self.get_value(namespace, key, default)

    @abstractmethod
    def get_value(self, namespace: str, key: str, default: Any = None) -> Any:
        """Return the stored value or `default`."""

    @abstractmethod
    def get_namespace(self, namespace: str) -> Dict[str, Any]:
        """Return all entries in `namespace` as a new dict."""

    @abstractmethod
    def delete(self, namespace: str, key: str) -> None:
        """Delete the entry if present. Missing entries are not an error."""

    @abstractmethod
    def delete_namespace(self, namespace: str) -> None:
        """Delete every entry in `namespace`. Missing namespaces are not an error."""

    @abstractmethod
    def list_namespaces(self) -> List[str]:
        """Return non-empty namespaces in lexicographic order."""

    @abstractmethod
    def count_keys(self, namespace: str) -> int:
        """Return the number of keys stored under `namespace`."""

    def __enter__(self) -> "StorageBackend":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        self.close()
        return None
