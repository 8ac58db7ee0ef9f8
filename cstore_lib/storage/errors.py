"""Storage error hierarchy.

Absence of a key or namespace is never an error; getters return a default
instead. These exceptions cover a medium that cannot be read or reached.
"""


class StorageError(Exception):
    """Base class for failures raised by a storage backend."""


class MalformedDataError(StorageError):
    """Persisted data could not be decoded (corrupt JSON or wrong shape)."""


class BackendUnavailableError(StorageError):
    """The persistent medium could not be reached (I/O, database or not open)."""
