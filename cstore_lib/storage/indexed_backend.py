"""SQLite storage backend keyed by (namespace, key).

Every operation touches only the rows it names. Upserts are a single
`INSERT OR REPLACE` so concurrent writers rely on SQLite's row-level
atomicity instead of an application lock. SQLite connections must not be
shared between threads, so each thread gets its own connection. A thread
that exits leaves its connection behind; it is closed the next time a
connection is opened, and `close` closes the rest.
"""
from __future__ import annotations
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .base import StorageBackend
from .errors import BackendUnavailableError, MalformedDataError
from .serializer import Serializer, json_codec

logger = logging.getLogger(__name__)

TABLE = "key_value_store"

SCHEMA = f"""
    CREATE TABLE IF NOT EXISTS {TABLE} (
        namespace TEXT NOT NULL,
        key TEXT NOT NULL,
        value TEXT NOT NULL,
        PRIMARY KEY (namespace, key)
    )
"""


class IndexedStorageBackend(StorageBackend):
    """Backend storing one row per entry in a SQLite table.

    Parameters
    - db_path: path of the SQLite database file, created on `open`.
    - serializer: value codec, JSON by default. Values are stored as text.
    - timeout: seconds a connection waits on a locked database.
    """

    name = "indexed"

    def __init__(
        self,
        db_path: str | Path,
        serializer: Optional[Serializer] = None,
        timeout: float = 5.0,
    ) -> None:
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._codec = serializer or json_codec
        self._local = threading.local()
        self._registry_lock = threading.Lock()
        # One connection per live thread; entries of exited threads are
        # closed when the next connection is opened.
        self._connections: Dict[threading.Thread, sqlite3.Connection] = {}
        # Bumped on every close so threads drop connections from a previous open.
        self._generation = 0
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        with self._registry_lock:
            if self._open:
                return
            self._open = True
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            # journal_mode is persistent on the database file.
            with self._transaction() as conn:
                conn.execute("PRAGMA journal_mode=WAL")
            with self._transaction() as conn:
                conn.execute(SCHEMA)
        except (OSError, BackendUnavailableError, MalformedDataError) as e:
            self.close()
            logger.error("Cannot open database %s: %s", self.db_path, e)
            if isinstance(e, OSError):
                raise BackendUnavailableError(f"cannot open {self.db_path}: {e}") from e
            raise
        logger.info("Indexed storage opened at %s", self.db_path)

    def close(self) -> None:
        with self._registry_lock:
            was_open = self._open
            self._open = False
            self._generation += 1
            connections = list(self._connections.values())
            self._connections = {}
        self._close_all(connections)
        if was_open:
            logger.info("Indexed storage closed at %s (%d connections)", self.db_path, len(connections))

    def _connection(self) -> sqlite3.Connection:
        if not self._open:
            raise BackendUnavailableError(f"indexed storage {self.db_path} is not open")
        conn = getattr(self._local, "conn", None)
        if conn is not None and self._local.generation == self._generation:
            return conn
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout, check_same_thread=False)
        with self._registry_lock:
            stale = self._prune_dead_threads()
            self._connections[threading.current_thread()] = conn
            self._local.generation = self._generation
        self._local.conn = conn
        self._close_all(stale)
        logger.debug("Opened SQLite connection to %s (%d held)", self.db_path, len(self._connections))
        return conn

    def _prune_dead_threads(self) -> List[sqlite3.Connection]:
        """Unregister connections of exited threads; caller holds the registry lock."""
        dead = [t for t in self._connections if not t.is_alive()]
        return [self._connections.pop(t) for t in dead]

    def _close_all(self, connections: List[sqlite3.Connection]) -> None:
        for conn in connections:
            try:
                conn.close()
            except sqlite3.Error as e:
                logger.warning("Error closing connection to %s: %s", self.db_path, e)

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction, translating SQLite errors."""
        try:
            conn = self._connection()
            with conn:
                yield conn
        except sqlite3.DatabaseError as e:
            message = str(e)
            if "malformed" in message or "not a database" in message:
                logger.error("Database %s is corrupt: %s", self.db_path, message)
                raise MalformedDataError(f"{self.db_path}: {message}") from e
            logger.error("Database %s unavailable: %s", self.db_path, message)
            raise BackendUnavailableError(f"{self.db_path}: {message}") from e
        except sqlite3.Error as e:
            logger.error("Database %s unavailable: %s", self.db_path, e)
            raise BackendUnavailableError(f"{self.db_path}: {e}") from e

    def _decode(self, namespace: str, key: str, text: str) -> Any:
        if not isinstance(text, str) or not text.strip():
            raise MalformedDataError(f"empty value stored under {namespace}/{key}")
        return self._codec.decode(text)

    def set(self, namespace: str, key: str, value: Any) -> None:
        text = self._codec.encode(value)
        with self._transaction() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO {TABLE} (namespace, key, value) VALUES (?, ?, ?)",
                (namespace, key, text),
            )
        logger.debug("Set %s/%s", namespace, key)

    def get_value(self, namespace: str, key: str, default: Any = None) -> Any:
        with self._transaction() as conn:
            row = conn.execute(
                f"SELECT value FROM {TABLE} WHERE namespace = ? AND key = ?",
                (namespace, key),
            ).fetchone()
        if row is None:
            return default
        return self._decode(namespace, key, row[0])

    def get_namespace(self, namespace: str) -> Dict[str, Any]:
        with self._transaction() as conn:
            rows = conn.execute(
                f"SELECT key, value FROM {TABLE} WHERE namespace = ?",
                (namespace,),
            ).fetchall()
        return {key: self._decode(namespace, key, text) for key, text in rows}

    def delete(self, namespace: str, key: str) -> None:
        with self._transaction() as conn:
            conn.execute(
                f"DELETE FROM {TABLE} WHERE namespace = ? AND key = ?",
                (namespace, key),
            )
        logger.debug("Deleted %s/%s", namespace, key)

    def delete_namespace(self, namespace: str) -> None:
        with self._transaction() as conn:
            cur = conn.execute(f"DELETE FROM {TABLE} WHERE namespace = ?", (namespace,))
        logger.debug("Deleted namespace %s (%d rows)", namespace, cur.rowcount)

    def list_namespaces(self) -> List[str]:
        with self._transaction() as conn:
            rows = conn.execute(
                f"SELECT DISTINCT namespace FROM {TABLE} ORDER BY namespace"
            ).fetchall()
        return [row[0] for row in rows]

    def count_keys(self, namespace: str) -> int:
        with self._transaction() as conn:
            row = conn.execute(
                f"SELECT COUNT(*) FROM {TABLE} WHERE namespace = ?",
                (namespace,),
            ).fetchone()
        return int(row[0])
