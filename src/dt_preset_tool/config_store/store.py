"""SQLite gateway for Draw Things generation configurations.

Handles:
- Opening/closing the preset database
- Reading all configurations into an in-memory snapshot
- Inserting and deleting configurations across the record and name tables

A configuration is stored as two rows sharing a rowid:

    generationconfiguration        (rowid, __pk0 = id, p = payload)
    generationconfiguration__f86   (rowid, f86 = name)

All database access happens on a single worker thread owned by the store.
"""
import logging
import sqlite3
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from ..config.settings import load_settings
from ..utils.audit_log import log_change
from ..utils.connection import with_retry
from ..utils.logging_config import timed, timed_section
from .errors import OpenError, QueryError, WriteError
from .models import BatchResult, Configuration, to_signed, to_unsigned

logger = logging.getLogger(__name__)

RECORD_TABLE = "generationconfiguration"
NAME_TABLE = "generationconfiguration__f86"
UNKNOWN_NAME = "Unknown"

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {RECORD_TABLE} (
    rowid INTEGER PRIMARY KEY AUTOINCREMENT,
    __pk0 INTEGER NOT NULL,
    p BLOB,
    UNIQUE(__pk0)
);
CREATE TABLE IF NOT EXISTS {NAME_TABLE} (
    rowid INTEGER PRIMARY KEY,
    f86 TEXT
);
"""

LIST_QUERY = f"""
SELECT gc.__pk0 AS id, CAST(gcf.f86 AS TEXT) AS name, CAST(gc.p AS BLOB) AS data
FROM {RECORD_TABLE} gc
LEFT JOIN {NAME_TABLE} gcf ON gc.rowid = gcf.rowid
WHERE gc.__pk0 != 0
"""

INSERT_RECORD = f"INSERT INTO {RECORD_TABLE} (__pk0, p) VALUES (?, ?)"
INSERT_NAME = f"INSERT INTO {NAME_TABLE} (rowid, f86) VALUES (?, ?)"
DELETE_NAME = (
    f"DELETE FROM {NAME_TABLE} WHERE rowid IN "
    f"(SELECT rowid FROM {RECORD_TABLE} WHERE __pk0 = ?)"
)
DELETE_RECORD = f"DELETE FROM {RECORD_TABLE} WHERE __pk0 = ?"


def init_store(db_path: Path) -> Path:
    """Create an empty preset database (idempotent)."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    try:
        conn.executescript(SCHEMA)
    finally:
        conn.close()
    logger.debug(f"Initialized preset store at {db_path}")
    return db_path


def _decode_text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


class ConfigStore:
    """
    Owns the database connection and the snapshot of stored configurations.

    Usage:
        with ConfigStore(path) as store:
            store.connect().result()
            for config in store.configurations:
                ...

    Every operation is queued on the store's single worker thread. Methods
    that touch the database return a Future; work submitted from the worker
    itself runs inline.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize the store without opening it.

        Args:
            db_path: Database file (default: from settings, then the Draw Things location)
        """
        self.db_path = Path(db_path) if db_path else load_settings().db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._configurations: list[Configuration] = []
        self.last_query_error: Optional[QueryError] = None
        # Bumped on every open/close so reads started earlier are discarded
        self._generation = 0
        self._lock = threading.Lock()
        self._local = threading.local()
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="config-store",
            initializer=self._mark_worker,
        )

    def __enter__(self) -> "ConfigStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    def _mark_worker(self) -> None:
        self._local.is_worker = True

    def _on_worker(self) -> bool:
        return getattr(self._local, "is_worker", False)

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Run a callable on the store worker, or inline if already on it."""
        if self._on_worker():
            future: Future = Future()
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as e:
                future.set_exception(e)
            return future
        return self._executor.submit(fn, *args, **kwargs)

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._conn is not None

    @property
    def configurations(self) -> list[Configuration]:
        """The current snapshot, in query order."""
        with self._lock:
            return list(self._configurations)

    # === Connection Lifecycle ===

    def open(self, db_path: Optional[Path] = None) -> None:
        """
        Open the database, closing any previous connection first.

        Args:
            db_path: Switch to this database file before opening

        Raises:
            OpenError: If the file is missing, unreadable or not a preset store
        """
        self.submit(self._open, db_path).result()

    def close(self) -> None:
        """
        Close the connection and clear the snapshot. Never raises.

        The snapshot is cleared immediately. The connection itself is
        closed on the worker once any in-flight operation has finished;
        that operation's results are discarded.
        """
        with self._lock:
            conn = self._conn
            self._conn = None
            self._configurations = []
            self._generation += 1

        if conn is None:
            return

        if self._on_worker():
            self._close_connection(conn)
        else:
            self._executor.submit(self._close_connection, conn)
        logger.info(f"Closed preset store {self.db_path}")

    def shutdown(self) -> None:
        """Close the store and stop its worker thread."""
        self.close()
        self._executor.shutdown(wait=True)

    def connect(self, on_complete: Optional[Callable[[list[Configuration]], None]] = None) -> Future:
        """Open the database and load all configurations."""
        self.open()
        return self.list_all(on_complete)

    def set_path(
        self,
        db_path: Path,
        on_complete: Optional[Callable[[list[Configuration]], None]] = None,
    ) -> Future:
        """
        Switch to another database file, discarding the current state.

        Raises:
            OpenError: If the new file cannot be opened (the store stays closed)
        """
        self.close()
        self.open(db_path)
        return self.list_all(on_complete)

    def _open(self, db_path: Optional[Path]) -> None:
        if db_path is not None:
            self.db_path = Path(db_path)
        self.close()

        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise OpenError(f"Cannot open preset store {self.db_path}: {e}") from e

        with self._lock:
            self._conn = conn
            self._generation += 1
        logger.info(f"Opened preset store {self.db_path}")

    @with_retry()
    def _connect(self) -> sqlite3.Connection:
        if not self.db_path.is_file():
            raise OpenError(f"Preset store not found: {self.db_path}")

        # mode=rw never creates a missing file
        uri = f"{self.db_path.resolve().as_uri()}?mode=rw"
        conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        conn.text_factory = _decode_text

        try:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name IN (?, ?)",
                (RECORD_TABLE, NAME_TABLE),
            ).fetchall()
        except sqlite3.Error:
            conn.close()
            raise

        if len(rows) != 2:
            conn.close()
            raise OpenError(f"{self.db_path} is not a Draw Things preset store")
        return conn

    @staticmethod
    def _close_connection(conn: sqlite3.Connection) -> None:
        try:
            conn.close()
        except sqlite3.Error as e:
            logger.warning(f"Error closing preset store: {e}")

    # === Reading ===

    def list_all(self, on_complete: Optional[Callable[[list[Configuration]], None]] = None) -> Future:
        """
        Reload the snapshot from the database on the worker.

        Args:
            on_complete: Called on the worker with the published snapshot

        Returns:
            Future resolving to the published snapshot (empty if the store is
            closed, or was closed while the read was running)
        """
        return self.submit(self._refresh, on_complete)

    def _refresh(self, on_complete: Optional[Callable[[list[Configuration]], None]] = None) -> list[Configuration]:
        with self._lock:
            conn = self._conn
            generation = self._generation

        if conn is not None:
            configs = self._fetch(conn)
            with self._lock:
                if generation == self._generation:
                    self._configurations = configs
                else:
                    logger.debug(f"Discarding stale read of {len(configs)} configurations")
        else:
            logger.debug("Preset store is not open; nothing to read")

        snapshot = self.configurations
        if on_complete is not None:
            on_complete(snapshot)
        return snapshot

    @timed("list_all")
    def _fetch(self, conn: sqlite3.Connection) -> list[Configuration]:
        try:
            rows = conn.execute(LIST_QUERY).fetchall()
        except sqlite3.Error as e:
            error = QueryError(f"Failed to read configurations: {e}")
            logger.error(str(error))
            self.last_query_error = error
            return []

        configs = []
        for raw_id, name, data in rows:
            configs.append(Configuration(
                id=to_unsigned(raw_id),
                name=name if name is not None else UNKNOWN_NAME,
                payload=bytes(data) if data is not None else b"",
            ))

        self.last_query_error = None
        logger.debug(f"Read {len(configs)} configurations from {self.db_path}")
        return configs

    # === Writing ===

    def insert(self, configs: Iterable[Configuration]) -> Future:
        """
        Insert configurations, then refresh the snapshot.

        Each configuration is written in its own transaction; a failure
        (e.g. an id that already exists) is reported and the rest continue.

        Returns:
            Future resolving to a BatchResult
        """
        return self.submit(self._apply_batch, "insert", self._insert_one, list(configs))

    def delete(self, configs: Iterable[Configuration]) -> Future:
        """
        Delete configurations by id, then refresh the snapshot.

        Returns:
            Future resolving to a BatchResult
        """
        return self.submit(self._apply_batch, "delete", self._delete_one, list(configs))

    def _apply_batch(
        self,
        operation: str,
        apply: Callable[[sqlite3.Connection, Configuration], None],
        configs: list[Configuration],
    ) -> BatchResult:
        result = BatchResult(operation=operation)

        with self._lock:
            conn = self._conn

        if conn is None:
            logger.warning(f"Cannot {operation} {len(configs)} configurations: store is not open")
            for config in configs:
                result.failed.append((config, WriteError("Preset store is not open", config=config)))
            return result

        with timed_section(operation, target=self.db_path.name, count=len(configs)):
            for config in configs:
                try:
                    apply(conn, config)
                except WriteError as e:
                    logger.error(str(e))
                    result.failed.append((config, e))
                    log_change(operation, config, self.db_path, success=False, error=str(e))
                else:
                    result.succeeded.append(config)
                    log_change(operation, config, self.db_path, success=True)

        logger.info(
            f"{operation.capitalize()}: {len(result.succeeded)} ok, "
            f"{len(result.failed)} failed in {self.db_path.name}"
        )
        self._refresh()
        return result

    def _insert_one(self, conn: sqlite3.Connection, config: Configuration) -> None:
        try:
            with conn:
                cursor = conn.execute(INSERT_RECORD, (to_signed(config.id), config.payload))
                conn.execute(INSERT_NAME, (cursor.lastrowid, config.name))
        except sqlite3.Error as e:
            raise WriteError(f"Failed to insert '{config.name}' ({config.id}): {e}", config=config) from e

    def _delete_one(self, conn: sqlite3.Connection, config: Configuration) -> None:
        pk = to_signed(config.id)
        try:
            with conn:
                # Name row first: its sub-query needs the record row
                conn.execute(DELETE_NAME, (pk,))
                cursor = conn.execute(DELETE_RECORD, (pk,))
        except sqlite3.Error as e:
            raise WriteError(f"Failed to delete '{config.name}' ({config.id}): {e}", config=config) from e

        if cursor.rowcount == 0:
            logger.warning(f"No stored configuration with id {config.id} to delete")
